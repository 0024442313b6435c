"""Entry point: wires all components and starts the HTTP server."""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI

import config
from eventrec.api import create_app
from eventrec.profile_cache import ProfileCache
from eventrec.ranker import RecommendationRanker
from eventrec.seed import load_seed
from eventrec.stores.memory import InMemoryStore

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def build_app(store: InMemoryStore) -> FastAPI:
    """Construct the FastAPI application with all dependencies wired.

    Args:
        store: The populated :class:`~eventrec.stores.memory.InMemoryStore`.

    Returns:
        A configured :class:`fastapi.FastAPI` application.
    """
    profile_cache = ProfileCache(ttl_seconds=config.PROFILE_CACHE_TTL_SECONDS)
    ranker = RecommendationRanker(
        event_store=store,
        interaction_store=store,
        user_store=store,
        profile_cache=profile_cache if profile_cache.enabled else None,
    )
    return create_app(
        ranker,
        store,
        profile_cache=profile_cache if profile_cache.enabled else None,
    )


def main() -> None:
    """Initialise all components and serve HTTP until interrupted.

    Startup sequence:
    1. Create the in-memory store.
    2. Load the seed document, if ``SEED_FILE`` is set.
    3. Build the application and hand it to uvicorn.
    """
    store = InMemoryStore()
    if config.SEED_FILE:
        logger.info("Loading seed data from %s", config.SEED_FILE)
        load_seed(store, config.SEED_FILE)
    else:
        logger.info("No SEED_FILE configured; starting with an empty store.")

    app = build_app(store)
    logger.info(
        "Recommender HTTP server listening on %s:%d",
        config.HTTP_HOST,
        config.HTTP_PORT,
    )
    uvicorn.run(app, host=config.HTTP_HOST, port=config.HTTP_PORT, log_level=config.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
