"""HTTP surface: FastAPI routes in front of the recommendation ranker."""

from __future__ import annotations

import logging
import time
from datetime import datetime

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

import config
from eventrec.errors import (
    EventNotFoundError,
    InvalidUserIdError,
    StoreUnavailableError,
    UserNotFoundError,
)
from eventrec.models import ScoredCandidate
from eventrec.profile_cache import ProfileCache
from eventrec.ranker import RecommendationRanker, parse_user_id
from eventrec.stores.memory import InMemoryStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Request / response schemas
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class MatchReasonsOut(_CamelModel):
    genre: bool
    type: bool
    artist: bool
    environment: bool
    duration: bool
    time_of_day: bool = Field(serialization_alias="timeOfDay")
    live: bool


class RecommendedEventOut(_CamelModel):
    id: int
    title: str
    description: str
    genre: str
    type: str
    artist: str
    environment: str
    tags: list[str]
    date: datetime
    duration: int
    is_live: bool = Field(serialization_alias="isLive")
    recommendation_score: float = Field(serialization_alias="recommendationScore")
    match_reasons: MatchReasonsOut = Field(serialization_alias="matchReasons")

    @classmethod
    def from_candidate(cls, candidate: ScoredCandidate) -> "RecommendedEventOut":
        event = candidate.event
        reasons = candidate.match_reasons
        return cls(
            id=event.event_id,
            title=event.title,
            description=event.description,
            genre=event.genre,
            type=event.event_type,
            artist=event.artist,
            environment=event.environment,
            tags=sorted(event.tags),
            date=event.date,
            duration=event.duration,
            is_live=event.is_live,
            recommendation_score=candidate.recommendation_score,
            match_reasons=MatchReasonsOut(
                genre=reasons.genre,
                type=reasons.type,
                artist=reasons.artist,
                environment=reasons.environment,
                duration=reasons.duration,
                time_of_day=reasons.time_of_day,
                live=reasons.live,
            ),
        )


class ReactionIn(_CamelModel):
    user_id: int = Field(alias="userId", gt=0)
    event_id: int = Field(alias="eventId", gt=0)
    type: str = Field(min_length=1, max_length=32)


class ReactionOut(_CamelModel):
    id: int
    user_id: int = Field(serialization_alias="userId")
    event_id: int = Field(serialization_alias="eventId")
    type: str
    timestamp: datetime


class PreferencesIn(_CamelModel):
    genres: list[str] | None = None
    favorite_artists: list[str] | None = Field(default=None, alias="favoriteArtists")


class PreferencesOut(_CamelModel):
    genres: list[str]
    favorite_artists: list[str] = Field(serialization_alias="favoriteArtists")


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(
    ranker: RecommendationRanker,
    store: InMemoryStore,
    profile_cache: ProfileCache | None = None,
) -> FastAPI:
    """Build the FastAPI application with all routes and error handlers.

    Args:
        ranker: The :class:`~eventrec.ranker.RecommendationRanker`.
        store: The store backing reactions and preference updates.
        profile_cache: If given, invalidated whenever a user reacts.

    Returns:
        A configured :class:`fastapi.FastAPI` instance.
    """
    app = FastAPI(title="Virtual events recommender")
    if profile_cache is not None:
        store.add_interaction_listener(profile_cache.on_interaction)

    app.include_router(_recommendation_router(ranker))
    app.include_router(_user_router(store))
    _register_error_handlers(app)
    return app


def _recommendation_router(ranker: RecommendationRanker) -> APIRouter:
    router = APIRouter()

    def recommendations(
        user_id: str,
        limit: int = Query(
            config.NUM_RECOMMENDATIONS, ge=1, le=config.MAX_RECOMMENDATIONS
        ),
    ) -> list[dict]:
        start_ms = time.monotonic() * 1000
        try:
            candidates = ranker.recommend(user_id, top_n=limit)
        finally:
            elapsed_ms = time.monotonic() * 1000 - start_ms
            if elapsed_ms > config.RECOMMENDATION_WARN_THRESHOLD_MS:
                logger.warning(
                    "Recommendations for user=%r took %.1fms", user_id, elapsed_ms
                )
            else:
                logger.debug(
                    "Recommendations for user=%r took %.1fms", user_id, elapsed_ms
                )
        return [
            RecommendedEventOut.from_candidate(c).model_dump(mode="json", by_alias=True)
            for c in candidates
        ]

    router.add_api_route("/recommendations/{user_id}", recommendations, methods=["GET"])
    router.add_api_route(
        "/api/users/{user_id}/recommendations", recommendations, methods=["GET"]
    )
    return router


def _user_router(store: InMemoryStore) -> APIRouter:
    router = APIRouter(prefix="/api")

    @router.post("/reactions", status_code=201)
    def add_reaction(body: ReactionIn) -> dict:
        interaction = store.add_interaction(
            user_id=body.user_id,
            event_id=body.event_id,
            reaction_type=body.type,
        )
        return ReactionOut(
            id=interaction.interaction_id,
            user_id=interaction.user_id,
            event_id=interaction.event_id,
            type=interaction.reaction_type,
            timestamp=interaction.occurred_at,
        ).model_dump(mode="json", by_alias=True)

    @router.patch("/users/{user_id}/preferences")
    def update_preferences(user_id: str, body: PreferencesIn) -> dict:
        updated = store.update_preferences(
            parse_user_id(user_id),
            genres=body.genres,
            favorite_artists=body.favorite_artists,
        )
        return PreferencesOut(
            genres=updated.genres, favorite_artists=updated.favorite_artists
        ).model_dump(by_alias=True)

    @router.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return router


def _register_error_handlers(app: FastAPI) -> None:
    def _message(status_code: int, message: str) -> JSONResponse:
        return JSONResponse(status_code=status_code, content={"message": message})

    @app.exception_handler(RequestValidationError)
    async def validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"message": "Validation error", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(InvalidUserIdError)
    async def invalid_user_id(request: Request, exc: InvalidUserIdError) -> JSONResponse:
        return _message(400, str(exc))

    @app.exception_handler(UserNotFoundError)
    async def user_not_found(request: Request, exc: UserNotFoundError) -> JSONResponse:
        return _message(404, "User not found")

    @app.exception_handler(EventNotFoundError)
    async def event_not_found(request: Request, exc: EventNotFoundError) -> JSONResponse:
        return _message(404, "Event not found")

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable(
        request: Request, exc: StoreUnavailableError
    ) -> JSONResponse:
        logger.error("Store unavailable while serving %s: %s", request.url.path, exc)
        return _message(503, "Error getting recommendations")

    @app.exception_handler(Exception)
    async def unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unexpected error serving %s", request.url.path)
        return _message(500, "Server error")
