"""FastAPI JSON API for padelrr."""

import logging
import os
import threading
from dataclasses import asdict
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from padelrr.config_loader import DEFAULT_DB_PATH
from padelrr.errors import ConflictError, NotFoundError, ValidationError
from padelrr.models import Match, Standing
from padelrr.service import TournamentService
from padelrr.storage import DatabaseManager

logger = logging.getLogger(__name__)

_service_lock = threading.Lock()


class ScoreUpdate(BaseModel):
    """Body of PUT /api/matches/{match_id}/score.

    Omitted fields are left unchanged; an empty string clears winner_id,
    scheduled_time or venue_id.
    """

    sets: Optional[list[tuple[int, int]]] = None
    status: Optional[str] = None
    winner_id: Optional[str] = None
    scheduled_time: Optional[str] = None
    venue_id: Optional[str] = None


def match_to_dict(match: Match) -> dict:
    data = asdict(match)
    data["sets"] = [list(s) for s in match.sets]
    data["phase"] = match.phase.value
    data["status"] = match.status.value
    data["scheduled_time"] = match.scheduled_time.isoformat() if match.scheduled_time else None
    return data


def standing_to_dict(standing: Standing) -> dict:
    return asdict(standing)


def get_service(request: Request) -> TournamentService:
    """Service attached to the app, built from PADELRR_DB on first use."""
    service = request.app.state.service
    if service is not None:
        return service
    with _service_lock:
        if request.app.state.service is None:
            db = DatabaseManager(os.environ.get("PADELRR_DB", DEFAULT_DB_PATH))
            db.create_tables()
            request.app.state.service = TournamentService(db)
            logger.info("Serving database %s", db.db_path)
        return request.app.state.service


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse({"error": type(exc).__name__, "detail": str(exc)}, status_code=status_code)


def create_app(service: Optional[TournamentService] = None) -> FastAPI:
    """Build the API application.

    Args:
        service: Service to serve; when omitted one is created lazily from
            the PADELRR_DB environment variable on the first request
    """
    app = FastAPI(title="Padel Round Robin")
    app.state.service = service

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        return _error(400, exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse({"error": "ValidationError", "detail": jsonable_encoder(exc.errors())}, status_code=400)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error(404, exc)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        logger.info("Conflict on %s %s: %s", request.method, request.url.path, exc)
        return _error(409, exc)

    @app.get("/api/health")
    def health():
        return {"status": "ok"}

    @app.post("/api/tournaments/{tournament_id}/groups/{group_id}/fixtures")
    def generate_group_fixtures(
        tournament_id: str,
        group_id: str,
        replace: bool = False,
        service: TournamentService = Depends(get_service),
    ):
        matches = service.generate_fixtures(group_id, replace=replace, tournament_id=tournament_id)
        return {"matches": [match_to_dict(m) for m in matches]}

    @app.post("/api/tournaments/{tournament_id}/fixtures")
    def generate_tournament_fixtures(
        tournament_id: str,
        replace: bool = False,
        service: TournamentService = Depends(get_service),
    ):
        matches = service.generate_all_fixtures(tournament_id, replace=replace)
        return {"matches": [match_to_dict(m) for m in matches]}

    @app.get("/api/groups/{group_id}/matches")
    def group_matches(group_id: str, service: TournamentService = Depends(get_service)):
        return {"matches": [match_to_dict(m) for m in service.get_group_matches(group_id)]}

    @app.put("/api/matches/{match_id}/score")
    def update_score(
        match_id: str,
        update: ScoreUpdate,
        service: TournamentService = Depends(get_service),
    ):
        service.record_match_result(
            match_id,
            sets=update.sets,
            status=update.status,
            winner_id=update.winner_id,
            scheduled_time=update.scheduled_time,
            venue_id=update.venue_id,
        )
        return match_to_dict(service.get_match(match_id))

    @app.get("/api/tournaments/{tournament_id}/groups/{group_id}/standings")
    def group_standings(
        tournament_id: str,
        group_id: str,
        service: TournamentService = Depends(get_service),
    ):
        standings = service.get_standings(tournament_id, group_id)
        return {"standings": [standing_to_dict(s) for s in standings]}

    @app.get("/api/tournaments/{tournament_id}/standings")
    def tournament_standings(tournament_id: str, service: TournamentService = Depends(get_service)):
        by_group = service.get_tournament_standings(tournament_id)
        return {
            "groups": {
                group_id: [standing_to_dict(s) for s in standings]
                for group_id, standings in by_group.items()
            }
        }

    return app


app = create_app()
