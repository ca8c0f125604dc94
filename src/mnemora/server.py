import logging
import time
from contextlib import asynccontextmanager
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from mnemora.application.study.service import StudyService
from mnemora.consts import VERSION
from mnemora.domain.errors import InvalidQuality, StorageError, UnknownCard
from mnemora.domain.progress.models import CardId, Difficulty
from mnemora.interface import presenters

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("mnemora.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Mnemora Server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("Mnemora Server shutting down...")


app = FastAPI(
    title="Mnemora Server",
    description="Spaced-repetition study API.",
    version=VERSION,
    lifespan=lifespan,
)


@lru_cache(maxsize=1)
def get_service() -> StudyService:
    """One service per process so per-card review locks are shared across requests."""
    from mnemora.application.config import resolve_config
    from mnemora.application.factory import get_study_service

    return get_study_service(resolve_config())


@app.exception_handler(InvalidQuality)
async def invalid_quality_handler(request: Request, exc: InvalidQuality):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(UnknownCard)
async def unknown_card_handler(request: Request, exc: UnknownCard):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


start_time = time.time()


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


class AnswerRequest(BaseModel):
    card_id: str = Field(min_length=1)
    quality: int
    response_time_ms: int = Field(default=0, ge=0)
    was_revealed: bool = False


@app.get("/study/next")
async def next_card(
    category: str | None = None,
    difficulty: Difficulty | None = None,
    exclude: str | None = None,
    service: StudyService = Depends(get_service),
):
    """
    Next card to study, or null when the session is complete.

    ``exclude`` is a comma-separated list of card ids to skip.
    """
    excluded = [CardId(c) for c in exclude.split(",") if c] if exclude else None
    try:
        study = await service.next_card(category, difficulty, excluded_ids=excluded)
    except StorageError as e:
        logger.error(f"Next card failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e

    return presenters.study_card_to_dict(study) if study else None


@app.post("/study/answer")
async def answer_card(req: AnswerRequest, service: StudyService = Depends(get_service)):
    """Record a rating and return the rescheduled progress."""
    logger.info(f"Answer for {req.card_id}: quality={req.quality}")
    try:
        result = await service.answer(
            CardId(req.card_id),
            req.quality,
            response_time_ms=req.response_time_ms,
            was_revealed=req.was_revealed,
        )
    except StorageError as e:
        logger.error(f"Answer failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e

    return presenters.answer_to_dict(result)


@app.get("/study/stats")
async def study_stats(
    category: str | None = None,
    difficulty: Difficulty | None = None,
    service: StudyService = Depends(get_service),
):
    try:
        stats = await service.session_stats(category, difficulty)
    except StorageError as e:
        logger.error(f"Stats failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e
    return presenters.stats_to_dict(stats)


@app.get("/study/preview/{card_id}")
async def preview_card(card_id: str, service: StudyService = Depends(get_service)):
    previews = await service.preview(CardId(card_id))
    return presenters.previews_to_dict(previews)


@app.post("/progress/{card_id}/reset")
async def reset_progress(card_id: str, service: StudyService = Depends(get_service)):
    if not await service.reset(CardId(card_id)):
        raise HTTPException(status_code=404, detail="Progress not found")
    return {"ok": True}


@app.get("/progress/streak")
async def get_streak(service: StudyService = Depends(get_service)):
    return presenters.streak_to_dict(await service.streak())
