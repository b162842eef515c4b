from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import FastAPI, Depends
from fastapi.responses import JSONResponse
import uvicorn

from .. import config
from ..errors import EpisodeNotFound, NoOutput, NotFoundUpstream
from ..services.aggregator import MODES, Aggregator
from .dependencies import close_all, get_aggregator

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger("streamrelay.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("Started")
    yield
    await close_all()
    log.info("Shutdown")


app = FastAPI(title="streamrelay", lifespan=lifespan)


def _failure(err: Exception, label: str) -> JSONResponse:
    if isinstance(err, NoOutput):
        return JSONResponse(status_code=404, content={"error": "no_output"})
    if isinstance(err, (NotFoundUpstream, EpisodeNotFound)):
        return JSONResponse(status_code=404, content={"error": str(err)})
    log.exception(f"{label} error")
    return JSONResponse(status_code=500, content={"error": str(err) or "internal"})


def _bad_mode(mode: str) -> Optional[JSONResponse]:
    if mode in MODES:
        return None
    return JSONResponse(status_code=400, content={"error": f"mode must be one of {', '.join(MODES)}"})


# --- 1. MOVIES ---
@app.get("/movie/{tmdb_id}")
@app.get("/api/movie/{tmdb_id}")
async def movie(tmdb_id: str, mode: str = config.AGGREGATION_MODE,
                aggregator: Aggregator = Depends(get_aggregator)):
    bad = _bad_mode(mode)
    if bad:
        return bad
    try:
        return await aggregator.movie(tmdb_id, mode)
    except Exception as err:
        return _failure(err, "movie")


# --- 2. TV EPISODES ---
@app.get("/tv/{tmdb_id}/season/{season}/episode/{episode}")
@app.get("/api/tv/{tmdb_id}/season/{season}/episode/{episode}")
async def tv_episode(tmdb_id: str, season: str, episode: str, mode: str = config.AGGREGATION_MODE,
                     aggregator: Aggregator = Depends(get_aggregator)):
    bad = _bad_mode(mode)
    if bad:
        return bad
    try:
        return await aggregator.show(tmdb_id, season, episode, mode)
    except Exception as err:
        return _failure(err, "tv")


# --- 3. SUBTITLES ONLY ---
@app.get("/subtitles/opensubtitles")
async def opensubtitles(imdbId: Optional[str] = None, season: Optional[int] = None,
                        episode: Optional[int] = None,
                        aggregator: Aggregator = Depends(get_aggregator)):
    if not imdbId:
        return JSONResponse(
            status_code=400,
            content={"error": "imdbId query param is required (e.g. tt0133093)"})
    try:
        return await aggregator.search_captions(imdbId, season, episode)
    except Exception:
        log.exception("Route error /subtitles/opensubtitles")
        return JSONResponse(status_code=500, content={"error": "internal error"})


def serve():
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
