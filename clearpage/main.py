import logging
import logging.config
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from clearpage.routers.snapshot import limiter, router as snapshot_router

# DEBUG surfaces skipped frames, depth truncation and per-page scoring
LOG_LEVEL = os.getenv("CLEARPAGE_LOG_LEVEL", "INFO").upper()

logging.config.dictConfig(
    {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "format": '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "line": "%(module)s:%(lineno)d"}',
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
            },
        },
        "loggers": {
            "clearpage": {"level": LOG_LEVEL},
        },
        "root": {"level": "INFO", "handlers": ["console"]},
    }
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Clearpage – Accessible Page Snapshot API",
    description=(
        "Turns rendered page markup into an ordered snapshot of its meaningful "
        "content, grouped into scored sections with low-value ones collapsed."
    ),
    version="1.0.0",
)

# Rate-limiting state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception for %s", request.url)
    return JSONResponse(status_code=500, content={"detail": "An unexpected error occurred."})


app.include_router(snapshot_router)


@app.get("/", summary="Health check")
async def root() -> dict:
    return {"message": "Hello from Clearpage"}
