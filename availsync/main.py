from fastapi import FastAPI
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from availsync import __version__
from availsync.utils.logger import setup_logging, change_log_level_runtime


# Setup basic logging first (before DB access)
setup_logging("INFO")

from availsync.database import init_db
from availsync.startup import init_config, get_log_level_from_db
from availsync.services.scheduler import start_scheduler, stop_scheduler
from availsync.api import jobs


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Starting availsync {__version__}...")
    try:
        init_db()
        logger.info("✓ Database initialized")
    except Exception as e:
        logger.error(f"✗ Database init failed: {e}")
        raise

    try:
        init_config()
    except Exception as e:
        logger.error(f"✗ Config init failed: {e}")

    change_log_level_runtime(get_log_level_from_db())

    try:
        start_scheduler()
    except Exception as e:
        logger.error(f"✗ Scheduler init failed: {e}")

    yield

    # Shutdown
    logger.info("Shutting down availsync...")
    stop_scheduler()


app = FastAPI(
    title="availsync",
    description="Reconciles media availability with Radarr, Sonarr and the media server",
    version=__version__,
    lifespan=lifespan
)

app.include_router(jobs.router)


@app.get("/health")
async def health_check():
    return {"status": "ok", "version": __version__}


@app.get("/")
async def root():
    return JSONResponse({
        "app": "availsync",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    })


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
