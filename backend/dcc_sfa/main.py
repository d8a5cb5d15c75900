from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from dcc_sfa.api.api_v1.api import api_router
from dcc_sfa.core.config import settings
from dcc_sfa.core.exceptions import register_exception_handlers
from dcc_sfa.core.logging_config import get_logger, setup_logging
from dcc_sfa.db.init_db import ensure_tables_exist
from dcc_sfa.services.scheduler import get_scheduler_status, init_scheduler, shutdown_scheduler

setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle"""
    logger.info("🚀 Starting DCC SFA backend...")
    await ensure_tables_exist()
    init_scheduler()
    yield
    logger.info("🛑 Shutting down...")
    shutdown_scheduler()


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    description="DCC sales force automation API",
    lifespan=lifespan
)

if settings.BACKEND_CORS_ORIGINS:
    logger.info(f"CORS origins: {settings.BACKEND_CORS_ORIGINS}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

register_exception_handlers(app)

# Generated contracts and other stored files
Path(settings.STORAGE_DIR).mkdir(parents=True, exist_ok=True)
app.mount(settings.STORAGE_PUBLIC_URL, StaticFiles(directory=settings.STORAGE_DIR), name="uploads")

logger.info(f"Registering API routes under {settings.API_V1_STR}")
app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/")
async def root():
    return {"message": "DCC SFA backend"}


@app.get("/health")
async def health():
    return {"status": "ok", "scheduler": get_scheduler_status()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000, log_level="info")
