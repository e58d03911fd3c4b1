from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from grocery.api.api_v1.api import api_router
from grocery.core.config import settings
from grocery.core.logging_config import setup_logging, get_logger
from grocery.services.scheduler import init_scheduler, shutdown_scheduler, get_scheduler_status
from grocery.db.init_db import ensure_tables_exist

setup_logging(settings.LOG_LEVEL, settings.LOG_DIR)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Starting up...")

    try:
        await ensure_tables_exist()
        logger.info("📊 Database tables ready")
    except Exception as e:
        logger.warning(f"Table initialisation warning: {e}")

    init_scheduler()
    yield
    logger.info("🛑 Shutting down...")
    shutdown_scheduler()

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    description="Grocery commerce backend - retail and wholesale storefronts",
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

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/")
async def root():
    return {"message": settings.PROJECT_NAME}


@app.get("/health")
async def health():
    return {"status": "ok", "scheduler": get_scheduler_status()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000, log_level="info")
