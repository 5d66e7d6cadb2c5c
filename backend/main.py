import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi import Limiter
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from backend.educore import init_educore_module, router as educore_router
from backend.educore.config import BACKEND_DIR, Settings, get_settings
from backend.educore.database import build_engine, build_session_factory
from backend.educore.responses import register_exception_handlers
from backend.educore.routes import health

# Configure Logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)


def _upload_path(settings: Settings) -> str:
    if os.path.isabs(settings.upload_dir):
        return settings.upload_dir
    return os.path.join(BACKEND_DIR, settings.upload_dir)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    logging.getLogger().setLevel(settings.log_level)

    engine = build_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Initializing EduCore ({settings.environment})...")
        try:
            init_educore_module(engine, settings)
        except Exception as e:
            logger.error(f"Startup database error: {e}")
            raise
        logger.info("EduCore initialized.")
        yield
        logger.info("Shutting down...")
        engine.dispose()

    app = FastAPI(title="EduCore API", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit],
        storage_uri="memory://",
    )
    limiter.exempt(health.health_check)
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    upload_dir = _upload_path(settings)
    os.makedirs(upload_dir, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=upload_dir), name="uploads")

    app.include_router(health.router)
    app.include_router(educore_router)
    register_exception_handlers(app)
    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    logger.info(f"EduCore API starting on {settings.host}:{settings.port} [{settings.environment}]")
    uvicorn.run("backend.main:create_app", factory=True, host=settings.host, port=settings.port)
