import logging

from sqlalchemy.engine import Engine

from .config import Settings
from .database import Base, build_session_factory
from .routes import router
from .seed import seed_default_data

logger = logging.getLogger(__name__)


def init_educore_module(engine: Engine, settings: Settings) -> None:
    Base.metadata.create_all(bind=engine)
    if not settings.seed_default_data:
        return
    db = build_session_factory(engine)()
    try:
        seed_default_data(db, settings)
    finally:
        db.close()


__all__ = ["router", "init_educore_module"]
