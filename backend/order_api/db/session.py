import logging
import time

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from order_api.config import Settings
from order_api.db.models import Base

logger = logging.getLogger(__name__)


def build_engine(settings: Settings) -> Engine:
    engine_kwargs = {"pool_pre_ping": True}
    if settings.database_url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}

    return create_engine(settings.database_url, **engine_kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


def ping(engine: Engine) -> bool:
    """Lightweight reachability probe: true when ``SELECT 1`` succeeds."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as exc:
        logger.warning("Database ping failed: %s", exc)
        return False


def init_schema(engine: Engine, retries: int = 5, delay: float = 2.0) -> bool:
    for attempt in range(retries):
        try:
            Base.metadata.create_all(bind=engine)
            logger.info("Database connected")
            return True
        except OperationalError:
            logger.info("Waiting for database... (%d/%d)", attempt + 1, retries)
            if attempt + 1 < retries:
                time.sleep(delay)

    # Keep serving; /health reports the store as unreachable
    logger.warning("Database not ready, schema was not initialized")
    return False
