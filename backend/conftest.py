import pytest
from fastapi.testclient import TestClient

from order_api.config import load_settings
from order_api.db.models import Base
from order_api.db.session import build_engine, build_session_factory
from order_api.main import create_app


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'orders.db'}"


@pytest.fixture
def settings(database_url):
    return load_settings({"ORDER_API_ENV": "development", "DATABASE_URL": database_url})


@pytest.fixture
def engine(settings):
    engine = build_engine(settings)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client
