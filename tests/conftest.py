import pytest

from finance_tracker.config import AppConfig
from finance_tracker.models import db
from finance_tracker.users import upsert_user
from finance_tracker.webapp import create_app


@pytest.fixture
def app():
    cfg = AppConfig(database_url="sqlite://", cors_origins=["http://localhost:3000"], log_level="WARNING")
    app = create_app(config=cfg)
    app.config["TESTING"] = True
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def user(app):
    return upsert_user("u1", "u1@example.com", "User One")


@pytest.fixture
def other_user(app):
    return upsert_user("u2", "u2@example.com", "User Two")
