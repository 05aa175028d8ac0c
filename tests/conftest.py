"""Pytest configuration and shared fixtures."""

import pytest
from fastapi.testclient import TestClient

from webmail.config import Config, DatabaseConfig, WebConfig
from webmail.database import Database, MessageRepository, UserRepository
from webmail.mail.service import ComposeRequest, MessageService
from webmail.models import ROLE_ADMIN
from webmail.users import UserService
from webmail.web import create_app

PASSWORD = "secret123"


@pytest.fixture
def db(tmp_path):
    """Provide a fresh SQLite database for each test."""
    database = Database(str(tmp_path / "webmail.db"))
    yield database
    database.close()


@pytest.fixture
def user_repo(db) -> UserRepository:
    return UserRepository(db)


@pytest.fixture
def message_repo(db) -> MessageRepository:
    return MessageRepository(db)


@pytest.fixture
def message_service(message_repo, user_repo) -> MessageService:
    return MessageService(message_repo, user_repo)


@pytest.fixture
def user_service(user_repo) -> UserService:
    return UserService(user_repo)


@pytest.fixture
def make_user(user_repo):
    """Create users on demand: make_user("alice") -> alice@example.com."""

    def _make(name: str, role: str = "user", active: bool = True):
        user_id = user_repo.create(
            email=f"{name}@example.com",
            password=PASSWORD,
            first_name=name.capitalize(),
            last_name="Tester",
            role=role,
        )
        if not active:
            user_repo.set_active(user_id, False)
        return user_repo.get_by_id(user_id)

    return _make


@pytest.fixture
def alice(make_user):
    return make_user("alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob")


@pytest.fixture
def carol(make_user):
    return make_user("carol")


@pytest.fixture
def admin(make_user):
    return make_user("admin", role=ROLE_ADMIN)


@pytest.fixture
def send(message_service):
    """Send a message as `user` to addresses given as lists."""

    def _send(user, to, subject="Hello", body="Hi there", cc=None, bcc=None, is_draft=False):
        request = ComposeRequest(
            to=list(to),
            cc=list(cc or []),
            bcc=list(bcc or []),
            subject=subject,
            body=body,
            is_draft=is_draft,
        )
        return message_service.send(user, request).message

    return _send


@pytest.fixture
def config(tmp_path) -> Config:
    return Config(
        web=WebConfig(session_secret="test-secret-with-enough-length"),
        database=DatabaseConfig(path=str(tmp_path / "webmail.db")),
    )


@pytest.fixture
def app(config, message_repo, user_repo):
    return create_app(config, message_repo, user_repo)


@pytest.fixture
def client_for(app):
    """Return a TestClient signed in as the given user."""

    def _client(user=None) -> TestClient:
        client = TestClient(app)
        if user is not None:
            response = client.post(
                "/api/auth/login", json={"email": user.email, "password": PASSWORD}
            )
            assert response.status_code == 200, response.text
        return client

    return _client


@pytest.fixture
def password() -> str:
    """Password shared by every account created with make_user."""
    return PASSWORD
