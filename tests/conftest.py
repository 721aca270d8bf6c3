"""
Shared fixtures: every test gets its own sqlite database, QR directory and
Flask app built from explicit settings (no environment or settings file).
"""
import os
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from settings_store import DEFAULT_SETTINGS  # noqa: E402
from web_app import create_app  # noqa: E402


BASE_URL = "http://feedback.test"
PASSWORD = "correct-horse"


@pytest.fixture
def settings(tmp_path):
    settings = DEFAULT_SETTINGS.copy()
    settings.update({
        "database_url": str(tmp_path / "feedback.db"),
        "qr_code_dir": str(tmp_path / "qr_codes"),
        "jwt_secret": "test-secret",
        "public_base_url": BASE_URL,
        "bcrypt_rounds": 4,
    })
    return settings


@pytest.fixture
def app(settings):
    app = create_app(settings)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def qr_dir(app):
    return app.extensions["qr_provisioner"].qr_dir


def register(client, name, email, password=PASSWORD, role=None):
    body = {"name": name, "email": email, "password": password}
    if role:
        body["role"] = role
    return client.post("/api/advisors/register", json=body)


def login(client, email, password=PASSWORD):
    return client.post("/api/advisors/login", json={"email": email, "password": password})


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def _account(client, name, email, role=None):
    response = register(client, name, email, role=role)
    assert response.status_code == 201, response.get_json()
    token = login(client, email).get_json()["token"]
    return {"id": response.get_json()["advisorId"], "token": token, "headers": bearer(token)}


@pytest.fixture
def advisor(client):
    return _account(client, "Alice Advisor", "alice@example.com")


@pytest.fixture
def other_advisor(client):
    return _account(client, "Bob Advisor", "bob@example.com")


@pytest.fixture
def manager(client):
    return _account(client, "Mona Manager", "mona@example.com", role="manager")


def submit_survey(client, advisor_id, ratings, comment=""):
    form = {f"q{i}": str(value) for i, value in enumerate(ratings, start=1)}
    form["comment"] = comment
    return client.post(f"/api/feedback/submit/{advisor_id}", data=form)


def is_png(path):
    if not os.path.isfile(path):
        return False
    with open(path, "rb") as file_obj:
        return file_obj.read(8) == b"\x89PNG\r\n\x1a\n"
