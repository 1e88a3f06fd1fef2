"""
Pytest fixtures for stockroom backend tests.

Every test gets a fresh app on in-memory SQLite, so the inventory document
starts empty and secure settings start at their defaults.
"""

import pytest

from stockroom import create_app
from stockroom.extensions import db
from stockroom.services import session_service, store_service


DELETE_PASSKEY = "801711"
AUTH_PASSKEY = "801711"


@pytest.fixture(scope='function')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'STORE_WRITE_ATTEMPTS': 2,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


def make_user(person_id: str, role: str, **extra) -> dict:
    user = {
        "personId": person_id,
        "name": f"User {person_id}",
        "email": f"{person_id.lower()}@example.com",
        "phone": f"555-{person_id}",
        "joiningDate": "2024-01-01T00:00:00Z",
        "role": role,
    }
    user.update(extra)
    return user


def make_unit(unit_id: str, status: str = "Available", **extra) -> dict:
    unit = {"id": unit_id, "availabilityStatus": status, "billNumber": "B1", "lotName": "L0"}
    unit.update(extra)
    return unit


def make_item(item_id: str, name: str, units: list[dict]) -> dict:
    return {
        "id": item_id,
        "name": name,
        "description": "",
        "subItems": units,
        "totalQuantity": len(units),
    }


def seed_tree(**collections) -> None:
    """Replace whole collections (items, bills, users, notifications)."""
    store_service.load()
    store_service.save(collections)


@pytest.fixture(scope='function')
def seed(app):
    """
    Baseline inventory: one item with four units in every state, one bill,
    and one user per role.
    """
    assignee = make_user("U1", "D")
    seed_tree(
        items=[
            make_item("item-1", "Laptop", [
                make_unit("000001"),
                make_unit("000002", "In Use", assignedTo={
                    **{k: assignee[k] for k in ("personId", "name", "email", "phone")},
                    "assignmentDate": "2024-02-01T00:00:00Z",
                }),
                make_unit("000003", "Discarded", discardedDate="2024-03-01T00:00:00Z"),
                make_unit("000004"),
            ]),
        ],
        bills=[{"billNumber": "B1", "billDate": "2024-01-01", "company": "Acme"}],
        users=[
            make_user("ROOT", "A"),
            make_user("MGR", "B"),
            make_user("CLERK", "C"),
            assignee,
        ],
        notifications=[],
    )
    return store_service.load()


def token_for(person_id: str) -> str:
    _, token = session_service.create_session(person_id)
    return token


def auth_headers(token: str, passkey: str | None = None) -> dict:
    """Helper to create Authorization headers."""
    headers = {'Authorization': f'Bearer {token}'}
    if passkey is not None:
        headers['X-Passkey'] = passkey
    return headers


@pytest.fixture
def admin_headers(seed):
    return auth_headers(token_for("ROOT"))


@pytest.fixture
def manager_headers(seed):
    return auth_headers(token_for("MGR"))


@pytest.fixture
def clerk_headers(seed):
    return auth_headers(token_for("CLERK"))


@pytest.fixture
def member_headers(seed):
    return auth_headers(token_for("U1"))
