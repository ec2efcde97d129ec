"""
Pytest fixtures for Ayurvedic practice tests.
"""
import sys
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Ensure src/ and scripts/ are on sys.path so tests can import ayurveda and the seed helpers.
ROOT = Path(__file__).resolve().parent.parent
for path in (ROOT, ROOT / "src", ROOT / "scripts"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

# Load environment variables
load_dotenv()

from ayurveda import DoshaEffects, Food  # noqa: E402

FOODS_CSV = ROOT / "data" / "foods.csv"


# ============================================================================
# Domain fixtures
# ============================================================================


def make_food(food_id: str, calories=100.0, effects=None, **fields) -> Food:
    """Build a domain Food with sensible defaults."""
    return Food(
        id=food_id,
        name=fields.pop("name", food_id.replace("-", " ").title()),
        calories_per_100g=calories,
        dosha_effects=DoshaEffects.parse(effects) if effects is not None else DoshaEffects.absent(),
        **fields,
    )


@pytest.fixture
def food_factory():
    """Factory for domain Food records."""
    return make_food


# ============================================================================
# Database fixtures
# ============================================================================


@pytest.fixture
def db(tmp_path):
    """A fresh practice database seeded with the foods CSV."""
    from server.dietitian_api.database import DatabaseManager
    from seed_database import load_foods

    manager = DatabaseManager(db_path=str(tmp_path / "practice.db"))
    manager.init_schema()
    with manager.get_conn() as conn:
        load_foods(conn, FOODS_CSV)
    return manager


@pytest.fixture
def accounts(db):
    """Bearer tokens for one account per role, keyed by a short name."""
    from seed_database import create_account

    with db.get_conn() as conn:
        tokens = {
            "dietitian": create_account(conn, "dietitian", "Dr. Asha Rao", "asha@example.com"),
            "other_dietitian": create_account(conn, "dietitian", "Dr. Vikram Shah", "vikram@example.com"),
            "admin": create_account(conn, "admin", "Clinic Admin", "admin@example.com"),
            "patient": create_account(conn, "patient", "Meera Iyer", "meera@example.com"),
        }
        conn.execute(
            "INSERT INTO profiles (id, full_name, email, created_at, updated_at) "
            "VALUES ('no-role', 'Nobody', 'nobody@example.com', '2024-01-01', '2024-01-01')"
        )
        conn.execute(
            "INSERT INTO auth_sessions (token, user_id, created_at) VALUES ('no-role-token', 'no-role', '2024-01-01')"
        )
        conn.execute(
            "INSERT INTO auth_sessions (token, user_id, created_at, expires_at) "
            "SELECT 'expired-token', user_id, '2024-01-01', '2024-01-02' FROM auth_sessions WHERE token = ?",
            (tokens["dietitian"],),
        )
    tokens["no_role"] = "no-role-token"
    tokens["expired"] = "expired-token"
    return tokens


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(db):
    """TestClient bound to the temporary database."""
    from fastapi.testclient import TestClient
    from server.dietitian_api.main import app
    from server.dietitian_api.database import get_db

    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def patient_id(client, accounts):
    """A patient of the main dietitian, linked by email to the patient account."""
    response = client.post(
        "/api/patients",
        json={
            "full_name": "Meera Iyer",
            "age": 34,
            "gender": "female",
            "email": "meera@example.com",
            "height_cm": 160,
            "weight_kg": 64,
        },
        headers=auth(accounts["dietitian"]),
    )
    assert response.status_code == 201
    return response.json()["id"]
