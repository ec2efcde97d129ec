"""SQLite connection manager and schema for the practice database."""
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Generator, Optional
import logging

from .config import get_settings

log = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS profiles (
    id TEXT PRIMARY KEY,
    full_name TEXT NOT NULL,
    email TEXT,
    contact_number TEXT,
    qualification TEXT,
    specialization TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS user_roles (
    user_id TEXT NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
    role TEXT NOT NULL CHECK (role IN ('admin', 'dietitian', 'patient')),
    PRIMARY KEY (user_id, role)
);

CREATE TABLE IF NOT EXISTS auth_sessions (
    token TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
    created_at TEXT NOT NULL,
    expires_at TEXT
);

CREATE TABLE IF NOT EXISTS foods (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    category TEXT NOT NULL,
    description TEXT,
    cuisine_type TEXT,
    primary_taste TEXT NOT NULL CHECK (primary_taste IN ('sweet', 'sour', 'salty', 'bitter', 'pungent', 'astringent')),
    secondary_tastes TEXT,
    temperature TEXT NOT NULL DEFAULT 'neutral' CHECK (temperature IN ('hot', 'cold', 'neutral')),
    digestibility TEXT NOT NULL DEFAULT 'moderate' CHECK (digestibility IN ('easy', 'moderate', 'difficult')),
    calories_per_100g REAL NOT NULL DEFAULT 0,
    protein_g REAL,
    carbs_g REAL,
    fat_g REAL,
    fiber_g REAL,
    calcium_mg REAL,
    iron_mg REAL,
    vitamin_a_mcg REAL,
    vitamin_c_mg REAL,
    dosha_effects TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS patients (
    id TEXT PRIMARY KEY,
    practitioner_id TEXT NOT NULL,
    full_name TEXT NOT NULL,
    age INTEGER NOT NULL,
    gender TEXT NOT NULL CHECK (gender IN ('male', 'female', 'other')),
    email TEXT,
    contact_number TEXT,
    dietary_habit TEXT NOT NULL DEFAULT 'vegetarian',
    meal_frequency INTEGER,
    water_intake_liters REAL,
    bowel_movements_per_day INTEGER,
    medical_history TEXT,
    allergies TEXT,
    current_medications TEXT,
    height_cm REAL,
    weight_kg REAL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS diet_charts (
    id TEXT PRIMARY KEY,
    patient_id TEXT NOT NULL REFERENCES patients(id) ON DELETE CASCADE,
    practitioner_id TEXT NOT NULL,
    chart_date TEXT NOT NULL,
    title TEXT NOT NULL,
    notes TEXT,
    total_calories REAL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS diet_chart_items (
    id TEXT PRIMARY KEY,
    diet_chart_id TEXT NOT NULL REFERENCES diet_charts(id) ON DELETE CASCADE,
    food_id TEXT NOT NULL,
    meal_type TEXT NOT NULL,
    quantity_grams REAL NOT NULL CHECK (quantity_grams > 0),
    meal_time TEXT,
    special_instructions TEXT,
    sort_order INTEGER
);

CREATE TABLE IF NOT EXISTS meal_calendar_entries (
    id TEXT PRIMARY KEY,
    practitioner_id TEXT NOT NULL,
    patient_id TEXT,
    entry_date TEXT NOT NULL,
    meal_type TEXT NOT NULL,
    food_id TEXT NOT NULL,
    quantity_grams REAL NOT NULL CHECK (quantity_grams > 0),
    sort_order INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_calendar_owner_date
    ON meal_calendar_entries (practitioner_id, patient_id, entry_date);

CREATE TABLE IF NOT EXISTS meal_plan_templates (
    id TEXT PRIMARY KEY,
    practitioner_id TEXT NOT NULL,
    name TEXT NOT NULL,
    description TEXT,
    target_dosha TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS meal_plan_template_items (
    id TEXT PRIMARY KEY,
    template_id TEXT NOT NULL REFERENCES meal_plan_templates(id) ON DELETE CASCADE,
    day_of_week INTEGER NOT NULL CHECK (day_of_week BETWEEN 0 AND 6),
    meal_type TEXT NOT NULL,
    food_id TEXT NOT NULL,
    quantity_grams REAL NOT NULL CHECK (quantity_grams > 0),
    sort_order INTEGER NOT NULL DEFAULT 0
);
"""


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class DatabaseManager:
    """
    SQLite database manager for the practice database.
    Each request gets its own connection; a connection block is one
    transaction, committed on success and rolled back on any exception.
    """

    def __init__(self, settings=None, db_path: Optional[str] = None):
        self.settings = settings or get_settings()
        self.db_path = db_path or self.settings.database_path

    @contextmanager
    def get_conn(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a read-write connection that commits when the block exits cleanly."""
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row  # Enable dict-like row access
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_schema(self) -> None:
        """Create tables that do not exist yet."""
        with self.get_conn() as conn:
            conn.executescript(SCHEMA)
        log.info(f"Initialized schema at {self.db_path}")

    def count(self, table: str, where: str = "", params: tuple = ()) -> int:
        """Row count for a table with an optional WHERE clause."""
        with self.get_conn() as conn:
            row = conn.execute(f"SELECT COUNT(*) AS cnt FROM {table} {where}", params).fetchone()
        return row["cnt"]


# Singleton instance
db_manager = DatabaseManager()


def get_db() -> DatabaseManager:
    """FastAPI dependency returning the database manager."""
    return db_manager
