#!/usr/bin/env python3
"""
Create the practice database and load the food-property CSV.

The dosha columns of the CSV accept either symbols ("+", "-") or words
("increase", "decrease", "neutral"); both are stored as given and read
back through the same classification.

Usage:
    python scripts/seed_database.py
    python scripts/seed_database.py --demo
"""
import argparse
import csv
import json
import sqlite3
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Base directory (project root)
BASE_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(BASE_DIR))

from server.dietitian_api.database import DatabaseManager, new_id, utc_now  # noqa: E402

DEFAULT_CSV = BASE_DIR / "data" / "foods.csv"

NUMERIC_COLUMNS = ("calories_per_100g", "protein_g", "carbs_g", "fat_g", "fiber_g")
DOSHA_COLUMNS = ("vata", "pitta", "kapha")

DEMO_ACCOUNTS = [
    {"role": "admin", "full_name": "Demo Admin", "email": "admin@example.com"},
    {"role": "dietitian", "full_name": "Demo Dietitian", "email": "dietitian@example.com"},
    {"role": "patient", "full_name": "Demo Patient", "email": "patient@example.com"},
]


def _number(value: str):
    value = (value or "").strip()
    return float(value) if value else None


def food_record(row: dict) -> dict:
    """Map one CSV row onto the foods table columns."""
    effects = {dosha: row[dosha].strip() for dosha in DOSHA_COLUMNS if (row.get(dosha) or "").strip()}
    secondary = [t.strip() for t in (row.get("secondary_tastes") or "").split(",") if t.strip()]

    record = {
        "id": row.get("id") or new_id(),
        "name": row["name"].strip(),
        "category": row["category"].strip(),
        "primary_taste": row["primary_taste"].strip(),
        "secondary_tastes": json.dumps(secondary) if secondary else None,
        "temperature": (row.get("temperature") or "neutral").strip(),
        "digestibility": (row.get("digestibility") or "moderate").strip(),
        "dosha_effects": json.dumps(effects) if effects else None,
        "is_active": 1,
        "created_at": utc_now(),
    }
    for column in NUMERIC_COLUMNS:
        record[column] = _number(row.get(column))
    if record["calories_per_100g"] is None:
        record["calories_per_100g"] = 0
    return record


def load_foods(conn: sqlite3.Connection, csv_path: Path = DEFAULT_CSV) -> int:
    """
    Insert or replace every food in the CSV.

    Args:
        conn: Open connection with the schema in place
        csv_path: Path to the foods CSV

    Returns:
        Number of rows loaded
    """
    with open(csv_path, "r", newline="", encoding="utf-8-sig") as f:
        records = [food_record(row) for row in csv.DictReader(f)]
    if not records:
        return 0

    columns = list(records[0])
    placeholders = ", ".join(["?"] * len(columns))
    conn.executemany(
        f"INSERT OR REPLACE INTO foods ({', '.join(columns)}) VALUES ({placeholders})",
        [tuple(record[c] for c in columns) for record in records],
    )
    return len(records)


def create_account(
    conn: sqlite3.Connection, role: str, full_name: str, email: str, days_valid: int = 30
) -> str:
    """Create a profile with one role and a bearer session; return the token."""
    user_id = new_id()
    token = new_id()
    now = utc_now()
    expires = (datetime.now(timezone.utc) + timedelta(days=days_valid)).isoformat()

    conn.execute(
        "INSERT INTO profiles (id, full_name, email, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
        (user_id, full_name, email, now, now),
    )
    conn.execute("INSERT INTO user_roles (user_id, role) VALUES (?, ?)", (user_id, role))
    conn.execute(
        "INSERT INTO auth_sessions (token, user_id, created_at, expires_at) VALUES (?, ?, ?, ?)",
        (token, user_id, now, expires),
    )
    return token


def main():
    parser = argparse.ArgumentParser(description="Create and seed the Ayurvedic practice database")
    parser.add_argument("--csv", type=Path, default=DEFAULT_CSV, help="Foods CSV to load")
    parser.add_argument("--db", help="Database file (default: from settings)")
    parser.add_argument("--demo", action="store_true", help="Also create demo accounts and print their tokens")
    args = parser.parse_args()

    db = DatabaseManager(db_path=args.db)

    print("=" * 60)
    print("Ayurvedic Practice Database Seed Script")
    print("=" * 60)
    print(f"\nDatabase: {db.db_path}\n")

    db.init_schema()

    if not args.csv.exists():
        print(f"  ERROR: CSV file not found: {args.csv}")
        sys.exit(1)

    with db.get_conn() as conn:
        count = load_foods(conn, args.csv)
    print(f"Loaded {count} foods from {args.csv.name}")

    if args.demo:
        print("\nDemo accounts:")
        with db.get_conn() as conn:
            for account in DEMO_ACCOUNTS:
                token = create_account(conn, **account)
                print(f"  {account['role']:<10} {account['email']:<24} token: {token}")

    print("\n" + "=" * 60)
    print("Complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
