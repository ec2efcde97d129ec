"""Food lookups shared by the route modules."""
import sqlite3
from typing import Iterable, Optional

from ayurveda import DoshaEffects, Food as CoreFood

from ..models.food import Food, DoshaEffectsOut


def row_to_core_food(row) -> CoreFood:
    """Convert SQLite row to the domain Food record."""
    return CoreFood.from_row(row)


def row_to_food(row) -> Food:
    """Convert SQLite row to the Food API model."""
    core = row_to_core_food(row)
    effects = core.dosha_effects.to_dict()
    return Food(
        id=row["id"],
        name=row["name"],
        category=row["category"],
        description=row["description"],
        cuisine_type=row["cuisine_type"],
        primary_taste=core.primary_taste.value if core.primary_taste else None,
        secondary_tastes=sorted(t.value for t in core.secondary_tastes),
        temperature=core.temperature.value if core.temperature else None,
        digestibility=core.digestibility.value if core.digestibility else None,
        calories_per_100g=core.calories_per_100g,
        protein_g=core.protein_g,
        carbs_g=core.carbs_g,
        fat_g=core.fat_g,
        fiber_g=core.fiber_g,
        calcium_mg=row["calcium_mg"],
        iron_mg=row["iron_mg"],
        vitamin_a_mcg=row["vitamin_a_mcg"],
        vitamin_c_mg=row["vitamin_c_mg"],
        dosha_effects=DoshaEffectsOut(**effects) if effects else None,
        is_active=bool(row["is_active"]),
    )


def fetch_active_foods(
    conn: sqlite3.Connection,
    search: Optional[str] = None,
    category: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[sqlite3.Row]:
    """Active foods ordered by name, optionally filtered."""
    query = "SELECT * FROM foods WHERE is_active = 1"
    params: list = []
    if search:
        query += " AND LOWER(name) LIKE ?"
        params.append(f"%{search.lower()}%")
    if category and category != "all":
        query += " AND category = ?"
        params.append(category)
    query += " ORDER BY name"
    if limit:
        query += " LIMIT ?"
        params.append(limit)
    return conn.execute(query, params).fetchall()


def fetch_foods_by_id(conn: sqlite3.Connection, food_ids: Iterable[str]) -> dict[str, sqlite3.Row]:
    """Rows for the given food ids, active or not. Missing ids are absent."""
    ids = list(dict.fromkeys(food_ids))
    if not ids:
        return {}
    placeholders = ",".join("?" for _ in ids)
    rows = conn.execute(f"SELECT * FROM foods WHERE id IN ({placeholders})", ids).fetchall()
    return {row["id"]: row for row in rows}


def food_for_prompt(row) -> dict:
    """Compact food description handed to the AI assistant."""
    return {
        "name": row["name"],
        "category": row["category"],
        "primary_taste": row["primary_taste"],
        "temperature": row["temperature"],
        "digestibility": row["digestibility"],
        "dosha_effects": DoshaEffects.parse(row["dosha_effects"]).to_dict(),
    }
