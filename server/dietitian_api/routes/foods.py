"""Food database API routes."""
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from ayurveda import aggregate_dosha_effects, profile_summary
from ayurveda.dosha import tallies_to_dict

from ..models.food import Food, FoodProfileSummary
from ..database import DatabaseManager, get_db
from ..services.food_catalog import fetch_active_foods, row_to_core_food, row_to_food
from ..services.session import SessionContext, get_session_context

router = APIRouter(prefix="/api/foods", tags=["Foods"])


@router.get("", response_model=list[Food])
async def list_foods(
    search: Optional[str] = Query(default=None, description="Case-insensitive name filter"),
    category: Optional[str] = Query(default=None, description="Category, or 'all'"),
    session: SessionContext = Depends(get_session_context),
    db: DatabaseManager = Depends(get_db),
):
    """Active foods ordered by name."""
    with db.get_conn() as conn:
        rows = fetch_active_foods(conn, search=search, category=category)
    return [row_to_food(row) for row in rows]


@router.get("/categories", response_model=list[str])
async def list_categories(
    session: SessionContext = Depends(get_session_context),
    db: DatabaseManager = Depends(get_db),
):
    """Distinct categories of active foods."""
    with db.get_conn() as conn:
        rows = conn.execute(
            "SELECT DISTINCT category FROM foods WHERE is_active = 1 ORDER BY category"
        ).fetchall()
    return [row["category"] for row in rows]


@router.get("/summary", response_model=FoodProfileSummary)
async def get_food_summary(
    category: Optional[str] = Query(default=None),
    session: SessionContext = Depends(get_session_context),
    db: DatabaseManager = Depends(get_db),
):
    """
    Distribution of tastes, temperatures and digestibility across
    active foods, plus how many foods increase or decrease each dosha.
    """
    with db.get_conn() as conn:
        foods = [row_to_core_food(row) for row in fetch_active_foods(conn, category=category)]

    return FoodProfileSummary(
        total=len(foods),
        **profile_summary(foods),
        dosha=tallies_to_dict(aggregate_dosha_effects(foods)),
    )


@router.get("/{food_id}", response_model=Food)
async def get_food(
    food_id: str,
    session: SessionContext = Depends(get_session_context),
    db: DatabaseManager = Depends(get_db),
):
    with db.get_conn() as conn:
        row = conn.execute("SELECT * FROM foods WHERE id = ?", (food_id,)).fetchone()
    if row is None:
        raise HTTPException(status_code=404, detail="Food not found")
    return row_to_food(row)
