"""Diet chart API routes.

A chart's ``total_calories`` is a snapshot taken when the chart is
created. Reads report the live total next to it, and the refresh
endpoint overwrites the snapshot on request.
"""
import logging
import sqlite3
from fastapi import APIRouter, Depends, HTTPException

from ayurveda import aggregate_dosha_effects, aggregate_nutrients, resolve_items
from ayurveda.dosha import tallies_to_dict

from ..models.diet_chart import (
    DietChart,
    DietChartCreate,
    DietChartDetail,
    DietChartItem,
    MealGroup,
    NutrientTotalsOut,
)
from ..database import DatabaseManager, get_db, new_id, utc_now
from ..services.food_catalog import fetch_foods_by_id, row_to_core_food, row_to_food
from ..services.session import SessionContext, get_session_context, require_roles
from .patients import _row_to_patient, fetch_patient_for

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/diet-charts", tags=["Diet Charts"])

DIET_MEAL_TYPES = ("breakfast", "mid_morning", "lunch", "evening", "dinner")
STALE_TOLERANCE = 0.01


def _row_to_chart(row) -> DietChart:
    """Convert SQLite row to DietChart model."""
    return DietChart(
        id=row["id"],
        patient_id=row["patient_id"],
        practitioner_id=row["practitioner_id"],
        chart_date=row["chart_date"],
        title=row["title"],
        notes=row["notes"],
        total_calories=row["total_calories"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def fetch_chart_items(conn: sqlite3.Connection, chart_id: str) -> list[tuple[DietChartItem, object]]:
    """Chart items in display order, each paired with its domain Food (or None)."""
    rows = conn.execute(
        """
        SELECT i.id AS item_id, i.food_id, i.meal_type, i.quantity_grams, i.meal_time,
               i.special_instructions, i.sort_order, f.*
        FROM diet_chart_items i
        LEFT JOIN foods f ON f.id = i.food_id
        WHERE i.diet_chart_id = ?
        ORDER BY i.sort_order IS NULL, i.sort_order, i.rowid
        """,
        (chart_id,),
    ).fetchall()

    items = []
    for row in rows:
        food_present = row["id"] is not None
        items.append((
            DietChartItem(
                id=row["item_id"],
                food_id=row["food_id"],
                meal_type=row["meal_type"],
                quantity_grams=float(row["quantity_grams"]),
                meal_time=row["meal_time"],
                special_instructions=row["special_instructions"],
                sort_order=row["sort_order"],
                food=row_to_food(row) if food_present else None,
            ),
            row_to_core_food(row) if food_present else None,
        ))
    return items


def group_by_meal_type(items: list[DietChartItem]) -> list[MealGroup]:
    """Group items by meal type; known meals first in day order, then others as they appear."""
    grouped: dict[str, list[DietChartItem]] = {}
    for item in items:
        grouped.setdefault(item.meal_type, []).append(item)
    ordered = [mt for mt in DIET_MEAL_TYPES if mt in grouped]
    ordered += [mt for mt in grouped if mt not in DIET_MEAL_TYPES]
    return [MealGroup(meal_type=mt, items=grouped[mt]) for mt in ordered]


def _load_chart_row(conn: sqlite3.Connection, chart_id: str, session: SessionContext):
    row = conn.execute("SELECT * FROM diet_charts WHERE id = ?", (chart_id,)).fetchone()
    if row is None:
        raise HTTPException(status_code=404, detail="Diet chart not found")
    if row["practitioner_id"] != session.user_id and not session.is_admin:
        if fetch_patient_for(conn, row["patient_id"], session) is None:
            raise HTTPException(status_code=404, detail="Diet chart not found")
    return row


def _build_detail(conn: sqlite3.Connection, chart_row) -> DietChartDetail:
    chart = _row_to_chart(chart_row)
    patient_row = conn.execute(
        "SELECT * FROM patients WHERE id = ?", (chart.patient_id,)
    ).fetchone()
    items = fetch_chart_items(conn, chart.id)

    totals = aggregate_nutrients((food, item.quantity_grams) for item, food in items).rounded(2)
    dosha = aggregate_dosha_effects(food for _, food in items if food is not None)
    stale = (
        chart.total_calories is None
        or abs(chart.total_calories - totals.calories) > STALE_TOLERANCE
    )

    return DietChartDetail(
        chart=chart,
        patient=_row_to_patient(patient_row) if patient_row else None,
        meals=group_by_meal_type([item for item, _ in items]),
        nutrients=NutrientTotalsOut(**totals.to_dict()),
        dosha=tallies_to_dict(dosha),
        total_is_stale=stale,
    )


@router.post("", response_model=DietChartDetail, status_code=201, response_model_by_alias=True)
async def create_diet_chart(
    body: DietChartCreate,
    session: SessionContext = Depends(require_roles("dietitian", "admin")),
    db: DatabaseManager = Depends(get_db),
):
    """
    Create a diet chart and its items in one transaction.

    The chart's total_calories is computed from the items at this point
    and stored as a snapshot.
    """
    if not body.patient_id:
        raise HTTPException(status_code=400, detail="Please select a patient")
    if not body.items:
        raise HTTPException(status_code=400, detail="Please add at least one food item")

    with db.get_conn() as conn:
        if fetch_patient_for(conn, body.patient_id, session) is None:
            raise HTTPException(status_code=404, detail="Patient not found")

        food_rows = fetch_foods_by_id(conn, (item.food_id for item in body.items))
        unknown = sorted({item.food_id for item in body.items} - set(food_rows))
        if unknown:
            raise HTTPException(status_code=400, detail=f"Unknown food ids: {', '.join(unknown)}")

        foods = {food_id: row_to_core_food(row) for food_id, row in food_rows.items()}
        totals = aggregate_nutrients(
            resolve_items(((item.food_id, item.quantity_grams) for item in body.items), foods)
        )

        chart_id = new_id()
        now = utc_now()
        conn.execute(
            """
            INSERT INTO diet_charts
                (id, patient_id, practitioner_id, chart_date, title, notes,
                 total_calories, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                chart_id, body.patient_id, session.user_id, body.chart_date.isoformat(),
                body.title, body.notes, round(totals.calories, 2), now, now,
            ),
        )
        conn.executemany(
            """
            INSERT INTO diet_chart_items
                (id, diet_chart_id, food_id, meal_type, quantity_grams,
                 meal_time, special_instructions, sort_order)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    new_id(), chart_id, item.food_id, item.meal_type, item.quantity_grams,
                    item.meal_time or None, item.special_instructions or None, index,
                )
                for index, item in enumerate(body.items)
            ],
        )
        logger.info(f"Created diet chart {chart_id} with {len(body.items)} items")
        return _build_detail(conn, _load_chart_row(conn, chart_id, session))


@router.get("/{chart_id}", response_model=DietChartDetail, response_model_by_alias=True)
async def get_diet_chart(
    chart_id: str,
    session: SessionContext = Depends(get_session_context),
    db: DatabaseManager = Depends(get_db),
):
    """Diet chart with items grouped by meal, live nutrient totals and dosha tally."""
    with db.get_conn() as conn:
        return _build_detail(conn, _load_chart_row(conn, chart_id, session))


@router.post("/{chart_id}/refresh-total", response_model=DietChartDetail, response_model_by_alias=True)
async def refresh_chart_total(
    chart_id: str,
    session: SessionContext = Depends(require_roles("dietitian", "admin")),
    db: DatabaseManager = Depends(get_db),
):
    """Recompute the stored total_calories snapshot from the chart's current items."""
    with db.get_conn() as conn:
        row = _load_chart_row(conn, chart_id, session)
        items = fetch_chart_items(conn, chart_id)
        totals = aggregate_nutrients((food, item.quantity_grams) for item, food in items)
        conn.execute(
            "UPDATE diet_charts SET total_calories = ?, updated_at = ? WHERE id = ?",
            (round(totals.calories, 2), utc_now(), row["id"]),
        )
        return _build_detail(conn, _load_chart_row(conn, chart_id, session))
