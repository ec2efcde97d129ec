"""Weekly meal calendar and meal plan template API routes."""
import logging
import sqlite3
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ayurveda import CalendarOwner, CalendarStoreError, Dosha, TemplateItem, WeekGrid, balancing_foods
from ayurveda.meal_calendar import SlotNotFoundError

from ..models.food import Food
from ..models.meal_calendar import (
    ApplyTemplateRequest,
    CalendarMealType,
    PlaceEntryRequest,
    Template,
    TemplateCreate,
    TemplateFromWeek,
    TemplateItemIn,
)
from ..models.meal_calendar import TemplateItem as TemplateItemOut
from ..database import DatabaseManager, get_db, new_id, utc_now
from ..services.calendar_store import SQLiteCalendarStore
from ..services.food_catalog import fetch_active_foods, fetch_foods_by_id, row_to_core_food, row_to_food
from ..services.session import SessionContext, require_roles
from .patients import fetch_patient_for

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/meal-calendar", tags=["Meal Calendar"])

practitioner_session = require_roles("dietitian", "admin")


def _open_grid(
    db: DatabaseManager,
    session: SessionContext,
    patient_id: Optional[str],
    today: Optional[date] = None,
    offset: int = 0,
) -> WeekGrid:
    """Load the week grid for the session's practitioner and optional patient."""
    if patient_id:
        with db.get_conn() as conn:
            if fetch_patient_for(conn, patient_id, session) is None:
                raise HTTPException(status_code=404, detail="Patient not found")

    grid = WeekGrid(
        SQLiteCalendarStore(db),
        CalendarOwner(practitioner_id=session.user_id, patient_id=patient_id or None),
        today=today,
        offset=offset,
    )
    try:
        grid.load()
    except CalendarStoreError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return grid


@router.get("")
async def get_week(
    offset: int = Query(default=0, description="Whole weeks from the current week"),
    patient_id: Optional[str] = Query(default=None, description="Omit for the personal plan"),
    today: Optional[date] = Query(default=None, description="Reference date, defaults to today"),
    session: SessionContext = Depends(practitioner_session),
    db: DatabaseManager = Depends(get_db),
):
    """The seven days of the requested week with meals and daily calorie totals."""
    return _open_grid(db, session, patient_id, today, offset).to_dict()


@router.post("/entries", status_code=201)
async def place_entry(
    body: PlaceEntryRequest,
    session: SessionContext = Depends(practitioner_session),
    db: DatabaseManager = Depends(get_db),
):
    """Add a food to the end of a meal slot."""
    with db.get_conn() as conn:
        row = conn.execute(
            "SELECT * FROM foods WHERE id = ? AND is_active = 1", (body.food_id,)
        ).fetchone()
    if row is None:
        raise HTTPException(status_code=404, detail="Food not found")

    grid = _open_grid(db, session, body.patient_id, today=body.entry_date)
    food = row_to_core_food(row)
    try:
        slot = grid.place(body.entry_date, body.meal_type, food, body.quantity_grams)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CalendarStoreError as e:
        raise HTTPException(status_code=503, detail=f"{e}. The meal was not added.")

    return {
        "entry": slot.to_dict(),
        "date": body.entry_date.isoformat(),
        "meal_type": body.meal_type,
        "day_total": grid.day_total(body.entry_date),
        "message": f"Added {food.name} to {body.meal_type}",
    }


@router.delete("/entries/{entry_id}")
async def remove_entry(
    entry_id: str,
    entry_date: date = Query(...),
    meal_type: CalendarMealType = Query(...),
    patient_id: Optional[str] = Query(default=None),
    session: SessionContext = Depends(practitioner_session),
    db: DatabaseManager = Depends(get_db),
):
    """Remove one food from a meal slot."""
    grid = _open_grid(db, session, patient_id, today=entry_date)
    try:
        slot = grid.remove(entry_date, meal_type, entry_id)
    except SlotNotFoundError:
        raise HTTPException(status_code=404, detail="Meal entry not found")
    except CalendarStoreError as e:
        raise HTTPException(status_code=503, detail=f"{e}. The calendar has been reloaded.")

    return {
        "removed": slot.to_dict(),
        "day_total": grid.day_total(entry_date),
    }


@router.get("/suggestions", response_model=list[Food])
async def get_suggestions(
    dosha: Optional[str] = Query(default=None, description="vata, pitta or kapha"),
    session: SessionContext = Depends(practitioner_session),
    db: DatabaseManager = Depends(get_db),
):
    """Foods that pacify the chosen dosha, or a short default list if none do."""
    if not dosha or dosha == "all":
        raise HTTPException(
            status_code=400, detail="Please select a dosha to get personalized suggestions"
        )
    try:
        target = Dosha(dosha.lower())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown dosha: {dosha}")

    with db.get_conn() as conn:
        rows = fetch_active_foods(conn)
    rows_by_id = {row["id"]: row for row in rows}
    foods = balancing_foods([row_to_core_food(row) for row in rows], target)
    return [row_to_food(rows_by_id[food.id]) for food in foods]


# ============================================================================
# Meal plan templates
# ============================================================================


def _load_template(conn: sqlite3.Connection, template_id: str, session: SessionContext) -> Template:
    row = conn.execute(
        "SELECT * FROM meal_plan_templates WHERE id = ?", (template_id,)
    ).fetchone()
    if row is None or (row["practitioner_id"] != session.user_id and not session.is_admin):
        raise HTTPException(status_code=404, detail="Template not found")

    items = conn.execute(
        """
        SELECT * FROM meal_plan_template_items
        WHERE template_id = ?
        ORDER BY day_of_week, meal_type, sort_order, rowid
        """,
        (template_id,),
    ).fetchall()
    return Template(
        id=row["id"],
        practitioner_id=row["practitioner_id"],
        name=row["name"],
        description=row["description"],
        target_dosha=row["target_dosha"],
        created_at=row["created_at"],
        items=[
            TemplateItemOut(
                id=item["id"],
                day_of_week=item["day_of_week"],
                meal_type=item["meal_type"],
                food_id=item["food_id"],
                quantity_grams=item["quantity_grams"],
                sort_order=item["sort_order"],
            )
            for item in items
        ],
    )


def _insert_template(
    conn: sqlite3.Connection,
    session: SessionContext,
    name: str,
    description: Optional[str],
    target_dosha: Optional[str],
    items: list[TemplateItemIn],
) -> str:
    known = fetch_foods_by_id(conn, (item.food_id for item in items))
    unknown = sorted({item.food_id for item in items} - set(known))
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown food ids: {', '.join(unknown)}")

    template_id = new_id()
    conn.execute(
        """
        INSERT INTO meal_plan_templates
            (id, practitioner_id, name, description, target_dosha, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (template_id, session.user_id, name, description, target_dosha, utc_now()),
    )
    logger.info(f"[CALENDAR] Saving template {name!r} with {len(items)} items")
    conn.executemany(
        """
        INSERT INTO meal_plan_template_items
            (id, template_id, day_of_week, meal_type, food_id, quantity_grams, sort_order)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        [
            (
                new_id(), template_id, item.day_of_week, item.meal_type,
                item.food_id, item.quantity_grams, item.sort_order,
            )
            for item in items
        ],
    )
    return template_id


@router.get("/templates", response_model=list[Template])
async def list_templates(
    session: SessionContext = Depends(practitioner_session),
    db: DatabaseManager = Depends(get_db),
):
    with db.get_conn() as conn:
        rows = conn.execute(
            "SELECT id FROM meal_plan_templates WHERE practitioner_id = ? ORDER BY name",
            (session.user_id,),
        ).fetchall()
        return [_load_template(conn, row["id"], session) for row in rows]


@router.post("/templates", response_model=Template, status_code=201)
async def create_template(
    body: TemplateCreate,
    session: SessionContext = Depends(practitioner_session),
    db: DatabaseManager = Depends(get_db),
):
    with db.get_conn() as conn:
        template_id = _insert_template(
            conn, session, body.name, body.description, body.target_dosha, body.items
        )
        return _load_template(conn, template_id, session)


@router.post("/templates/from-week", response_model=Template, status_code=201)
async def create_template_from_week(
    body: TemplateFromWeek,
    session: SessionContext = Depends(practitioner_session),
    db: DatabaseManager = Depends(get_db),
):
    """Save the meals of a calendar week as a reusable template."""
    grid = _open_grid(db, session, body.patient_id, body.today, body.offset)
    items = [
        TemplateItemIn(
            day_of_week=item.day_of_week,
            meal_type=item.meal_type,
            food_id=item.food_id,
            quantity_grams=item.quantity_grams,
            sort_order=item.sort_order,
        )
        for item in grid.as_template_items()
    ]
    if not items:
        raise HTTPException(status_code=400, detail="This week has no meals to save")

    with db.get_conn() as conn:
        template_id = _insert_template(
            conn, session, body.name, body.description, body.target_dosha, items
        )
        return _load_template(conn, template_id, session)


@router.get("/templates/{template_id}", response_model=Template)
async def get_template(
    template_id: str,
    session: SessionContext = Depends(practitioner_session),
    db: DatabaseManager = Depends(get_db),
):
    with db.get_conn() as conn:
        return _load_template(conn, template_id, session)


@router.delete("/templates/{template_id}", status_code=204)
async def delete_template(
    template_id: str,
    session: SessionContext = Depends(practitioner_session),
    db: DatabaseManager = Depends(get_db),
):
    with db.get_conn() as conn:
        _load_template(conn, template_id, session)
        conn.execute("DELETE FROM meal_plan_templates WHERE id = ?", (template_id,))


@router.post("/templates/{template_id}/apply")
async def apply_template(
    template_id: str,
    body: ApplyTemplateRequest,
    session: SessionContext = Depends(practitioner_session),
    db: DatabaseManager = Depends(get_db),
):
    """
    Replace a calendar week with a template.

    All existing meals in the week are deleted and the template's meals
    written in their place, as one transaction.
    """
    with db.get_conn() as conn:
        template = _load_template(conn, template_id, session)

    grid = _open_grid(db, session, body.patient_id, body.today, body.offset)
    try:
        applied = grid.apply_template(
            TemplateItem(
                day_of_week=item.day_of_week,
                meal_type=item.meal_type,
                food_id=item.food_id,
                quantity_grams=item.quantity_grams,
                sort_order=item.sort_order,
            )
            for item in template.items
        )
    except CalendarStoreError as e:
        raise HTTPException(
            status_code=503, detail=f"{e}. The week was left unchanged."
        )

    logger.info(f"[CALENDAR] Applied template {template.id} for {session.user_id}: {applied} entries")
    return {
        "applied": applied,
        "template_id": template.id,
        "week": grid.to_dict(),
    }
