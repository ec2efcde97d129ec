"""SQLite-backed store for the weekly meal calendar."""
import logging
import sqlite3
from datetime import date

from ayurveda.foods import Food
from ayurveda.meal_calendar import (
    CalendarEntry,
    CalendarOwner,
    CalendarStoreError,
    NewEntry,
)

from ..database import DatabaseManager, new_id, utc_now
from .food_catalog import row_to_core_food

logger = logging.getLogger(__name__)

_OWNER_FILTER = "practitioner_id = ? AND patient_id IS ?"


class SQLiteCalendarStore:
    """
    Persists meal calendar entries for one owner discriminator
    (practitioner plus patient, or practitioner alone).
    """

    def __init__(self, db: DatabaseManager):
        self.db = db

    def fetch_range(self, owner: CalendarOwner, start: date, end: date) -> list[CalendarEntry]:
        try:
            with self.db.get_conn() as conn:
                rows = conn.execute(
                    """
                    SELECT e.id AS entry_id, e.entry_date, e.meal_type, e.quantity_grams,
                           e.sort_order, e.food_id, f.*
                    FROM meal_calendar_entries e
                    LEFT JOIN foods f ON f.id = e.food_id
                    WHERE e.practitioner_id = ? AND e.patient_id IS ?
                      AND e.entry_date BETWEEN ? AND ?
                    ORDER BY e.entry_date, e.sort_order, e.rowid
                    """,
                    (owner.practitioner_id, owner.patient_id, start.isoformat(), end.isoformat()),
                ).fetchall()
        except sqlite3.Error as e:
            raise CalendarStoreError(f"Failed to load meal calendar: {e}") from e

        return [
            CalendarEntry(
                id=row["entry_id"],
                entry_date=date.fromisoformat(row["entry_date"]),
                meal_type=row["meal_type"],
                food=row_to_core_food(row) if row["id"] is not None else None,
                quantity=float(row["quantity_grams"]),
                sort_order=int(row["sort_order"] or 0),
            )
            for row in rows
        ]

    def insert(
        self,
        owner: CalendarOwner,
        entry_date: date,
        meal_type: str,
        food: Food,
        quantity: float,
        sort_order: int,
    ) -> CalendarEntry:
        entry_id = new_id()
        try:
            with self.db.get_conn() as conn:
                conn.execute(
                    """
                    INSERT INTO meal_calendar_entries
                        (id, practitioner_id, patient_id, entry_date, meal_type,
                         food_id, quantity_grams, sort_order, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        entry_id, owner.practitioner_id, owner.patient_id,
                        entry_date.isoformat(), meal_type, food.id, quantity,
                        sort_order, utc_now(),
                    ),
                )
        except sqlite3.Error as e:
            raise CalendarStoreError(f"Failed to save meal: {e}") from e

        return CalendarEntry(
            id=entry_id,
            entry_date=entry_date,
            meal_type=meal_type,
            food=food,
            quantity=quantity,
            sort_order=sort_order,
        )

    def delete(self, owner: CalendarOwner, entry_id: str) -> None:
        try:
            with self.db.get_conn() as conn:
                cursor = conn.execute(
                    f"DELETE FROM meal_calendar_entries WHERE id = ? AND {_OWNER_FILTER}",
                    (entry_id, owner.practitioner_id, owner.patient_id),
                )
                deleted = cursor.rowcount
        except sqlite3.Error as e:
            raise CalendarStoreError(f"Failed to remove meal: {e}") from e

        if deleted == 0:
            raise CalendarStoreError(f"Meal {entry_id} no longer exists")

    def replace_range(
        self, owner: CalendarOwner, start: date, end: date, entries: list[NewEntry]
    ) -> None:
        """Delete the owner's entries in [start, end] and insert ``entries`` in one transaction."""
        now = utc_now()
        try:
            with self.db.get_conn() as conn:
                conn.execute(
                    f"""
                    DELETE FROM meal_calendar_entries
                    WHERE {_OWNER_FILTER} AND entry_date BETWEEN ? AND ?
                    """,
                    (owner.practitioner_id, owner.patient_id, start.isoformat(), end.isoformat()),
                )
                conn.executemany(
                    """
                    INSERT INTO meal_calendar_entries
                        (id, practitioner_id, patient_id, entry_date, meal_type,
                         food_id, quantity_grams, sort_order, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            new_id(), owner.practitioner_id, owner.patient_id,
                            entry.entry_date.isoformat(), entry.meal_type, entry.food_id,
                            entry.quantity, entry.sort_order, now,
                        )
                        for entry in entries
                    ],
                )
        except sqlite3.Error as e:
            raise CalendarStoreError(f"Failed to apply template: {e}") from e

        logger.info(
            f"Replaced calendar entries {start}..{end} for practitioner "
            f"{owner.practitioner_id} with {len(entries)} items"
        )
