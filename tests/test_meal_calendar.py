"""
Unit tests for the weekly meal calendar grid.

Covers week navigation, optimistic placement with rollback, removal with
reload on failure, day totals and template application, against an
in-memory fake store and against the SQLite store.

Usage:
    pytest tests/test_meal_calendar.py -v
"""
import sqlite3
from datetime import date, timedelta

import pytest

from ayurveda import CalendarOwner, CalendarStoreError, TemplateItem, WeekGrid, week_dates
from ayurveda.meal_calendar import (
    CalendarEntry,
    SlotNotFoundError,
    SlotStatus,
    start_of_week,
)

# A Wednesday
TODAY = date(2024, 6, 12)
OWNER = CalendarOwner(practitioner_id="dietitian-1", patient_id="patient-1")


class FakeStore:
    """In-memory calendar store with switchable failures."""

    def __init__(self):
        self.entries: dict[str, CalendarEntry] = {}
        self.fail_insert = False
        self.fail_delete = False
        self.fail_replace_after = None
        self.fetches = 0
        self._next = 0

    def fetch_range(self, owner, start, end):
        self.fetches += 1
        return [e for e in self.entries.values() if start <= e.entry_date <= end]

    def insert(self, owner, entry_date, meal_type, food, quantity, sort_order):
        if self.fail_insert:
            raise CalendarStoreError("insert failed")
        self._next += 1
        entry = CalendarEntry(f"e{self._next}", entry_date, meal_type, food, quantity, sort_order)
        self.entries[entry.id] = entry
        return entry

    def delete(self, owner, entry_id):
        if self.fail_delete:
            raise CalendarStoreError("delete failed")
        del self.entries[entry_id]

    def replace_range(self, owner, start, end, entries):
        # Stage the whole replacement before touching the live entries
        staged = {k: v for k, v in self.entries.items() if not start <= v.entry_date <= end}
        for index, entry in enumerate(entries):
            if self.fail_replace_after is not None and index >= self.fail_replace_after:
                raise CalendarStoreError("bulk insert failed")
            staged[f"t{index}"] = CalendarEntry(
                f"t{index}", entry.entry_date, entry.meal_type,
                self.foods[entry.food_id], entry.quantity, entry.sort_order,
            )
        self.entries = staged


@pytest.fixture
def store(food_factory):
    store = FakeStore()
    store.foods = {
        "kitchari": food_factory("kitchari", calories=250),
        "ghee": food_factory("ghee", calories=900),
        "apple": food_factory("apple", calories=52),
    }
    return store


@pytest.fixture
def grid(store):
    grid = WeekGrid(store, OWNER, today=TODAY)
    grid.load()
    return grid


class TestWeekDates:
    """Monday-to-Sunday windows."""

    def test_offset_zero_contains_today(self):
        dates = week_dates(TODAY)

        assert dates[0] == date(2024, 6, 10)
        assert dates[0].weekday() == 0
        assert TODAY in dates

    def test_offset_minus_one_is_seven_days_earlier(self):
        current = week_dates(TODAY, 0)
        previous = week_dates(TODAY, -1)

        assert [d + timedelta(days=7) for d in previous] == current

    @pytest.mark.parametrize("offset", [-3, -1, 0, 1, 5])
    def test_span_is_six_days(self, offset):
        dates = week_dates(TODAY, offset)

        assert len(dates) == 7
        assert dates[6] - dates[0] == timedelta(days=6)

    def test_sunday_belongs_to_the_week_that_started_monday(self):
        sunday = date(2024, 6, 16)

        assert start_of_week(sunday) == date(2024, 6, 10)

    def test_navigation_reloads(self, grid, store):
        before = store.fetches

        grid.next_week()
        assert grid.start == date(2024, 6, 17)
        grid.previous_week()
        grid.previous_week()
        assert grid.start == date(2024, 6, 3)
        assert store.fetches == before + 3


class TestPlaceAndRemove:
    """Optimistic writes with reconciliation."""

    def test_day_total_adds_and_restores(self, grid, store):
        grid.place(TODAY, "breakfast", store.foods["apple"], 100)
        before = grid.day_total(TODAY)

        slot = grid.place(TODAY, "lunch", store.foods["kitchari"], 50)
        assert grid.day_total(TODAY) == pytest.approx(before + 125)

        grid.remove(TODAY, "lunch", slot.id)
        assert grid.day_total(TODAY) == before

    def test_place_appends_with_next_sort_order(self, grid, store):
        first = grid.place(TODAY, "dinner", store.foods["kitchari"])
        second = grid.place(TODAY, "dinner", store.foods["ghee"], 10)

        assert (first.sort_order, second.sort_order) == (0, 1)
        assert [s.id for s in grid.slots(TODAY, "dinner")] == [first.id, second.id]
        assert all(s.status == SlotStatus.CONFIRMED for s in grid.slots(TODAY, "dinner"))

    def test_failed_insert_rolls_back(self, grid, store):
        grid.place(TODAY, "snacks", store.foods["apple"])
        store.fail_insert = True

        with pytest.raises(CalendarStoreError):
            grid.place(TODAY, "snacks", store.foods["ghee"])

        assert [s.food.id for s in grid.slots(TODAY, "snacks")] == ["apple"]
        assert grid.day_total(TODAY) == pytest.approx(52)

    def test_failed_delete_reloads_authoritative_state(self, grid, store):
        slot = grid.place(TODAY, "lunch", store.foods["kitchari"])
        store.fail_delete = True

        with pytest.raises(CalendarStoreError):
            grid.remove(TODAY, "lunch", slot.id)

        assert [s.id for s in grid.slots(TODAY, "lunch")] == [slot.id]

    def test_remove_unknown_slot(self, grid):
        with pytest.raises(SlotNotFoundError):
            grid.remove(TODAY, "lunch", "missing")

    @pytest.mark.parametrize(
        "day, meal_type, quantity",
        [
            (TODAY, "brunch", 100),
            (TODAY, "lunch", 0),
            (TODAY + timedelta(days=7), "lunch", 100),
        ],
    )
    def test_invalid_placement(self, grid, store, day, meal_type, quantity):
        with pytest.raises(ValueError):
            grid.place(day, meal_type, store.foods["apple"], quantity)
        assert store.entries == {}

    def test_load_drops_unknown_meal_types_and_missing_foods(self, store, food_factory):
        store.entries = {
            "ok": CalendarEntry("ok", TODAY, "lunch", store.foods["apple"], 100),
            "odd": CalendarEntry("odd", TODAY, "mid_morning", store.foods["apple"], 100),
            "gone": CalendarEntry("gone", TODAY, "dinner", None, 100),
        }
        grid = WeekGrid(store, OWNER, today=TODAY)

        grid.load()

        assert [s.id for s in grid.slots(TODAY, "lunch")] == ["ok"]
        assert grid.slots(TODAY, "dinner") == []
        assert grid.day_total(TODAY) == pytest.approx(52)


class TestTemplates:
    """Week replacement from a template."""

    ITEMS = [
        TemplateItem(day_of_week=0, meal_type="breakfast", food_id="kitchari", quantity_grams=200),
        TemplateItem(day_of_week=0, meal_type="breakfast", food_id="ghee", quantity_grams=5, sort_order=1),
        TemplateItem(day_of_week=6, meal_type="dinner", food_id="apple"),
    ]

    def test_apply_maps_days_to_dates(self, grid, store):
        grid.place(TODAY, "lunch", store.foods["apple"])

        applied = grid.apply_template(self.ITEMS)

        assert applied == 3
        monday, sunday = grid.dates[0], grid.dates[6]
        assert [s.food.id for s in grid.slots(monday, "breakfast")] == ["kitchari", "ghee"]
        assert [s.food.id for s in grid.slots(sunday, "dinner")] == ["apple"]
        assert grid.slots(TODAY, "lunch") == []

    def test_failed_apply_leaves_prior_week(self, grid, store):
        placed = grid.place(TODAY, "lunch", store.foods["apple"])
        store.fail_replace_after = 2

        with pytest.raises(CalendarStoreError):
            grid.apply_template(self.ITEMS)

        grid.load()
        assert [s.id for s in grid.slots(TODAY, "lunch")] == [placed.id]
        assert grid.slots(grid.dates[0], "breakfast") == []

    def test_invalid_item_rejected_before_writing(self, grid, store):
        grid.place(TODAY, "lunch", store.foods["apple"])

        with pytest.raises(ValueError):
            grid.apply_template([TemplateItem(day_of_week=7, meal_type="lunch", food_id="apple")])

        assert len(store.entries) == 1

    def test_week_round_trips_through_template_items(self, grid, store):
        grid.apply_template(self.ITEMS)

        assert sorted(grid.as_template_items(), key=repr) == sorted(self.ITEMS, key=repr)


class TestSQLiteCalendarStore:
    """The grid against the SQLite store."""

    @pytest.fixture
    def sqlite_grid(self, db):
        from server.dietitian_api.services.calendar_store import SQLiteCalendarStore

        grid = WeekGrid(SQLiteCalendarStore(db), CalendarOwner("dietitian-1"), today=TODAY)
        grid.load()
        return grid

    @pytest.fixture
    def catalog(self, db):
        from server.dietitian_api.services.food_catalog import fetch_active_foods, row_to_core_food

        with db.get_conn() as conn:
            return {row["id"]: row_to_core_food(row) for row in fetch_active_foods(conn)}

    def test_place_persists(self, sqlite_grid, catalog, db):
        sqlite_grid.place(TODAY, "breakfast", catalog["basmati-rice"], 150)

        assert db.count("meal_calendar_entries") == 1
        sqlite_grid.load()
        assert sqlite_grid.day_total(TODAY) == pytest.approx(181.5)

    def test_owners_are_separate(self, sqlite_grid, catalog, db):
        from server.dietitian_api.services.calendar_store import SQLiteCalendarStore

        sqlite_grid.place(TODAY, "lunch", catalog["mung-dal"])
        patient_grid = WeekGrid(
            SQLiteCalendarStore(db), CalendarOwner("dietitian-1", "patient-9"), today=TODAY
        )
        patient_grid.load()

        assert patient_grid.slots(TODAY, "lunch") == []

    def test_template_insert_failure_keeps_prior_entries(self, sqlite_grid, catalog, db):
        placed = sqlite_grid.place(TODAY, "lunch", catalog["mung-dal"])
        with db.get_conn() as conn:
            conn.execute(
                """
                CREATE TRIGGER fail_on_ghee BEFORE INSERT ON meal_calendar_entries
                WHEN NEW.food_id = 'ghee'
                BEGIN SELECT RAISE(ABORT, 'simulated write failure'); END
                """
            )
        items = [
            TemplateItem(day_of_week=0, meal_type="breakfast", food_id="basmati-rice"),
            TemplateItem(day_of_week=2, meal_type="dinner", food_id="ghee", quantity_grams=5),
        ]

        with pytest.raises(CalendarStoreError):
            sqlite_grid.apply_template(items)

        assert [s.id for s in sqlite_grid.slots(TODAY, "lunch")] == [placed.id]
        assert db.count("meal_calendar_entries") == 1

    def test_delete_of_vanished_row_reloads(self, sqlite_grid, catalog, db):
        placed = sqlite_grid.place(TODAY, "snacks", catalog["apple"])
        with db.get_conn() as conn:
            conn.execute("DELETE FROM meal_calendar_entries")

        with pytest.raises(CalendarStoreError):
            sqlite_grid.remove(TODAY, "snacks", placed.id)

        assert sqlite_grid.slots(TODAY, "snacks") == []

    def test_store_error_wraps_sqlite_error(self, db, catalog):
        from server.dietitian_api.services.calendar_store import SQLiteCalendarStore

        with db.get_conn() as conn:
            conn.execute("DROP TABLE meal_calendar_entries")

        with pytest.raises(CalendarStoreError) as exc_info:
            SQLiteCalendarStore(db).fetch_range(CalendarOwner("x"), TODAY, TODAY)

        assert isinstance(exc_info.value.__cause__, sqlite3.Error)
