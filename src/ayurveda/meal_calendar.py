"""
Weekly Meal Calendar.

A Monday-to-Sunday grid of four meal slots per day, backed by a
persistent store. Local changes are made tentatively and either
confirmed by the store or rolled back, and any write the store rejects
is followed by a reload of authoritative state.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional, Protocol, Union

from .foods import Food
from .nutrition import item_nutrients

logger = logging.getLogger(__name__)

MEAL_TYPES = ("breakfast", "lunch", "dinner", "snacks")
DAYS_OF_WEEK = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
DEFAULT_QUANTITY = 100.0

DayLike = Union[date, str]


def start_of_week(today: date) -> date:
    """Monday of the week containing ``today``."""
    return today - timedelta(days=today.weekday())


def week_dates(today: date, offset: int = 0) -> List[date]:
    """The seven dates of the week ``offset`` whole weeks from ``today``'s."""
    monday = start_of_week(today) + timedelta(days=offset * 7)
    return [monday + timedelta(days=i) for i in range(7)]


def _as_date(day: DayLike) -> date:
    return day if isinstance(day, date) else date.fromisoformat(day)


class SlotStatus(str, Enum):
    """Whether a placed food has been accepted by the store."""

    TENTATIVE = "tentative"
    CONFIRMED = "confirmed"


@dataclass(frozen=True)
class CalendarOwner:
    """Whose calendar this is. A patient of None is the practitioner's own plan."""

    practitioner_id: str
    patient_id: Optional[str] = None


@dataclass(frozen=True)
class CalendarEntry:
    """A persisted calendar entry as returned by the store."""

    id: str
    entry_date: date
    meal_type: str
    food: Optional[Food]
    quantity: float
    sort_order: int = 0


@dataclass(frozen=True)
class NewEntry:
    """An entry to be written in bulk."""

    entry_date: date
    meal_type: str
    food_id: str
    quantity: float
    sort_order: int = 0


@dataclass(frozen=True)
class TemplateItem:
    """A day-of-week relative entry (0 = Monday) from a meal plan template."""

    day_of_week: int
    meal_type: str
    food_id: str
    quantity_grams: float = DEFAULT_QUANTITY
    sort_order: int = 0


@dataclass
class MealSlot:
    """A food placed in one meal of one day."""

    id: str
    food: Food
    quantity: float = DEFAULT_QUANTITY
    sort_order: int = 0
    status: SlotStatus = SlotStatus.CONFIRMED

    @property
    def calories(self) -> float:
        return item_nutrients(self.food, self.quantity).calories

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "food": self.food.to_dict(),
            "quantity": self.quantity,
            "sort_order": self.sort_order,
            "status": self.status.value,
            "calories": self.calories,
        }


class CalendarStoreError(Exception):
    """A read or write against the calendar store failed."""


class SlotNotFoundError(LookupError):
    """The requested slot is not in the grid."""


class CalendarStore(Protocol):
    """Persistence used by WeekGrid."""

    def fetch_range(self, owner: CalendarOwner, start: date, end: date) -> List[CalendarEntry]:
        ...

    def insert(
        self,
        owner: CalendarOwner,
        entry_date: date,
        meal_type: str,
        food: Food,
        quantity: float,
        sort_order: int,
    ) -> CalendarEntry:
        ...

    def delete(self, owner: CalendarOwner, entry_id: str) -> None:
        ...

    def replace_range(
        self, owner: CalendarOwner, start: date, end: date, entries: List[NewEntry]
    ) -> None:
        """Delete every entry in [start, end] and insert ``entries``, atomically."""
        ...


def _empty_day() -> Dict[str, List[MealSlot]]:
    return {meal_type: [] for meal_type in MEAL_TYPES}


class WeekGrid:
    """
    The visible week of a meal calendar.

    Holds a date -> meal type -> ordered slot list mapping for exactly the
    seven dates of the current week and keeps it in step with the store.
    """

    def __init__(
        self,
        store: CalendarStore,
        owner: CalendarOwner,
        today: Optional[date] = None,
        offset: int = 0,
    ):
        self.store = store
        self.owner = owner
        self.today = today or date.today()
        self.offset = offset
        self._days: Dict[date, Dict[str, List[MealSlot]]] = {}

    @property
    def dates(self) -> List[date]:
        return week_dates(self.today, self.offset)

    @property
    def start(self) -> date:
        return self.dates[0]

    @property
    def end(self) -> date:
        return self.dates[6]

    def next_week(self) -> None:
        self.offset += 1
        self.load()

    def previous_week(self) -> None:
        self.offset -= 1
        self.load()

    def load(self) -> None:
        """Rebuild the grid from the store."""
        entries = self.store.fetch_range(self.owner, self.start, self.end)
        days = {day: _empty_day() for day in self.dates}

        for entry in sorted(entries, key=lambda e: (e.entry_date, e.sort_order)):
            if entry.meal_type not in MEAL_TYPES:
                logger.warning(
                    f"[CALENDAR] Dropping entry {entry.id} with unknown meal type {entry.meal_type!r}"
                )
                continue
            if entry.entry_date not in days:
                continue
            if entry.food is None:
                logger.warning(f"[CALENDAR] Dropping entry {entry.id}: food no longer exists")
                continue
            days[entry.entry_date][entry.meal_type].append(
                MealSlot(
                    id=entry.id,
                    food=entry.food,
                    quantity=entry.quantity,
                    sort_order=entry.sort_order,
                )
            )

        self._days = days
        logger.debug(
            f"[CALENDAR] Loaded {len(entries)} entries for week of {self.start.isoformat()}"
        )

    def _day(self, day: DayLike) -> Dict[str, List[MealSlot]]:
        day = _as_date(day)
        if day not in self.dates:
            raise ValueError(f"{day.isoformat()} is outside the visible week")
        return self._days.setdefault(day, _empty_day())

    def slots(self, day: DayLike, meal_type: str) -> List[MealSlot]:
        if meal_type not in MEAL_TYPES:
            raise ValueError(f"Unknown meal type: {meal_type}")
        return list(self._day(day)[meal_type])

    def place(
        self,
        day: DayLike,
        meal_type: str,
        food: Food,
        quantity: float = DEFAULT_QUANTITY,
    ) -> MealSlot:
        """
        Add a food to the end of a meal slot.

        The slot is tentative until the store accepts it. If the store
        fails the tentative slot is withdrawn and the error propagates.

        Returns:
            The confirmed slot
        """
        if meal_type not in MEAL_TYPES:
            raise ValueError(f"Unknown meal type: {meal_type}")
        if quantity <= 0:
            raise ValueError("Quantity must be greater than zero")

        day = _as_date(day)
        slot_list = self._day(day)[meal_type]
        tentative = MealSlot(
            id=f"tentative-{uuid.uuid4().hex[:12]}",
            food=food,
            quantity=quantity,
            sort_order=len(slot_list),
            status=SlotStatus.TENTATIVE,
        )
        slot_list.append(tentative)

        try:
            entry = self.store.insert(
                self.owner, day, meal_type, food, quantity, tentative.sort_order
            )
        except CalendarStoreError:
            slot_list.remove(tentative)
            logger.warning(f"[CALENDAR] Insert failed, withdrew {food.name} from {meal_type}")
            raise

        confirmed = MealSlot(
            id=entry.id,
            food=entry.food or food,
            quantity=entry.quantity,
            sort_order=entry.sort_order,
        )
        slot_list[slot_list.index(tentative)] = confirmed
        logger.info(f"[CALENDAR] Added {food.name} to {meal_type} on {day.isoformat()}")
        return confirmed

    def remove(self, day: DayLike, meal_type: str, entry_id: str) -> MealSlot:
        """
        Remove a slot by id.

        Raises:
            SlotNotFoundError: if no such slot is in the grid
            CalendarStoreError: if the store rejects the delete; the grid
                has been reloaded from the store by then
        """
        if meal_type not in MEAL_TYPES:
            raise ValueError(f"Unknown meal type: {meal_type}")
        slot_list = self._day(day)[meal_type]
        slot = next((s for s in slot_list if s.id == entry_id), None)
        if slot is None:
            raise SlotNotFoundError(entry_id)

        slot_list.remove(slot)
        if slot.status == SlotStatus.TENTATIVE:
            return slot

        try:
            self.store.delete(self.owner, entry_id)
        except CalendarStoreError:
            logger.warning(f"[CALENDAR] Delete of {entry_id} failed, reloading week")
            self.load()
            raise
        return slot

    def day_total(self, day: DayLike) -> float:
        """Calories planned for one day across all meals."""
        meals = self._days.get(_as_date(day))
        if not meals:
            return 0.0
        return sum(slot.calories for meal_type in MEAL_TYPES for slot in meals[meal_type])

    def apply_template(self, items: Iterable[TemplateItem]) -> int:
        """
        Replace the visible week with a template.

        Existing entries in the week are deleted and the template's items
        are written against the concrete dates. Either all of it lands or
        none of it does; the grid is reloaded from the store afterwards
        in both cases.

        Returns:
            Number of entries written
        """
        dates = self.dates
        entries = []
        for item in items:
            if not 0 <= item.day_of_week <= 6:
                raise ValueError(f"day_of_week must be 0-6, got {item.day_of_week}")
            if item.meal_type not in MEAL_TYPES:
                raise ValueError(f"Unknown meal type: {item.meal_type}")
            if item.quantity_grams <= 0:
                raise ValueError("Quantity must be greater than zero")
            entries.append(
                NewEntry(
                    entry_date=dates[item.day_of_week],
                    meal_type=item.meal_type,
                    food_id=item.food_id,
                    quantity=item.quantity_grams,
                    sort_order=item.sort_order,
                )
            )

        try:
            self.store.replace_range(self.owner, self.start, self.end, entries)
        except CalendarStoreError:
            logger.warning("[CALENDAR] Template application failed, reloading week")
            self.load()
            raise

        self.load()
        logger.info(f"[CALENDAR] Applied template with {len(entries)} items to week of {self.start}")
        return len(entries)

    def as_template_items(self) -> List[TemplateItem]:
        """The visible week expressed as day-of-week relative template items."""
        items = []
        for index, day in enumerate(self.dates):
            meals = self._days.get(day) or _empty_day()
            for meal_type in MEAL_TYPES:
                for position, slot in enumerate(meals[meal_type]):
                    if slot.status != SlotStatus.CONFIRMED:
                        continue
                    items.append(
                        TemplateItem(
                            day_of_week=index,
                            meal_type=meal_type,
                            food_id=slot.food.id,
                            quantity_grams=slot.quantity,
                            sort_order=position,
                        )
                    )
        return items

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        days = []
        for index, day in enumerate(self.dates):
            meals = self._days.get(day) or _empty_day()
            days.append({
                "date": day.isoformat(),
                "day_name": DAYS_OF_WEEK[index],
                "meals": {mt: [slot.to_dict() for slot in meals[mt]] for mt in MEAL_TYPES},
                "total_calories": self.day_total(day),
            })
        return {
            "week_start": self.start.isoformat(),
            "week_end": self.end.isoformat(),
            "offset": self.offset,
            "patient_id": self.owner.patient_id,
            "days": days,
        }
