import calendar
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, List, Optional

from availability import Occupancy, occupied

LOW_STOCK_THRESHOLD = 4

MONTH_NAMES = list(calendar.month_name)[1:]


class DayStatus(str, Enum):
    AVAILABLE = "available"
    LOW_STOCK = "low_stock"
    SOLD_OUT = "sold_out"
    PAST = "past"


def classify_day(day: date, today: date, occupancy: Occupancy, max_capacity: int) -> DayStatus:
    if day < today:
        return DayStatus.PAST
    left = max_capacity - occupied(occupancy, day)
    if left <= 0:
        return DayStatus.SOLD_OUT
    if left <= LOW_STOCK_THRESHOLD:
        return DayStatus.LOW_STOCK
    return DayStatus.AVAILABLE


@dataclass
class DayCell:
    day: date
    status: DayStatus
    spots_left: int
    selected: bool = False

    @property
    def selectable(self) -> bool:
        return self.status not in (DayStatus.PAST, DayStatus.SOLD_OUT)

    def to_dict(self) -> dict:
        return {
            "date": self.day.isoformat(),
            "day": self.day.day,
            "status": self.status.value,
            "spots_left": self.spots_left,
            "selectable": self.selectable,
            "selected": self.selected,
        }


def month_start(day: date) -> date:
    return day.replace(day=1)


def clamp_month(cursor: date, today: date) -> date:
    """Never earlier than the month containing today."""
    return max(month_start(cursor), month_start(today))


class CalendarPicker:
    """
    Month grid over a tour's occupancy.

    The occupancy mapping is a snapshot taken when the picker was built; it is
    not refreshed while navigating months.
    """

    def __init__(self, occupancy: Occupancy, max_capacity: int,
                 today: Optional[date] = None, selected: Optional[date] = None,
                 cursor: Optional[date] = None,
                 on_select: Optional[Callable[[date], None]] = None):
        self.occupancy = occupancy
        self.max_capacity = max_capacity
        self.today = today or date.today()
        self.selected = selected
        self.cursor = month_start(cursor or self.today)
        self.on_select = on_select

    @property
    def title(self) -> str:
        return f"{MONTH_NAMES[self.cursor.month - 1]} {self.cursor.year}"

    def previous_month(self) -> bool:
        if (self.cursor.year, self.cursor.month) <= (self.today.year, self.today.month):
            return False
        if self.cursor.month == 1:
            self.cursor = date(self.cursor.year - 1, 12, 1)
        else:
            self.cursor = date(self.cursor.year, self.cursor.month - 1, 1)
        return True

    def next_month(self) -> bool:
        if self.cursor.month == 12:
            self.cursor = date(self.cursor.year + 1, 1, 1)
        else:
            self.cursor = date(self.cursor.year, self.cursor.month + 1, 1)
        return True

    def cell(self, day: date) -> DayCell:
        left = self.max_capacity - occupied(self.occupancy, day)
        return DayCell(
            day=day,
            status=classify_day(day, self.today, self.occupancy, self.max_capacity),
            spots_left=max(0, left),
            selected=self.selected == day,
        )

    def weeks(self) -> List[List[Optional[DayCell]]]:
        # Sunday-first rows, None for padding outside the month
        grid = calendar.Calendar(firstweekday=calendar.SUNDAY)
        rows = []
        for week in grid.monthdayscalendar(self.cursor.year, self.cursor.month):
            rows.append([
                self.cell(date(self.cursor.year, self.cursor.month, d)) if d else None
                for d in week
            ])
        return rows

    def select(self, day: date) -> bool:
        if not self.cell(day).selectable:
            return False
        self.selected = day
        if self.on_select is not None:
            self.on_select(day)
        return True

    def to_dict(self) -> dict:
        return {
            "year": self.cursor.year,
            "month": self.cursor.month,
            "title": self.title,
            "can_go_back": (self.cursor.year, self.cursor.month) > (self.today.year, self.today.month),
            "selected": self.selected.isoformat() if self.selected else None,
            "weeks": [[c.to_dict() if c else None for c in week] for week in self.weeks()],
        }
