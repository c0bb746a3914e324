from datetime import date, time
from decimal import Decimal
from enum import Enum

from sqlmodel import Field, SQLModel


class Weekday(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def of(cls, d: date) -> "Weekday":
        return list(cls)[d.weekday()]


class BreakWindow(SQLModel):
    start: time
    end: time
    label: str = "Break"


class WorkingDay(SQLModel):
    """Opening hours for one weekday, in local clock time."""

    start: time
    end: time
    breaks: list[BreakWindow] = Field(default_factory=list)


class Provider(SQLModel):
    id: str
    name: str
    services_offered: set[str] = Field(default_factory=set)
    # A weekday missing from the mapping is a day off
    working_hours: dict[Weekday, WorkingDay] = Field(default_factory=dict)

    def hours_for(self, d: date) -> WorkingDay | None:
        return self.working_hours.get(Weekday.of(d))


class Service(SQLModel):
    id: str
    name: str
    duration_minutes: int = Field(gt=0)
    price: Decimal = Decimal("0")
    category: str = ""
    color: str | None = None
