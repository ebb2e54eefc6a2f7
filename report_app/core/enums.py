from enum import Enum


class WeekStatus(str, Enum):
    DRAFT = "DRAFT"
    COMPLETED = "COMPLETED"


class EventStatus(str, Enum):
    UNCONFIRMED = "UNCONFIRMED"
    CONFIRMED = "CONFIRMED"
