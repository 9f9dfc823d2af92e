from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from ..errors import SchedulingError


class AuthorizationState(str, Enum):
    GRANTED = "granted"
    PROVISIONAL = "provisional"
    DENIED = "denied"
    NOT_DETERMINED = "not_determined"

    @property
    def allows_delivery(self) -> bool:
        return self in (AuthorizationState.GRANTED, AuthorizationState.PROVISIONAL)


@dataclass(frozen=True)
class NotificationMessage:
    recipient: int
    title: str
    body: str

    def render(self) -> str:
        return f"{self.title}\n{self.body}"


class SuppressReason(str, Enum):
    INACTIVE = "inactive"
    NO_REMINDER = "no_reminder"
    IN_PAST = "in_past"
    DATE_COMPUTATION = "date_computation"


@dataclass(frozen=True)
class ScheduledAt:
    fire_at: datetime


@dataclass(frozen=True)
class Suppressed:
    reason: SuppressReason
    error: Optional[SchedulingError] = None


ReminderOutcome = Union[ScheduledAt, Suppressed]
