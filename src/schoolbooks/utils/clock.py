"""Clock used by services that stamp records."""

from datetime import datetime, UTC
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(UTC)
