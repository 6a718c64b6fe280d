"""
Clock helpers.

Services receive a clock callable so tests can move time without patching.
"""

from datetime import UTC, datetime
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)
