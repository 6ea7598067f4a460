"""Stop status vocabulary and transition policy."""

from __future__ import annotations

import re

from ...errors import InvalidInputError, InvalidTransitionError
from ...models.domain import StopStatus

KNOWN_STATUSES = frozenset(status.value for status in StopStatus)
TERMINAL_STATUSES = frozenset({StopStatus.DELIVERED.value, StopStatus.FAILED.value})

_ALIASES = {
    "assigned": StopStatus.ASSIGNED.value,
    "outfordelivery": StopStatus.OUT_FOR_DELIVERY.value,
    "intransit": StopStatus.OUT_FOR_DELIVERY.value,
    "enroute": StopStatus.OUT_FOR_DELIVERY.value,
    "delivered": StopStatus.DELIVERED.value,
    "failed": StopStatus.FAILED.value,
    "unable": StopStatus.FAILED.value,
}

_SEPARATORS = re.compile(r"[\s_\-]+")


def normalize_status(label: str) -> str:
    """Map a free-form label onto the lifecycle vocabulary.

    Labels that match no known status are returned stripped but otherwise
    unchanged.
    """
    cleaned = label.strip()
    return _ALIASES.get(_SEPARATORS.sub("", cleaned).lower(), cleaned)


def is_known_status(status: str) -> bool:
    return status in KNOWN_STATUSES


def check_transition(current: str, new: str, policy: str) -> None:
    """Raise when ``policy`` forbids moving a stop from ``current`` to ``new``.

    ``lenient`` allows everything. ``strict`` only accepts known statuses and
    never leaves a terminal state; re-applying the current status is allowed.
    """
    if policy != "strict":
        return
    if not is_known_status(new):
        raise InvalidInputError(
            f"Unknown status '{new}'. Expected one of: {', '.join(s.value for s in StopStatus)}"
        )
    if current in TERMINAL_STATUSES and new != current:
        raise InvalidTransitionError(f"Stop is already {current}; cannot change status to {new}")
