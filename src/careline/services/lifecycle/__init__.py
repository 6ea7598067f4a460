"""Stop lifecycle exports."""

from .service import StopLifecycleManager
from .status import TERMINAL_STATUSES, check_transition, is_known_status, normalize_status

__all__ = [
    "StopLifecycleManager",
    "TERMINAL_STATUSES",
    "check_transition",
    "is_known_status",
    "normalize_status",
]
