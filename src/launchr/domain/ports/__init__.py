from .capabilities import Capabilities
from .frontend import (
    Activate,
    Cancel,
    Event,
    Frontend,
    QueryChanged,
    Refresh,
    ResultRow,
    SelectionMoved,
)
from .spawner import ProcessHandle, Spawner

__all__ = [
    "Activate",
    "Cancel",
    "Capabilities",
    "Event",
    "Frontend",
    "ProcessHandle",
    "QueryChanged",
    "Refresh",
    "ResultRow",
    "SelectionMoved",
    "Spawner",
]
