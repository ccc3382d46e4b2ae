"""Thread-safe registry of automation ids with a generation pipeline currently running."""
import threading
import time
import logging
from typing import Optional

logger = logging.getLogger(__name__)
_lock = threading.Lock()
_registry: dict[str, float] = {}


def register(automation_id: str) -> bool:
    """Mark automation_id as running. Returns False if a pipeline already holds it."""
    with _lock:
        if automation_id in _registry:
            return False
        _registry[automation_id] = time.monotonic()
    logger.debug(f"Registered pipeline for automation {automation_id}")
    return True


def unregister(automation_id: str) -> None:
    with _lock:
        _registry.pop(automation_id, None)
    logger.debug(f"Unregistered pipeline for automation {automation_id}")


def is_running(automation_id: str) -> bool:
    with _lock:
        return automation_id in _registry


def running_for(automation_id: str) -> Optional[float]:
    """Seconds the pipeline for automation_id has been running, or None."""
    with _lock:
        started = _registry.get(automation_id)
    return None if started is None else time.monotonic() - started


def clear() -> None:
    with _lock:
        _registry.clear()
