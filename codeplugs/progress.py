"""Progress reporting for long-running imports.

The orchestrator never holds global progress state: each job gets its
own :class:`ProgressTracker`, which pushes immutable snapshots to an
injected reporter callable.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Callable, Dict, List, Optional

from .exceptions import ImportCancelled

logger = logging.getLogger(__name__)


class ImportStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class ImportProgress:
    total: int = 0
    processed: int = 0
    status: ImportStatus = ImportStatus.IDLE
    message: str = ""

    @property
    def finished(self) -> bool:
        return self.status in (ImportStatus.COMPLETED, ImportStatus.ERROR)

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


Reporter = Callable[[ImportProgress], None]


class ProgressTracker:
    def __init__(self, reporter: Optional[Reporter] = None, cancel: Optional[threading.Event] = None) -> None:
        self._reporter = reporter
        self.cancel = cancel or threading.Event()
        self.current = ImportProgress()

    def _publish(self, **changes) -> ImportProgress:
        self.current = replace(self.current, **changes)
        if self._reporter is not None:
            try:
                self._reporter(self.current)
            except Exception:
                # listener failures are logged only
                logger.exception("progress reporter failed")
        return self.current

    def start(self, total: int, message: str = "") -> ImportProgress:
        return self._publish(total=total, processed=0, status=ImportStatus.RUNNING, message=message)

    def grow(self, extra: int) -> ImportProgress:
        return self._publish(total=self.current.total + extra)

    def advance(self, count: int = 1, message: Optional[str] = None) -> ImportProgress:
        changes: Dict[str, object] = {"processed": self.current.processed + count}
        if message is not None:
            changes["message"] = message
        return self._publish(**changes)

    def note(self, message: str) -> ImportProgress:
        return self._publish(message=message)

    def complete(self, message: str = "done") -> ImportProgress:
        return self._publish(status=ImportStatus.COMPLETED, message=message)

    def fail(self, message: str) -> ImportProgress:
        return self._publish(status=ImportStatus.ERROR, message=message)

    def check_cancelled(self) -> None:
        if self.cancel.is_set():
            raise ImportCancelled("import cancelled")


class ProgressLog:
    """Reporter that keeps every snapshot; the last one is the current state."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.snapshots: List[ImportProgress] = []

    def __call__(self, progress: ImportProgress) -> None:
        with self._lock:
            self.snapshots.append(progress)

    @property
    def latest(self) -> ImportProgress:
        with self._lock:
            return self.snapshots[-1] if self.snapshots else ImportProgress()


def fan_out(*reporters: Optional[Reporter]) -> Reporter:
    targets = [r for r in reporters if r is not None]

    def report(progress: ImportProgress) -> None:
        for target in targets:
            target(progress)

    return report
