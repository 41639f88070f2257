"""Background worker for long-running imports.

Imports run on a single dedicated thread, off the request path. Every
job gets its own cancel event and progress log; snapshots are also
forwarded to an optional shared reporter (the websocket hub).
"""

from __future__ import annotations

import logging
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from sqlalchemy.engine import Engine

from .exceptions import NotFoundError
from .orchestrator import CodeplugOrchestrator
from .progress import ImportProgress, ProgressLog, Reporter, fan_out
from .settings import Settings

logger = logging.getLogger(__name__)

Task = Callable[[CodeplugOrchestrator], Any]

# Finished jobs kept for progress and result lookups
KEEP_FINISHED = 20


@dataclass
class Job:
    id: str
    cancel: threading.Event = field(default_factory=threading.Event)
    log: ProgressLog = field(default_factory=ProgressLog)
    future: Optional[Future] = None

    @property
    def progress(self) -> ImportProgress:
        return self.log.latest


class ImportWorker:
    def __init__(
        self,
        engine: Engine,
        settings: Settings,
        reporter: Optional[Reporter] = None,
        keep_finished: int = KEEP_FINISHED,
    ) -> None:
        self.engine = engine
        self.settings = settings
        self._reporter = reporter
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="codeplug-import")
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()
        self._last: Optional[str] = None
        self._keep_finished = keep_finished

    def submit(self, task: Task) -> str:
        """Queue ``task(orchestrator)`` and return the job ID."""
        job = Job(id=uuid.uuid4().hex)
        orchestrator = CodeplugOrchestrator(
            self.engine,
            self.settings,
            reporter=fan_out(job.log, self._reporter),
            cancel=job.cancel,
        )
        with self._lock:
            self._prune()
            self._jobs[job.id] = job
            self._last = job.id
        job.future = self._executor.submit(self._run, job, task, orchestrator)
        logger.info("queued import job %s", job.id)
        return job.id

    def _prune(self) -> None:
        finished = [key for key, job in self._jobs.items() if job.future is not None and job.future.done()]
        for key in finished[: max(0, len(finished) - self._keep_finished)]:
            del self._jobs[key]

    def _run(self, job: Job, task: Task, orchestrator: CodeplugOrchestrator) -> Any:
        try:
            return task(orchestrator)
        except Exception:
            logger.exception("import job %s failed", job.id)
            raise

    def job(self, job_id: Optional[str] = None) -> Job:
        with self._lock:
            key = job_id or self._last
            job = self._jobs.get(key) if key else None
        if job is None:
            raise NotFoundError(f"import job {job_id or '(latest)'} not found")
        return job

    def progress(self, job_id: Optional[str] = None) -> ImportProgress:
        try:
            return self.job(job_id).progress
        except NotFoundError:
            if job_id:
                raise
            return ImportProgress()

    def cancel(self, job_id: Optional[str] = None) -> None:
        self.job(job_id).cancel.set()

    def result(self, job_id: Optional[str] = None, timeout: Optional[float] = None) -> Any:
        future = self.job(job_id).future
        return future.result(timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
