"""Maps wake-up names to handlers; the scheduler worker and the API both go through it."""
from __future__ import annotations

import logging
import uuid
from typing import Any, Awaitable, Callable, Protocol

from maintenance_service.application.exceptions import JobNotFoundError
from maintenance_service.log_config import correlation_id_ctx

logger = logging.getLogger(__name__)

Handler = Callable[[dict[str, Any]], Awaitable[Any]]


class MaintenanceJob(Protocol):
    @property
    def name(self) -> str: ...

    async def start_cycle(self) -> Any: ...

    async def run_batch(self) -> Any: ...


class JobRegistry:
    def __init__(self) -> None:
        self._handlers: dict[str, Handler] = {}
        self._jobs: dict[str, MaintenanceJob] = {}

    def register(self, name: str, handler: Handler) -> None:
        if name in self._handlers:
            raise ValueError(f"Handler already registered: {name}")
        self._handlers[name] = handler

    def register_job(self, job: MaintenanceJob) -> None:
        """``<name>`` starts a cycle, ``<name>.continue`` resumes it."""
        self._jobs[job.name] = job

        async def _start(_args: dict[str, Any]) -> Any:
            return await job.start_cycle()

        async def _continue(_args: dict[str, Any]) -> Any:
            return await job.run_batch()

        self.register(job.name, _start)
        self.register(f"{job.name}.continue", _continue)

    def get_job(self, name: str) -> MaintenanceJob:
        try:
            return self._jobs[name]
        except KeyError:
            raise JobNotFoundError(name) from None

    @property
    def jobs(self) -> list[MaintenanceJob]:
        return list(self._jobs.values())

    @property
    def handler_names(self) -> list[str]:
        return sorted(self._handlers)

    async def dispatch(self, name: str, args: dict[str, Any] | None = None) -> Any:
        handler = self._handlers.get(name)
        if handler is None:
            logger.warning("No handler registered for wake-up %s", name)
            return None

        token = correlation_id_ctx.set(f"{name}:{uuid.uuid4().hex[:8]}")
        try:
            return await handler(args or {})
        finally:
            correlation_id_ctx.reset(token)
