from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from ..config import Settings, get_settings
from ..exceptions import RequestError
from .client import NetworkClient
from .sanitize import NETWORK, UNKNOWN, sanitize_error_code

logger = logging.getLogger(__name__)


class HealthState(str, Enum):
    IDLE = "idle"
    CHECKING = "checking"
    OK = "ok"
    ERROR = "error"


@dataclass(frozen=True)
class HealthStatus:
    status: HealthState = HealthState.IDLE
    code: Optional[str] = None
    last_checked: Optional[datetime] = None


StatusListener = Callable[[HealthStatus], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HealthMonitor:
    """Advisory connectivity probe feeding the status indicator.

    At most one probe is outstanding; a new trigger cancels the previous probe
    and starts over. Nothing here touches the main view.
    """

    def __init__(
        self,
        client: NetworkClient,
        *,
        settings: Optional[Settings] = None,
        timeout_seconds: Optional[float] = None,
        listener: Optional[StatusListener] = None,
    ) -> None:
        resolved = settings or get_settings()
        self._client = client
        self._timeout = float(timeout_seconds if timeout_seconds is not None else resolved.health_timeout_seconds)
        self._default_delay = float(resolved.health_delay_seconds)
        self._listener = listener
        self._status = HealthStatus()
        self._task: Optional[asyncio.Task[None]] = None
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def status(self) -> HealthStatus:
        return self._status

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self, reason: str = "manual") -> asyncio.Task[None]:
        if self._task is not None and not self._task.done():
            logger.debug("Superseding outstanding health probe (%s)", reason)
            self._task.cancel()
        self._set(HealthStatus(HealthState.CHECKING, None, _utcnow()))
        task = asyncio.get_running_loop().create_task(self._probe())
        self._task = task
        return task

    def retry(self) -> asyncio.Task[None]:
        return self.trigger("retry")

    def schedule_passive_check(self, delay: Optional[float] = None) -> asyncio.TimerHandle:
        if self._timer is not None:
            self._timer.cancel()
        wait = self._default_delay if delay is None else float(delay)
        self._timer = asyncio.get_running_loop().call_later(wait, self._fire_passive)
        return self._timer

    def _fire_passive(self) -> None:
        self._timer = None
        self.trigger("passive")

    async def aclose(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _probe(self) -> None:
        try:
            await asyncio.wait_for(self._client.read_catalog(no_store=True), timeout=self._timeout)
        except asyncio.TimeoutError:
            self._settle(HealthState.ERROR, NETWORK)
        except RequestError as exc:
            self._settle(HealthState.ERROR, sanitize_error_code(exc.code))
        except Exception:
            logger.exception("Health probe crashed")
            self._settle(HealthState.ERROR, UNKNOWN)
        else:
            self._settle(HealthState.OK, None)

    def _settle(self, state: HealthState, code: Optional[str]) -> None:
        if self._task is not asyncio.current_task():
            return
        self._set(HealthStatus(state, code, _utcnow()))
        log = logger.info if state is HealthState.OK else logger.warning
        log("health_probe", extra={"data": {"status": state.value, "code": code}})

    def _set(self, status: HealthStatus) -> None:
        self._status = status
        if self._listener is None:
            return
        try:
            self._listener(replace(status))
        except Exception:
            logger.exception("Health status listener failed")


__all__ = ["HealthMonitor", "HealthState", "HealthStatus", "StatusListener"]
