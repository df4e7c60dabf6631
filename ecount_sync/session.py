import asyncio
import concurrent.futures
import functools
import logging
import re
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional

from django.utils import timezone as django_timezone

from .exceptions import NetworkFailure

logger = logging.getLogger(__name__)

SESSION_SKEW = timedelta(seconds=30)
DEFAULT_SESSION_TTL = timedelta(minutes=10)

_EXPIRE_TIME_RE = re.compile(r'^\d{14}$')

# login() resolves to (SESSION_ID, raw EXPIRE_TIME or None)
LoginCallable = Callable[[], Awaitable[tuple[str, Optional[str]]]]


@dataclass(frozen=True)
class SessionInfo:
    session_id: str
    expires_at: datetime


def parse_expire_time(value: Optional[str]) -> Optional[datetime]:
    """Parse ECOUNT's YYYYMMDDHHMMSS (UTC) expiry; None if absent or malformed."""
    if not value or not _EXPIRE_TIME_RE.match(value):
        return None
    try:
        return datetime.strptime(value, '%Y%m%d%H%M%S').replace(tzinfo=timezone.utc)
    except ValueError:
        return None


class SessionManager:
    """
    Caches the ECOUNT session and renews it before it runs out.

    Callers that find no usable session share one login, even when they run
    on different event loops or threads (every ``async_to_sync`` call gets a
    loop of its own). The first caller starts the login on its loop; the
    rest await the same ``concurrent.futures.Future``. Waiters are shielded
    from it, so a caller that times out or is cancelled does not abort the
    login for the others.
    """

    def __init__(self, login: LoginCallable, skew: timedelta = SESSION_SKEW,
                 default_ttl: timedelta = DEFAULT_SESSION_TTL,
                 clock: Callable[[], datetime] = django_timezone.now):
        self._login = login
        self._skew = skew
        self._default_ttl = default_ttl
        self._clock = clock
        self._session: Optional[SessionInfo] = None
        self._inflight: Optional[concurrent.futures.Future] = None
        self._lock = threading.Lock()

    def _is_fresh(self, session: Optional[SessionInfo]) -> bool:
        return session is not None and session.expires_at - self._skew > self._clock()

    async def ensure_session(self) -> SessionInfo:
        session = self._session
        if self._is_fresh(session):
            return session

        with self._lock:
            session = self._session
            if self._is_fresh(session):
                return session
            future = self._inflight
            if future is None:
                future = concurrent.futures.Future()
                self._inflight = future
                task = asyncio.get_running_loop().create_task(self._authenticate())
                task.add_done_callback(functools.partial(self._login_finished, future))
        return await asyncio.shield(asyncio.wrap_future(future))

    def invalidate(self):
        self._session = None

    async def _authenticate(self) -> SessionInfo:
        session_id, raw_expire = await self._login()
        expires_at = parse_expire_time(raw_expire)
        if expires_at is None:
            logger.warning("ECOUNT login returned no usable EXPIRE_TIME (%r) – assuming %s validity.",
                           raw_expire, self._default_ttl)
            expires_at = self._clock() + self._default_ttl
        session = SessionInfo(session_id=session_id, expires_at=expires_at)
        self._session = session
        logger.info("ECOUNT session established, expires at %s.", expires_at.isoformat())
        return session

    def _login_finished(self, future: concurrent.futures.Future, task: asyncio.Task):
        with self._lock:
            if self._inflight is future:
                self._inflight = None

        if task.cancelled():
            # The starting caller's loop shut down mid-login.
            future.set_exception(NetworkFailure("ECOUNT login was interrupted."))
        elif task.exception() is not None:
            logger.warning("ECOUNT login failed: %s", task.exception())
            future.set_exception(task.exception())
        else:
            future.set_result(task.result())
