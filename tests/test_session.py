import asyncio
import threading
from datetime import datetime, timedelta, timezone

import pytest

from ecount_sync.session import SessionManager, parse_expire_time

START = datetime(2024, 3, 5, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now=START):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeLogin:
    """Counts logins; optionally blocks until released or fails."""

    def __init__(self, expire_time='20240305121000', fail_times=0, gate=None, delay=0):
        self.calls = 0
        self.delay = delay
        self.expire_time = expire_time
        self.fail_times = fail_times
        self.gate = gate

    async def __call__(self):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(self.delay)
        if self.calls <= self.fail_times:
            raise RuntimeError('login refused')
        return f'session-{self.calls}', self.expire_time


# ---------------------------------------------------------------------------
# parse_expire_time
# ---------------------------------------------------------------------------

class TestParseExpireTime:
    def test_compact_utc_timestamp(self):
        assert parse_expire_time('20240305121000') == datetime(2024, 3, 5, 12, 10, tzinfo=timezone.utc)

    @pytest.mark.parametrize('value', [None, '', '2024030512', '2024-03-05 12:10', '20241305121000', 'abcdefghijklmn'])
    def test_invalid_values(self, value):
        assert parse_expire_time(value) is None


# ---------------------------------------------------------------------------
# SessionManager
# ---------------------------------------------------------------------------

class TestSessionCaching:
    @pytest.mark.asyncio
    async def test_cached_session_reused(self):
        login = FakeLogin()
        manager = SessionManager(login, clock=FakeClock())

        first = await manager.ensure_session()
        second = await manager.ensure_session()

        assert first is second
        assert first.session_id == 'session-1'
        assert first.expires_at == datetime(2024, 3, 5, 12, 10, tzinfo=timezone.utc)
        assert login.calls == 1

    @pytest.mark.asyncio
    async def test_renews_inside_skew_margin(self):
        clock = FakeClock()
        login = FakeLogin()
        manager = SessionManager(login, clock=clock)

        await manager.ensure_session()
        clock.advance(minutes=9, seconds=29)
        assert (await manager.ensure_session()).session_id == 'session-1'

        clock.advance(seconds=2)   # 9:31 – within 30s of the 10 minute expiry
        renewed = await manager.ensure_session()

        assert renewed.session_id == 'session-2'
        assert login.calls == 2

    @pytest.mark.asyncio
    async def test_missing_expire_time_defaults_to_ten_minutes(self):
        clock = FakeClock()
        manager = SessionManager(FakeLogin(expire_time=None), clock=clock)

        session = await manager.ensure_session()

        assert session.expires_at == START + timedelta(minutes=10)

    @pytest.mark.asyncio
    async def test_unparsable_expire_time_defaults_to_ten_minutes(self):
        manager = SessionManager(FakeLogin(expire_time='tomorrow'), clock=FakeClock())
        session = await manager.ensure_session()
        assert session.expires_at == START + timedelta(minutes=10)

    @pytest.mark.asyncio
    async def test_invalidate_forces_new_login(self):
        login = FakeLogin()
        manager = SessionManager(login, clock=FakeClock())

        await manager.ensure_session()
        manager.invalidate()
        session = await manager.ensure_session()

        assert session.session_id == 'session-2'
        assert login.calls == 2


class TestSingleFlight:
    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_login(self):
        gate = asyncio.Event()
        login = FakeLogin(gate=gate)
        manager = SessionManager(login, clock=FakeClock())

        waiters = [asyncio.ensure_future(manager.ensure_session()) for _ in range(20)]
        await asyncio.sleep(0)
        gate.set()
        sessions = await asyncio.gather(*waiters)

        assert login.calls == 1
        assert {s.session_id for s in sessions} == {'session-1'}

    @pytest.mark.asyncio
    async def test_failure_reaches_every_waiter_and_is_not_cached(self):
        gate = asyncio.Event()
        login = FakeLogin(fail_times=1, gate=gate)
        manager = SessionManager(login, clock=FakeClock())

        waiters = [asyncio.ensure_future(manager.ensure_session()) for _ in range(5)]
        await asyncio.sleep(0)
        gate.set()
        results = await asyncio.gather(*waiters, return_exceptions=True)

        assert login.calls == 1
        assert all(isinstance(r, RuntimeError) for r in results)

        session = await manager.ensure_session()
        assert session.session_id == 'session-2'
        assert login.calls == 2

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_shared_login(self):
        gate = asyncio.Event()
        login = FakeLogin(gate=gate)
        manager = SessionManager(login, clock=FakeClock())

        patient = asyncio.ensure_future(manager.ensure_session())
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(manager.ensure_session(), timeout=0.01)

        gate.set()
        session = await patient

        assert session.session_id == 'session-1'
        assert login.calls == 1


class TestAcrossEventLoops:
    def test_threads_on_separate_loops_share_one_login(self):
        login = FakeLogin(delay=0.2)
        manager = SessionManager(login, clock=FakeClock())
        results = []

        def run():
            results.append(asyncio.run(manager.ensure_session()))

        threads = [threading.Thread(target=run) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert login.calls == 1
        assert len(results) == 5
        assert {s.session_id for s in results} == {'session-1'}

    def test_cached_session_reused_on_a_new_loop(self):
        login = FakeLogin()
        manager = SessionManager(login, clock=FakeClock())

        first = asyncio.run(manager.ensure_session())
        second = asyncio.run(manager.ensure_session())

        assert first is second
        assert login.calls == 1
