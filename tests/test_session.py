import asyncio
import threading
import time

import pytest

from conftest import (FakeDirectory, FakeFrameSource, FakeNarrator, FakeResolver,
                      FakeScreener, make_profile)
from core.errors import (DirectoryNotFound, DirectoryServiceError, MatchError,
                         NoMatch, UploadError)
from core.models import CycleStatus, IDLE_MESSAGE, SessionDisplay, SessionState
from core.narrator import Narrator
from core.session import KioskSession, LIVENESS_OK_MESSAGE, UPLOADING_MESSAGE


def make_session(ready=True, present=True, live=True, resolver=None, directory=None,
                 narrator=None, **kwargs):
    return KioskSession(
        FakeFrameSource(ready=ready),
        FakeScreener(present=present, live=live),
        resolver or FakeResolver(),
        directory or FakeDirectory(),
        narrator=narrator if narrator is not None else FakeNarrator(),
        **kwargs,
    )


def run(coro):
    return asyncio.run(coro)


def test_initial_display_is_idle():
    session = make_session()
    assert session.display == SessionDisplay(authenticated=False, message=IDLE_MESSAGE, profile=None)
    assert session.state == SessionState.IDLE


def test_capture_not_ready_leaves_display_untouched():
    session = make_session(ready=False)
    result = run(session.run_cycle())

    assert result.status == CycleStatus.CAPTURE_NOT_READY
    assert session.display == SessionDisplay()
    assert session.narrator.spoken == []
    assert session.resolver.calls == 0


def test_no_face():
    session = make_session(present=False)
    result = run(session.run_cycle())

    assert result.status == CycleStatus.NO_FACE
    assert session.display.message == "No face detected. Please adjust your position."
    assert session.display.authenticated is False
    assert session.display.profile is None
    assert session.resolver.calls == 0


def test_no_face_is_idempotent():
    session = make_session(present=False)

    async def twice():
        await session.run_cycle()
        first = session.display
        await session.run_cycle()
        return first, session.display

    first, second = run(twice())
    assert first == second
    assert second == SessionDisplay(message="No face detected. Please adjust your position.")


def test_liveness_failed():
    session = make_session(live=False)
    result = run(session.run_cycle())

    assert result.status == CycleStatus.LIVENESS_FAILED
    assert session.display.message == "Liveness check failed. Blink to verify."
    assert session.resolver.calls == 0


def test_screener_crash_maps_to_stage_failure():
    class Exploding(FakeScreener):
        def detect_presence(self, sample):
            raise RuntimeError("model not loaded")

    session = KioskSession(FakeFrameSource(), Exploding(), FakeResolver(), FakeDirectory())
    result = run(session.run_cycle())
    assert result.status == CycleStatus.NO_FACE


def test_checked_in_end_to_end():
    directory = FakeDirectory()
    session = make_session(resolver=FakeResolver(face_id="face-77"), directory=directory)
    shown = []
    session.add_listener(shown.append)

    async def cycle():
        result = await session.run_cycle()
        session._cancel_reset()
        return result

    result = run(cycle())

    assert result.status == CycleStatus.CHECKED_IN
    assert directory.requested == ["face-77"]
    assert session.display.authenticated is True
    assert session.display.message == "Welcome Asha Rao, Checked in"
    assert session.display.profile.id == "E-7"
    assert [d.message for d in shown[:2]] == [LIVENESS_OK_MESSAGE, UPLOADING_MESSAGE]
    assert shown[-1] == session.display
    assert session.narrator.spoken == ["Welcome, Asha Rao. Checked in"]
    assert session.state == SessionState.DISPLAYING


def test_not_checked_in_keeps_profile():
    profile = make_profile(attendance_status=False, attendance_message="Already checked out")
    session = make_session(directory=FakeDirectory(profile=profile))
    result = run(session.run_cycle())

    assert result.status == CycleStatus.NOT_CHECKED_IN
    assert session.display.authenticated is False
    assert session.display.profile == profile
    assert session.display.message == "Hi Asha Rao, Already checked out"
    assert session.narrator.spoken == ["Hi, Asha Rao. Already checked out"]
    assert session._reset_handle is None


@pytest.mark.parametrize("error", [
    NoMatch("no face matched"),
    MatchError("502"),
    UploadError("403"),
    RuntimeError("unexpected"),
])
def test_resolver_failures_show_one_message(error):
    directory = FakeDirectory()
    session = make_session(resolver=FakeResolver(error=error), directory=directory)
    result = run(session.run_cycle())

    assert result.status == CycleStatus.AUTH_FAILED
    assert session.display == SessionDisplay(message="Authentication failed. Please try again.")
    assert directory.requested == []
    assert session.narrator.spoken == []


def test_directory_not_found():
    session = make_session(directory=FakeDirectory(error=DirectoryNotFound("face-1")))
    result = run(session.run_cycle())
    assert result.status == CycleStatus.EMPLOYEE_NOT_FOUND
    assert session.display.message == "Employee not found."
    assert session.display.profile is None


def test_directory_error():
    session = make_session(directory=FakeDirectory(error=DirectoryServiceError("HTTP 500")))
    result = run(session.run_cycle())
    assert result.status == CycleStatus.DIRECTORY_ERROR
    assert session.display.message == "Error fetching employee details."


def test_authenticated_display_expires():
    session = make_session(auth_hold=0.05)

    async def cycle_then_wait():
        await session.run_cycle()
        assert session.display.authenticated is True
        await asyncio.sleep(0.15)

    run(cycle_then_wait())
    assert session.display.authenticated is False
    assert session.display.message == "Welcome Asha Rao, Checked in"
    assert session.display.profile is not None


def test_new_result_replaces_pending_reset():
    session = make_session(auth_hold=10.0)

    async def two_cycles():
        await session.run_cycle()
        first = session._reset_handle
        await session.run_cycle()
        second = session._reset_handle
        session._cancel_reset()
        return first, second

    first, second = run(two_cycles())
    assert first is not second
    assert first.cancelled()


def test_failure_after_success_cancels_reset():
    session = make_session(auth_hold=10.0)

    async def success_then_no_face():
        await session.run_cycle()
        pending = session._reset_handle
        session.screener.present = False
        await session.run_cycle()
        return pending

    pending = run(success_then_no_face())
    assert pending.cancelled()
    assert session._reset_handle is None
    assert session.display.authenticated is False


def test_authenticated_implies_checked_in():
    outcomes = [
        make_profile(attendance_status=True),
        make_profile(attendance_status=False),
    ]
    for profile in outcomes:
        session = make_session(directory=FakeDirectory(profile=profile))

        async def cycle():
            await session.run_cycle()
            session._cancel_reset()

        run(cycle())
        if session.display.authenticated:
            assert session.display.profile is not None
            assert session.display.profile.attendance_status is True


def test_listener_failure_does_not_break_cycle():
    session = make_session()
    seen = []

    def broken(display):
        raise ValueError("ui gone")

    session.add_listener(broken)
    session.add_listener(seen.append)

    async def cycle():
        result = await session.run_cycle()
        session._cancel_reset()
        return result

    result = run(cycle())
    assert result.status == CycleStatus.CHECKED_IN
    assert seen[-1].authenticated is True

    session.remove_listener(broken)
    assert broken not in session._listeners


def test_cycles_never_overlap():
    events = []
    session = make_session(
        resolver=FakeResolver(delay=0.02, events=events),
        directory=FakeDirectory(delay=0.02, events=events),
        cycle_delay=0.01,
        auth_hold=10.0,
    )

    async def drive():
        session.start()
        await asyncio.sleep(0.3)
        session.stop()
        await session.wait_closed()
        session._cancel_reset()

    run(drive())

    one_cycle = [("resolve", "start"), ("resolve", "end"), ("fetch", "start"), ("fetch", "end")]
    assert session.cycle_count >= 2
    assert len(events) % 4 == 0
    for i in range(0, len(events), 4):
        assert events[i:i + 4] == one_cycle


def test_start_runs_first_cycle_immediately_then_waits():
    session = make_session(present=False, cycle_delay=60.0)

    async def drive():
        session.start()
        session.start()
        await asyncio.sleep(0.1)
        session.stop()
        await session.wait_closed()

    run(drive())
    assert session.cycle_count == 1
    assert session.frame_source.captures == 1
    assert session.running is False
    assert session.state == SessionState.IDLE


def test_aclose_keeps_loop_running_while_speech_drains():
    release = threading.Event()
    narrator = Narrator(speaker=lambda text: release.wait(5.0), max_pending=1)
    session = make_session(narrator=narrator, cycle_delay=60.0)
    ticks = []

    async def ticker():
        while True:
            ticks.append(time.monotonic())
            await asyncio.sleep(0.02)

    async def drive():
        narrator.speak("first")
        await asyncio.sleep(0.05)
        narrator.speak("second")
        tick_task = asyncio.create_task(ticker())
        asyncio.get_running_loop().call_later(0.3, release.set)
        await asyncio.wait_for(session.aclose(), 5.0)
        tick_task.cancel()

    run(drive())
    assert len(ticks) >= 5
    assert not narrator._worker.is_alive()


def test_aclose_releases_resources():
    class FakeClient:
        closed = False

        async def aclose(self):
            self.closed = True

    client = FakeClient()
    session = make_session(http_client=client, cycle_delay=60.0)

    async def drive():
        session.start()
        await asyncio.sleep(0.05)
        await session.aclose()

    run(drive())
    assert session.frame_source.released
    assert session.screener.closed
    assert session.narrator.closed
    assert client.closed
    assert session._reset_handle is None
