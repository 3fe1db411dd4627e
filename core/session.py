"""
Kiosk session: the capture-screen-authenticate cycle and the display it drives.

One cycle runs to completion before the next is scheduled CYCLE_DELAY seconds
later, so no two cycles ever touch the display or the liveness state at the
same time. Two timers live on the session: the pending next cycle and the
pending auto-reset of an authenticated display. Both are replaced, never
stacked.
"""
import asyncio
import logging

from config import settings
from core.errors import CaptureNotReady, DirectoryNotFound, DirectoryError, ResolveError
from core.models import CycleResult, CycleStatus, SessionDisplay, SessionState

logger = logging.getLogger(__name__)

LIVENESS_OK_MESSAGE = "Liveness check success."
UPLOADING_MESSAGE = "Uploading image for verification..."


class KioskSession:
    def __init__(self, frame_source, screener, resolver, directory, narrator=None,
                 cycle_delay=settings.CYCLE_DELAY, auth_hold=settings.AUTH_HOLD,
                 http_client=None):
        self.frame_source = frame_source
        self.screener = screener
        self.resolver = resolver
        self.directory = directory
        self.narrator = narrator
        self.http_client = http_client

        self.cycle_delay = cycle_delay
        self.auth_hold = auth_hold

        self.display = SessionDisplay()
        self.state = SessionState.IDLE
        self.last_result = None
        self.cycle_count = 0

        self._listeners = []
        self._running = False
        self._loop = None
        self._cycle_handle = None
        self._reset_handle = None
        self._cycle_task = None

    # ---------------------------------------------------------
    # LIFECYCLE
    # ---------------------------------------------------------
    @property
    def running(self):
        return self._running

    def start(self):
        """Begin cycling on the running event loop. First cycle starts right away."""
        if self._running:
            return
        self._loop = asyncio.get_running_loop()
        self._running = True
        logger.info("Kiosk session started (cycle delay %.1fs)", self.cycle_delay)
        self._schedule_cycle(0)

    def stop(self):
        """Stop scheduling. An in-flight cycle is left to finish on its own."""
        self._running = False
        if self._cycle_handle is not None:
            self._cycle_handle.cancel()
            self._cycle_handle = None
        self._cancel_reset()
        logger.info("Kiosk session stopped")

    async def wait_closed(self):
        task = self._cycle_task
        if task is not None and not task.done():
            await asyncio.wait({task})

    async def aclose(self):
        self.stop()
        await self.wait_closed()
        self._cancel_reset()

        if self.narrator is not None:
            # Joins the speech thread; keep the loop free while it drains
            await asyncio.to_thread(self.narrator.close)
        close_screener = getattr(self.screener, 'close', None)
        if close_screener is not None:
            close_screener()
        release = getattr(self.frame_source, 'release', None)
        if release is not None:
            release()
        if self.http_client is not None:
            await self.http_client.aclose()

    def add_listener(self, callback):
        """callback(display) runs on every display change"""
        self._listeners.append(callback)

    def remove_listener(self, callback):
        if callback in self._listeners:
            self._listeners.remove(callback)

    # ---------------------------------------------------------
    # SCHEDULING
    # ---------------------------------------------------------
    def _schedule_cycle(self, delay):
        if self._cycle_handle is not None:
            self._cycle_handle.cancel()
        self._cycle_handle = self._loop.call_later(delay, self._launch_cycle)

    def _launch_cycle(self):
        self._cycle_handle = None
        if not self._running:
            return
        if self._cycle_task is not None and not self._cycle_task.done():
            # Restarted while the previous cycle was still in flight; it reschedules itself
            return
        self._cycle_task = self._loop.create_task(self._cycle())

    async def _cycle(self):
        try:
            await self.run_cycle()
        except Exception:
            logger.exception("Cycle crashed, display left unchanged")
        finally:
            self.state = SessionState.IDLE
            if self._running:
                self._schedule_cycle(self.cycle_delay)

    def _cancel_reset(self):
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None

    def _expire_authentication(self):
        self._reset_handle = None
        if self.display.authenticated:
            logger.info("Authenticated display expired")
            self._set_display(self.display.model_copy(update={"authenticated": False}))

    # ---------------------------------------------------------
    # DISPLAY
    # ---------------------------------------------------------
    def _set_display(self, display):
        self.display = display
        for callback in list(self._listeners):
            try:
                callback(display)
            except Exception:
                logger.exception("Display listener failed")

    def _show_message(self, message):
        self._set_display(self.display.model_copy(update={"message": message}))

    def apply(self, result):
        """Install a cycle result: replace the display, re-arm the auto-reset, greet"""
        self.last_result = result
        if result.display is None:
            return

        self.state = SessionState.DISPLAYING
        self._cancel_reset()
        self._set_display(result.display)

        if result.authenticated:
            loop = asyncio.get_running_loop()
            self._reset_handle = loop.call_later(self.auth_hold, self._expire_authentication)

        greeting = result.greeting()
        if greeting and self.narrator is not None:
            self.narrator.speak(greeting)

    # ---------------------------------------------------------
    # MAIN PIPELINE
    # ---------------------------------------------------------
    async def run_cycle(self):
        """One full capture-screen-authenticate pass. Never raises for kiosk failures."""
        self.cycle_count += 1
        result = await self._pipeline()
        if result.status == CycleStatus.CAPTURE_NOT_READY:
            logger.debug("Cycle %d skipped: %s", self.cycle_count, result.detail)
        else:
            logger.info("Cycle %d: %s %s", self.cycle_count, result.status.value, result.detail)
        self.apply(result)
        return result

    async def _pipeline(self):
        self.state = SessionState.SCREENING
        sample, failure = await self._capture()
        if failure is not None:
            return failure

        failure = await self._screen(sample)
        if failure is not None:
            return failure

        self._show_message(LIVENESS_OK_MESSAGE)
        self.state = SessionState.AUTHENTICATING
        self._show_message(UPLOADING_MESSAGE)

        face_id, failure = await self._resolve(sample)
        if failure is not None:
            return failure

        profile, failure = await self._lookup(face_id)
        if failure is not None:
            return failure

        return CycleResult.from_profile(profile)

    async def _capture(self):
        try:
            return await asyncio.to_thread(self.frame_source.capture), None
        except CaptureNotReady as e:
            return None, CycleResult.failure(CycleStatus.CAPTURE_NOT_READY, str(e))
        except Exception as e:
            logger.exception("Frame source failed")
            return None, CycleResult.failure(CycleStatus.CAPTURE_NOT_READY, repr(e))

    async def _screen(self, sample):
        try:
            present = await asyncio.to_thread(self.screener.detect_presence, sample)
        except Exception as e:
            logger.exception("Presence detection failed")
            return CycleResult.failure(CycleStatus.NO_FACE, repr(e))
        if not present:
            return CycleResult.failure(CycleStatus.NO_FACE)

        try:
            live = await asyncio.to_thread(self.screener.detect_liveness, sample)
        except Exception as e:
            logger.exception("Liveness detection failed")
            return CycleResult.failure(CycleStatus.LIVENESS_FAILED, repr(e))
        if not live:
            return CycleResult.failure(CycleStatus.LIVENESS_FAILED)
        return None

    async def _resolve(self, sample):
        try:
            return await self.resolver.resolve(sample), None
        except ResolveError as e:
            return None, CycleResult.failure(CycleStatus.AUTH_FAILED, f"{type(e).__name__}: {e}")
        except Exception as e:
            logger.exception("Identity resolver failed")
            return None, CycleResult.failure(CycleStatus.AUTH_FAILED, repr(e))

    async def _lookup(self, face_id):
        try:
            return await self.directory.fetch(face_id), None
        except DirectoryNotFound as e:
            return None, CycleResult.failure(CycleStatus.EMPLOYEE_NOT_FOUND, str(e))
        except DirectoryError as e:
            return None, CycleResult.failure(CycleStatus.DIRECTORY_ERROR, str(e))
        except Exception as e:
            logger.exception("Directory lookup failed")
            return None, CycleResult.failure(CycleStatus.DIRECTORY_ERROR, repr(e))
