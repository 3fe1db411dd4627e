"""
Fire-and-forget speech output
"""
import logging
import queue
import shutil
import subprocess
import sys
import threading

from config import settings

logger = logging.getLogger(__name__)


def _powershell_speaker(text):
    ps_text = text.replace("'", "''")
    ps_script = (
        "Add-Type -AssemblyName System.Speech; "
        "$s = New-Object System.Speech.Synthesis.SpeechSynthesizer; "
        f"$s.Speak('{ps_text}')"
    )
    subprocess.run(
        ["powershell", "-NoProfile", "-Command", ps_script],
        check=True,
        timeout=settings.SPEECH_TIMEOUT,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        creationflags=getattr(subprocess, 'CREATE_NO_WINDOW', 0),
    )


def _command_speaker(command):
    def speak(text):
        subprocess.run([command, text], check=True, timeout=settings.SPEECH_TIMEOUT,
                       stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    return speak


def system_speaker():
    """Speech backend for this platform, or None when there is none"""
    if sys.platform.startswith('win'):
        if shutil.which("powershell"):
            return _powershell_speaker
        return None
    for command in ("say", "espeak-ng", "espeak"):
        if shutil.which(command):
            return _command_speaker(command)
    return None


class Narrator:
    """Speaks on a worker thread so the kiosk loop never waits for audio"""

    def __init__(self, speaker=None, max_pending=settings.SPEECH_QUEUE_SIZE):
        self.speaker = speaker if speaker is not None else system_speaker()
        if self.speaker is None:
            logger.warning("No speech backend available, greetings will not be spoken")
        self._queue = queue.Queue(maxsize=max_pending)
        self._worker = threading.Thread(target=self._run, name="narrator", daemon=True)
        self._worker.start()

    def speak(self, text):
        if not text:
            return
        if self.speaker is None:
            logger.info("Not spoken (no backend): %s", text)
            return
        try:
            self._queue.put_nowait(text)
        except queue.Full:
            logger.warning("Speech queue full, dropping: %s", text)

    def _run(self):
        while True:
            text = self._queue.get()
            try:
                if text is None:
                    break
                self.speaker(text)
            except Exception:
                logger.exception("Speech backend failed for %r", text)
            finally:
                self._queue.task_done()

    def close(self, timeout=settings.SPEECH_CLOSE_TIMEOUT):
        """Stop the worker. Waits at most about 2 * timeout on a stuck backend."""
        try:
            self._queue.put(None, timeout=timeout)
        except queue.Full:
            logger.warning("Speech worker stuck, abandoning %d pending greetings", self._queue.qsize())
            return
        self._worker.join(timeout)
        if self._worker.is_alive():
            logger.warning("Speech worker did not stop within %.1fs", timeout)
