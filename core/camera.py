"""
Camera frame source producing still-image samples on demand
"""
import logging
import time
from dataclasses import dataclass, field

import cv2
import numpy as np

from config import settings
from core.errors import CaptureNotReady

logger = logging.getLogger(__name__)


@dataclass
class Sample:
    """One still image plus its capture time. Lives for a single cycle."""
    image: np.ndarray
    captured_at: float = field(default_factory=time.time)

    def encode_jpeg(self, quality=settings.JPEG_QUALITY):
        ok, buf = cv2.imencode('.jpg', self.image, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
        if not ok:
            raise ValueError("JPEG encoding failed")
        return buf.tobytes()


def parse_source(src):
    """Camera index as int ("0" -> 0), anything else is a stream URL"""
    try:
        return int(src)
    except (TypeError, ValueError):
        return src


class CameraSource:
    """OpenCV-backed camera. capture() never retries; the caller decides."""

    def __init__(self, source=settings.CAMERA_DEFAULT,
                 width=settings.FRAME_WIDTH, height=settings.FRAME_HEIGHT,
                 fps=settings.CAMERA_FPS, capture_factory=cv2.VideoCapture):
        self.source = parse_source(source)
        self.width = width
        self.height = height
        self.fps = fps
        self._capture_factory = capture_factory
        self.cap = None

    @property
    def is_open(self):
        return self.cap is not None and self.cap.isOpened()

    def open(self):
        if self.is_open:
            return True
        self.cap = self._capture_factory(self.source)
        if not self.cap.isOpened():
            logger.warning("Cannot open camera %r", self.source)
            return False

        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self.cap.set(cv2.CAP_PROP_FPS, self.fps)
        logger.info("Camera %r opened", self.source)
        return True

    def release(self):
        if self.cap is not None:
            self.cap.release()
            self.cap = None

    def capture(self):
        if not self.is_open:
            raise CaptureNotReady(f"camera {self.source!r} is not open")

        ret, frame = self.cap.read()
        if not ret or frame is None or frame.size == 0:
            raise CaptureNotReady("camera has not produced a full frame yet")
        return Sample(frame)

    def frames(self, retry_delay=0.05):
        """Lazy, infinite sample stream. Reopens the camera after release()."""
        while True:
            if not self.is_open:
                self.open()
            try:
                yield self.capture()
            except CaptureNotReady:
                time.sleep(retry_delay)

    def __del__(self):
        try:
            self.release()
        except Exception:
            pass
