"""
Blink-then-hold liveness check.

A face counts as live once both eyes were seen closed (a blink) and, at
least BLINK_DELAY seconds later, both eyes are seen open. A printed photo
never blinks, so it never passes.
"""
import logging
import time
from dataclasses import dataclass
from typing import Optional

import numpy as np

from config import liveness as liveness_config

logger = logging.getLogger(__name__)


@dataclass
class LivenessState:
    last_blink_at: Optional[float] = None


def eye_openness(eye_points):
    """
    Vertical lid distance over horizontal eye width.
    Returns None when the eye width is zero (ambiguous landmarks).
    """
    eye = np.asarray(eye_points, dtype=np.float64)
    vertical = abs(eye[1][1] - eye[5][1])
    horizontal = abs(eye[0][0] - eye[3][0])
    if horizontal == 0:
        return None
    return vertical / horizontal


def extract_eyes(landmarks,
                 left_idx=liveness_config.LEFT_EYE_IDX,
                 right_idx=liveness_config.RIGHT_EYE_IDX):
    """Pick the 6-point eye contours out of a face mesh, or None"""
    if not landmarks:
        return None
    needed = max(max(left_idx), max(right_idx))
    if len(landmarks) <= needed:
        return None
    left = [landmarks[i] for i in left_idx]
    right = [landmarks[i] for i in right_idx]
    return left, right


class BlinkLivenessChecker:
    """Owns the LivenessState of one session"""

    def __init__(self,
                 open_threshold=liveness_config.EYE_OPEN_THRESHOLD,
                 blink_delay=liveness_config.BLINK_DELAY,
                 blink_max_age=liveness_config.BLINK_MAX_AGE,
                 clock=time.monotonic):
        self.open_threshold = open_threshold
        self.blink_delay = blink_delay
        self.blink_max_age = blink_max_age
        self.clock = clock
        self.state = LivenessState()

    def is_open(self, eye_points):
        ratio = eye_openness(eye_points)
        return ratio is not None and ratio > self.open_threshold

    def check(self, left_eye, right_eye):
        """
        Evaluate one observation of both eyes.
        Returns True only for open eyes held long enough after a blink.
        """
        if left_eye is None or right_eye is None or len(left_eye) != 6 or len(right_eye) != 6:
            return False

        left_ratio = eye_openness(left_eye)
        right_ratio = eye_openness(right_eye)
        if left_ratio is None or right_ratio is None:
            return False

        left_open = left_ratio > self.open_threshold
        right_open = right_ratio > self.open_threshold
        now = self.clock()

        if not left_open and not right_open:
            self.state.last_blink_at = now
            logger.debug("Blink recorded (ratios %.3f / %.3f)", left_ratio, right_ratio)
            return False

        if left_open and right_open and self.state.last_blink_at is not None:
            # Whole milliseconds, so a 2.0 s hold is 2000 ms whatever the float rounding
            elapsed_ms = round((now - self.state.last_blink_at) * 1000)
            if self.blink_max_age is not None and elapsed_ms > round(self.blink_max_age * 1000):
                return False
            return elapsed_ms >= round(self.blink_delay * 1000)

        return False
