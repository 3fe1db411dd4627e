"""
Local, no-network gate applied to a sample before any remote call
"""
import logging

from core.liveness import BlinkLivenessChecker, extract_eyes

logger = logging.getLogger(__name__)


class LocalFaceScreener:
    """
    Presence + liveness screening for one session.

    The detector only needs detect(image) -> list of boxes and
    get_landmarks(image) -> list of (x, y) points or None.
    """

    def __init__(self, detector, liveness=None):
        self.detector = detector
        self.liveness = liveness or BlinkLivenessChecker()

    def detect_presence(self, sample):
        faces = self.detector.detect(sample.image)
        return len(faces) > 0

    def detect_liveness(self, sample):
        eyes = extract_eyes(self.detector.get_landmarks(sample.image))
        if eyes is None:
            logger.debug("No usable landmarks, liveness not evaluated")
            return False
        left_eye, right_eye = eyes
        return self.liveness.check(left_eye, right_eye)

    def close(self):
        close = getattr(self.detector, 'close', None)
        if close is not None:
            close()
