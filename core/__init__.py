"""
Core modules for Face Attendance Kiosk

FaceDetector (MediaPipe) is imported from core.detector directly so the
rest of the package loads without the model runtime.
"""

from .camera import CameraSource, Sample
from .directory import DirectoryLookup
from .liveness import BlinkLivenessChecker, LivenessState
from .models import CycleResult, CycleStatus, EmployeeProfile, SessionDisplay, SessionState
from .narrator import Narrator
from .resolver import RemoteIdentityResolver
from .screener import LocalFaceScreener
from .session import KioskSession

__all__ = [
    'CameraSource',
    'Sample',
    'DirectoryLookup',
    'BlinkLivenessChecker',
    'LivenessState',
    'CycleResult',
    'CycleStatus',
    'EmployeeProfile',
    'SessionDisplay',
    'SessionState',
    'Narrator',
    'RemoteIdentityResolver',
    'LocalFaceScreener',
    'KioskSession',
]
