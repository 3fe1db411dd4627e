"""
Failure taxonomy for the capture-screen-authenticate cycle.

Every one of these is recovered inside the cycle that raised it; none of them
stops the kiosk loop.
"""


class KioskError(Exception):
    """Base class for recoverable kiosk failures"""


class CaptureNotReady(KioskError):
    """Camera is not open or has not produced a full frame yet"""


class ResolveError(KioskError):
    """Identity resolution failed"""


class UploadError(ResolveError):
    """Sample could not be encoded or stored in the object store"""


class MatchError(ResolveError):
    """Matching service unreachable, failed, or answered garbage"""


class NoMatch(ResolveError):
    """Matching service answered without a success marker"""


class DirectoryError(KioskError):
    """Employee directory lookup failed"""


class DirectoryNotFound(DirectoryError):
    """Directory has no employee for the identity token"""


class DirectoryServiceError(DirectoryError):
    """Directory unreachable, failed, or answered garbage"""
