"""
Data models shared by the session, the remote clients and the kiosk server
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


IDLE_MESSAGE = "Please look at the camera"


class EmployeeProfile(BaseModel):
    """Employee record as returned by the directory service"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(alias="employeeId")
    name: str
    designation: str = ""
    department: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    attendance_status: bool = False
    attendance_message: str = ""

    @field_validator("id", "designation", "department", "email", "phone", "address",
                     "attendance_message", mode="before")
    @classmethod
    def _as_text(cls, value):
        # Directory sends numeric ids/phones and nulls for empty fields
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class SessionDisplay(BaseModel):
    """The only state surfaced to the UI"""
    model_config = ConfigDict(frozen=True)

    authenticated: bool = False
    message: str = IDLE_MESSAGE
    profile: Optional[EmployeeProfile] = None


class SessionState(str, Enum):
    IDLE = "idle"
    SCREENING = "screening"
    AUTHENTICATING = "authenticating"
    DISPLAYING = "displaying"


class CycleStatus(str, Enum):
    CAPTURE_NOT_READY = "capture_not_ready"
    NO_FACE = "no_face"
    LIVENESS_FAILED = "liveness_failed"
    AUTH_FAILED = "auth_failed"
    EMPLOYEE_NOT_FOUND = "employee_not_found"
    DIRECTORY_ERROR = "directory_error"
    CHECKED_IN = "checked_in"
    NOT_CHECKED_IN = "not_checked_in"


CYCLE_MESSAGES = {
    CycleStatus.NO_FACE: "No face detected. Please adjust your position.",
    CycleStatus.LIVENESS_FAILED: "Liveness check failed. Blink to verify.",
    CycleStatus.AUTH_FAILED: "Authentication failed. Please try again.",
    CycleStatus.EMPLOYEE_NOT_FOUND: "Employee not found.",
    CycleStatus.DIRECTORY_ERROR: "Error fetching employee details.",
}


class CycleResult(BaseModel):
    """Tagged outcome of one capture-screen-authenticate cycle"""
    model_config = ConfigDict(frozen=True)

    status: CycleStatus
    display: Optional[SessionDisplay] = None  # None leaves the display untouched
    detail: str = ""

    @classmethod
    def failure(cls, status, detail=""):
        display = None
        if status in CYCLE_MESSAGES:
            display = SessionDisplay(authenticated=False, message=CYCLE_MESSAGES[status])
        return cls(status=status, display=display, detail=detail)

    @classmethod
    def from_profile(cls, profile):
        if profile.attendance_status:
            return cls(
                status=CycleStatus.CHECKED_IN,
                display=SessionDisplay(
                    authenticated=True,
                    message=f"Welcome {profile.name}, {profile.attendance_message}",
                    profile=profile,
                ),
            )
        return cls(
            status=CycleStatus.NOT_CHECKED_IN,
            display=SessionDisplay(
                authenticated=False,
                message=f"Hi {profile.name}, {profile.attendance_message}",
                profile=profile,
            ),
        )

    @property
    def authenticated(self):
        return self.display is not None and self.display.authenticated

    def greeting(self):
        """Spoken version of the result, or None when nothing should be said"""
        if self.display is None or self.display.profile is None:
            return None
        profile = self.display.profile
        salutation = "Welcome" if self.status == CycleStatus.CHECKED_IN else "Hi"
        return f"{salutation}, {profile.name}. {profile.attendance_message}"
