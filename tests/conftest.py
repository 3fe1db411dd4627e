import asyncio

import numpy as np
import pytest

from core.camera import Sample
from core.errors import CaptureNotReady
from core.models import EmployeeProfile


def make_profile(**overrides):
    fields = {
        "employeeId": "E-7",
        "name": "Asha Rao",
        "designation": "Engineer",
        "department": "R&D",
        "email": "asha@example.com",
        "phone": "555-0100",
        "address": "Block B",
        "attendance_status": True,
        "attendance_message": "Checked in",
    }
    fields.update(overrides)
    return EmployeeProfile.model_validate(fields)


def make_sample():
    image = np.zeros((48, 64, 3), dtype=np.uint8)
    image[10:30, 20:40] = 200
    return Sample(image)


class FakeFrameSource:
    def __init__(self, ready=True):
        self.ready = ready
        self.captures = 0
        self.released = False

    def capture(self):
        self.captures += 1
        if not self.ready:
            raise CaptureNotReady("no frame yet")
        return make_sample()

    def release(self):
        self.released = True


class FakeScreener:
    def __init__(self, present=True, live=True):
        self.present = present
        self.live = live
        self.closed = False

    def detect_presence(self, sample):
        return self.present

    def detect_liveness(self, sample):
        return self.live

    def close(self):
        self.closed = True


class FakeResolver:
    """Resolves to face_id, or raises error. Records call spans in events."""

    def __init__(self, face_id="face-1", error=None, delay=0.0, events=None):
        self.face_id = face_id
        self.error = error
        self.delay = delay
        self.events = events if events is not None else []
        self.calls = 0

    async def resolve(self, sample):
        self.calls += 1
        self.events.append(("resolve", "start"))
        await asyncio.sleep(self.delay)
        self.events.append(("resolve", "end"))
        if self.error is not None:
            raise self.error
        return self.face_id


class FakeDirectory:
    def __init__(self, profile=None, error=None, delay=0.0, events=None):
        self.profile = profile if profile is not None else make_profile()
        self.error = error
        self.delay = delay
        self.events = events if events is not None else []
        self.requested = []

    async def fetch(self, face_id):
        self.requested.append(face_id)
        self.events.append(("fetch", "start"))
        await asyncio.sleep(self.delay)
        self.events.append(("fetch", "end"))
        if self.error is not None:
            raise self.error
        return self.profile


class FakeNarrator:
    def __init__(self):
        self.spoken = []
        self.closed = False

    def speak(self, text):
        self.spoken.append(text)

    def close(self):
        self.closed = True


@pytest.fixture
def sample():
    return make_sample()
