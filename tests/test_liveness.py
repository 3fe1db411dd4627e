import pytest

from core.liveness import BlinkLivenessChecker, eye_openness, extract_eyes


def eye(height, width=10.0):
    """6-point eye contour with the given lid gap and corner-to-corner width"""
    return [
        (0.0, 0.0),
        (3.0, -height / 2),
        (7.0, -height / 2),
        (width, 0.0),
        (7.0, height / 2),
        (3.0, height / 2),
    ]


OPEN = eye(4.0)    # ratio 0.4
CLOSED = eye(1.0)  # ratio 0.1


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def checker(clock):
    return BlinkLivenessChecker(clock=clock)


def test_eye_openness_ratio():
    assert eye_openness(OPEN) == pytest.approx(0.4)
    assert eye_openness(CLOSED) == pytest.approx(0.1)


def test_eye_openness_zero_width_is_ambiguous():
    assert eye_openness(eye(4.0, width=0.0)) is None


def test_extract_eyes_needs_full_mesh():
    assert extract_eyes(None) is None
    assert extract_eyes([(0, 0)] * 100) is None

    mesh = [(float(i), float(i)) for i in range(468)]
    left, right = extract_eyes(mesh)
    assert left[0] == (33.0, 33.0)
    assert right[3] == (263.0, 263.0)
    assert len(left) == len(right) == 6


def test_open_eyes_without_blink_is_not_live(checker):
    assert checker.check(OPEN, OPEN) is False
    assert checker.state.last_blink_at is None


def test_closed_eyes_record_blink(checker, clock):
    assert checker.check(CLOSED, CLOSED) is False
    assert checker.state.last_blink_at == clock.now


def test_blink_then_hold_is_live(checker, clock):
    checker.check(CLOSED, CLOSED)
    clock.now += 2.0
    assert checker.check(OPEN, OPEN) is True


def test_hold_boundary_survives_float_rounding():
    clock = FakeClock(now=0.3)
    checker = BlinkLivenessChecker(clock=clock)
    checker.check(CLOSED, CLOSED)
    clock.now = 2.3  # 2.3 - 0.3 == 1.9999999999999998
    assert checker.check(OPEN, OPEN) is True


def test_hold_one_millisecond_short_is_not_live(checker, clock):
    checker.check(CLOSED, CLOSED)
    clock.now += 1.999
    assert checker.check(OPEN, OPEN) is False


def test_one_eye_open_is_not_live_and_keeps_blink(checker, clock):
    checker.check(CLOSED, CLOSED)
    blink = checker.state.last_blink_at
    clock.now += 5.0
    assert checker.check(OPEN, CLOSED) is False
    assert checker.check(CLOSED, OPEN) is False
    assert checker.state.last_blink_at == blink


def test_new_blink_restarts_hold(checker, clock):
    checker.check(CLOSED, CLOSED)
    clock.now += 3.0
    checker.check(CLOSED, CLOSED)
    clock.now += 1.0
    assert checker.check(OPEN, OPEN) is False
    clock.now += 1.0
    assert checker.check(OPEN, OPEN) is True


def test_ambiguous_landmarks_do_not_touch_state(checker, clock):
    checker.check(CLOSED, CLOSED)
    blink = checker.state.last_blink_at
    clock.now += 3.0
    assert checker.check(eye(0.0, width=0.0), eye(0.0, width=0.0)) is False
    assert checker.check(CLOSED[:5], CLOSED) is False
    assert checker.check(None, OPEN) is False
    assert checker.state.last_blink_at == blink


def test_blink_max_age_expires_stale_blink(clock):
    checker = BlinkLivenessChecker(blink_max_age=30.0, clock=clock)
    checker.check(CLOSED, CLOSED)
    clock.now += 10.0
    assert checker.check(OPEN, OPEN) is True
    clock.now += 25.0
    assert checker.check(OPEN, OPEN) is False
