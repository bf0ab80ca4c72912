# tests/utils/test_deadline.py
import pytest

from lms_backend.utils.deadline import Deadline, no_deadline
from lms_backend.services.exceptions import RequestTimeoutError

class ManualClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now

def test_check_passes_within_budget():
    clock = ManualClock()
    deadline = Deadline(2.0, clock=clock)

    clock.now += 1.5
    deadline.check("weeks")

    assert deadline.remaining() == pytest.approx(0.5)

def test_check_raises_once_budget_is_spent():
    clock = ManualClock()
    deadline = Deadline(2.0, clock=clock)

    clock.now += 2.0

    assert deadline.expired()
    with pytest.raises(RequestTimeoutError, match="class_topics"):
        deadline.check("class_topics")
    assert deadline.remaining() == 0.0

def test_no_deadline_never_expires():
    deadline = no_deadline()

    deadline.check("weeks")
    assert deadline.remaining() is None
    assert not deadline.expired()
