# lms_backend/utils/deadline.py
import time
from typing import Optional

from lms_backend.services.exceptions import RequestTimeoutError


class Deadline:
    """
    요청 단위의 조회 시간 예산입니다.
    트리 조립 중 각 계층을 조회하기 전에 check()를 호출하여, 예산을 초과하면
    남은 모든 하위 계층 조회를 중단합니다.
    """

    def __init__(self, timeout_seconds: Optional[float], clock=time.monotonic):
        self._clock = clock
        self.timeout_seconds = timeout_seconds
        self.expires_at = None if timeout_seconds is None else clock() + timeout_seconds

    def remaining(self) -> Optional[float]:
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - self._clock())

    def expired(self) -> bool:
        return self.expires_at is not None and self._clock() >= self.expires_at

    def check(self, stage: str):
        if self.expired():
            raise RequestTimeoutError(
                f"Request exceeded its {self.timeout_seconds}s read budget while loading {stage}."
            )


def no_deadline() -> Deadline:
    return Deadline(None)
