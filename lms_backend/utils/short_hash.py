# lms_backend/utils/short_hash.py
import secrets
import string
from typing import Callable

# 숫자로만 이루어진 hash는 정수 ID와 구분할 수 없으므로 첫 글자는 항상 소문자
_FIRST_ALPHABET = string.ascii_lowercase
_ALPHABET = string.ascii_lowercase + string.digits

MAX_ATTEMPTS = 10


def generate_short_hash(length: int) -> str:
    """URL에 쓰기 좋은 짧은 무작위 식별자를 생성합니다."""
    if length < 4:
        raise ValueError("Short hash length must be at least 4.")
    return secrets.choice(_FIRST_ALPHABET) + "".join(
        secrets.choice(_ALPHABET) for _ in range(length - 1)
    )


def generate_unique_hash(length: int, exists: Callable[[str], bool]) -> str:
    """
    기존 hash와 충돌하지 않는 새 hash를 생성합니다.

    Args:
        length: hash 길이.
        exists: 후보 hash가 이미 사용 중인지 확인하는 함수.

    Raises:
        RuntimeError: MAX_ATTEMPTS번 시도해도 충돌하지 않는 hash를 만들지 못했을 때.
    """
    for _ in range(MAX_ATTEMPTS):
        candidate = generate_short_hash(length)
        if not exists(candidate):
            return candidate
    raise RuntimeError(f"Could not generate a unique {length}-character hash after {MAX_ATTEMPTS} attempts.")


def is_integer_id(identifier: str) -> bool:
    return identifier.isdigit()
