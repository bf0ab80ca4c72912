# tests/utils/test_short_hash.py
import pytest

from lms_backend.utils.short_hash import (
    MAX_ATTEMPTS, generate_short_hash, generate_unique_hash, is_integer_id
)

def test_short_hash_never_looks_like_an_integer_id():
    for _ in range(50):
        value = generate_short_hash(8)
        assert len(value) == 8
        assert value[0].isalpha()
        assert not is_integer_id(value)
        assert value == value.lower() and value.isalnum()

def test_short_hash_rejects_tiny_lengths():
    with pytest.raises(ValueError):
        generate_short_hash(3)

def test_unique_hash_skips_taken_values():
    taken = set()

    def exists(candidate):
        # 첫 후보는 이미 사용 중인 것으로 처리
        if not taken:
            taken.add(candidate)
            return True
        return candidate in taken

    value = generate_unique_hash(8, exists)

    assert value not in taken

def test_unique_hash_gives_up_after_max_attempts():
    calls = []

    def always_taken(candidate):
        calls.append(candidate)
        return True

    with pytest.raises(RuntimeError):
        generate_unique_hash(8, always_taken)
    assert len(calls) == MAX_ATTEMPTS

@pytest.mark.parametrize("identifier, expected", [("12", True), ("abcd1234", False), ("-3", False), ("", False)])
def test_is_integer_id(identifier, expected):
    assert is_integer_id(identifier) is expected
