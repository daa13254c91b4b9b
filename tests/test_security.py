import pytest

from actunews.errors import HashingError
from actunews.security import BcryptHasher


@pytest.fixture
def hasher() -> BcryptHasher:
    return BcryptHasher(rounds=4)


def test_hash_is_not_plaintext_and_verifies(hasher):
    hashed = hasher.hash("user@example.com", "p@ss")
    assert hashed != "p@ss"
    assert hashed.startswith("$2")
    assert hasher.verify("p@ss", hashed) is True
    assert hasher.verify("wrong", hashed) is False


def test_hash_is_salted(hasher):
    assert hasher.hash(None, "same-password") != hasher.hash(None, "same-password")


@pytest.mark.parametrize("bad", ["", None, 1234])
def test_hash_rejects_missing_password(hasher, bad):
    with pytest.raises(HashingError):
        hasher.hash(None, bad)


def test_hash_rejects_password_over_72_bytes(hasher):
    hasher.hash(None, "a" * 72)
    with pytest.raises(HashingError):
        hasher.hash(None, "a" * 73)
    # 37 two-byte characters = 74 bytes
    with pytest.raises(HashingError):
        hasher.hash(None, "é" * 37)


def test_verify_never_raises_on_garbage(hasher):
    assert hasher.verify("p@ss", "not-a-bcrypt-hash") is False


@pytest.mark.parametrize("rounds", [3, 32])
def test_rounds_out_of_range(rounds):
    with pytest.raises(ValueError):
        BcryptHasher(rounds=rounds)
