"""Unit tests for password hashing."""

from behaviorlog.auth.passwords import dummy_password_hash, hash_password, verify_password


def test_hash_verifies() -> None:
    encoded = hash_password("s3cret", iterations=1_000)

    assert encoded.startswith("pbkdf2_sha256$1000$")
    assert verify_password("s3cret", encoded)
    assert not verify_password("S3cret", encoded)


def test_hashes_are_salted() -> None:
    assert hash_password("same", iterations=1_000) != hash_password("same", iterations=1_000)


def test_malformed_hash_never_matches() -> None:
    assert not verify_password("anything", "")
    assert not verify_password("anything", "plaintext")
    assert not verify_password("anything", "pbkdf2_sha256$many$salt$digest")
    assert not verify_password("anything", "md5$1$salt$digest")


def test_dummy_hash_is_stable_and_rejects_everything() -> None:
    encoded = dummy_password_hash()

    assert encoded == dummy_password_hash()
    assert encoded.startswith("pbkdf2_sha256$390000$")
    assert not verify_password("", encoded)
    assert not verify_password("correct horse battery staple", encoded)
