from pgp_file.exceptions import (
    CryptoError,
    IntegrityError,
    KeyResolutionError,
    KeyUnlockError,
    NoEncryptionKeyError,
    NoMatchingKeyError,
    PgpFileError,
    UnsupportedAlgorithmError,
    UnsupportedMessageShapeError,
)


def test_pgp_file_error_str_without_context() -> None:
    error = PgpFileError("Something failed")

    assert str(error) == "Something failed"


def test_pgp_file_error_str_with_context() -> None:
    error = PgpFileError("Failed", key_id="ABCD", attempt=3)

    assert "Failed" in str(error)
    assert "key_id='ABCD'" in str(error)
    assert "attempt=3" in str(error)


def test_key_unlock_error_carries_key_id() -> None:
    error = KeyUnlockError("Failed to unlock key", key_id="0123456789ABCDEF")

    assert error.key_id == "0123456789ABCDEF"
    assert isinstance(error, KeyResolutionError)


def test_no_matching_key_error_has_default_message() -> None:
    error = NoMatchingKeyError(key_ids=("A",), unlock_failed=("A",))

    assert error.message == "No secret key matches the message"
    assert error.key_ids == ("A",)
    assert error.unlock_failed == ("A",)


def test_unsupported_message_shape_error_carries_packet_tag() -> None:
    error = UnsupportedMessageShapeError("Message is signed", packet_tag=4)

    assert error.packet_tag == 4
    assert "packet_tag=4" in str(error)


def test_error_kinds_are_distinct() -> None:
    assert not issubclass(IntegrityError, KeyResolutionError)
    assert not issubclass(NoEncryptionKeyError, NoMatchingKeyError)
    assert not issubclass(UnsupportedMessageShapeError, CryptoError)
    assert issubclass(UnsupportedAlgorithmError, CryptoError)
