from unittest.mock import MagicMock

import pgpy
import pytest

from pgp_file.core.secure_bytes import SecureBytes
from pgp_file.exceptions import KeyUnlockError, NoEncryptionKeyError
from pgp_file.keys.key_locator import KeyLocator, ResolutionStatus
from pgp_file.keys.key_ring import KeyRingStore
from pgp_file.models.keys import KeyRing


def _key_id(key: pgpy.PGPKey) -> str:
    return str(key.fingerprint.keyid).upper()


def test_find_encryption_key_prefers_primary_when_capable(
    rsa_public_ring: KeyRing, rsa_key: pgpy.PGPKey
) -> None:
    assert KeyLocator.find_encryption_key(rsa_public_ring).key_id == _key_id(rsa_key)


def test_find_encryption_key_skips_signing_primary(
    subkey_public_ring: KeyRing, subkey_key: pgpy.PGPKey
) -> None:
    subkey = next(iter(subkey_key.subkeys.values()))

    assert KeyLocator.find_encryption_key(subkey_public_ring).key_id == _key_id(subkey)


def test_find_encryption_key_is_deterministic(
    store: KeyRingStore, rsa_key: pgpy.PGPKey, ecdh_key: pgpy.PGPKey
) -> None:
    ring = store.parse_public(bytes(ecdh_key.pubkey) + bytes(rsa_key.pubkey))
    expected = _key_id(next(iter(ecdh_key.subkeys.values())))

    selections = {KeyLocator.find_encryption_key(ring).key_id for _ in range(5)}

    assert selections == {expected}


def test_find_encryption_key_raises_for_signing_only_ring(
    store: KeyRingStore, signing_key: pgpy.PGPKey
) -> None:
    ring = store.parse_public(bytes(signing_key.pubkey))

    with pytest.raises(NoEncryptionKeyError, match="No encryption key found"):
        KeyLocator.find_encryption_key(ring)


def test_encryption_candidates_lists_secret_encryption_keys(
    combined_secret_ring: KeyRing, subkey_key: pgpy.PGPKey, rsa_key: pgpy.PGPKey
) -> None:
    candidates = KeyLocator.encryption_candidates(combined_secret_ring)

    assert [key.key_id for key in candidates] == [
        _key_id(next(iter(subkey_key.subkeys.values()))),
        _key_id(rsa_key),
    ]


def test_find_secret_key_unlocks(
    rsa_secret_ring: KeyRing, rsa_key: pgpy.PGPKey, passphrase: str
) -> None:
    locator = KeyLocator()

    with locator.find_secret_key(
        rsa_secret_ring, _key_id(rsa_key).lower(), SecureBytes.from_string(passphrase)
    ) as resolution:
        assert resolution.unlocked
        assert resolution.status == ResolutionStatus.UNLOCKED
        assert resolution.key_id == _key_id(rsa_key)
        assert resolution.private_key is not None
        assert resolution.error is None


def test_find_secret_key_reports_missing_key(rsa_secret_ring: KeyRing, passphrase: str) -> None:
    with KeyLocator().find_secret_key(
        rsa_secret_ring, "0123456789ABCDEF", SecureBytes.from_string(passphrase)
    ) as resolution:
        assert resolution.status == ResolutionStatus.NOT_FOUND
        assert resolution.private_key is None


def test_find_secret_key_reports_unlock_failure(
    rsa_secret_ring: KeyRing, rsa_key: pgpy.PGPKey
) -> None:
    with KeyLocator().find_secret_key(
        rsa_secret_ring, _key_id(rsa_key), SecureBytes.from_string("wrong")
    ) as resolution:
        assert resolution.status == ResolutionStatus.UNLOCK_FAILED
        assert isinstance(resolution.error, KeyUnlockError)
        assert not resolution.unlocked


def test_find_secret_key_requires_secret_ring(rsa_public_ring: KeyRing) -> None:
    with pytest.raises(ValueError, match="requires a secret key ring"), KeyLocator().find_secret_key(
        rsa_public_ring, "0123456789ABCDEF", SecureBytes.from_string("x")
    ):
        pass


def test_find_secret_key_uses_backend(rsa_secret_ring: KeyRing, rsa_key: pgpy.PGPKey) -> None:
    backend = MagicMock()
    backend.unlock_key.return_value.__enter__.return_value = "unlocked"
    passphrase = SecureBytes.from_string("pass")

    with KeyLocator(backend).find_secret_key(
        rsa_secret_ring, _key_id(rsa_key), passphrase
    ) as resolution:
        assert resolution.private_key == "unlocked"

    backend.unlock_key.assert_called_once_with(rsa_secret_ring.get(_key_id(rsa_key)), passphrase)
    backend.unlock_key.return_value.__exit__.assert_called_once()
