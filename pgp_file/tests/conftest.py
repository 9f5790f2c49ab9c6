import pgpy
import pytest
from pgpy.constants import (
    CompressionAlgorithm,
    EllipticCurveOID,
    HashAlgorithm,
    KeyFlags,
    PubKeyAlgorithm,
    SymmetricKeyAlgorithm,
)

from pgp_file.keys.key_ring import KeyRingStore
from pgp_file.models.keys import KeyRing, KeyRingKind

PASSPHRASE = "correct horse battery staple"

_ENCRYPT = {KeyFlags.EncryptCommunications, KeyFlags.EncryptStorage}
_SIGN = {KeyFlags.Sign, KeyFlags.Certify}


def _new_primary(algorithm: PubKeyAlgorithm, size: int | EllipticCurveOID, name: str, usage: set) -> pgpy.PGPKey:
    key = pgpy.PGPKey.new(algorithm, size)
    key.add_uid(
        pgpy.PGPUID.new(name, email=f"{name.lower()}@example.com"),
        usage=usage,
        hashes=[HashAlgorithm.SHA256],
        ciphers=[SymmetricKeyAlgorithm.AES256],
        compression=[CompressionAlgorithm.ZIP, CompressionAlgorithm.Uncompressed],
    )
    return key


def _protect(key: pgpy.PGPKey) -> pgpy.PGPKey:
    key.protect(PASSPHRASE, SymmetricKeyAlgorithm.AES256, HashAlgorithm.SHA256)
    return key


@pytest.fixture(scope="session")
def passphrase() -> str:
    return PASSPHRASE


@pytest.fixture(scope="session")
def rsa_key() -> pgpy.PGPKey:
    """RSA key that signs and encrypts with its primary key; protected."""
    key = _new_primary(PubKeyAlgorithm.RSAEncryptOrSign, 2048, "Alice", _SIGN | _ENCRYPT)
    return _protect(key)


@pytest.fixture(scope="session")
def subkey_key() -> pgpy.PGPKey:
    """RSA signing primary with an RSA encryption subkey; protected."""
    key = _new_primary(PubKeyAlgorithm.RSAEncryptOrSign, 2048, "Bob", _SIGN)
    key.add_subkey(pgpy.PGPKey.new(PubKeyAlgorithm.RSAEncryptOrSign, 2048), usage=_ENCRYPT)
    return _protect(key)


@pytest.fixture(scope="session")
def ecdh_key() -> pgpy.PGPKey:
    """ECDSA primary with an ECDH encryption subkey; not protected."""
    key = _new_primary(PubKeyAlgorithm.ECDSA, EllipticCurveOID.NIST_P256, "Carol", _SIGN)
    key.add_subkey(pgpy.PGPKey.new(PubKeyAlgorithm.ECDH, EllipticCurveOID.NIST_P256), usage=_ENCRYPT)
    return key


@pytest.fixture(scope="session")
def signing_key() -> pgpy.PGPKey:
    """ECDSA key with no encryption capability."""
    key = _new_primary(PubKeyAlgorithm.ECDSA, EllipticCurveOID.NIST_P256, "Dave", _SIGN)
    return _protect(key)


@pytest.fixture(scope="session")
def store() -> KeyRingStore:
    return KeyRingStore()


@pytest.fixture(scope="session")
def rsa_public_ring(store: KeyRingStore, rsa_key: pgpy.PGPKey) -> KeyRing:
    return store.parse(bytes(rsa_key.pubkey), KeyRingKind.PUBLIC)


@pytest.fixture(scope="session")
def rsa_secret_ring(store: KeyRingStore, rsa_key: pgpy.PGPKey) -> KeyRing:
    return store.parse(bytes(rsa_key), KeyRingKind.SECRET)


@pytest.fixture(scope="session")
def subkey_public_ring(store: KeyRingStore, subkey_key: pgpy.PGPKey) -> KeyRing:
    return store.parse(str(subkey_key.pubkey), KeyRingKind.PUBLIC)


@pytest.fixture(scope="session")
def subkey_secret_ring(store: KeyRingStore, subkey_key: pgpy.PGPKey) -> KeyRing:
    return store.parse(str(subkey_key), KeyRingKind.SECRET)


@pytest.fixture(scope="session")
def ecdh_public_ring(store: KeyRingStore, ecdh_key: pgpy.PGPKey) -> KeyRing:
    return store.parse(bytes(ecdh_key.pubkey), KeyRingKind.PUBLIC)


@pytest.fixture(scope="session")
def ecdh_secret_ring(store: KeyRingStore, ecdh_key: pgpy.PGPKey) -> KeyRing:
    return store.parse(bytes(ecdh_key), KeyRingKind.SECRET)


@pytest.fixture(scope="session")
def combined_secret_ring(
    store: KeyRingStore, subkey_key: pgpy.PGPKey, rsa_key: pgpy.PGPKey
) -> KeyRing:
    """Bob's key group followed by Alice's."""
    return store.parse(bytes(subkey_key) + bytes(rsa_key), KeyRingKind.SECRET)
