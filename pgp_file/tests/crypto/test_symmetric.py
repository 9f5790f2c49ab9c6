import hashlib

import pytest
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from pgp_file.core.secure_bytes import SecureBytes
from pgp_file.crypto.symmetric import decrypt_data, encrypt_data
from pgp_file.exceptions import FormatError, IntegrityError, UnsupportedAlgorithmError
from pgp_file.models.crypto import SessionKey, SymmetricAlgorithm
from pgp_file.models.packets import EncryptedDataPacket

_PAYLOAD = b"\xcb\x6ab\x00\x00\x00\x00\x00" + bytes(range(100))


def _session_key(algorithm: SymmetricAlgorithm = SymmetricAlgorithm.AES_256) -> SessionKey:
    return SessionKey(algorithm=algorithm, key_data=SecureBytes(bytes(range(algorithm.key_size))))


def _flip(packet: EncryptedDataPacket, index: int) -> EncryptedDataPacket:
    data = bytearray(packet.encrypted_data)
    data[index] ^= 0x01
    return EncryptedDataPacket(
        encrypted_data=bytes(data),
        integrity_protected=packet.integrity_protected,
        version=packet.version,
    )


@pytest.mark.parametrize(
    "algorithm",
    [algorithm for algorithm in SymmetricAlgorithm if algorithm.is_supported],
)
@pytest.mark.parametrize("integrity_protected", [True, False])
def test_decrypt_data_restores_plaintext(
    algorithm: SymmetricAlgorithm, integrity_protected: bool
) -> None:
    session_key = _session_key(algorithm)

    packet = encrypt_data(_PAYLOAD, session_key, integrity_protected=integrity_protected)

    assert packet.integrity_protected is integrity_protected
    assert decrypt_data(packet, session_key) == _PAYLOAD


def test_seipd_layout_is_prefix_data_and_mdc() -> None:
    session_key = _session_key()

    packet = encrypt_data(_PAYLOAD, session_key)

    decryptor = Cipher(
        algorithms.AES(bytes(session_key.key_data)), modes.CFB(bytes(16)), backend=default_backend()
    ).decryptor()
    plaintext = decryptor.update(packet.encrypted_data) + decryptor.finalize()
    assert packet.version == 1
    assert plaintext[14:16] == plaintext[16:18]
    assert plaintext[18:-22] == _PAYLOAD
    assert plaintext[-22:-20] == b"\xd3\x14"
    assert plaintext[-20:] == hashlib.sha1(plaintext[:-20]).digest()


def test_encryption_uses_random_prefix() -> None:
    session_key = _session_key()

    first = encrypt_data(_PAYLOAD, session_key)
    second = encrypt_data(_PAYLOAD, session_key)

    assert first.encrypted_data != second.encrypted_data


def test_tampered_seipd_fails_mdc() -> None:
    session_key = _session_key()
    packet = encrypt_data(_PAYLOAD, session_key)

    with pytest.raises(IntegrityError, match="MDC verification failed"):
        decrypt_data(_flip(packet, 20), session_key)


def test_tampered_mdc_header_is_detected() -> None:
    session_key = _session_key()
    packet = encrypt_data(_PAYLOAD, session_key)
    mdc_header_index = len(packet.encrypted_data) - 22

    with pytest.raises(IntegrityError, match="Invalid MDC header"):
        decrypt_data(_flip(packet, mdc_header_index), session_key)


def test_wrong_session_key_fails_quick_check() -> None:
    packet = encrypt_data(_PAYLOAD, _session_key())
    wrong_key = SessionKey(
        algorithm=SymmetricAlgorithm.AES_256, key_data=SecureBytes(b"\xff" * 32)
    )

    with pytest.raises(IntegrityError):
        decrypt_data(packet, wrong_key)


def test_legacy_packet_has_no_integrity_protection() -> None:
    session_key = _session_key()
    packet = encrypt_data(_PAYLOAD, session_key, integrity_protected=False)

    tampered = decrypt_data(_flip(packet, len(packet.encrypted_data) - 1), session_key)

    assert tampered != _PAYLOAD
    assert len(tampered) == len(_PAYLOAD)


def test_unsupported_seipd_version() -> None:
    packet = EncryptedDataPacket(encrypted_data=bytes(64), integrity_protected=True, version=2)

    with pytest.raises(FormatError, match="Unsupported SEIPD version: 2"):
        decrypt_data(packet, _session_key())


def test_short_encrypted_data() -> None:
    packet = EncryptedDataPacket(encrypted_data=bytes(20), integrity_protected=True, version=1)

    with pytest.raises(FormatError, match="Encrypted data too short"):
        decrypt_data(packet, _session_key())


def test_unsupported_cipher() -> None:
    session_key = SessionKey(algorithm=SymmetricAlgorithm.CAST5, key_data=SecureBytes(bytes(16)))

    with pytest.raises(UnsupportedAlgorithmError, match="CAST5"):
        encrypt_data(_PAYLOAD, session_key)
