"""
OpenPGP CFB encryption of the message body.

Integrity-protected data (SEIPD, tag 18) is a single CFB pass with a zero IV
over ``prefix || data || MDC``. Legacy symmetrically encrypted data (tag 9)
encrypts the prefix with a zero IV and the rest after resynchronising the IV
on the prefix ciphertext.
"""

import hashlib
import hmac
import os

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives.ciphers import Cipher, CipherAlgorithm, algorithms, modes

from pgp_file.exceptions import FormatError, IntegrityError, UnsupportedAlgorithmError
from pgp_file.models.crypto import SessionKey, SymmetricAlgorithm
from pgp_file.models.packets import EncryptedDataPacket

_SEIPD_VERSION = 1
_MDC_HEADER = b"\xd3\x14"
_MDC_HASH_SIZE = 20
_MDC_PACKET_SIZE = len(_MDC_HEADER) + _MDC_HASH_SIZE


def encrypt_data(
    plaintext: bytes, session_key: SessionKey, *, integrity_protected: bool = True
) -> EncryptedDataPacket:
    """
    Encrypt the serialized inner packets of a message.

    Args:
        plaintext: Packet stream to protect (normally one compressed data packet).
        session_key: Fresh session key.
        integrity_protected: Emit SEIPD with a modification detection code
            instead of legacy symmetrically encrypted data.

    Returns:
        The encrypted data packet.

    Raises:
        UnsupportedAlgorithmError: If the session key's algorithm is not supported.
    """
    block_size = session_key.block_size
    random_prefix = os.urandom(block_size)
    prefix = random_prefix + random_prefix[-2:]

    if integrity_protected:
        protected = prefix + plaintext + _MDC_HEADER
        protected += hashlib.sha1(protected).digest()
        ciphertext = _cfb_encrypt(session_key, bytes(block_size), protected)
        return EncryptedDataPacket(
            encrypted_data=ciphertext, integrity_protected=True, version=_SEIPD_VERSION
        )

    prefix_ciphertext = _cfb_encrypt(session_key, bytes(block_size), prefix)
    resync_iv = prefix_ciphertext[2 : block_size + 2]
    ciphertext = prefix_ciphertext + _cfb_encrypt(session_key, resync_iv, plaintext)
    return EncryptedDataPacket(encrypted_data=ciphertext, integrity_protected=False)


def decrypt_data(packet: EncryptedDataPacket, session_key: SessionKey) -> bytes:
    """
    Decrypt an encrypted data packet.

    Args:
        packet: SEIPD or legacy encrypted data packet.
        session_key: Session key unwrapped from the message.

    Returns:
        Decrypted inner packet stream, prefix and MDC removed.

    Raises:
        FormatError: If the packet is too short or has an unsupported SEIPD version.
        IntegrityError: If the quick check or the MDC does not verify.
        UnsupportedAlgorithmError: If the session key's algorithm is not supported.
    """
    block_size = session_key.block_size
    prefix_size = block_size + 2
    ciphertext = packet.encrypted_data

    if packet.integrity_protected:
        if packet.version != _SEIPD_VERSION:
            msg = f"Unsupported SEIPD version: {packet.version}"
            raise FormatError(msg)
        min_size = prefix_size + _MDC_PACKET_SIZE
        if len(ciphertext) < min_size:
            msg = f"Encrypted data too short: {len(ciphertext)} < {min_size}"
            raise FormatError(msg)
        plaintext = _cfb_decrypt(session_key, bytes(block_size), ciphertext)
        _verify_quick_check(plaintext, block_size)
        _verify_mdc(plaintext)
        return plaintext[prefix_size:-_MDC_PACKET_SIZE]

    if len(ciphertext) < prefix_size:
        msg = f"Encrypted data too short: {len(ciphertext)} < {prefix_size}"
        raise FormatError(msg)
    prefix = _cfb_decrypt(session_key, bytes(block_size), ciphertext[:prefix_size])
    _verify_quick_check(prefix, block_size)
    resync_iv = ciphertext[2:prefix_size]
    return _cfb_decrypt(session_key, resync_iv, ciphertext[prefix_size:])


def _cipher_algorithm(session_key: SessionKey) -> CipherAlgorithm:
    key = bytes(session_key.key_data)
    match session_key.algorithm:
        case SymmetricAlgorithm.AES_128 | SymmetricAlgorithm.AES_192 | SymmetricAlgorithm.AES_256:
            return algorithms.AES(key)
        case (
            SymmetricAlgorithm.CAMELLIA_128
            | SymmetricAlgorithm.CAMELLIA_192
            | SymmetricAlgorithm.CAMELLIA_256
        ):
            return algorithms.Camellia(key)
    msg = f"Unsupported symmetric algorithm: {session_key.algorithm.name}"
    raise UnsupportedAlgorithmError(msg, algorithm=int(session_key.algorithm))


def _cfb_encrypt(session_key: SessionKey, iv: bytes, data: bytes) -> bytes:
    cipher = Cipher(_cipher_algorithm(session_key), modes.CFB(iv), backend=default_backend())
    encryptor = cipher.encryptor()
    return encryptor.update(data) + encryptor.finalize()


def _cfb_decrypt(session_key: SessionKey, iv: bytes, data: bytes) -> bytes:
    cipher = Cipher(_cipher_algorithm(session_key), modes.CFB(iv), backend=default_backend())
    decryptor = cipher.decryptor()
    return decryptor.update(data) + decryptor.finalize()


def _verify_quick_check(prefix: bytes, block_size: int) -> None:
    if prefix[block_size - 2 : block_size] == prefix[block_size : block_size + 2]:
        return
    msg = "CFB prefix check failed, wrong session key or corrupted data"
    raise IntegrityError(msg)


def _verify_mdc(plaintext: bytes) -> None:
    mdc_packet = plaintext[-_MDC_PACKET_SIZE:]
    if mdc_packet[:2] != _MDC_HEADER:
        msg = f"Invalid MDC header: {mdc_packet[:2].hex()}"
        raise IntegrityError(msg)

    computed_hash = hashlib.sha1(plaintext[:-_MDC_HASH_SIZE]).digest()
    if not hmac.compare_digest(computed_hash, mdc_packet[2:]):
        msg = "MDC verification failed, data may be corrupted or tampered"
        raise IntegrityError(msg)
