"""
PGP backend implementation using pgpy library.

PGPy parses key rings, runs the S2K unlock of secret keys and performs the
public-key half of session key wrapping. Everything else in the message
pipeline is handled by ``pgp_file.crypto`` directly.
"""

import threading
import warnings
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field

import pgpy
import structlog
from cryptography.hazmat.primitives.keywrap import InvalidUnwrap
from pgpy.constants import KeyFlags, SymmetricKeyAlgorithm
from pgpy.errors import PGPDecryptionError, PGPError
from pgpy.packet.packets import PKESessionKeyV3

from pgp_file.core.secure_bytes import SecureBytes
from pgp_file.crypto.packets import PacketReader, parse_packet
from pgp_file.exceptions import (
    FormatError,
    KeyUnlockError,
    SessionKeyError,
    UnsupportedAlgorithmError,
)
from pgp_file.models.crypto import PublicKeyAlgorithm, SessionKey, SymmetricAlgorithm
from pgp_file.models.keys import KeyGroup, RingKey, UnlockedPrivateKey
from pgp_file.models.packets import PKESKPacket

logger = structlog.get_logger(__name__)

_ENCRYPTION_FLAGS = frozenset({KeyFlags.EncryptCommunications, KeyFlags.EncryptStorage})
_WRAPPABLE_ALGORITHMS = frozenset({PublicKeyAlgorithm.RSA_ENCRYPT_OR_SIGN, PublicKeyAlgorithm.ECDH})
_UNWRAP_ERRORS = (
    PGPError,
    PGPDecryptionError,
    ValueError,
    TypeError,
    IndexError,
    NotImplementedError,
    InvalidUnwrap,
)


@dataclass(frozen=True, kw_only=True)
class PgpyRingKey:
    """Wrapper around pgpy.PGPKey implementing the RingKey protocol."""

    key_id: str
    fingerprint: str
    algorithm: PublicKeyAlgorithm
    is_primary: bool
    is_secret: bool
    is_protected: bool
    can_encrypt: bool
    user_ids: tuple[str, ...]
    _key: pgpy.PGPKey = field(repr=False, compare=False)
    _group_lock: threading.Lock = field(repr=False, compare=False)

    @classmethod
    def from_pgpy(cls, key: pgpy.PGPKey, group_lock: threading.Lock) -> "PgpyRingKey":
        """
        Snapshot the attributes of a parsed PGPy key.

        Raises:
            FormatError: If the key uses an unknown public key algorithm.
        """
        try:
            algorithm = PublicKeyAlgorithm(int(key.key_algorithm))
        except ValueError:
            msg = f"Unknown public key algorithm: {int(key.key_algorithm)}"
            raise FormatError(msg, key_id=key.fingerprint.keyid) from None
        usage = _usage_flags(key)
        return cls(
            key_id=str(key.fingerprint.keyid).upper(),
            fingerprint=str(key.fingerprint).replace(" ", "").upper(),
            algorithm=algorithm,
            is_primary=key.is_primary,
            is_secret=not key.is_public,
            is_protected=key.is_protected,
            can_encrypt=algorithm.can_encrypt and (not usage or bool(usage & _ENCRYPTION_FLAGS)),
            user_ids=tuple(uid.userid for uid in key.userids if uid.is_uid),
            _key=key,
            _group_lock=group_lock,
        )


@dataclass
class PgpyUnlockedKey:
    """Unlocked secret key; unusable once its unlock scope has exited."""

    key_id: str
    algorithm: PublicKeyAlgorithm
    _key: pgpy.PGPKey | None = field(repr=False)

    @property
    def pgpy_key(self) -> pgpy.PGPKey:
        if self._key is None:
            msg = "Unlocked key used outside its unlock scope"
            raise RuntimeError(msg)
        return self._key

    def release(self) -> None:
        self._key = None


class PgpyBackend:
    """
    PGP backend implementation using pgpy.

    Example:
        backend = PgpyBackend()
        groups = backend.load_key_groups(ring_bytes)
        with backend.unlock_key(groups[0].primary, passphrase) as unlocked:
            session_key = backend.unwrap_session_key(pkesk, unlocked)
    """

    def load_key_groups(self, data: bytes) -> list[KeyGroup]:
        """
        Parse a key ring, armored or binary.

        Args:
            data: Key ring bytes.

        Returns:
            Key groups in source order.

        Raises:
            FormatError: If the data does not decode into keys.
        """
        if not data.strip():
            msg = "Key ring is empty"
            raise FormatError(msg)
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                first, parsed = pgpy.PGPKey.from_blob(data)
        except Exception as e:
            msg = f"Failed to parse key ring: {e}"
            raise FormatError(msg) from e

        if not parsed:
            msg = "Key ring contains no keys"
            raise FormatError(msg)

        primaries = [first, *(key for key in parsed.values() if key is not first)]
        groups = [self._make_group(primary) for primary in primaries]
        logger.debug("Key ring parsed", groups=len(groups))
        return groups

    @contextmanager
    def unlock_key(self, key: RingKey, passphrase: SecureBytes) -> Iterator[PgpyUnlockedKey]:
        """
        Unlock a secret key for the duration of the ``with`` block.

        Unlocking is serialised per key group, so one parsed ring can be
        shared between threads.

        Args:
            key: Secret key loaded by this backend.
            passphrase: Key passphrase.

        Yields:
            The unlocked key.

        Raises:
            KeyUnlockError: If the key has no secret material or the passphrase is incorrect.
        """
        ring_key = _own_key(key)
        if not ring_key.is_secret:
            msg = "Key has no secret material"
            raise KeyUnlockError(msg, key_id=ring_key.key_id)

        with ExitStack() as stack:
            stack.enter_context(ring_key._group_lock)
            if ring_key.is_protected:
                try:
                    stack.enter_context(ring_key._key.unlock(passphrase.decode()))
                except (PGPError, PGPDecryptionError, ValueError, NotImplementedError) as e:
                    msg = "Failed to unlock key"
                    raise KeyUnlockError(msg, key_id=ring_key.key_id) from e
            unlocked = PgpyUnlockedKey(
                key_id=ring_key.key_id, algorithm=ring_key.algorithm, _key=ring_key._key
            )
            stack.callback(unlocked.release)
            yield unlocked

    def wrap_session_key(self, recipient: RingKey, session_key: SessionKey) -> PKESKPacket:
        """
        Encrypt a session key to a recipient's public key.

        Args:
            recipient: Encryption-capable key loaded by this backend.
            session_key: Session key to wrap.

        Returns:
            Version 3 PKESK packet naming the recipient's key ID.

        Raises:
            UnsupportedAlgorithmError: If the recipient is neither RSA nor ECDH.
            SessionKeyError: If wrapping fails.
        """
        ring_key = _own_key(recipient)
        _check_wrappable(ring_key.algorithm)

        pkesk = PKESessionKeyV3()
        pkesk.encrypter = bytearray(bytes.fromhex(ring_key.key_id))
        pkesk.pkalg = ring_key._key.key_algorithm
        try:
            pkesk.encrypt_sk(
                ring_key._key._key,
                SymmetricKeyAlgorithm(int(session_key.algorithm)),
                bytes(session_key.key_data),
            )
        except _UNWRAP_ERRORS as e:
            msg = f"Failed to wrap session key: {e}"
            raise SessionKeyError(msg, key_id=ring_key.key_id) from e

        packet = parse_packet(next(PacketReader(bytes(pkesk.__bytearray__()))))
        if not isinstance(packet, PKESKPacket):
            msg = "PGPy produced an unexpected packet for the session key"
            raise SessionKeyError(msg, key_id=ring_key.key_id)
        return packet

    def unwrap_session_key(
        self, packet: PKESKPacket, private_key: UnlockedPrivateKey
    ) -> SessionKey:
        """
        Decrypt the session key carried by a PKESK packet.

        Args:
            packet: PKESK packet addressed to ``private_key`` (or a wildcard).
            private_key: Key yielded by ``unlock_key``.

        Returns:
            The session key.

        Raises:
            UnsupportedAlgorithmError: If the packet is neither RSA nor ECDH.
            SessionKeyError: If decryption or the checksum fails.
        """
        if not isinstance(private_key, PgpyUnlockedKey):
            msg = f"Expected a key unlocked by PgpyBackend, got {type(private_key).__name__}"
            raise TypeError(msg)
        _check_wrappable(packet.algorithm)
        if packet.algorithm != private_key.algorithm:
            msg = "Session key algorithm does not match the key"
            raise SessionKeyError(msg, key_id=private_key.key_id)

        pkesk = PKESessionKeyV3()
        try:
            # the fresh packet already carries tag and version; parse only what follows them
            pkesk.parse(bytearray(_pkesk_body_after_version(packet)))
            symmetric_id, key_bytes = pkesk.decrypt_sk(private_key.pgpy_key._key)
        except _UNWRAP_ERRORS as e:
            msg = f"Failed to unwrap session key: {e}"
            raise SessionKeyError(msg, key_id=private_key.key_id) from e

        try:
            return SessionKey(
                algorithm=SymmetricAlgorithm(int(symmetric_id)),
                key_data=SecureBytes(key_bytes),
            )
        except ValueError as e:
            msg = f"Invalid session key: {e}"
            raise SessionKeyError(msg, key_id=private_key.key_id) from e
        finally:
            key_bytes[:] = bytes(len(key_bytes))

    @staticmethod
    def _make_group(primary: pgpy.PGPKey) -> KeyGroup:
        group_lock = threading.Lock()
        return KeyGroup(
            primary=PgpyRingKey.from_pgpy(primary, group_lock),
            subkeys=tuple(
                PgpyRingKey.from_pgpy(subkey, group_lock) for subkey in primary.subkeys.values()
            ),
        )


def _own_key(key: RingKey) -> PgpyRingKey:
    if isinstance(key, PgpyRingKey):
        return key
    msg = f"Expected a key loaded by PgpyBackend, got {type(key).__name__}"
    raise TypeError(msg)


def _pkesk_body_after_version(packet: PKESKPacket) -> bytes:
    return bytes.fromhex(packet.key_id) + bytes([packet.algorithm]) + packet.encrypted_session_key


def _check_wrappable(algorithm: PublicKeyAlgorithm | int) -> None:
    if algorithm in _WRAPPABLE_ALGORITHMS:
        return
    name = algorithm.name if isinstance(algorithm, PublicKeyAlgorithm) else str(algorithm)
    msg = f"Session keys cannot be wrapped with {name}"
    raise UnsupportedAlgorithmError(msg, algorithm=int(algorithm))


def _usage_flags(key: pgpy.PGPKey) -> set[KeyFlags]:
    signatures = list(key.self_signatures)
    if key.is_primary:
        signatures.extend(uid.selfsig for uid in key.userids if uid.selfsig is not None)
    flags: set[KeyFlags] = set()
    for signature in signatures:
        flags.update(signature.key_flags)
    return flags
