"""Zeroable buffers for passphrases and session keys."""

import ctypes
import ctypes.util
import hmac
import platform
import warnings
from collections.abc import Callable
from typing import Self

_PLATFORM = platform.system()
_page_lock: Callable[[int, int], bool] | None = None
_page_unlock: Callable[[int, int], bool] | None = None


def _libc_lock(addr: int, size: int) -> bool:
    return _libc.mlock(addr, size) == 0


def _libc_unlock(addr: int, size: int) -> bool:
    return _libc.munlock(addr, size) == 0


def _virtual_lock(addr: int, size: int) -> bool:
    return bool(_kernel32.VirtualLock(addr, size))


def _virtual_unlock(addr: int, size: int) -> bool:
    return bool(_kernel32.VirtualUnlock(addr, size))


if _PLATFORM in ("Linux", "Darwin"):
    try:
        _libc = ctypes.CDLL(ctypes.util.find_library("c"), use_errno=True)
        for _fn in (_libc.mlock, _libc.munlock):
            _fn.argtypes = [ctypes.c_void_p, ctypes.c_size_t]
            _fn.restype = ctypes.c_int
        _page_lock, _page_unlock = _libc_lock, _libc_unlock
    except (OSError, AttributeError, TypeError):
        pass
elif _PLATFORM == "Windows":
    try:
        _kernel32 = ctypes.windll.kernel32
        for _fn in (_kernel32.VirtualLock, _kernel32.VirtualUnlock):
            _fn.argtypes = [ctypes.c_void_p, ctypes.c_size_t]
            _fn.restype = ctypes.c_bool
        _page_lock, _page_unlock = _virtual_lock, _virtual_unlock
    except (OSError, AttributeError):
        pass


def _address_of(buffer: bytearray) -> int:
    return ctypes.addressof((ctypes.c_char * len(buffer)).from_buffer(buffer))


def _secure_zero(buffer: bytearray) -> None:
    if not buffer:
        return
    try:
        ctypes.memset(_address_of(buffer), 0, len(buffer))
    except (TypeError, ValueError) as exc:
        warnings.warn(f"ctypes.memset failed, zeroing byte by byte: {exc}", RuntimeWarning)
        buffer[:] = bytes(len(buffer))


def _try_lock(buffer: bytearray) -> bool:
    if _page_lock is None or not buffer:
        return False
    try:
        return _page_lock(_address_of(buffer), len(buffer))
    except OSError:
        return False


class SecureBytes:
    """
    Holds secret bytes in a private bytearray that is zeroed on ``clear()``,
    on context exit and when the object is collected.

    The buffer may also be pinned in RAM with ``lock=True`` when the platform
    allows it; failure to lock is not an error.
    """

    __slots__ = ("_data", "_cleared", "_locked")

    def __init__(self, data: bytes | bytearray, *, lock: bool = False) -> None:
        self._data = bytearray(data)
        self._cleared = False
        self._locked = lock and _try_lock(self._data)

    @classmethod
    def from_string(cls, text: str, encoding: str = "utf-8", *, lock: bool = False) -> Self:
        """Encode ``text`` and zero the intermediate buffer."""
        encoded = bytearray(text, encoding)
        try:
            return cls(encoded, lock=lock)
        finally:
            _secure_zero(encoded)

    @classmethod
    def from_secret(cls, secret: "str | bytes | bytearray | SecureBytes", *, lock: bool = False) -> Self:
        """
        Make a private copy of a caller-supplied secret.

        The copy belongs to the caller of this method, who is expected to clear
        it; the original value is left untouched.
        """
        if isinstance(secret, SecureBytes):
            secret._check_cleared()
            return cls(secret._data, lock=lock)
        if isinstance(secret, str):
            return cls.from_string(secret, lock=lock)
        return cls(secret, lock=lock)

    def __del__(self) -> None:
        self.clear()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *_: object) -> None:
        self.clear()

    def clear(self) -> None:
        """Zero the buffer and release any page lock. Idempotent."""
        if self._cleared:
            return
        _secure_zero(self._data)
        if self._locked and _page_unlock is not None:
            _page_unlock(_address_of(self._data), len(self._data))
        self._locked = False
        self._cleared = True

    def __bytes__(self) -> bytes:
        """Copy out the raw bytes; the copy is an ordinary, unzeroed ``bytes`` object."""
        self._check_cleared()
        return bytes(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __bool__(self) -> bool:
        return not self._cleared and len(self._data) > 0

    def __repr__(self) -> str:
        if self._cleared:
            return "SecureBytes(<cleared>)"
        lock_info = ", locked" if self._locked else ""
        return f"SecureBytes(<{len(self._data)} bytes{lock_info}>)"

    def __eq__(self, other: object) -> bool:
        """Constant-time comparison; a cleared buffer equals nothing."""
        if isinstance(other, SecureBytes):
            other_data = None if other._cleared else other._data
        elif isinstance(other, (bytes, bytearray)):
            other_data = other
        else:
            return NotImplemented
        if self._cleared or other_data is None:
            return False
        return hmac.compare_digest(self._data, other_data)

    def __hash__(self) -> int:
        raise TypeError("SecureBytes is not hashable")

    @property
    def is_locked(self) -> bool:
        return self._locked

    @property
    def is_cleared(self) -> bool:
        return self._cleared

    def decode(self, encoding: str = "utf-8") -> str:
        """Decode for APIs that only take ``str`` (PGPy unlock); the result is not zeroed."""
        self._check_cleared()
        return self._data.decode(encoding)

    def _check_cleared(self) -> None:
        if self._cleared:
            raise RuntimeError("SecureBytes has been cleared")
