"""
ASCII armor for OpenPGP messages, built on PGPy's ``Armorable``.
"""

import binascii
import warnings
from collections import OrderedDict

from pgpy.errors import PGPError
from pgpy.types import Armorable, PGPObject

from pgp_file.exceptions import FormatError

ARMOR_HEADER = b"-----BEGIN PGP MESSAGE-----"
_ARMOR_PREFIX = b"-----BEGIN PGP "
_MESSAGE_MAGIC = "MESSAGE"


class _ArmoredMessage(Armorable, PGPObject):
    """Raw message bytes that PGPy can render as an armored ``MESSAGE`` block."""

    def __init__(self, payload: bytes = b"", headers: tuple[tuple[str, str], ...] = ()) -> None:
        super().__init__()
        self._payload = bytes(payload)
        self.ascii_headers = OrderedDict(headers)

    @property
    def magic(self) -> str:
        return _MESSAGE_MAGIC

    def parse(self, packet: bytes | bytearray) -> None:
        self._payload = bytes(packet)

    def __bytearray__(self) -> bytearray:
        return bytearray(self._payload)


def is_armored(data: bytes) -> bool:
    """Whether ``data`` starts (after whitespace) with an armor header line."""
    return data.lstrip().startswith(_ARMOR_PREFIX)


def armor_encode(data: bytes, headers: tuple[tuple[str, str], ...] = ()) -> bytes:
    """
    Wrap binary message bytes in a ``PGP MESSAGE`` armor block.

    Args:
        data: Binary OpenPGP message.
        headers: Armor header lines as ``(key, value)`` pairs.

    Returns:
        ASCII armored message, CRC-24 trailer included.
    """
    return str(_ArmoredMessage(data, headers)).encode("ascii")


def armor_decode(data: bytes) -> tuple[bytes, bool]:
    """
    Strip ASCII armor if present.

    Args:
        data: Armored or binary message.

    Returns:
        Tuple of (binary message, whether the input was armored).

    Raises:
        FormatError: If armored input is malformed, is not a ``PGP MESSAGE``
            block, or fails its CRC-24 check.
    """
    if not is_armored(data):
        return data, False

    try:
        with warnings.catch_warnings():
            # Armorable only warns on a CRC mismatch; the check is redone below.
            warnings.simplefilter("ignore")
            unarmored = Armorable.ascii_unarmor(data.lstrip())
    except (ValueError, binascii.Error, PGPError) as e:
        msg = f"Malformed ASCII armor: {e}"
        raise FormatError(msg) from e

    if unarmored["magic"] != _MESSAGE_MAGIC:
        msg = "Armored data is not a PGP message"
        raise FormatError(msg, block_type=unarmored["magic"])

    body = bytes(unarmored["body"])
    crc = unarmored.get("crc")
    if crc is not None and crc != Armorable.crc24(body):
        msg = "ASCII armor checksum mismatch"
        raise FormatError(msg)
    return body, True
