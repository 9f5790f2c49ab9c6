"""
Key ring parsing and key selection.
"""

from pgp_file.keys.key_locator import KeyLocator, KeyResolution, ResolutionStatus
from pgp_file.keys.key_ring import KeyRingStore

__all__ = [
    "KeyRingStore",
    "KeyLocator",
    "KeyResolution",
    "ResolutionStatus",
]
