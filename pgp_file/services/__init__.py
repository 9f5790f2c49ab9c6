"""
Message assembly and disassembly services.
"""

from pgp_file.services.message_composer import MessageComposer
from pgp_file.services.message_decomposer import MessageDecomposer

__all__ = [
    "MessageComposer",
    "MessageDecomposer",
]
