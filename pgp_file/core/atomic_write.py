"""Write files so that readers see either the old content or the complete new content."""

import os
import tempfile
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)


def write_atomic(destination: Path, data: bytes) -> None:
    """
    Write ``data`` to ``destination`` through a temporary sibling file.

    The temporary file is flushed, fsynced and renamed over the destination.
    If anything fails, the destination is left as it was and the temporary
    file is removed.

    Args:
        destination: Target file path. Its parent directory is created if missing.
        data: Complete file content.
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        dir=destination.parent,
        prefix=f".{destination.name}.",
        suffix=".part",
        delete=False,
    ) as handle:
        temp_path = Path(handle.name)
        try:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        except BaseException:
            handle.close()
            temp_path.unlink(missing_ok=True)
            raise
    try:
        temp_path.replace(destination)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise
    logger.debug("File replaced atomically", path=str(destination), size=len(data))
