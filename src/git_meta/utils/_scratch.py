"""Scratch directories for temporary clones."""

import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from ._logging import get_logger

logger = get_logger(__name__)

# Prefix for scratch directory names
SCRATCH_PREFIX: str = "git-meta-"


@contextmanager
def scratch_directory(parent: Path | None = None) -> Iterator[Path]:
    """Create a scratch directory that is removed on every exit path.

    Args:
        parent: Directory to create the scratch directory in. Defaults to the
            system temporary directory.

    Yields:
        Path to the new, empty directory.
    """
    path = Path(tempfile.mkdtemp(prefix=SCRATCH_PREFIX, dir=parent))
    logger.debug("scratch_directory_created", path=str(path))
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        logger.debug("scratch_directory_removed", path=str(path))
