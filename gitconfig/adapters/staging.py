from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from gitconfig.errors.errors import StagingPathError

_LOGGER = logging.getLogger(__name__)


def allocate_staging_path(tmp_path: Optional[Path | str], prefix: str) -> Path:
    """
    Reserve a unique, not-yet-existing path ``<tmp_path>/<prefix><random>`` for a clone.

    A placeholder file is created to claim the name and removed again, since a
    clone refuses to write into an existing non-empty directory.
    """
    root = Path(tmp_path) if tmp_path is not None else Path(tempfile.gettempdir())
    try:
        fd, placeholder = tempfile.mkstemp(prefix=prefix, suffix="", dir=root)
        os.close(fd)
        path = Path(placeholder)
        path.unlink()
    except OSError as exc:
        raise StagingPathError(
            f"Unable to create local clone directory: {prefix}",
            path=root / prefix,
            component="adapters.staging",
        ) from exc

    if path.exists():
        raise StagingPathError(
            f"Unable to remove temp directory for local clone: {prefix}",
            path=path,
            component="adapters.staging",
        )

    _LOGGER.debug(
        "staging_path_allocated",
        extra={"event": "staging_path_allocated", "path": str(path), "tmp_root": str(root)},
    )
    return path
