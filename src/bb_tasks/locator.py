"""Project root lookup by upward search for the marker file."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from bb_tasks.config import MARKER_FILE
from bb_tasks.errors import ProjectRootNotFoundError

logger = logging.getLogger(__name__)


def resolve_project_root(
    start_dir: Path | str,
    override: Path | str | None = None,
    *,
    marker: str = MARKER_FILE,
) -> Path:
    """Return the nearest directory at or above `start_dir` holding `marker`.

    An explicit `override` is trusted as-is and returned without looking for
    the marker inside it. The walk follows lexical parents only, so it ends at
    the filesystem root after at most one step per path component.
    """

    if override is not None:
        root = Path(override).expanduser().absolute()
        logger.debug("Using override project root %s", root)
        return root

    # Normalize `..` lexically; symlinks are left unresolved.
    start = Path(os.path.abspath(Path(start_dir).expanduser()))
    origin = start if start.is_dir() or not start.exists() else start.parent
    for candidate in (origin, *origin.parents):
        if (candidate / marker).is_file():
            logger.debug("Resolved project root %s from %s", candidate, start)
            return candidate

    raise ProjectRootNotFoundError(start, marker)
