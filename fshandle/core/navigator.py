"""Cursor-based navigation bounded by a root directory."""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from ..exceptions import InvalidPathError
from ..utils.platform_compat import filesystem_anchor, path_separators

logger = logging.getLogger(__name__)


def _normalize(path: Union[str, Path]) -> str:
    return os.path.abspath(os.fspath(path))


def _same_path(a: str, b: str) -> bool:
    return os.path.normcase(a) == os.path.normcase(b)


def _is_within(path: str, root: str) -> bool:
    try:
        common = os.path.commonpath([os.path.normcase(path), os.path.normcase(root)])
    except ValueError:
        # Different drives
        return False
    return common == os.path.normcase(root)


class PathNavigator:
    """
    Holds the current-directory cursor

    The cursor is an absolute, normalised path that is never resolved
    through symbolic links, but a link is only followed when its target
    lies inside the root. Moves are validated before they are committed;
    a rejected move returns ``False`` and leaves the cursor alone. The
    navigator is not thread-safe on its own; ``FsHandle`` serialises access.
    """

    def __init__(self, initial: Union[str, Path], root: Optional[Union[str, Path]] = None):
        """
        Args:
            initial: Starting directory
            root: Highest directory the cursor may reach; defaults to the
                filesystem anchor of ``initial``

        Raises:
            InvalidPathError: If ``initial`` is not an existing directory inside ``root``
        """
        cursor = _normalize(initial)
        if not os.path.isdir(cursor):
            raise InvalidPathError(f"Not a directory: {initial}", {'path': str(initial)})

        boundary = _normalize(root) if root is not None else str(filesystem_anchor(Path(cursor)))
        if not os.path.isdir(boundary):
            raise InvalidPathError(f"Root is not a directory: {root}", {'root': str(root)})
        if not _is_within(cursor, boundary):
            raise InvalidPathError(
                f"{initial} is outside the navigation root {boundary}",
                {'path': str(initial), 'root': boundary},
            )

        # Only an explicit root is a sandbox that links must not leave
        real_boundary = os.path.realpath(boundary) if root is not None else None
        if real_boundary is not None and not _is_within(os.path.realpath(cursor), real_boundary):
            raise InvalidPathError(
                f"{initial} resolves outside the navigation root {boundary}",
                {'path': str(initial), 'root': boundary},
            )

        self._initial = cursor
        self._cursor = cursor
        self._root = boundary
        self._real_root = real_boundary

    @property
    def root(self) -> str:
        return self._root

    def current_path(self) -> str:
        return self._cursor

    def descend(self, name: str) -> bool:
        """Move into the child directory ``name``."""
        if not name or name in (os.curdir, os.pardir):
            return False
        if any(sep in name for sep in path_separators()):
            return False

        candidate = os.path.join(self._cursor, name)
        if not os.path.isdir(candidate):
            logger.debug(f"Cannot descend into {candidate}: not a directory")
            return False
        if self._real_root is not None and not _is_within(os.path.realpath(candidate), self._real_root):
            logger.warning(f"Refusing to descend into {candidate}: resolves outside {self._root}")
            return False

        self._cursor = candidate
        return True

    def ascend(self) -> bool:
        """Move to the parent directory unless the cursor is at the root."""
        if _same_path(self._cursor, self._root):
            return False

        parent = os.path.dirname(self._cursor)
        if _same_path(parent, self._cursor) or not os.path.isdir(parent):
            return False

        self._cursor = parent
        return True

    def reset(self) -> bool:
        """Move back to the directory the navigator started in."""
        if not os.path.isdir(self._initial):
            return False
        self._cursor = self._initial
        return True
