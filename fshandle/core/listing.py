"""Directory enumeration into listing entries."""

import logging
import os
import stat
from pathlib import Path
from typing import List, Optional, Union

from ..exceptions import ListingError
from ..watch.events import ListingEntry
from ..watch.patterns import PatternFilter

logger = logging.getLogger(__name__)


def _stat_entry(entry: os.DirEntry, follow_symlinks: bool) -> os.stat_result:
    try:
        return entry.stat(follow_symlinks=follow_symlinks)
    except FileNotFoundError:
        if not follow_symlinks:
            raise
    # Dangling symbolic link: describe the link itself
    return entry.stat(follow_symlinks=False)


def _build_entry(entry: os.DirEntry, follow_symlinks: bool) -> Optional[ListingEntry]:
    """Describe one child, or return ``None`` if it vanished mid-scan."""
    try:
        is_symlink = entry.is_symlink()
    except OSError:
        is_symlink = False

    try:
        st = _stat_entry(entry, follow_symlinks)
    except FileNotFoundError:
        logger.debug(f"Entry vanished during listing: {entry.path}")
        return None
    except OSError as e:
        # Present but unreadable; keep the name without metadata
        logger.debug(f"Could not stat {entry.path}: {e}")
        return ListingEntry(name=entry.name, is_directory=False, is_symlink=is_symlink)

    is_directory = stat.S_ISDIR(st.st_mode)
    return ListingEntry(
        name=entry.name,
        is_directory=is_directory,
        size=None if is_directory else st.st_size,
        mtime=st.st_mtime,
        is_symlink=is_symlink,
    )


def list_directory(
    directory: Union[str, Path],
    pattern_filter: Optional[PatternFilter] = None,
    follow_symlinks: bool = False,
) -> List[ListingEntry]:
    """List the immediate children of ``directory`` sorted by name.

    Symbolic links are described as links (not followed) unless
    ``follow_symlinks`` is set. Children that disappear while the scan is
    running are left out. Any failure to read the directory itself raises
    ``ListingError`` and no partial result is returned.
    """
    entries: List[ListingEntry] = []
    try:
        with os.scandir(directory) as children:
            for child in children:
                if pattern_filter is not None and pattern_filter.should_ignore(Path(child.path)):
                    continue
                listing_entry = _build_entry(child, follow_symlinks)
                if listing_entry is not None:
                    entries.append(listing_entry)
    except OSError as e:
        raise ListingError(
            f"Cannot list {directory}: {e.strerror or e}",
            {'directory': str(directory), 'errno': e.errno},
        ) from e

    entries.sort(key=lambda item: item.name)
    return entries
