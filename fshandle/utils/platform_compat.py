"""
Platform compatibility utilities for fshandle
"""
import os
import sys
import ctypes
from pathlib import Path
from typing import Tuple
import logging

logger = logging.getLogger(__name__)


def is_windows() -> bool:
    """Check if running on Windows"""
    return sys.platform == 'win32'


def is_macos() -> bool:
    """Check if running on macOS"""
    return sys.platform == 'darwin'


def supports_modify_events() -> bool:
    """
    Whether the native observer reliably reports in-place modifications.

    FSEvents coalesces and reorders writes, so MODIFY notifications on macOS
    are best-effort only. CREATE and DELETE are unaffected.
    """
    return not is_macos()


def path_separators() -> Tuple[str, ...]:
    """Separators that may not appear in a single child name"""
    separators = [os.sep]
    if os.altsep:
        separators.append(os.altsep)
    return tuple(separators)


def filesystem_anchor(path: Path) -> Path:
    """Topmost directory above ``path`` (``/`` or a drive root such as ``C:\\``)"""
    return Path(Path(path).anchor)


def is_hidden_windows(path: Path) -> bool:
    """Check if file/folder is hidden on Windows"""
    if not is_windows():
        return False

    try:
        # FILE_ATTRIBUTE_HIDDEN = 0x2
        attrs = ctypes.windll.kernel32.GetFileAttributesW(str(path))
        return attrs != -1 and bool(attrs & 2)

    except (AttributeError, OSError):
        return False


def is_hidden(path: Path) -> bool:
    """Dot-files everywhere, plus the hidden attribute on Windows"""
    if path.name.startswith('.'):
        return True
    return is_hidden_windows(path)
