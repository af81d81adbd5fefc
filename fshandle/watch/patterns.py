# fshandle/watch/patterns.py

"""
Name filtering shared by listings and update events
"""
import fnmatch
import re
import logging
import threading
from pathlib import Path
from typing import List, Optional, Dict
from dataclasses import dataclass, field

from ..utils.platform_compat import is_hidden

logger = logging.getLogger(__name__)


@dataclass
class PatternRule:
    """Pattern matching rule applied to an entry's base name"""
    pattern: str
    is_regex: bool = False
    case_sensitive: bool = False
    compiled_pattern: Optional[re.Pattern] = field(default=None, repr=False)

    def __post_init__(self):
        if self.is_regex:
            flags = 0 if self.case_sensitive else re.IGNORECASE
            try:
                self.compiled_pattern = re.compile(self.pattern, flags)
            except re.error as e:
                logger.error(f"Invalid regex pattern '{self.pattern}': {e}")
                # Fallback to glob match
                self.is_regex = False

    def matches(self, name: str) -> bool:
        """
        Check if a base name matches the pattern

        Args:
            name: Entry name (no directory part)

        Returns:
            True if name matches pattern
        """
        if self.is_regex:
            return bool(self.compiled_pattern.search(name))
        if self.case_sensitive:
            return fnmatch.fnmatchcase(name, self.pattern)
        return fnmatch.fnmatchcase(name.lower(), self.pattern.lower())


class PatternFilter:
    """
    Decide which directory entries are visible

    Matching is done on names only, so the same decision is available for
    entries that no longer exist (DELETE events).
    """

    def __init__(self, ignore_patterns: Optional[List[str]] = None,
                 show_hidden: bool = True):
        """
        Initialize pattern filter

        Args:
            ignore_patterns: Glob patterns (or regexes, prefixed with ``re:``) to hide
            show_hidden: Whether hidden entries are visible
        """
        self.ignore_patterns = list(ignore_patterns or [])
        self.show_hidden = show_hidden
        self.ignore_rules = self._compile_rules()

        # Shared by the observer thread and listing callers
        self.cache: Dict[str, bool] = {}
        self.cache_max_size = 10000
        self._cache_lock = threading.Lock()

        logger.debug(f"PatternFilter initialized with {len(self.ignore_rules)} rules "
                     f"(show_hidden={show_hidden})")

    def _compile_rules(self) -> List[PatternRule]:
        rules = []
        for pattern in self.ignore_patterns:
            if pattern.startswith('re:'):
                rules.append(PatternRule(pattern=pattern[3:], is_regex=True))
            else:
                rules.append(PatternRule(pattern=pattern))
        return rules

    def should_ignore(self, path: Path) -> bool:
        """
        Check if an entry should be hidden

        Args:
            path: Entry path; only its name is matched, plus the Windows
                hidden attribute when it still exists

        Returns:
            True if the entry should be hidden
        """
        if not self.show_hidden and is_hidden(path):
            return True

        name = path.name
        with self._cache_lock:
            cached = self.cache.get(name)
        if cached is not None:
            return cached

        ignored = False
        for rule in self.ignore_rules:
            if rule.matches(name):
                logger.debug(f"Ignoring {path} (matched pattern: {rule.pattern})")
                ignored = True
                break

        self._update_cache(name, ignored)
        return ignored

    def _update_cache(self, name: str, should_ignore: bool):
        with self._cache_lock:
            if len(self.cache) >= self.cache_max_size:
                # Drop the oldest 10%
                remove_count = max(1, self.cache_max_size // 10)
                for key in list(self.cache.keys())[:remove_count]:
                    self.cache.pop(key, None)

            self.cache[name] = should_ignore

    def get_stats(self) -> dict:
        """Get filter statistics"""
        return {
            'total_rules': len(self.ignore_rules),
            'show_hidden': self.show_hidden,
            'cache_size': len(self.cache),
        }
