import threading
from pathlib import Path

import pytest

from fshandle.watch.events import ListingEntry, UpdateEvent, UpdateType
from fshandle.watch.patterns import PatternFilter, PatternRule


@pytest.mark.parametrize("pattern,name,expected", [
    ("*.tmp", "scratch.TMP", True),
    ("*.tmp", "scratch.txt", False),
    ("build", "build", True),
    ("build", "builder", False),
])
def test_glob_rules_ignore_case(pattern, name, expected):
    assert PatternRule(pattern).matches(name) is expected


def test_case_sensitive_glob():
    assert not PatternRule("*.TMP", case_sensitive=True).matches("a.tmp")


def test_invalid_regex_falls_back_to_glob():
    rule = PatternRule("[unclosed", is_regex=True)

    assert rule.is_regex is False
    assert not rule.matches("anything")


def test_filter_matches_names_only():
    pattern_filter = PatternFilter(ignore_patterns=["node_modules", "re:\\.bak$"])

    assert pattern_filter.should_ignore(Path("/src/node_modules"))
    assert pattern_filter.should_ignore(Path("/src/report.BAK"))
    assert not pattern_filter.should_ignore(Path("/node_modules/src"))
    assert pattern_filter.get_stats()['total_rules'] == 2


def test_hidden_entries_follow_show_hidden():
    assert not PatternFilter().should_ignore(Path("/home/.profile"))
    assert PatternFilter(show_hidden=False).should_ignore(Path("/home/.profile"))


def test_update_event_listing_shape():
    created = UpdateEvent(
        name="a.txt", update_type=UpdateType.CREATE, directory="/srv",
        is_directory=False, size=3, mtime=1.0,
    )
    deleted = UpdateEvent(name="a.txt", update_type=UpdateType.DELETE, directory="/srv")

    assert created.to_entry() == ListingEntry(name="a.txt", is_directory=False, size=3, mtime=1.0)
    assert deleted.to_entry() is None
    assert str(deleted) == "delete: a.txt in /srv"


def test_update_events_compare_without_timestamp():
    first = UpdateEvent(name="x", update_type=UpdateType.MODIFY, directory="/srv")
    second = UpdateEvent(name="x", update_type=UpdateType.MODIFY, directory="/srv")

    assert first == second


def test_cache_survives_concurrent_eviction():
    pattern_filter = PatternFilter(ignore_patterns=["*.tmp"])
    pattern_filter.cache_max_size = 8
    errors = []
    start = threading.Event()

    def worker(offset):
        start.wait(5.0)
        try:
            for index in range(2000):
                pattern_filter.should_ignore(Path(f"/srv/file{offset}-{index}.tmp"))
        except Exception as e:
            errors.append(e)

    workers = [threading.Thread(target=worker, args=(offset,)) for offset in range(4)]
    for thread in workers:
        thread.start()
    start.set()
    for thread in workers:
        thread.join(30.0)

    assert errors == []
    assert len(pattern_filter.cache) <= 8
    assert pattern_filter.should_ignore(Path("/srv/last.TMP"))
