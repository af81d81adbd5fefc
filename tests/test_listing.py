import os
from pathlib import Path
from unittest.mock import patch

import pytest

from fshandle.core import listing
from fshandle.core.listing import list_directory
from fshandle.exceptions import ListingError
from fshandle.watch.patterns import PatternFilter


def _make_symlink(link: Path, target: Path, is_dir: bool = False):
    try:
        link.symlink_to(target, target_is_directory=is_dir)
    except (OSError, NotImplementedError):
        pytest.skip("cannot create symlinks here")


def test_lists_every_child_with_directory_flags(tmp_path: Path):
    (tmp_path / "test1").mkdir()
    (tmp_path / "small_file.txt").write_text("12345")

    entries = list_directory(tmp_path)

    assert len(entries) == 2
    by_name = {entry.name: entry for entry in entries}
    assert by_name["test1"].is_directory is True
    assert by_name["test1"].size is None
    assert by_name["small_file.txt"].is_directory is False
    assert by_name["small_file.txt"].size == 5
    assert by_name["small_file.txt"].mtime == pytest.approx(
        (tmp_path / "small_file.txt").stat().st_mtime
    )


def test_entries_are_sorted_by_name(tmp_path: Path):
    for name in ("zeta", "alpha", "Mid"):
        (tmp_path / name).touch()

    names = [entry.name for entry in list_directory(tmp_path)]

    assert names == sorted(names)


def test_empty_directory_lists_nothing(tmp_path: Path):
    assert list_directory(tmp_path) == []


def test_missing_directory_raises_listing_error(tmp_path: Path):
    with pytest.raises(ListingError) as excinfo:
        list_directory(tmp_path / "gone")

    assert isinstance(excinfo.value.__cause__, FileNotFoundError)
    assert excinfo.value.context["directory"] == str(tmp_path / "gone")


def test_listing_a_file_raises_listing_error(tmp_path: Path):
    target = tmp_path / "plain.txt"
    target.touch()

    with pytest.raises(ListingError):
        list_directory(target)


def test_entry_vanishing_mid_scan_is_omitted(tmp_path: Path):
    (tmp_path / "stays").touch()
    (tmp_path / "vanishes").touch()
    real_stat_entry = listing._stat_entry

    def flaky(entry, follow_symlinks):
        if entry.name == "vanishes":
            raise FileNotFoundError(entry.path)
        return real_stat_entry(entry, follow_symlinks)

    with patch.object(listing, "_stat_entry", side_effect=flaky):
        entries = list_directory(tmp_path)

    assert [entry.name for entry in entries] == ["stays"]


def test_unreadable_entry_is_kept_without_metadata(tmp_path: Path):
    (tmp_path / "locked").touch()

    with patch.object(listing, "_stat_entry", side_effect=PermissionError("denied")):
        entries = list_directory(tmp_path)

    assert len(entries) == 1
    assert entries[0].name == "locked"
    assert entries[0].size is None
    assert entries[0].mtime is None


def test_failure_while_iterating_is_all_or_nothing(tmp_path: Path):
    (tmp_path / "one").touch()

    with patch.object(listing, "_build_entry", side_effect=OSError(5, "I/O error")):
        with pytest.raises(ListingError):
            list_directory(tmp_path)


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
def test_symlinked_directory_is_not_followed_by_default(tmp_path: Path):
    (tmp_path / "real").mkdir()
    _make_symlink(tmp_path / "link", tmp_path / "real", is_dir=True)

    by_name = {entry.name: entry for entry in list_directory(tmp_path)}

    assert by_name["link"].is_symlink is True
    assert by_name["link"].is_directory is False
    assert by_name["real"].is_directory is True


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
def test_follow_symlinks_reports_target_type_and_keeps_dangling_links(tmp_path: Path):
    (tmp_path / "real").mkdir()
    _make_symlink(tmp_path / "link", tmp_path / "real", is_dir=True)
    _make_symlink(tmp_path / "dangling", tmp_path / "nowhere")

    by_name = {entry.name: entry for entry in list_directory(tmp_path, follow_symlinks=True)}

    assert by_name["link"].is_directory is True
    assert by_name["dangling"].is_symlink is True
    assert by_name["dangling"].is_directory is False


def test_pattern_filter_hides_matching_and_hidden_entries(tmp_path: Path):
    for name in ("keep.txt", "scratch.tmp", ".hidden"):
        (tmp_path / name).touch()

    entries = list_directory(
        tmp_path,
        pattern_filter=PatternFilter(ignore_patterns=["*.TMP"], show_hidden=False),
    )

    assert [entry.name for entry in entries] == ["keep.txt"]
