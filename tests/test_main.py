from pathlib import Path
from unittest.mock import patch

import main
from fshandle.exceptions import ListingError


def test_lists_then_watches_until_interrupted(tmp_path: Path, capsys, restore_root_logger):
    (tmp_path / "docs").mkdir()
    (tmp_path / "notes.txt").write_text("abc")

    with patch("main.time.sleep", side_effect=KeyboardInterrupt):
        exit_code = main.main([str(tmp_path), "--log-level", "WARNING"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "dir  docs" in out
    assert "file notes.txt (3 bytes)" in out
    assert f"Watching {tmp_path}" in out


def test_missing_directory_exits_with_error(tmp_path: Path, restore_root_logger):
    assert main.main([str(tmp_path / "nowhere"), "--log-level", "ERROR"]) == 1


def test_bad_config_exits_before_opening(tmp_path: Path, capsys):
    exit_code = main.main([str(tmp_path), "--config", str(tmp_path / "absent.yaml")])

    assert exit_code == 2
    assert "Configuration error" in capsys.readouterr().err


def test_config_file_is_applied(tmp_path: Path, capsys, restore_root_logger):
    config_file = tmp_path / "fshandle.yaml"
    config_file.write_text("listing:\n  ignore_patterns: ['*.yaml']\nwatch:\n  enabled: false\n")
    (tmp_path / "kept.txt").touch()

    with patch("main.time.sleep", side_effect=KeyboardInterrupt):
        exit_code = main.main([str(tmp_path), "--config", str(config_file), "--log-format", "json"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "kept.txt" in out
    assert "fshandle.yaml" not in out


def test_log_updates_logs_each_event(caplog):
    from fshandle import UpdateEvent, UpdateType

    with caplog.at_level("INFO", logger="main"):
        main.log_updates([
            UpdateEvent(name="a.txt", update_type=UpdateType.CREATE, directory="/srv"),
            UpdateEvent(name="b.txt", update_type=UpdateType.DELETE, directory="/srv"),
        ])

    assert "create: a.txt in /srv" in caplog.text
    assert "delete: b.txt in /srv" in caplog.text


def test_unreadable_directory_exits_with_error(tmp_path: Path, capsys, restore_root_logger):
    denied = ListingError("Permission denied", {'directory': str(tmp_path)})

    with patch("fshandle.core.handle.list_directory", side_effect=denied):
        exit_code = main.main([str(tmp_path), "--log-level", "ERROR"])

    assert exit_code == 1
    assert "Cannot list" in capsys.readouterr().err
