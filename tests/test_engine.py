import os
import time

import pytest

from abaptidy.cli.main import AbapTidyCLI
from abaptidy.core.config import FormatterOptions, find_config, load_options
from abaptidy.core.engine import FormatEngine
from abaptidy.core.errors import ConfigError
from abaptidy.validator.validator import FormatValidator

UNFORMATTED = "IF a = 1.\na = 2.\nENDIF.\n"
FORMATTED = "IF a = 1.\n  a = 2.\nENDIF.\n"


@pytest.fixture
def workspace(tmp_path):
    (tmp_path / "zprog.abap").write_text(UNFORMATTED, encoding="utf-8")
    return tmp_path


# --- ENGINE ---

def test_dry_run_reports_without_writing(workspace):
    report = FormatEngine(str(workspace)).format_file("zprog.abap", dry_run=True)
    assert report["status"] == "PREVIEW"
    assert report["changed"] is True
    assert report["written"] is False
    assert report["formatted_content"] == FORMATTED
    assert (workspace / "zprog.abap").read_text(encoding="utf-8") == UNFORMATTED


def test_write_creates_backup(workspace):
    report = FormatEngine(str(workspace)).format_file("zprog.abap", dry_run=False)
    assert report["status"] == "FORMATTED"
    assert report["written"] is True
    assert report["backup_created"] == "zprog.abap.abaptidy.backup"
    assert (workspace / "zprog.abap").read_text(encoding="utf-8") == FORMATTED
    assert (workspace / "zprog.abap.abaptidy.backup").read_text(encoding="utf-8") == UNFORMATTED
    assert not list(workspace.glob("*.abaptidy.tmp"))


def test_backups_never_overwrite_each_other(workspace):
    engine = FormatEngine(str(workspace))
    engine.format_file("zprog.abap", dry_run=False)
    (workspace / "zprog.abap").write_text(UNFORMATTED, encoding="utf-8")
    report = engine.format_file("zprog.abap", dry_run=False)
    assert report["backup_created"] == "zprog.abap-1.abaptidy.backup"


def test_formatted_file_is_unchanged(workspace):
    (workspace / "zprog.abap").write_text(FORMATTED, encoding="utf-8")
    report = FormatEngine(str(workspace)).format_file("zprog.abap", dry_run=False)
    assert report["status"] == "UNCHANGED"
    assert report["written"] is False


def test_missing_file(workspace):
    report = FormatEngine(str(workspace)).format_file("nope.abap")
    assert report["status"] == "FILE_NOT_FOUND"
    assert report["success"] is False


def test_unparsable_file_is_trimmed_only(workspace):
    (workspace / "broken.abap").write_text("WRITE 'abc   \n", encoding="utf-8")
    report = FormatEngine(str(workspace)).format_file("broken.abap")
    assert report["fallback"] is True
    assert report["success"] is True
    assert report["formatted_content"] == "WRITE 'abc\n"


def test_options_reach_the_pipeline(workspace):
    engine = FormatEngine(str(workspace), FormatterOptions(keyword_case="lower", indent_width=4))
    report = engine.format_file("zprog.abap")
    assert report["formatted_content"] == "if a = 1.\n    a = 2.\nendif.\n"


def test_scan_directory_filters_extensions_and_depth(workspace):
    deep = workspace / "a" / "b"
    deep.mkdir(parents=True)
    (deep / "zdeep.abap").write_text(UNFORMATTED, encoding="utf-8")
    (workspace / "notes.txt").write_text("hello", encoding="utf-8")
    calls = []

    engine = FormatEngine(str(workspace))
    reports = engine.scan_directory(max_depth=1, progress_callback=lambda done, total: calls.append(done))
    assert [r["file_path"] for r in reports] == ["zprog.abap"]
    assert calls == [1]

    reports = engine.scan_directory(extensions=[".abap", ".txt"], max_depth=10)
    assert len(reports) == 3


def test_cleanup_backups(workspace):
    engine = FormatEngine(str(workspace))
    engine.format_file("zprog.abap", dry_run=False)
    backup = workspace / "zprog.abap.abaptidy.backup"
    old = time.time() - 10 * 24 * 3600
    os.utime(backup, (old, old))
    assert engine.cleanup_backups(max_age_hours=24) == 1
    assert not backup.exists()


def test_generate_summary(workspace):
    engine = FormatEngine(str(workspace))
    reports = [engine.format_file("zprog.abap"), engine.format_file("missing.abap")]
    summary = engine.generate_summary(reports)
    assert summary["total_files"] == 2
    assert summary["successful"] == 1
    assert summary["changed"] == 1
    assert engine.generate_summary([])["total_files"] == 0


# --- VALIDATOR ---

def test_validator_accepts_layout_changes():
    ok, _ = FormatValidator().validate(UNFORMATTED, FORMATTED)
    assert ok


def test_validator_rejects_changed_code():
    ok, message = FormatValidator().validate("x = 1.", "x = 2.")
    assert not ok
    assert "'1'" in message and "'2'" in message


def test_validator_rejects_lost_pragma():
    ok, message = FormatValidator().validate("DATA x TYPE i ##NEEDED.", "DATA x TYPE i.")
    assert not ok
    assert "pragma" in message


def test_validator_checks_idempotence():
    from abaptidy.layout.pipeline import FormattingPipeline
    ok, _ = FormatValidator().check_idempotent(FormattingPipeline(), FORMATTED)
    assert ok
    ok, _ = FormatValidator().check_idempotent(FormattingPipeline(), UNFORMATTED)
    assert not ok


# --- CONFIGURATION ---

def test_options_validate_values():
    with pytest.raises(ConfigError):
        FormatterOptions(keyword_case="title")
    with pytest.raises(ConfigError):
        FormatterOptions(indent_width=0)
    with pytest.raises(ConfigError):
        FormatterOptions(space_before_period="yes")


def test_load_options_from_yaml(tmp_path):
    config = tmp_path / ".abaptidy.yaml"
    config.write_text("keyword-case: lower\nindent_width: 4\n", encoding="utf-8")
    options = load_options(config, {"indent_width": None, "space_before_period": True})
    assert options == FormatterOptions(keyword_case="lower", indent_width=4, space_before_period=True)


def test_unknown_option_is_rejected(tmp_path):
    config = tmp_path / ".abaptidy.yaml"
    config.write_text("tab-width: 4\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_options(config)


def test_broken_yaml_is_a_config_error(tmp_path):
    config = tmp_path / ".abaptidy.yaml"
    config.write_text("keyword-case: [lower\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_options(config)


def test_find_config_walks_up(tmp_path):
    (tmp_path / ".abaptidy.yml").write_text("indent-width: 3\n", encoding="utf-8")
    nested = tmp_path / "src" / "pkg"
    nested.mkdir(parents=True)
    assert find_config(nested) == (tmp_path / ".abaptidy.yml").resolve()


# --- CLI ---

def test_check_exits_with_one_when_changes_are_pending(workspace):
    assert AbapTidyCLI().run(["check", str(workspace / "zprog.abap")]) == 1
    assert (workspace / "zprog.abap").read_text(encoding="utf-8") == UNFORMATTED


def test_fix_with_yes_writes_the_file(workspace):
    assert AbapTidyCLI().run(["fix", str(workspace / "zprog.abap"), "--yes"]) == 0
    assert (workspace / "zprog.abap").read_text(encoding="utf-8") == FORMATTED
    assert AbapTidyCLI().run(["check", str(workspace)]) == 0


def test_cli_flags_override_config_file(workspace):
    (workspace / ".abaptidy.yaml").write_text("indent-width: 4\n", encoding="utf-8")
    AbapTidyCLI().run(["fix", str(workspace / "zprog.abap"), "-y", "--indent-width", "3"])
    assert (workspace / "zprog.abap").read_text(encoding="utf-8") == "IF a = 1.\n   a = 2.\nENDIF.\n"


def test_invalid_config_exits_with_two(workspace):
    (workspace / ".abaptidy.yaml").write_text("keyword-case: title\n", encoding="utf-8")
    assert AbapTidyCLI().run(["check", str(workspace)]) == 2
