#!/usr/bin/env python3
"""
ABAPTIDY CHAOS & EDGE CASE SUITE
--------------------------------
FormatEngine across filesystem edge cases:
1. Circular Symlinks (Infinite Recursion Test)
2. Zero-Byte / Empty Files
3. Permission Denied (Sabotage Test)
4. Excessive Directory Depth
5. Binary Garbage (Invalid Encoding)

Author: AbapTidy Team
Date: 2026-10-18
"""

import os
import stat

import pytest

from abaptidy.core.engine import FormatEngine

SOURCE = "IF a = 1.\na = 2.\nENDIF.\n"


@pytest.fixture
def chaos_root(tmp_path):
    """
    Constructs a filesystem 'minefield' for the engine.
    """
    (tmp_path / "empty.abap").write_text("")
    (tmp_path / "garbage.abap").write_bytes(b"\xff\xfe\x00IF\xc3\x28")
    (tmp_path / "zgood.abap").write_text(SOURCE, encoding="utf-8")

    if os.name != 'nt':
        link_dir = tmp_path / "infinite_loop"
        link_dir.mkdir()
        (link_dir / "zinner.abap").write_text(SOURCE, encoding="utf-8")
        os.symlink(tmp_path, link_dir / "trap_link", target_is_directory=True)

    deep_path = tmp_path
    for i in range(15):
        deep_path = deep_path / f"depth_{i}"
    deep_path.mkdir(parents=True)
    (deep_path / "zdeep.abap").write_text(SOURCE, encoding="utf-8")

    yield tmp_path

    for path in tmp_path.rglob("*"):
        if not path.is_symlink():
            os.chmod(path, stat.S_IRWXU)


def test_symlink_loops_and_depth_are_respected(chaos_root):
    """
    RECURSION TEST: the scan terminates and stays within max_depth.
    """
    reports = FormatEngine(str(chaos_root)).scan_directory(dry_run=True, max_depth=5)
    paths = [r["file_path"] for r in reports]
    assert not any("zdeep.abap" in p for p in paths)
    assert not any("trap_link" in p for p in paths)
    assert os.path.join("infinite_loop", "zinner.abap") in paths


def test_empty_file_is_left_alone(chaos_root):
    report = FormatEngine(str(chaos_root)).format_file("empty.abap", dry_run=False)
    assert report["status"] == "UNCHANGED"
    assert report["fallback"] is True
    assert report["written"] is False


def test_binary_garbage_is_an_engine_error(chaos_root):
    report = FormatEngine(str(chaos_root)).format_file("garbage.abap")
    assert report["status"] == "ENGINE_ERROR"
    assert report["success"] is False


@pytest.mark.skipif(os.name == 'nt' or (hasattr(os, "geteuid") and os.geteuid() == 0),
                    reason="permission bits are not enforced")
def test_read_only_directory_reports_write_error(chaos_root):
    locked = chaos_root / "locked"
    locked.mkdir()
    (locked / "zlocked.abap").write_text(SOURCE, encoding="utf-8")
    os.chmod(locked, stat.S_IRUSR | stat.S_IXUSR)

    report = FormatEngine(str(chaos_root)).format_file("locked/zlocked.abap", dry_run=False)
    assert report["written"] is False
    assert report["success"] is False
    assert "write_error" in report
    os.chmod(locked, stat.S_IRWXU)
    assert (locked / "zlocked.abap").read_text(encoding="utf-8") == SOURCE


def test_no_temporary_files_remain(chaos_root):
    FormatEngine(str(chaos_root)).scan_directory(dry_run=False)
    assert not list(chaos_root.rglob("*.abaptidy.tmp"))
    assert (chaos_root / "zgood.abap").read_text(encoding="utf-8") == "IF a = 1.\n  a = 2.\nENDIF.\n"
