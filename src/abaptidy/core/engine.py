#!/usr/bin/env python3
"""
ABAPTIDY ENGINE - The File Orchestrator
---------------------------------------
FormatEngine takes ABAP source files through the formatting pipeline,
validates the result and persists it with atomic writes and unique
backups. Batch runs skip symlinks and respect a recursion depth limit.

Author: AbapTidy Team
Date: 2026-10-18
"""

import os
import shutil
import time
import logging
from pathlib import Path
from typing import Dict, Any, List, Optional, Callable, Sequence

from abaptidy.core.config import FormatterOptions
from abaptidy.layout.pipeline import FormattingPipeline
from abaptidy.validator.validator import FormatValidator

# Setup standardized logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("abaptidy.engine")

BACKUP_SUFFIX = ".abaptidy.backup"
TEMP_SUFFIX = ".abaptidy.tmp"
DEFAULT_EXTENSIONS = (".abap", ".clas.macros")


class FormatEngine:
    """
    Principal orchestrator for on-disk formatting.
    Keeps the workspace root and one pipeline per option set.
    """

    def __init__(self, workspace_path: str, options: Optional[FormatterOptions] = None):
        self.workspace = Path(workspace_path).resolve()
        self.options = options or FormatterOptions()
        self.pipeline = FormattingPipeline(self.options)
        self.validator = FormatValidator()
        self._ensure_workspace()

    def _ensure_workspace(self):
        """Validates/Creates target workspace to prevent OS path errors."""
        if not self.workspace.exists():
            logger.info(f"Creating missing workspace: {self.workspace}")
            self.workspace.mkdir(parents=True, exist_ok=True)

    def format_file(self, relative_path: str, dry_run: bool = True) -> Dict[str, Any]:
        """
        Formats a single file and, outside dry runs, writes it back.
        """
        full_path = (self.workspace / relative_path).resolve()

        if not full_path.exists():
            return self._file_error(relative_path, "FILE_NOT_FOUND", f"Path missing: {full_path}")

        try:
            # Phase 1: Read (BOM-aware)
            raw_text = full_path.read_text(encoding='utf-8-sig')

            # Phase 2: Formatting pipeline
            context = self.pipeline.run(raw_text, full_path.name)
            formatted = context.formatted_text

            # Phase 3: Validation
            valid, validation_error = self.validator.validate(raw_text, formatted)
            if valid:
                validation_error = ""

            is_modified = raw_text != formatted
            display_status = self._derive_status(is_modified, dry_run, valid)

        except Exception as e:
            logger.error(f"Error processing {relative_path}: {str(e)}")
            return self._file_error(relative_path, "ENGINE_ERROR", str(e))

        # Phase 4: Result construction
        result = {
            "file_path": str(relative_path),
            "success": valid,
            "status": display_status,
            "changed": is_modified,
            "fallback": context.fallback,
            "fallback_reason": context.fallback_reason,
            "written": False,
            "backup_created": None,
            "formatted_content": formatted if is_modified else None,
            "original_content": raw_text,
            "validation_error": validation_error,
            "timestamp": time.time()
        }

        # Phase 5: Disk I/O
        if not dry_run and is_modified and valid:
            backup_path = self._create_unique_backup(full_path)
            try:
                shutil.copy2(full_path, backup_path)
                result["backup_created"] = str(backup_path.relative_to(self.workspace))
            except OSError as e:
                result["backup_warning"] = f"Backup failed: {str(e)}"

            try:
                self._atomic_write(full_path, formatted)
                result["written"] = True
            except IOError as e:
                result["write_error"] = str(e)
                result["success"] = False

        return result

    def scan_directory(self, extensions: Sequence[str] = DEFAULT_EXTENSIONS, dry_run: bool = True,
                       max_depth: int = 10,
                       progress_callback: Optional[Callable[[int, int], None]] = None) -> List[Dict[str, Any]]:
        """
        Recursively discovers and formats all ABAP files with safety gates.
        """
        try:
            max_depth = int(max_depth)
        except (ValueError, TypeError):
            logger.warning(f"Invalid max_depth '{max_depth}'. Falling back to default: 10")
            max_depth = 10

        if isinstance(extensions, str):
            extensions = [extensions]
        patterns = set()
        for extension in extensions:
            patterns.update({f"*{extension.lower()}", f"*{extension.upper()}"})

        # Phase 1: File discovery (exclude symlinks to prevent loops)
        found = set()
        for pattern in sorted(patterns):
            found.update(f for f in self.workspace.rglob(pattern) if f.is_file() and not f.is_symlink())
        all_files = sorted(found)

        reports = []
        total_files = len(all_files)
        processed = 0

        # Phase 2: Processing loop
        for file_path in all_files:
            rel_parts = file_path.relative_to(self.workspace).parts
            if len(rel_parts) > max_depth:
                continue

            reports.append(self.format_file(str(file_path.relative_to(self.workspace)), dry_run=dry_run))
            processed += 1
            if progress_callback:
                progress_callback(processed, total_files)

        return reports

    def cleanup_backups(self, max_age_hours: int = 168) -> int:
        """Removes old backup files (default 7 days)."""
        count = 0
        cutoff = time.time() - (max_age_hours * 3600)
        for backup in self.workspace.rglob(f"*{BACKUP_SUFFIX}"):
            try:
                if backup.stat().st_mtime < cutoff:
                    backup.unlink()
                    count += 1
            except OSError:
                continue
        return count

    def generate_summary(self, reports: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Aggregated counters for the final report."""
        if not reports:
            return {
                "total_files": 0, "success_rate": 0, "successful": 0, "changed": 0,
                "written_to_disk": 0, "fallbacks": 0, "system_errors": 0, "backups_created": 0
            }

        total = len(reports)
        successful = sum(1 for r in reports if r.get('success', False))
        return {
            "total_files": total,
            "success_rate": successful / total,
            "successful": successful,
            "changed": sum(1 for r in reports if r.get('changed', False)),
            "written_to_disk": sum(1 for r in reports if r.get('written', False)),
            "fallbacks": sum(1 for r in reports if r.get('fallback', False)),
            "backups_created": sum(1 for r in reports if r.get('backup_created') is not None),
            "system_errors": sum(1 for r in reports if r.get('status') == "ENGINE_ERROR"),
            "summary_timestamp": time.strftime("%Y-%m-%d %H:%M:%S")
        }

    def _derive_status(self, modified: bool, dry: bool, valid: bool) -> str:
        if not modified: return "UNCHANGED"
        if not valid: return "FAILED"
        if dry: return "PREVIEW"
        return "FORMATTED"

    def _atomic_write(self, target_path: Path, content: str):
        if not os.access(target_path.parent, os.W_OK):
            raise PermissionError(f"No write access to {target_path.parent}")
        temp_file = target_path.with_name(target_path.name + TEMP_SUFFIX)
        try:
            temp_file.write_text(content, encoding='utf-8')
            os.replace(temp_file, target_path)
        except OSError as e:
            if temp_file.exists(): temp_file.unlink()
            raise IOError(f"Atomic write failed: {str(e)}")

    def _create_unique_backup(self, target_path: Path) -> Path:
        backup_path = target_path.with_name(target_path.name + BACKUP_SUFFIX)
        counter = 1
        while backup_path.exists():
            backup_path = target_path.with_name(f"{target_path.name}-{counter}{BACKUP_SUFFIX}")
            counter += 1
        return backup_path

    def _file_error(self, path: str, status: str, error: str) -> Dict[str, Any]:
        return {
            "file_path": path, "status": status, "error": error,
            "success": False, "changed": False, "fallback": False,
            "written": False, "backup_created": None,
        }
