#!/usr/bin/env python3
"""
ABAPTIDY CLI - Command Line Interface
-------------------------------------
`abaptidy fix PATH` rewrites ABAP sources in place (after confirmation),
`abaptidy check PATH` only reports which files would change and exits
with status 1 if any would.

Author: AbapTidy Team
Date: 2026-10-18
"""

import sys
import argparse
from pathlib import Path
from typing import List, Dict, Any, Optional

# Rich library components for high-fidelity terminal UI
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
    BarColumn,
    TaskProgressColumn
)

from abaptidy.cli.formatter import ReportFormatter
from abaptidy.core.config import CHAIN_FORMATTING, KEYWORD_CASES, find_config, load_options
from abaptidy.core.engine import DEFAULT_EXTENSIONS, FormatEngine
from abaptidy.core.errors import ConfigError

# Global console for consistent styling across the application
console = Console()

VERSION = "1.0.0"


class AbapTidyCLI:
    """
    CLI wrapper that translates user commands into Engine actions.
    Provides visual feedback, safety confirmations and diffs.
    """

    def __init__(self):
        self.parser = argparse.ArgumentParser(
            prog="abaptidy",
            description="AbapTidy - Deterministic ABAP Source Formatter",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        self.formatter = ReportFormatter(console)
        self._setup_args()

    def _add_option_flags(self, parser: argparse.ArgumentParser):
        """Flags mirroring FormatterOptions; unset flags keep file values."""
        parser.add_argument("--config", help="Path to a .abaptidy.yaml file")
        parser.add_argument("--keyword-case", choices=KEYWORD_CASES, default=None,
                            help="Case of keywords and pragmas")
        parser.add_argument("--indent-width", type=int, default=None,
                            help="Spaces per indentation level")
        parser.add_argument("--chain-formatting", choices=CHAIN_FORMATTING, default=None)
        parser.add_argument("--space-before-period", action="store_true", default=None,
                            help="Print 'a = 1 .' instead of 'a = 1.'")
        parser.add_argument("--no-space-before-comment-sign", dest="space_before_comment_sign",
                            action="store_false", default=None)
        parser.add_argument("--no-space-after-comment-sign", dest="space_after_comment_sign",
                            action="store_false", default=None)
        parser.add_argument("--ext", action="append", default=None,
                            help="File extension filter, repeatable (default: .abap)")
        parser.add_argument("--diff", action="store_true", help="Show a unified diff per file")

    def _setup_args(self):
        """Configures the command-line flags and subcommands."""
        self.parser.add_argument("-v", "--version", action="version", version=f"abaptidy v{VERSION}")
        subparsers = self.parser.add_subparsers(dest="command", metavar="Command")

        fix_parser = subparsers.add_parser("fix", help="Format ABAP sources in place")
        fix_parser.add_argument("path", help="Path to an ABAP file or directory")
        fix_parser.add_argument("--dry-run", action="store_true", help="Preview results without writing")
        fix_parser.add_argument("-y", "--yes", action="store_true", help="Auto-confirm single file")
        fix_parser.add_argument("--yes-all", action="store_true", help="Auto-confirm batch operations")
        self._add_option_flags(fix_parser)

        check_parser = subparsers.add_parser("check", help="Report files that would be reformatted")
        check_parser.add_argument("path", help="Path to check")
        self._add_option_flags(check_parser)

    def print_header(self, subtitle: str):
        console.print(Panel.fit(
            f"[bold cyan]AbapTidy v{VERSION}[/bold cyan]",
            title=f"[bold white]{subtitle}[/bold white]",
            border_style="cyan"
        ))

    def _load_options(self, args: argparse.Namespace, input_path: Path):
        config_path: Optional[Path] = Path(args.config) if args.config else find_config(input_path)
        overrides = {
            "keyword_case": args.keyword_case,
            "indent_width": args.indent_width,
            "chain_formatting": args.chain_formatting,
            "space_before_period": args.space_before_period,
            "space_before_comment_sign": args.space_before_comment_sign,
            "space_after_comment_sign": args.space_after_comment_sign,
        }
        return load_options(config_path, overrides)

    def _confirm_action(self, target_count: int, args: argparse.Namespace) -> bool:
        """Safety Gate logic: ensures the user wants to proceed with writes."""
        if args.dry_run:
            return True

        if target_count == 1:
            if args.yes or args.yes_all:
                return True
            choice = console.input("\n[bold yellow]Apply formatting to this file? (y/N): [/bold yellow]").lower()
            return choice == 'y'

        if args.yes_all:
            return True

        console.print(Panel(
            f"[bold red]⚠️  BATCH MODIFICATION DETECTED[/bold red]\n\n"
            f"Target Path: [white]{args.path}[/white]\n"
            f"File Count:  [bold cyan]{target_count} files[/bold cyan]\n",
            expand=False, border_style="red"
        ))
        return console.input("[bold yellow]Type 'CONFIRM' to execute: [/bold yellow]") == "CONFIRM"

    def _run_engine(self, args: argparse.Namespace, is_fix_mode: bool) -> int:
        """Main processing loop orchestration. Returns the exit status."""
        input_path = Path(args.path).resolve()
        if not input_path.exists():
            console.print(f"[bold red]Error:[/bold red] Path '{args.path}' not found.")
            return 2

        try:
            options = self._load_options(args, input_path)
        except ConfigError as e:
            console.print(f"[bold red]Configuration error:[/bold red] {str(e)}")
            return 2

        workspace = input_path if input_path.is_dir() else input_path.parent
        engine = FormatEngine(str(workspace), options)
        extensions = args.ext or list(DEFAULT_EXTENSIONS)

        if input_path.is_file():
            target_files = [input_path]
        else:
            target_files = sorted({
                f for ext in extensions for f in input_path.rglob(f"*{ext}")
                if f.is_file() and not f.is_symlink()
            })

        if not target_files:
            console.print("\n[bold yellow]⚠️  No ABAP files found.[/bold yellow]")
            return 0

        dry_run = not is_fix_mode or args.dry_run
        if is_fix_mode and not self._confirm_action(len(target_files), args):
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            return 1

        reports: List[Dict[str, Any]] = []
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(bar_width=40),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=console
        ) as progress:
            task_id = progress.add_task("Formatting sources...", total=len(target_files))

            for file_path in target_files:
                rel_path = str(file_path.relative_to(workspace))
                report = engine.format_file(rel_path, dry_run=dry_run)
                reports.append(report)

                if args.diff and report.get("formatted_content"):
                    progress.stop()
                    self.formatter.display_diff(report["original_content"],
                                                report["formatted_content"], rel_path)
                    progress.start()

                progress.update(task_id, advance=1, description=f"Checked: {file_path.name}")

        self._render_final_report(reports, engine)

        if not is_fix_mode and any(r.get("changed") for r in reports):
            return 1
        if any(r.get("status") in ("FAILED", "ENGINE_ERROR") for r in reports):
            return 1
        return 0

    def _render_final_report(self, reports: List[Dict], engine: FormatEngine):
        """Final table plus the summary panel."""
        self.formatter.print_final_table(reports)
        summary = engine.generate_summary(reports)
        console.print(Panel(
            f"[bold white]Summary Report[/bold white]\n"
            f"════════════════════════════════════════\n"
            f"Total Files:     {summary['total_files']}\n"
            f"Changed:         {summary['changed']}\n"
            f"Written:         [green]{summary['written_to_disk']}[/green]\n"
            f"Pass-through:    [yellow]{summary['fallbacks']}[/yellow]\n"
            f"System Errors:   [red]{summary['system_errors']}[/red]\n"
            f"Backups Created: {summary['backups_created']}",
            border_style="dim"
        ))

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Primary routing entry point."""
        argv = sys.argv[1:] if argv is None else argv
        if not argv:
            self.print_header("ABAP Source Formatter")
            self.parser.print_help()
            return 0

        args = self.parser.parse_args(argv)
        if args.command == "check":
            self.print_header("Layout Check")
            return self._run_engine(args, is_fix_mode=False)
        if args.command == "fix":
            self.print_header("Layout Fix")
            return self._run_engine(args, is_fix_mode=True)
        self.parser.print_help()
        return 0


def main():
    """Application entry point with interrupt handling."""
    try:
        sys.exit(AbapTidyCLI().run())
    except KeyboardInterrupt:
        console.print("\n[bold red]Terminated by user.[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
