# src/abaptidy/cli/formatter.py
import difflib
from typing import Any, Dict, List

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

# Initialize the Rich console for high-quality terminal output
console = Console()

STATUS_COLORS = {
    "UNCHANGED": "dim",
    "PREVIEW": "yellow",
    "FORMATTED": "green",
    "FAILED": "red",
    "FILE_NOT_FOUND": "red",
    "ENGINE_ERROR": "red",
}


class ReportFormatter:
    """
    The visual side of the CLI: diffs and execution reports.
    """

    def __init__(self, target: Console = None):
        self.console = target or console

    def display_diff(self, original_text: str, formatted_text: str, file_name: str):
        """
        Renders a colorized unified diff between the source and the
        formatted output.
        """
        if formatted_text is None or original_text is None:
            return

        diff_list = list(difflib.unified_diff(
            original_text.splitlines(),
            formatted_text.splitlines(),
            fromfile=f"Original: {file_name}",
            tofile="Formatted",
            lineterm=""
        ))

        if not diff_list:
            self.console.print(f"[dim]ℹ No layout changes needed for {file_name}.[/dim]")
            return

        syntax = Syntax("\n".join(diff_list), "diff", theme="monokai", line_numbers=True)
        self.console.print(Panel(
            syntax,
            title=f"Proposed Layout: {file_name}",
            border_style="green"
        ))

    def print_final_table(self, reports: List[Dict[str, Any]]):
        """
        Builds the table shown at the very end of a run.
        """
        table = Table(title="AbapTidy Execution Report", show_lines=True, header_style="bold magenta")
        table.add_column("File Path", style="cyan")
        table.add_column("Status", style="bold")
        table.add_column("Notes", style="white")
        table.add_column("Result", justify="center")

        for r in reports:
            status = r.get("status", "FAILED")
            color = STATUS_COLORS.get(status, "red")
            if r.get("fallback"):
                notes = f"pass-through: {r.get('fallback_reason')}"
            else:
                notes = r.get("validation_error") or r.get("error") or ""
            table.add_row(
                str(r.get("file_path")),
                f"[{color}]{status}[/{color}]",
                notes,
                "✅" if r.get("success") else "❌"
            )

        self.console.print(table)
