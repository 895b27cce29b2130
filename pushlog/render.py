"""
Rendering functions for pushlog output.

This module handles all pretty-printing and table formatting.
Services return data, this module makes it human-readable.
"""

from rich.table import Table
from rich.console import Console
from rich import box
from typing import List, Dict, Any, Optional

from .domain import Certificate, LogEntry
from .exit_codes import CertificateError

console = Console()


def render_table(headers: List[str], rows: List[List[str]], title: Optional[str] = None) -> None:
    """
    Render a generic table with the given headers and rows.

    Args:
        headers: List of column headers
        rows: List of rows, where each row is a list of values
        title: Optional table title
    """
    if not rows:
        console.print("[yellow]No data to display.[/yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )

    for header in headers:
        table.add_column(header)

    for row in rows:
        table.add_row(*[str(val) for val in row])

    console.print(table)


def render_log_table(entries: List[LogEntry], title: Optional[str] = None) -> None:
    """Render log entries, oldest first."""
    if not entries:
        console.print("[yellow]No certificates archived.[/yellow]")
        return

    rows = []
    for entry in entries:
        pusher = ""
        if entry.certificate is not None:
            try:
                pusher = Certificate.parse(entry.certificate).pusher or ""
            except CertificateError:
                pass
        rows.append([entry.commit[:12], entry.content_id[:12], pusher, "\n".join(entry.refs)])

    render_table(["Entry", "Certificate", "Pusher", "Refs"], rows, title=title)


def render_status(status: Dict[str, Any]) -> None:
    """Render the archive status as a two-column table."""
    locks = status.get('locks', {})
    rows = [
        ["Log ref", status.get('log_ref', '')],
        ["Head", status.get('head') or "[dim]none[/dim]"],
        ["Entries", status.get('entries', 0)],
        ["Threshold", status.get('threshold', '')],
        ["Pending", status.get('pending', 0)],
        ["Staged batches", "\n".join(status.get('staging', [])) or "[dim]none[/dim]"],
        ["Locks held", ", ".join(name for name, held in locks.items() if held) or "[dim]none[/dim]"],
        ["State dir", status.get('state_dir', '')],
    ]
    render_table(["Field", "Value"], rows, title="Push certificate archive")
