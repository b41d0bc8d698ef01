"""
Rich-based terminal dashboard for speed test runs.

All formatting helpers live in ``speedx.stats`` -- this module only does
presentation via the ``rich`` library.
"""
from __future__ import annotations

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from speedx.models import FrozenMetrics, TestState
from speedx.stats import format_latency, format_speed

console = Console()

_PHASE_LABELS = {
    TestState.IDLE: "Idle",
    TestState.CONNECTING: "Measuring latency",
    TestState.DOWNLOAD: "Downloading",
    TestState.UPLOAD: "Uploading",
    TestState.COMPLETE: "Complete",
    TestState.ERROR: "Error",
}


# ---------------------------------------------------------------------------
# Print helpers
# ---------------------------------------------------------------------------

def print_header() -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold red]SpeedX[/bold red]\n"
            "[dim]Latency, jitter, download and upload in one run[/dim]",
            border_style="red",
        )
    )
    console.print()


def print_client_info(ip: str, isp: str, location: str = "") -> None:
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column(style="dim")
    table.add_column(style="bold")
    table.add_row("IP Address:", ip)
    table.add_row("ISP:", isp)
    if location and location != "Unknown":
        table.add_row("Location:", location)
    console.print(Panel(table, title="[bold]Client Info[/bold]", border_style="blue"))


def print_final_results(metrics: FrozenMetrics) -> None:
    table = Table(title="Results", box=box.ROUNDED)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Download", f"[bold green]{format_speed(metrics.download_speed_mbps)}[/bold green]")
    table.add_row("Upload", f"[bold blue]{format_speed(metrics.upload_speed_mbps)}[/bold blue]")
    table.add_row("Latency", f"[bold yellow]{format_latency(metrics.ping_ms)}[/bold yellow]")
    table.add_row("Jitter", format_latency(metrics.jitter_ms))

    console.print()
    console.print(table)
    console.print()


def print_insight(text: str) -> None:
    console.print(Panel(text, title="[bold]Network Insights[/bold]", border_style="red"))


# ---------------------------------------------------------------------------
# Live progress (engine observer)
# ---------------------------------------------------------------------------

class LiveDashboard:
    """
    Observer for ``SpeedTestEngine``: one progress bar covering the whole
    run, labelled with the current phase and its live reading.
    """

    def __init__(self) -> None:
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold]{task.description:<18}"),
            BarColumn(bar_width=40),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TextColumn("[bold cyan]{task.fields[reading]}[/bold cyan]"),
            TimeElapsedColumn(),
            console=console,
        )
        self._task_id = None
        self.state = TestState.IDLE
        self.metrics = FrozenMetrics()

    def start(self) -> None:
        self.progress.start()
        self._task_id = self.progress.add_task(
            _PHASE_LABELS[TestState.IDLE], total=100, reading="",
        )

    def __call__(self, state: TestState, metrics: FrozenMetrics) -> None:
        self.state = state
        self.metrics = metrics
        if self._task_id is None:
            return
        self.progress.update(
            self._task_id,
            description=_PHASE_LABELS[state],
            completed=metrics.progress_percent,
            reading=_reading(state, metrics),
        )

    def stop(self) -> None:
        self.progress.stop()
        self._task_id = None


def _reading(state: TestState, metrics: FrozenMetrics) -> str:
    if state is TestState.CONNECTING:
        return f"{metrics.ping_ms} ms" if metrics.ping_ms else "..."
    speed = (
        metrics.upload_speed_mbps if state is TestState.UPLOAD
        else metrics.download_speed_mbps
    )
    return format_speed(speed) if speed else "..."
