"""
Terminal User Interface for monitoring scan progress
"""
import asyncio
from typing import Optional
from contextlib import asynccontextmanager

from rich.align import Align
from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from .models import LinkStatus
from .status_tracker import StatusTracker, get_status_tracker


STATUS_STYLES = {
    LinkStatus.IDLE: ("⚪", "dim"),
    LinkStatus.CHECKING: ("🔵", "blue"),
    LinkStatus.WORKING: ("🟢", "green"),
    LinkStatus.REDIRECT: ("🟣", "magenta"),
    LinkStatus.BLOCKED: ("🔴", "red"),
    LinkStatus.TIMEOUT: ("🟠", "dark_orange"),
    LinkStatus.SLOW: ("🟡", "yellow"),
    LinkStatus.FAILED: ("⚫", "grey50"),
}


class ScanTUI:
    """Terminal User Interface for scan monitoring"""

    def __init__(self, status_tracker: Optional[StatusTracker] = None):
        """Initialize TUI with console and status tracker."""
        self.console = Console()
        self.status_tracker = status_tracker or get_status_tracker()
        self.live_display: Optional[Live] = None
        self._running = False

    def create_layout(self) -> Layout:
        """Create the main TUI layout with header, main content, and footer."""
        layout = Layout()

        layout.split_column(
            Layout(name="header", size=4),
            Layout(name="main"),
            Layout(name="footer", size=9)
        )

        layout["main"].split_row(
            Layout(name="statuses"),
            Layout(name="right")
        )

        layout["right"].split_column(
            Layout(name="progress", size=5),
            Layout(name="activities")
        )

        return layout

    def create_header(self) -> Panel:
        """Create header panel with runtime and progress statistics."""
        progress = self.status_tracker.progress
        elapsed = int(self.status_tracker.elapsed_time)
        minutes, seconds = divmod(elapsed, 60)

        title = Text("Link Checker", style="bold blue")
        subtitle = f"Runtime: {minutes:02d}:{seconds:02d} | "
        subtitle += f"Checked: {progress.completed}/{progress.total} | "
        subtitle += "Scanning" if progress.running else "Idle"

        return Panel(
            Align.center(title + "\n" + subtitle),
            style="bright_blue",
            title="Status"
        )

    def create_status_panel(self) -> Panel:
        """Create panel with the number of links per status in this scan."""
        summary = self.status_tracker.get_status_summary()

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Status", style="cyan")
        table.add_column("Links", justify="right")

        for status in LinkStatus:
            if status is LinkStatus.IDLE:
                continue
            icon, style = STATUS_STYLES[status]
            table.add_row(f"{icon} {status.value}", str(summary.get(status.value, 0)), style=style)

        return Panel(table, title="Results", border_style="green")

    def create_progress_panel(self) -> Panel:
        """Create progress panel with a completion bar."""
        progress = self.status_tracker.progress
        bar = ProgressBar(total=max(progress.total, 1), completed=progress.completed)

        table = Table.grid(expand=True)
        table.add_column(ratio=1)
        table.add_column(justify="right", width=6)
        table.add_row(bar, f"{progress.percent}%")

        return Panel(table, title="Progress", border_style="yellow")

    def create_activity_panel(self) -> Panel:
        """Create recent activity panel showing latest probe results."""
        activities = self.status_tracker.get_recent_activities(15)

        if not activities:
            content = Text("No recent activities", style="dim")
        else:
            content = "\n".join(activities)

        return Panel(
            content,
            title="Recent Activities",
            border_style="magenta"
        )

    def create_footer(self) -> Panel:
        """Create footer panel showing links currently being checked."""
        active_tasks = self.status_tracker.get_active_tasks()

        content = []
        if active_tasks:
            content.append("Currently Checking:")
            for _, url in active_tasks[:6]:
                content.append(f"  {url[:70]}")
            if len(active_tasks) > 6:
                content.append(f"  ... and {len(active_tasks) - 6} more")
        else:
            content.append("No active probes")

        return Panel(
            "\n".join(content),
            title="Active Probes",
            border_style="cyan"
        )

    def update_display(self) -> Layout:
        """Update the entire TUI display with current data."""
        layout = self.create_layout()

        layout["header"].update(self.create_header())
        layout["statuses"].update(self.create_status_panel())
        layout["progress"].update(self.create_progress_panel())
        layout["activities"].update(self.create_activity_panel())
        layout["footer"].update(self.create_footer())

        return layout

    @asynccontextmanager
    async def live_context(self):
        """Context manager for live display with automatic updates."""
        try:
            self._running = True
            layout = self.update_display()

            with Live(layout, console=self.console, refresh_per_second=4) as live:
                self.live_display = live

                update_task = asyncio.create_task(self._update_loop())

                try:
                    yield self
                finally:
                    self._running = False
                    update_task.cancel()
                    try:
                        await update_task
                    except asyncio.CancelledError:
                        pass
                    live.update(self.update_display())

        finally:
            self.live_display = None

    async def _update_loop(self):
        """Background task to continuously update display."""
        while self._running:
            try:
                if self.live_display:
                    self.live_display.update(self.update_display())
                await asyncio.sleep(0.25)
            except asyncio.CancelledError:
                break
            except Exception as e:
                # Keep the dashboard alive; the error shows up in the activity log
                self.status_tracker.add_activity(f"TUI update error: {e}")
                await asyncio.sleep(1)

    def print_summary(self):
        """Print final summary statistics after the scan ends."""
        tracker = self.status_tracker
        progress = tracker.progress
        summary = tracker.get_status_summary()

        if tracker.cancelled:
            self.console.print("\n[bold yellow]Scan stopped[/bold yellow]")
        else:
            self.console.print("\n[bold green]Scan complete![/bold green]")
        self.console.print(f"Checked: {progress.completed}/{progress.total}")
        for status in LinkStatus:
            count = summary.get(status.value, 0)
            if count:
                icon, style = STATUS_STYLES[status]
                self.console.print(f"{icon} [{style}]{status.value}[/{style}]: {count}")
        self.console.print(f"Total time: {tracker.elapsed_time:.1f}s")
