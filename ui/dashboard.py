"""Real-time CLI dashboard for proxy monitoring."""

from datetime import datetime
from threading import Lock
from urllib.parse import urlsplit

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.log_utils import submit_forward_log, write_cli_log

console = Console()


class ForwardInfo:
    """Info about a single forwarded request."""

    def __init__(self, method: str, target_url: str, timestamp: datetime):
        self.method = method
        self.url = target_url
        self.host = urlsplit(target_url).hostname or "?"
        self.target = target_url[:80] + "..." if len(target_url) > 80 else target_url
        self.status: int | None = None
        self.duration_ms: float | None = None
        self.timestamp = timestamp


class Dashboard:
    """Real-time dashboard showing recent forwards and errors."""

    def __init__(self, config: Config):
        self.config = config
        self._lock = Lock()
        self._recent: list[ForwardInfo] = []
        self._max_recent = 10
        self._request_count = {"forwarded": 0, "preflight": 0, "errors": 0}
        self._errors: list[str] = []
        self._live: Live | None = None

    def start(self) -> "Dashboard":
        """Start the live dashboard."""
        self._live = Live(
            self._build_layout(),
            console=console,
            refresh_per_second=4,
            screen=False,
        )
        self._live.start()
        return self

    def stop(self) -> None:
        """Stop the live dashboard."""
        if self._live:
            self._live.stop()

    def log_forward(self, method: str, target_url: str, headers: dict[str, str]) -> None:
        """Log a request about to be forwarded."""
        with self._lock:
            self._request_count["forwarded"] += 1
            self._recent.insert(0, ForwardInfo(method, target_url, datetime.now()))
            self._recent = self._recent[: self._max_recent]
            self._refresh()

        if self.config.logging.write_request_logs:
            submit_forward_log(method, target_url, headers, log_root=self.config.logging.log_dir)
        write_cli_log(
            "FORWARD",
            target_url,
            log_file=self.config.logging.log_dir / "proxy.log",
            method=method,
            headers=len(headers),
        )

    def log_response(self, method: str, target_url: str, status: int, duration_ms: float) -> None:
        """Record the destination's status on the matching recent entry."""
        with self._lock:
            for info in self._recent:
                if info.status is None and info.method == method and info.url == target_url:
                    info.status = status
                    info.duration_ms = duration_ms
                    break
            self._refresh()

        write_cli_log(
            "RESPONSE",
            target_url,
            log_file=self.config.logging.log_dir / "proxy.log",
            status=status,
            ms=f"{duration_ms:.0f}",
        )

    def log_preflight(self, path: str) -> None:
        """Count a CORS preflight."""
        with self._lock:
            self._request_count["preflight"] += 1
            self._refresh()

    def log_error(self, target: str, status: int, message: str) -> None:
        """Log an error."""
        with self._lock:
            self._request_count["errors"] += 1
            truncated = message[:50] + "..." if len(message) > 50 else message
            self._errors.insert(0, f"{status} {target[:40]}: {truncated}")
            self._errors = self._errors[:3]
            self._refresh()
        write_cli_log(
            "ERROR",
            message[:200],
            log_file=self.config.logging.log_dir / "proxy.log",
            target=target,
            status=status,
        )

    def _refresh(self) -> None:
        """Refresh the display."""
        if self._live:
            self._live.update(self._build_layout())

    def _build_layout(self) -> Layout:
        """Build the dashboard layout."""
        layout = Layout()

        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=5),
        )

        layout["header"].update(self._build_header())
        layout["body"].update(self._build_recent_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with stats."""
        stats = Text()
        stats.append("HTTPS Relay", style="bold cyan")
        stats.append("  |  ")
        stats.append(f"Forwarded: {self._request_count['forwarded']}", style="blue")
        stats.append("  |  ")
        stats.append(f"Preflight: {self._request_count['preflight']}", style="magenta")
        stats.append("  |  ")
        stats.append(f"Errors: {self._request_count['errors']}", style="red")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port}", style="dim")

        return Panel(stats, style="cyan")

    def _build_recent_panel(self) -> Panel:
        """Build recent forwards panel."""
        if self._recent:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Method", width=7)
            table.add_column("Host", ratio=1)
            table.add_column("Target", ratio=3)
            table.add_column("Status", width=6)
            table.add_column("ms", width=6, justify="right")

            for info in self._recent:
                status = str(info.status) if info.status is not None else "..."
                style = "red" if info.status and info.status >= 400 else ""
                table.add_row(
                    info.timestamp.strftime("%H:%M:%S"),
                    info.method,
                    info.host,
                    info.target,
                    Text(status, style=style),
                    f"{info.duration_ms:.0f}" if info.duration_ms is not None else "",
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[blue]Recent Forwards[/blue]", border_style="blue")

    def _build_footer(self) -> Panel:
        """Build footer with errors and help."""
        if self._errors:
            error_text = Text()
            for err in self._errors:
                error_text.append("! ", style="red bold")
                error_text.append(err + "\n", style="red")
            content = error_text
        else:
            content = Text(
                f"Call http://{self.config.proxy.host}:{self.config.proxy.port}/<host>/<path> to relay",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")
