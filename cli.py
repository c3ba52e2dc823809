"""CLI entry point for https-relay."""

import sys
from datetime import datetime

from rich.console import Console
from rich.table import Table

from app import create_app
from core.config import CONFIG_FILE, load_config
from core.cors import CORS_HEADERS, RELAYED_RESPONSE_HEADERS
from core.headers import ALLOWED_HEADERS, DESTINATION_RULES, SENSITIVE_HEADERS
from ui.dashboard import Dashboard
from ui.log_utils import clear_logs, shutdown_log_executor, write_cli_log

console = Console()


def main():
    """Main CLI entry point."""
    config = load_config()

    # Handle CLI arguments
    if len(sys.argv) > 1:
        arg = sys.argv[1]

        if arg == "--config":
            console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
            console.print(f"[bold]Logs:[/bold] {config.logging.log_dir.resolve()}")
            return

        if arg == "--tables":
            _print_tables()
            return

        if arg in ("--help", "-h"):
            _print_help()
            return

        console.print(f"[red][ERROR][/red] Unknown argument: {arg}")
        _print_help()
        sys.exit(2)

    clear_logs(config.logging.log_dir)
    dashboard = Dashboard(config)

    import uvicorn

    app = create_app(config, dashboard)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.proxy.host,
        port=config.proxy.port,
        log_level="debug" if config.proxy.debug else "warning",
    )
    server = uvicorn.Server(uvicorn_config)

    log_file = config.logging.log_dir / "proxy.log"
    dashboard.start()
    start_time = datetime.now()
    write_cli_log("STARTUP", "Proxy started", log_file=log_file, port=config.proxy.port)
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Proxy stopped", log_file=log_file, duration=str(duration))
        shutdown_log_executor()
        dashboard.stop()


def _print_tables():
    """Print the static header policy."""
    table = Table(title="Header policy", show_header=True, header_style="bold")
    table.add_column("Forwarded request headers", style="green")
    table.add_column("Always stripped", style="red")
    table.add_column("Relayed response headers", style="cyan")

    allowed = sorted(ALLOWED_HEADERS)
    denied = sorted(SENSITIVE_HEADERS)
    relayed = list(RELAYED_RESPONSE_HEADERS)
    for i in range(max(len(allowed), len(denied), len(relayed))):
        table.add_row(
            allowed[i] if i < len(allowed) else "",
            denied[i] if i < len(denied) else "",
            relayed[i] if i < len(relayed) else "",
        )
    console.print(table)

    rules = Table(title="Destination rules", show_header=True, header_style="bold")
    rules.add_column("Rule")
    rules.add_column("Origin")
    rules.add_column("Referer")
    rules.add_column("Cookie")
    for rule in DESTINATION_RULES:
        rules.add_row(
            rule.name,
            rule.origin or "-",
            rule.referer or "-",
            "forced" if rule.forward_cookie else "-",
        )
    console.print(rules)

    for key, value in CORS_HEADERS.items():
        console.print(f"[dim]{key}:[/dim] {value}")


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]HTTPS Relay[/bold cyan]

Forwards browser requests to third-party HTTPS APIs with filtered headers and CORS.

[bold]Usage:[/bold]
    https-relay              Start with live dashboard
    https-relay --config     Show config and log locations
    https-relay --tables     Show header allow/deny lists and destination rules
    https-relay --help       Show this help

[bold]Routing:[/bold]
    GET http://localhost:8080/api.example.com/v1/items?x=1
    GET http://localhost:8080/proxy/https://api.example.com/v1/items
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
