"""Shared logging utilities."""

import json
import shutil
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit
from uuid import uuid4

LOG_ROOT = Path.cwd() / "logs"
CLI_LOG_FILE = LOG_ROOT / "proxy.log"

# Credential-bearing headers masked in request logs
_MASKED_HEADERS = ("authorization", "cookie", "key", "signature", "token")

_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="log-writer")


def write_forward_log(
    method: str,
    target_url: str,
    headers: dict[str, str],
    *,
    log_root: Path = LOG_ROOT,
) -> Path:
    """Write a single forwarded request log entry."""
    payload = {
        "timestamp": _utc_now(),
        "method": method,
        "target": target_url,
        "headers": _redact_headers(headers),
    }
    return _write_json(log_root / "forwarded" / _host_folder(target_url), payload)


def submit_forward_log(
    method: str,
    target_url: str,
    headers: dict[str, str],
    *,
    log_root: Path = LOG_ROOT,
) -> None:
    """Queue a forwarded request log entry on the background writer."""
    _executor.submit(write_forward_log, method, target_url, dict(headers), log_root=log_root)


def write_cli_log(
    level: str,
    message: str,
    *,
    log_file: Path = CLI_LOG_FILE,
    **extra: Any,
) -> None:
    """Append a line to the rolling CLI log file."""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
    extra_str = " ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""
    line = f"[{timestamp}] {level}: {message}"
    if extra_str:
        line += f" {extra_str}"
    line += "\n"
    with log_file.open("a") as f:
        f.write(line)


def clear_logs(log_root: Path = LOG_ROOT) -> None:
    """Remove request logs left by a previous run."""
    shutil.rmtree(log_root / "forwarded", ignore_errors=True)
    (log_root / CLI_LOG_FILE.name).unlink(missing_ok=True)


def shutdown_log_executor() -> None:
    """Flush queued log writes."""
    _executor.shutdown(wait=True)


def _write_json(folder: Path, payload: dict[str, Any]) -> Path:
    """Write payload to a unique JSON file in the given folder."""
    folder.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S.%fZ")
    file_path = folder / f"{timestamp}_{uuid4().hex}.json"
    file_path.write_text(json.dumps(payload, indent=2, default=str))
    return file_path


def _host_folder(target_url: str) -> str:
    host = urlsplit(target_url).hostname
    return host or "_invalid"


def _redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Redact sensitive headers."""
    redacted = {}
    for key, value in headers.items():
        if any(marker in key.lower() for marker in _MASKED_HEADERS):
            redacted[key] = _mask(value)
        else:
            redacted[key] = value
    return redacted


def _mask(value: str) -> str:
    if len(value) <= 10:
        return "***"
    return value[:6] + "..." + value[-4:]


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()
