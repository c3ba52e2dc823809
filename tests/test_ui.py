import json

from core.config import Config, LoggingSettings
from ui.dashboard import Dashboard
from ui.log_utils import clear_logs, write_cli_log, write_forward_log


def test_forward_log_masks_credentials(tmp_path):
    path = write_forward_log(
        "GET",
        "https://api.example.com/me",
        {
            "authorization": "Bearer abcdefghijklmnop",
            "cookie": "sid=1",
            "x-api-key": "k-1234567890",
            "accept": "application/json",
        },
        log_root=tmp_path,
    )

    assert path.parent == tmp_path / "forwarded" / "api.example.com"
    payload = json.loads(path.read_text())
    assert payload["method"] == "GET"
    assert payload["headers"]["authorization"] == "Bearer...mnop"
    assert payload["headers"]["cookie"] == "***"
    assert payload["headers"]["x-api-key"] == "k-1234...7890"
    assert payload["headers"]["accept"] == "application/json"


def test_cli_log_and_clear(tmp_path):
    log_file = tmp_path / "proxy.log"
    write_cli_log("FORWARD", "https://api.example.com", log_file=log_file, status=200)
    write_forward_log("GET", "https://api.example.com", {}, log_root=tmp_path)

    line = log_file.read_text()
    assert "FORWARD: https://api.example.com status=200" in line

    clear_logs(tmp_path)

    assert not log_file.exists()
    assert not (tmp_path / "forwarded").exists()


def test_dashboard_tracks_requests(tmp_path):
    config = Config(logging=LoggingSettings(log_dir=tmp_path, write_request_logs=False))
    dashboard = Dashboard(config)

    dashboard.log_forward("GET", "https://api.example.com/a", {"accept": "*/*"})
    dashboard.log_response("GET", "https://api.example.com/a", 201, 12.5)
    dashboard.log_preflight("/api.example.com/a")
    dashboard.log_error("https://down.example.com/", 500, "Connection refused")

    assert dashboard._request_count == {"forwarded": 1, "preflight": 1, "errors": 1}
    recent = dashboard._recent[0]
    assert recent.host == "api.example.com"
    assert recent.status == 201
    assert "Connection refused" in dashboard._errors[0]
    assert "status=201" in (tmp_path / "proxy.log").read_text()
    assert dashboard._build_layout() is not None
