"""Server entry point tests."""

from fieldscan import __main__ as entry
from fieldscan.core.config import Settings


class TestMain:
    """``python -m fieldscan`` tests."""

    def test_runs_app_with_configured_address(self, monkeypatch):
        """The server is started on the configured host and port."""
        calls = []
        monkeypatch.setattr(entry, "get_settings", lambda: Settings(host="0.0.0.0", port=9001))
        monkeypatch.setattr(entry.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

        entry.main()

        assert len(calls) == 1
        app, kwargs = calls[0]
        assert app == "fieldscan.main:app"
        assert kwargs["host"] == "0.0.0.0"
        assert kwargs["port"] == 9001
        assert kwargs["log_level"] == "info"
