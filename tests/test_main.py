"""HTTP layer and startup lifespan tests."""

from __future__ import annotations

import asyncio
import inspect
from types import SimpleNamespace

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from reporter import main
from reporter.config import ConfigurationMissing, Settings
from reporter.dedup import DedupCache
from reporter.dispatcher import NotificationFailed, ReportDispatcher
from reporter.schemas import NotificationPayload


class FakeSink:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[NotificationPayload] = []

    async def send(self, payload: NotificationPayload) -> None:
        if self.fail:
            raise NotificationFailed("webhook returned HTTP 500")
        self.sent.append(payload)


def _client(sink: FakeSink) -> TestClient:
    cache = DedupCache()
    main.app.state.settings = Settings(port=8000, webhook_url="u", webhook_avatar_url="a")
    main.app.state.dedup = cache
    main.app.state.dispatcher = ReportDispatcher(cache=cache, sink=sink, sender_name="bot", avatar_url="a")
    return TestClient(main.app)


def test_report_returns_ok_and_suppresses_duplicates() -> None:
    sink = FakeSink()
    client = _client(sink)
    body = {"type": "automatic", "message": "crash", "extVersion": "1.0"}

    first = client.post("/report", json=body)
    second = client.post("/report", json=body)

    assert first.status_code == 200
    assert first.text == "OK"
    assert second.status_code == 200
    assert second.text == "OK"
    assert len(sink.sent) == 1


def test_manual_reports_always_forwarded() -> None:
    sink = FakeSink()
    client = _client(sink)
    body = {"type": "manual", "message": "hello", "extVersion": "1.0"}

    for _ in range(2):
        assert client.post("/report", json=body).status_code == 200
    assert len(sink.sent) == 2


def test_sink_failure_maps_to_500() -> None:
    client = _client(FakeSink(fail=True))
    res = client.post("/report", json={"type": "manual", "message": "hello", "extVersion": "1.0"})
    assert res.status_code == 500


@pytest.mark.parametrize(
    "body",
    [
        {"type": "sometimes", "message": "m", "extVersion": "1.0"},
        {"type": "manual", "extVersion": "1.0"},
        {"type": "manual", "message": "m"},
    ],
)
def test_malformed_report_rejected(body) -> None:
    sink = FakeSink()
    res = _client(sink).post("/report", json=body)
    assert res.status_code == 422
    assert sink.sent == []


def test_request_id_echoed() -> None:
    res = _client(FakeSink()).post(
        "/report",
        json={"type": "manual", "message": "m", "extVersion": "1.0"},
        headers={"X-Request-ID": "abc"},
    )
    assert res.headers["X-Request-ID"] == "abc"


def test_health_reports_cache_size() -> None:
    client = _client(FakeSink())
    client.post("/report", json={"type": "automatic", "message": "crash", "extVersion": "1.0"})

    res = client.get("/health")
    assert res.json() == {"status": "ok", "app": "wnp-reporter", "cached_reports": 1}


def test_health_runs_on_event_loop() -> None:
    assert inspect.iscoroutinefunction(main.health)


def test_lifespan_builds_shared_dispatcher_and_closes_sink(monkeypatch) -> None:
    closed: list[bool] = []

    class StubSink:
        def __init__(self, webhook_url: str, timeout_seconds: float) -> None:
            self.webhook_url = webhook_url

        async def aclose(self) -> None:
            closed.append(True)

    settings = Settings(port=8000, webhook_url="https://discord.test/hook", webhook_avatar_url="https://a")
    monkeypatch.setattr(main, "get_settings", lambda: settings)
    monkeypatch.setattr(main, "configure_logging", lambda *_: None)
    monkeypatch.setattr(main, "DiscordWebhookClient", StubSink)
    app = FastAPI()

    async def _run() -> None:
        async with main.lifespan(app):
            dispatcher = app.state.dispatcher
            assert dispatcher.cache is app.state.dedup
            assert dispatcher.sink.webhook_url == "https://discord.test/hook"
            assert dispatcher.sender_name == "WNPRedux Reporter"
            assert dispatcher.avatar_url == "https://a"

    asyncio.run(_run())
    assert closed == [True]


def test_lifespan_fails_without_configuration(monkeypatch) -> None:
    def _missing() -> Settings:
        raise ConfigurationMissing("missing required configuration: webhook-url")

    monkeypatch.setattr(main, "get_settings", _missing)

    async def _run() -> None:
        async with main.lifespan(FastAPI()):
            pass

    with pytest.raises(ConfigurationMissing):
        asyncio.run(_run())


def test_run_starts_uvicorn_on_configured_port(monkeypatch) -> None:
    import uvicorn

    calls: list[SimpleNamespace] = []
    settings = Settings(port=8123, webhook_url="u", webhook_avatar_url="a")
    monkeypatch.setattr(main, "get_settings", lambda: settings)
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append(SimpleNamespace(app=app, **kwargs)))

    main.run()

    assert calls[0].app is main.app
    assert calls[0].host == "0.0.0.0"
    assert calls[0].port == 8123
