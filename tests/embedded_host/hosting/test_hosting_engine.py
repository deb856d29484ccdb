from __future__ import annotations

import asyncio

import pytest

from embedded_host.errors import InvalidConfigurationError, PipelineBuildError
from embedded_host.host import EmbeddedHost
from embedded_host.hosting.engine import LocalHostingEngine, StartContext, StartedEngine
from embedded_host.hosting.options import StartOptions
from embedded_host.hosting.server_factory import PipelineCapture, ServerFactoryAdapter
from embedded_host.pipeline.builder import AppBuilder
from embedded_host.pipeline.environment import HOST_APP_NAME, RESPONSE_STATUS_CODE


class _CountingToken:
    def __init__(self) -> None:
        self.releases = 0

    def release(self) -> None:
        self.releases += 1


def _context(capture: PipelineCapture, startup=None, **options: object) -> StartContext:
    return StartContext(
        options=StartOptions(**options),
        server_factory=ServerFactoryAdapter(capture),
        startup=startup,
    )


def test_engine_runs_startup_and_hands_chain_to_server_factory() -> None:
    capture = PipelineCapture()
    seen: dict[str, object] = {}

    def startup(app: AppBuilder) -> None:
        seen.update(app.properties)

        async def ok(env):
            env[RESPONSE_STATUS_CODE] = 200

        app.run(ok)

    token = LocalHostingEngine().start(
        _context(capture, startup, app_startup="s", app_name="named", settings={"k": "v"})
    )
    assert isinstance(token, StartedEngine)
    assert seen[HOST_APP_NAME] == "named"
    assert seen["k"] == "v"
    # Server initialization happens before the startup runs.
    assert "server.capabilities" in seen
    env: dict[str, object] = {}
    asyncio.run(capture.dispatch(env))
    assert env[RESPONSE_STATUS_CODE] == 200


def test_engine_requires_startup_or_identifier() -> None:
    with pytest.raises(InvalidConfigurationError):
        LocalHostingEngine().start(_context(PipelineCapture()))


def test_engine_uses_custom_builder_factory() -> None:
    built: list[AppBuilder] = []

    def factory() -> AppBuilder:
        app = AppBuilder({"from_factory": True})
        built.append(app)
        return app

    capture = PipelineCapture()
    context = StartContext(
        options=StartOptions(app_startup="s"),
        server_factory=ServerFactoryAdapter(capture),
        startup=lambda app: None,
        builder_factory=factory,
    )
    LocalHostingEngine().start(context)
    assert len(built) == 1
    assert capture.properties["from_factory"] is True


def test_started_engine_release_runs_teardown_then_server_token() -> None:
    calls: list[str] = []
    server_token = _CountingToken()
    started = StartedEngine(server_token, [lambda: calls.append("a"), lambda: calls.append("b")])
    started.release()
    started.release()
    assert calls == ["b", "a"]
    assert server_token.releases == 1
    assert started.released


def test_started_engine_release_reports_teardown_error_after_running_all() -> None:
    calls: list[str] = []
    server_token = _CountingToken()

    def failing() -> None:
        raise RuntimeError("teardown failed")

    started = StartedEngine(server_token, [lambda: calls.append("a"), failing])
    with pytest.raises(RuntimeError, match="teardown failed"):
        started.release()
    assert calls == ["a"]
    assert server_token.releases == 1


def test_engine_failed_startup_runs_registered_teardown() -> None:
    # Teardown registered before the startup raised runs in reverse; the original error propagates.
    calls: list[str] = []
    error = ValueError("startup broke")

    def startup(app: AppBuilder) -> None:
        app.on_dispose(lambda: calls.append("first"))
        app.on_dispose(lambda: calls.append("second"))
        raise error

    capture = PipelineCapture()
    with pytest.raises(ValueError) as info:
        LocalHostingEngine().start(_context(capture, startup))
    assert info.value is error
    assert calls == ["second", "first"]
    assert not capture.captured


def test_engine_failed_build_runs_registered_teardown() -> None:
    calls: list[str] = []

    def broken(next_app):
        raise RuntimeError("bad wiring")

    def startup(app: AppBuilder) -> None:
        app.on_dispose(lambda: calls.append("cleanup"))
        app.use(broken)

    with pytest.raises(PipelineBuildError):
        LocalHostingEngine().start(_context(PipelineCapture(), startup))
    assert calls == ["cleanup"]


def test_engine_failed_start_notes_teardown_errors() -> None:
    def failing_teardown() -> None:
        raise OSError("cleanup failed")

    def startup(app: AppBuilder) -> None:
        app.on_dispose(failing_teardown)
        raise ValueError("startup broke")

    with pytest.raises(ValueError, match="startup broke") as info:
        LocalHostingEngine().start(_context(PipelineCapture(), startup))
    assert any("OSError: cleanup failed" in note for note in info.value.__notes__)


def test_custom_engine_reads_its_fields_from_settings() -> None:
    # Engine-specific option fields travel under settings; the host does not interpret them.
    seen: list[dict[str, object]] = []

    class _SettingsEngine:
        def start(self, context: StartContext):
            seen.append(dict(context.options.settings))
            return LocalHostingEngine().start(context)

    host = EmbeddedHost.create(
        lambda app: None,
        {"settings": {"engine.workers": 2}},
        engine=_SettingsEngine(),
    )
    host.dispose()
    assert seen == [{"engine.workers": 2}]
