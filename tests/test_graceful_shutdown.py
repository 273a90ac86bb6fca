import asyncio
import os
import signal

import pytest

from mcp_server_bitbucket import server as server_module
from mcp_server_bitbucket.server import serve


class ExitRecorder:
    def __init__(self):
        self.codes = []

    def __call__(self, code):
        self.codes.append(code)


@pytest.fixture
def exit_recorder(monkeypatch):
    recorder = ExitRecorder()
    monkeypatch.setattr(server_module, "_exit_process", recorder)
    return recorder


def send_signal_soon(sig, delay=0.05):
    asyncio.get_running_loop().call_later(delay, os.kill, os.getpid(), sig)


# --- Session lifecycle ---


@pytest.mark.asyncio
async def test_session_end_closes_api(monkeypatch, server_config, mock_api, exit_recorder):
    async def finished_session(server):
        return None

    monkeypatch.setattr(server_module, "_run_stdio", finished_session)

    await asyncio.wait_for(serve(server_config, api=mock_api), timeout=5)

    mock_api.close.assert_awaited_once()
    assert exit_recorder.codes == []


@pytest.mark.asyncio
async def test_session_failure_propagates_and_closes_api(monkeypatch, server_config, mock_api, exit_recorder):
    async def broken_session(server):
        raise RuntimeError("stdio transport failed")

    monkeypatch.setattr(server_module, "_run_stdio", broken_session)

    with pytest.raises(RuntimeError, match="stdio transport failed"):
        await asyncio.wait_for(serve(server_config, api=mock_api), timeout=5)

    mock_api.close.assert_awaited_once()


# --- Signal handling ---


@pytest.mark.asyncio
@pytest.mark.parametrize("sig", [signal.SIGTERM, signal.SIGINT])
async def test_signal_cancels_session_and_closes_api(monkeypatch, server_config, mock_api, exit_recorder, sig):
    cancelled = asyncio.Event()

    async def idle_session(server):
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            cancelled.set()
            raise

    monkeypatch.setattr(server_module, "_run_stdio", idle_session)
    send_signal_soon(sig)

    await asyncio.wait_for(serve(server_config, api=mock_api), timeout=5)

    assert cancelled.is_set()
    mock_api.close.assert_awaited_once()
    assert exit_recorder.codes == []


@pytest.mark.asyncio
async def test_blocked_stdin_exits_process_with_zero(monkeypatch, server_config, mock_api, exit_recorder):
    release = asyncio.Event()

    async def blocked_session(server):
        # Stands in for a stdin reader thread that ignores cancellation
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            await release.wait()

    monkeypatch.setattr(server_module, "_run_stdio", blocked_session)
    monkeypatch.setattr(server_module, "SHUTDOWN_GRACE_SECONDS", 0.05)
    send_signal_soon(signal.SIGTERM)

    try:
        await asyncio.wait_for(serve(server_config, api=mock_api), timeout=5)
    finally:
        release.set()
        await asyncio.sleep(0.01)

    mock_api.close.assert_awaited_once()
    assert exit_recorder.codes == [0]


@pytest.mark.asyncio
async def test_signal_handlers_are_removed_after_shutdown(monkeypatch, server_config, mock_api, exit_recorder):
    async def finished_session(server):
        return None

    monkeypatch.setattr(server_module, "_run_stdio", finished_session)

    await serve(server_config, api=mock_api)

    loop = asyncio.get_running_loop()
    assert loop.remove_signal_handler(signal.SIGTERM) is False
    assert loop.remove_signal_handler(signal.SIGINT) is False


def test_exit_process_flushes_logging_then_exits(monkeypatch):
    calls = []
    monkeypatch.setattr(server_module.logging, "shutdown", lambda: calls.append("logging.shutdown"))
    monkeypatch.setattr(server_module.os, "_exit", lambda code: calls.append(("exit", code)))

    server_module._exit_process(0)

    assert calls == ["logging.shutdown", ("exit", 0)]
