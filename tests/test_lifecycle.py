from __future__ import annotations

import asyncio

import pytest

from voicenews.orchestrator.events import RecognitionEnded, RecognitionResult
from voicenews.recognition.base import MicrophonePermissionError
from voicenews.recognition.lifecycle import RecognitionLifecycleManager
from voicenews.recognition.manual import ManualRecognitionEngine


@pytest.fixture
def anyio_backend():
    return "asyncio"


class Rig:
    def __init__(self, permission_granted: bool = True) -> None:
        self.engine = ManualRecognitionEngine(permission_granted=permission_granted)
        self.events: list = []
        self.active = True
        self.manager = RecognitionLifecycleManager(
            self.engine, self.events.append, session_active=lambda: self.active, restart_delay=0.01
        )


@pytest.mark.anyio("asyncio")
async def test_denied_permission_disables_and_retries() -> None:
    rig = Rig(permission_granted=False)
    with pytest.raises(MicrophonePermissionError):
        await rig.manager.start("en-US")
    assert rig.manager.permission_denied
    assert not rig.manager.auto_restart
    assert rig.engine.starts == 0

    rig.engine.permission_granted = True
    await rig.manager.start("en-US")
    assert rig.manager.capturing
    assert rig.engine.starts == 1


@pytest.mark.anyio("asyncio")
async def test_results_reach_sink() -> None:
    rig = Rig()
    await rig.manager.start("en-US")
    assert rig.engine.inject("latest news")
    assert rig.events == [RecognitionResult("latest news")]


@pytest.mark.anyio("asyncio")
async def test_deliberate_stop_end_event_is_dropped() -> None:
    rig = Rig()
    await rig.manager.start("en-US")
    await rig.manager.halt()
    assert rig.engine.stops == 1
    assert rig.events == []
    assert not rig.manager.capturing


@pytest.mark.anyio("asyncio")
async def test_natural_end_restarts_after_delay() -> None:
    rig = Rig()
    await rig.manager.start("en-US")
    rig.engine.end_segment()
    assert rig.events == [RecognitionEnded(capture=1)]

    await rig.manager.on_segment_end(1)
    assert rig.manager.restart_pending
    await rig.manager.wait_restart()
    assert rig.engine.starts == 2
    assert rig.manager.capturing


@pytest.mark.anyio("asyncio")
async def test_no_restart_when_session_inactive() -> None:
    rig = Rig()
    await rig.manager.start("en-US")
    rig.engine.end_segment()
    rig.active = False
    await rig.manager.on_segment_end(1)
    assert not rig.manager.restart_pending
    assert rig.engine.starts == 1


@pytest.mark.anyio("asyncio")
async def test_pending_restart_aborts_if_stopped() -> None:
    rig = Rig()
    await rig.manager.start("en-US")
    rig.engine.end_segment()
    await rig.manager.on_segment_end(1)
    await rig.manager.stop()
    await asyncio.sleep(0.03)
    assert rig.engine.starts == 1
    assert not rig.manager.capturing


@pytest.mark.anyio("asyncio")
async def test_visibility_controls_capture() -> None:
    rig = Rig()
    await rig.manager.start("en-US")
    await rig.manager.set_visible(False)
    assert not rig.manager.capturing
    assert not rig.manager.auto_restart

    rig.engine.end_segment()
    assert rig.events == []
    assert not rig.manager.restart_pending

    await rig.manager.set_visible(True)
    assert rig.manager.capturing
    assert rig.manager.auto_restart


@pytest.mark.anyio("asyncio")
async def test_start_while_hidden_is_deferred() -> None:
    rig = Rig()
    await rig.manager.set_visible(False)
    await rig.manager.start("en-US")
    assert not rig.manager.capturing
    await rig.manager.set_visible(True)
    assert rig.engine.starts == 1


@pytest.mark.anyio("asyncio")
async def test_language_change_restarts_capture() -> None:
    rig = Rig()
    await rig.manager.start("en-US")
    await rig.manager.set_language("hi-IN")
    assert rig.engine.language == "hi-IN"
    assert rig.engine.starts == 2
    assert rig.events == []


@pytest.mark.anyio("asyncio")
async def test_abandon_requires_new_preflight() -> None:
    rig = Rig()
    await rig.manager.start("en-US")
    await rig.manager.abandon()
    assert rig.manager.permission_denied
    assert not rig.manager.capturing
    with pytest.raises(MicrophonePermissionError):
        await rig.manager.resume()


@pytest.mark.anyio("asyncio")
async def test_queued_end_of_replaced_capture_is_ignored() -> None:
    rig = Rig()
    await rig.manager.start("en-US")
    rig.engine.end_segment()
    (ended,) = rig.events
    await rig.manager.set_visible(False)
    await rig.manager.set_visible(True)

    await rig.manager.on_segment_end(ended.capture)
    assert rig.manager.capturing
    assert rig.engine.capturing
    assert not rig.manager.restart_pending
    assert rig.engine.starts == 2
