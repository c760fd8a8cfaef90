"""
Unit tests for the Voice Confirmation Loop.

These tests verify:
1. Confirmation phrase matching
2. Utterance handling (confirmation, no-op, recognition errors)
3. Listener lifecycle: start delay, automatic restart, cancellation

These tests run WITHOUT a real speech recognizer; scripted sources stand in.

Usage:
    pytest tests/test_voice_confirmation.py -v
"""
import asyncio
import logging
import pytest
from unittest.mock import MagicMock

from conftest import ScriptedSpeechSource, wait_for
from ride_session.interfaces import RecognitionError, UtteranceQueue
from ride_session.models import FuelingAlert
from ride_session.voice_confirmation import (
    VoiceConfirmationLoop,
    is_confirmation_phrase,
    normalize_transcript,
)


class TestConfirmationPhrases:
    """Case-insensitive substring matching on the trimmed transcript."""

    @pytest.mark.parametrize("text", [
        "topped up",
        "Topped Up",
        "  TOP UP  ",
        "ok I topped",
        "top it up please",
        "just topped up thanks",
    ])
    def test_matches(self, text):
        assert is_confirmation_phrase(text)

    @pytest.mark.parametrize("text", ["", "stop", "top", "how far to the top", "fuel up"])
    def test_non_matches(self, text):
        assert not is_confirmation_phrase(text)

    def test_normalize(self):
        assert normalize_transcript("  Topped UP \n") == "topped up"


class TestHandleUtterance:
    """One utterance at a time."""

    def _loop(self, on_confirm):
        return VoiceConfirmationLoop(ScriptedSpeechSource(), on_confirm=on_confirm)

    def test_confirmation_resolves(self):
        alert = FuelingAlert(calories=200, carbs=50, message="Time to fuel! Take 50g carbs")
        on_confirm = MagicMock(return_value=alert)

        assert self._loop(on_confirm).handle_utterance("Topped up") is alert
        on_confirm.assert_called_once()

    def test_confirmation_without_pending_alert_is_noop(self):
        on_confirm = MagicMock(return_value=None)
        assert self._loop(on_confirm).handle_utterance("topped up") is None
        on_confirm.assert_called_once()

    def test_other_speech_ignored(self):
        on_confirm = MagicMock()
        assert self._loop(on_confirm).handle_utterance("what a climb") is None
        on_confirm.assert_not_called()

    def test_no_speech_is_silent(self, caplog):
        on_confirm = MagicMock()
        with caplog.at_level(logging.WARNING):
            result = self._loop(on_confirm).handle_utterance(RecognitionError("no-speech"))

        assert result is None
        on_confirm.assert_not_called()
        assert caplog.records == []

    def test_other_recognition_errors_logged(self, caplog):
        with caplog.at_level(logging.WARNING):
            self._loop(MagicMock()).handle_utterance(RecognitionError("network", "offline"))

        assert any("network" in r.message for r in caplog.records)


class TestListenerLifecycle:
    """Start delay, restart after the stream ends, cancellation."""

    @pytest.mark.asyncio
    async def test_waits_for_start_delay(self):
        source = ScriptedSpeechSource()
        loop = VoiceConfirmationLoop(source, on_confirm=MagicMock(), start_delay=0.2)
        loop.start()

        await asyncio.sleep(0.05)
        assert source.listen_calls == 0
        loop.stop()

    @pytest.mark.asyncio
    async def test_restarts_after_stream_ends_and_errors(self):
        on_confirm = MagicMock(return_value=None)
        source = ScriptedSpeechSource(
            ["hello"],
            RuntimeError("transport closed"),
            ["topped up"],
        )
        loop = VoiceConfirmationLoop(
            source, on_confirm=on_confirm, start_delay=0.0, restart_backoff=0.01
        )
        loop.start()

        assert await wait_for(lambda: on_confirm.called)
        assert loop.restart_count >= 2
        assert source.listen_calls >= 3
        loop.stop()

    @pytest.mark.asyncio
    async def test_stop_cancels_pending_backoff(self):
        source = ScriptedSpeechSource([])
        loop = VoiceConfirmationLoop(
            source, on_confirm=MagicMock(), start_delay=0.0, restart_backoff=0.2
        )
        loop.start()
        assert await wait_for(lambda: loop.restart_count == 1)

        loop.stop()
        await asyncio.sleep(0.3)
        assert source.listen_calls == 1
        assert not loop.is_active
        assert not loop.listening

    @pytest.mark.asyncio
    async def test_start_and_stop_clear_the_source(self):
        source = ScriptedSpeechSource()
        loop = VoiceConfirmationLoop(source, on_confirm=MagicMock(), start_delay=0.0)

        loop.start()
        assert source.clear_calls == 1
        loop.stop()
        assert source.clear_calls == 2

    @pytest.mark.asyncio
    async def test_listening_flag(self):
        loop = VoiceConfirmationLoop(
            ScriptedSpeechSource(), on_confirm=MagicMock(), start_delay=0.0
        )
        loop.start()
        assert await wait_for(lambda: loop.listening)
        loop.stop()
        assert not loop.listening


class TestUtteranceQueue:
    """Queue-backed speech input source."""

    @pytest.mark.asyncio
    async def test_yields_pushed_items_until_closed(self):
        queue = UtteranceQueue()
        queue.push("topped up")
        queue.push_error("no-speech")
        queue.close()

        items = [item async for item in queue.listen()]
        assert items == ["topped up", RecognitionError("no-speech")]

    @pytest.mark.asyncio
    async def test_next_listen_after_close(self):
        queue = UtteranceQueue()
        queue.close()
        queue.push("top it up")
        queue.close()

        assert [item async for item in queue.listen()] == []
        assert [item async for item in queue.listen()] == ["top it up"]

    def test_full_queue_drops(self):
        queue = UtteranceQueue(maxsize=1)
        assert queue.push("one")
        assert not queue.push("two")

    @pytest.mark.asyncio
    async def test_clear_drops_transcripts_and_end_markers(self):
        queue = UtteranceQueue()
        queue.push("topped up")
        queue.close()
        queue.clear()
        queue.push("top up")
        queue.close()

        assert [item async for item in queue.listen()] == ["top up"]

    @pytest.mark.asyncio
    async def test_stopped_loop_does_not_replay_earlier_transcripts(self):
        queue = UtteranceQueue()
        on_confirm = MagicMock(return_value=None)
        loop = VoiceConfirmationLoop(queue, on_confirm=on_confirm, start_delay=0.0)

        loop.start()
        queue.push("topped up")
        loop.stop()
        loop.start()

        assert await wait_for(lambda: loop.listening)
        await asyncio.sleep(0.02)
        on_confirm.assert_not_called()
        loop.stop()
