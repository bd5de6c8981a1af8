from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from voice_budget.errors import EmptyAudio, TranscriptionFailed
from voice_budget.voice.transcription import Transcriber


def test_empty_audio_never_calls_api() -> None:
    client = MagicMock()
    with pytest.raises(EmptyAudio):
        Transcriber(client=client, model="whisper-test").transcribe(b"")
    client.audio.transcriptions.create.assert_not_called()


def test_transcribe_sends_file_tuple() -> None:
    client = MagicMock()
    client.audio.transcriptions.create.return_value = SimpleNamespace(text="  I spent $5 on coffee ")

    text = Transcriber(client=client, model="whisper-test").transcribe(b"RIFF", "audio/wav", "clip.wav")

    assert text == "I spent $5 on coffee"
    client.audio.transcriptions.create.assert_called_once_with(
        model="whisper-test",
        file=("clip.wav", b"RIFF", "audio/wav"),
    )


def test_defaults_for_unnamed_upload() -> None:
    client = MagicMock()
    client.audio.transcriptions.create.return_value = SimpleNamespace(text="hello")

    Transcriber(client=client, model="whisper-test").transcribe(b"data")

    kwargs = client.audio.transcriptions.create.call_args.kwargs
    assert kwargs["file"] == ("recording.webm", b"data", "audio/webm")


def test_blank_transcript_fails() -> None:
    client = MagicMock()
    client.audio.transcriptions.create.return_value = SimpleNamespace(text="   ")
    with pytest.raises(TranscriptionFailed):
        Transcriber(client=client, model="whisper-test").transcribe(b"data")


def test_api_error_fails() -> None:
    client = MagicMock()
    request = httpx.Request("POST", "https://api.openai.com/v1/audio/transcriptions")
    client.audio.transcriptions.create.side_effect = openai.APITimeoutError(request=request)
    with pytest.raises(TranscriptionFailed):
        Transcriber(client=client, model="whisper-test").transcribe(b"data")
