import threading

import numpy as np
import pytest

from exam_runner.audio import LevelMeter, decode_wav, encode_wav
from exam_runner.errors import MicrophoneError
from exam_runner.recorder import MicrophoneCheck, RecordingController
from helpers import FakeAudioInput


def test_encode_wav_produces_playable_pcm() -> None:
    chunks = [np.zeros((400, 1), dtype=np.float32), np.full((400, 1), 0.5, dtype=np.float32)]

    data, duration = encode_wav(chunks, 8000, 1)

    assert data[:4] == b"RIFF"
    assert duration == pytest.approx(0.1)
    samples, rate = decode_wav(data)
    assert rate == 8000
    assert len(samples) == 800


def test_encode_wav_without_audio() -> None:
    data, duration = encode_wav([], 16000, 1)
    assert data[:4] == b"RIFF"
    assert duration == 0.0


def test_level_meter_tracks_rms() -> None:
    meter = LevelMeter(size=2)
    meter.update(np.full((10, 1), 0.5, dtype=np.float32))
    meter.update(np.zeros((10, 1), dtype=np.float32))
    meter.update(np.full((10, 1), -0.25, dtype=np.float32))

    assert meter.values() == [pytest.approx(0.0), pytest.approx(0.25)]
    assert meter.level == pytest.approx(0.25)
    meter.reset()
    assert meter.level == 0.0


@pytest.mark.asyncio
async def test_start_and_stop_recording(audio_input: FakeAudioInput) -> None:
    recorder = RecordingController(audio_input)

    await recorder.start_recording("q1")
    assert recorder.is_recording
    assert recorder.level == pytest.approx(0.25)

    recording = await recorder.stop_recording()

    assert recording.question_id == "q1"
    assert recording.duration == pytest.approx(1.0)
    assert recording.filename == "answer-q1.wav"
    assert recorder.recordings["q1"] is recording
    assert not recorder.is_recording
    assert audio_input.open_handles == 0
    assert recorder.waveform() == []


@pytest.mark.asyncio
async def test_stop_closes_stream_off_the_event_loop(audio_input: FakeAudioInput) -> None:
    recorder = RecordingController(audio_input)
    await recorder.start_recording("q1")

    await recorder.stop_recording()

    handle = audio_input.handles[0]
    assert handle.closed
    assert handle.closed_on is not None
    assert handle.closed_on != threading.get_ident()

@pytest.mark.asyncio
async def test_stop_without_recording_returns_none(audio_input: FakeAudioInput) -> None:
    recorder = RecordingController(audio_input)
    assert await recorder.stop_recording() is None


@pytest.mark.asyncio
async def test_starting_again_releases_previous_stream(audio_input: FakeAudioInput) -> None:
    recorder = RecordingController(audio_input)

    await recorder.start_recording("q1")
    await recorder.start_recording("q2")

    assert audio_input.open_handles == 1
    assert "q1" in recorder.recordings
    assert recorder.current_question_id == "q2"


@pytest.mark.asyncio
async def test_discarded_stop_keeps_earlier_answer(audio_input: FakeAudioInput) -> None:
    recorder = RecordingController(audio_input)
    await recorder.start_recording("q1")
    first = await recorder.stop_recording()

    await recorder.start_recording("q1")
    partial = await recorder.stop_recording(keep=False)

    assert partial is not None
    assert recorder.recordings["q1"] is first


@pytest.mark.asyncio
async def test_device_errors_become_microphone_errors(audio_input: FakeAudioInput) -> None:
    recorder = RecordingController(audio_input)
    audio_input.fail_with = OSError("no default input device")

    with pytest.raises(MicrophoneError, match="no default input device"):
        await recorder.start_recording("q1")
    assert not recorder.is_recording
    assert recorder.current_question_id is None


@pytest.mark.asyncio
async def test_microphone_check_cycle(audio_input: FakeAudioInput) -> None:
    check = MicrophoneCheck(RecordingController(audio_input))

    with pytest.raises(MicrophoneError):
        check.accept()

    await check.start()
    assert check.is_recording
    recording = await check.stop()
    assert recording.duration > 0

    await check.rerecord()
    await check.stop()
    check.accept()

    assert check.passed
    # The self-test clip is never stored as an answer.
    assert check.recorder.recordings == {}


@pytest.mark.asyncio
async def test_microphone_check_rejects_silent_device() -> None:
    check = MicrophoneCheck(RecordingController(FakeAudioInput(frames_per_open=0)))

    await check.start()
    await check.stop()

    with pytest.raises(MicrophoneError):
        check.accept()
    assert not check.passed
