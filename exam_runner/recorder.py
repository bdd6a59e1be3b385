"""Per-question audio recording and the pre-exam microphone self-test."""
from __future__ import annotations

import asyncio
import logging

import numpy as np

from exam_runner.audio import AudioInput, InputHandle, LevelMeter, encode_wav, play_recording
from exam_runner.errors import MicrophoneError
from exam_runner.models import Recording

logger = logging.getLogger(__name__)

MIC_CHECK_ID = "mic-check"


class RecordingController:
    """
    Holds at most one active recording at a time.

    ``stop_recording`` resolves only after the captured audio has been encoded
    into a Recording, and always releases the device and resets the level
    meter, including when encoding fails.
    """

    def __init__(self, audio_input: AudioInput, meter: LevelMeter | None = None):
        self.audio_input = audio_input
        self.meter = meter or LevelMeter()
        self.recordings: dict[str, Recording] = {}
        self._handle: InputHandle | None = None
        self._chunks: list[np.ndarray] = []
        self._question_id: str | None = None
        self._lock = asyncio.Lock()

    @property
    def is_recording(self) -> bool:
        return self._handle is not None

    @property
    def current_question_id(self) -> str | None:
        return self._question_id

    @property
    def level(self) -> float:
        return self.meter.level

    def waveform(self) -> list[float]:
        return self.meter.values()

    def _on_chunk(self, chunk: np.ndarray) -> None:
        self._chunks.append(chunk)
        self.meter.update(chunk)

    async def start_recording(self, question_id: str) -> None:
        """
        Start capturing audio for a question.

        An active recording is stopped (and kept) first, so the device is never
        held twice. Raises MicrophoneError when the device cannot be acquired.
        """
        async with self._lock:
            if self._handle is not None:
                logger.info(
                    "Stopping recording for %s before starting %s",
                    self._question_id,
                    question_id,
                )
                await self._finish()
            self._chunks = []
            self.meter.reset()
            try:
                handle = await self.audio_input.open(self._on_chunk)
            except MicrophoneError:
                self._question_id = None
                raise
            except Exception as exc:
                self._question_id = None
                raise MicrophoneError(f"Could not start recording: {exc}") from exc
            self._handle = handle
            self._question_id = question_id
            logger.info("Recording started for question %s", question_id)

    async def stop_recording(self, keep: bool = True) -> Recording | None:
        """
        Stop the active recording and return it, or None if nothing was recording.

        With ``keep=False`` the audio is returned but not stored in
        ``recordings``, so an earlier complete answer for the question survives.
        """
        async with self._lock:
            if self._handle is None:
                return None
            return await self._finish(keep)

    async def _finish(self, keep: bool = True) -> Recording:
        handle, self._handle = self._handle, None
        question_id, self._question_id = self._question_id, None
        chunks, self._chunks = self._chunks, []
        try:
            data, duration = await asyncio.to_thread(self._release, handle, chunks)
        finally:
            self.meter.reset()
        recording = Recording(question_id=question_id or "", data=data, duration=duration)
        if keep and question_id is not None:
            self.recordings[question_id] = recording
        logger.info(
            "Recording stopped for question %s (%.1fs)", question_id, duration
        )
        return recording

    def _release(
        self, handle: InputHandle | None, chunks: list[np.ndarray]
    ) -> tuple[bytes, float]:
        """Close the stream and encode what it captured. Both block."""
        if handle is not None:
            handle.close()
        return encode_wav(chunks, self.audio_input.sample_rate, self.audio_input.channels)


class MicrophoneCheck:
    """
    Manual record/playback cycle that must be accepted before the exam starts.
    """

    def __init__(self, recorder: RecordingController):
        self.recorder = recorder
        self.recording: Recording | None = None
        self.passed = False

    @property
    def is_recording(self) -> bool:
        return self.recorder.current_question_id == MIC_CHECK_ID

    async def start(self) -> None:
        self.passed = False
        self.recording = None
        await self.recorder.start_recording(MIC_CHECK_ID)

    async def stop(self) -> Recording | None:
        if not self.is_recording:
            return self.recording
        self.recording = await self.recorder.stop_recording(keep=False)
        return self.recording

    def play(self) -> None:
        if self.recording is None:
            raise MicrophoneError("Nothing recorded yet")
        play_recording(self.recording.data)

    async def rerecord(self) -> None:
        await self.stop()
        await self.start()

    def accept(self) -> Recording:
        """Mark the self-test as passed. Requires a non-empty test recording."""
        if self.recording is None or self.recording.duration <= 0:
            raise MicrophoneError("Record a test clip before starting the exam")
        self.passed = True
        return self.recording
