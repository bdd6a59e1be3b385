"""Microphone access, WAV encoding and level metering."""
from __future__ import annotations

import asyncio
import io
import logging
from collections import deque
from typing import Callable, Sequence

import numpy as np
import soundfile as sf

from exam_runner.errors import MicrophoneError

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[np.ndarray], None]


class InputHandle:
    """An open capture stream. ``close`` releases the device."""

    def close(self) -> None:
        raise NotImplementedError


class AudioInput:
    """Source of audio frames (a microphone)."""

    sample_rate: int = 16000
    channels: int = 1

    async def open(self, on_chunk: ChunkCallback) -> InputHandle:
        """Acquire the device and start delivering float32 chunks to on_chunk."""
        raise NotImplementedError


class _SoundDeviceHandle(InputHandle):
    def __init__(self, stream) -> None:
        self._stream = stream

    def close(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()


class SoundDeviceInput(AudioInput):
    """Microphone backed by sounddevice (PortAudio)."""

    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        device: int | str | None = None,
        blocksize: int = 1024,
    ):
        self.sample_rate = sample_rate
        self.channels = channels
        self.device = device
        self.blocksize = blocksize

    def _open_stream(self, on_chunk: ChunkCallback) -> InputHandle:
        import sounddevice as sd

        def callback(indata, frames, time_info, status) -> None:
            if status:
                logger.debug("Input stream status: %s", status)
            on_chunk(indata.copy())

        try:
            stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="float32",
                device=self.device,
                blocksize=self.blocksize,
                callback=callback,
            )
            stream.start()
        except sd.PortAudioError as exc:
            raise MicrophoneError(f"Could not access microphone: {exc}") from exc
        return _SoundDeviceHandle(stream)

    async def open(self, on_chunk: ChunkCallback) -> InputHandle:
        return await asyncio.to_thread(self._open_stream, on_chunk)


def encode_wav(
    chunks: Sequence[np.ndarray], sample_rate: int, channels: int = 1
) -> tuple[bytes, float]:
    """Encode captured chunks as 16-bit PCM WAV. Returns (data, duration)."""
    if chunks:
        samples = np.concatenate(chunks, axis=0)
    else:
        samples = np.zeros((0, channels), dtype=np.float32)
    buffer = io.BytesIO()
    sf.write(buffer, samples, sample_rate, format="WAV", subtype="PCM_16")
    duration = len(samples) / float(sample_rate) if sample_rate else 0.0
    return buffer.getvalue(), duration


def decode_wav(data: bytes) -> tuple[np.ndarray, int]:
    """Decode WAV bytes into float32 samples and their sample rate."""
    samples, sample_rate = sf.read(io.BytesIO(data), dtype="float32")
    return samples, sample_rate


def play_recording(data: bytes, wait: bool = True) -> None:
    """Play WAV bytes on the default output device."""
    import sounddevice as sd

    samples, sample_rate = decode_wav(data)
    sd.play(samples, sample_rate)
    if wait:
        sd.wait()


class LevelMeter:
    """Rolling RMS levels of the most recent chunks, for the live waveform."""

    def __init__(self, size: int = 64):
        self._levels: deque[float] = deque(maxlen=size)

    def update(self, chunk: np.ndarray) -> float:
        if chunk.size == 0:
            level = 0.0
        else:
            level = float(np.sqrt(np.mean(np.square(chunk, dtype=np.float64))))
        self._levels.append(level)
        return level

    @property
    def level(self) -> float:
        return self._levels[-1] if self._levels else 0.0

    def values(self) -> list[float]:
        return list(self._levels)

    def reset(self) -> None:
        self._levels.clear()
