"""Shared audio I/O utilities.

Provides the Waveform container, load_wav and save_wav used by both CLIs.
Everything is mono float64 in [-1, 1] on the inside, 16-bit PCM on disk.
"""

from dataclasses import dataclass

import numpy as np
from scipy.io import wavfile

from shared.errors import IOFailure, UnsupportedFormat


@dataclass(frozen=True, eq=False)
class Waveform:
    """Mono samples plus their sample rate. The sample array is read-only."""

    samples: np.ndarray
    sample_rate: int

    def __post_init__(self):
        samples = np.array(self.samples, dtype=np.float64)
        samples.flags.writeable = False
        object.__setattr__(self, "samples", samples)
        object.__setattr__(self, "sample_rate", int(self.sample_rate))

    def __len__(self):
        return len(self.samples)


def _to_float(data):
    if data.dtype == np.int16:
        return data.astype(np.float64) / 32768.0
    elif data.dtype == np.int32:
        return data.astype(np.float64) / 2147483648.0
    elif data.dtype == np.uint8:
        return (data.astype(np.float64) - 128.0) / 128.0
    elif data.dtype in (np.float32, np.float64):
        return data.astype(np.float64)
    raise UnsupportedFormat(f"unsupported WAV sample type {data.dtype}")


def load_wav(path, strict=False) -> Waveform:
    """Load a WAV file as a mono Waveform.

    Multi-channel files are downmixed by averaging the channels of each
    frame. With strict=True the file must already be mono 16-bit PCM.

    Raises:
        IOFailure: the file is missing or unreadable.
        UnsupportedFormat: the file is not a WAV scipy can decode, holds
            non-finite samples, or (strict) is not mono 16-bit PCM.
    """
    try:
        sr, data = wavfile.read(path)
    except OSError as exc:
        raise IOFailure(f"cannot read {path}: {exc}") from exc
    except ValueError as exc:
        raise UnsupportedFormat(f"cannot decode {path}: {exc}") from exc

    if strict:
        if data.ndim != 1:
            raise UnsupportedFormat(f"{path}: WAV must be mono")
        if data.dtype != np.int16:
            raise UnsupportedFormat(f"{path}: WAV must be 16-bit PCM")

    audio = _to_float(data)
    if not np.all(np.isfinite(audio)):
        raise UnsupportedFormat(f"{path}: WAV holds NaN or infinite samples")

    # Stereo (or more) to mono
    if audio.ndim == 2:
        audio = audio.mean(axis=1)

    return Waveform(audio, sr)


def save_wav(path, audio, sr):
    """Write mono 16-bit PCM. Samples are clamped to [-1, 1] first.

    Raises:
        IOFailure: the file cannot be written.
    """
    audio = np.asarray(audio, dtype=np.float64)
    out = np.round(np.clip(audio, -1.0, 1.0) * 32767).astype(np.int16)
    try:
        wavfile.write(path, int(sr), out)
    except OSError as exc:
        raise IOFailure(f"cannot write {path}: {exc}") from exc
