"""Single-cycle DSP primitives — cyclic resampling and signal conditioning.

resample_cycle returns a new buffer. remove_dc, normalize and rotate work
in place on a writable float ndarray and return None.
"""

import numpy as np
from numba import njit

from shared.errors import InvalidInput

SILENCE_THRESHOLD = 1e-9


@njit(cache=True)
def _resample_cycle(samples, new_length):
    n = len(samples)
    out = np.empty(new_length)
    for i in range(new_length):
        pos = i * n / new_length
        i0 = int(np.floor(pos))
        frac = pos - i0
        i1 = (i0 + 1) % n  # wrap: the cycle repeats
        a = samples[i0]
        out[i] = a + (samples[i1] - a) * frac
    return out


def resample_cycle(samples, new_length: int) -> np.ndarray:
    """Resize one period of a periodic waveform with linear interpolation.

    The last sample interpolates towards the first, so the result loops
    without a seam.

    Raises:
        InvalidInput: fewer than 2 input samples, a non-finite sample, or
            new_length < 1.
    """
    samples = np.asarray(samples, dtype=np.float64)
    if samples.ndim != 1 or len(samples) < 2:
        raise InvalidInput(f"cycle needs at least 2 samples, got {samples.size}")
    if not np.all(np.isfinite(samples)):
        raise InvalidInput("cycle holds NaN or infinite samples")
    if int(new_length) < 1:
        raise InvalidInput(f"resample length must be >= 1, got {new_length}")
    return _resample_cycle(np.ascontiguousarray(samples), int(new_length))


def _check_inplace(x):
    if not isinstance(x, np.ndarray) or x.ndim != 1 or not np.issubdtype(x.dtype, np.floating):
        raise InvalidInput("expected a 1-D float ndarray")
    if not x.flags.writeable:
        raise InvalidInput("buffer is read-only")


def remove_dc(x: np.ndarray):
    """Subtract the mean. The mean is summed in extended precision."""
    _check_inplace(x)
    if len(x) == 0:
        return
    mean = np.mean(x, dtype=np.longdouble)
    x -= x.dtype.type(mean)


def normalize(x: np.ndarray, peak_target: float):
    """Scale so max |x| == peak_target. Near-silent input is left alone."""
    _check_inplace(x)
    if len(x) == 0:
        return
    peak = np.max(np.abs(x))
    if peak < SILENCE_THRESHOLD:
        return
    x *= peak_target / peak


def rotate(x: np.ndarray, shift: int):
    """Circular shift: the sample at index `shift` ends up at index 0."""
    _check_inplace(x)
    n = len(x)
    if n == 0:
        return
    shift = int(shift) % n
    if shift == 0:
        return
    x[:] = np.concatenate((x[shift:], x[:shift]))
