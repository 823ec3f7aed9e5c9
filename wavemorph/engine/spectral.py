"""Spectral morph between two single-cycle waveforms.

Core algorithm: FFT(A), FFT(B) -> per-bin blend -> IFFT -> clean up.

Per bin k in 0..N/2 (the non-redundant half of a real spectrum):
  Magnitude -- linear blend |A| -> |B| by t
  Rolloff   -- raised-cosine taper above `cutoff`, reaching 0 at `cutoff + roll`
  Phase     -- A's, B's, or the shortest-arc blend of both (PhaseMode)
Bins N-k are then written as conjugates of bins k so the inverse transform
is real. DC (k=0) and Nyquist (k=N/2) have no partner and are kept purely real.
"""

from enum import Enum

import numpy as np

from primitives.dsp import normalize, remove_dc
from primitives.fft import complex_to_real, is_power_of_two, real_to_complex, transform
from shared.errors import InvalidInput
from wavemorph.engine.params import FRAME_PEAK, phase_mode_name


class PhaseMode(Enum):
    KEEP_A = "KEEP_A"
    KEEP_B = "KEEP_B"
    LERP = "LERP"

    @classmethod
    def parse(cls, value):
        """Accept a PhaseMode or a name like 'keep_a', 'KeepA', 'LERP'."""
        if isinstance(value, cls):
            return value
        try:
            return cls(phase_mode_name(value))
        except ValueError:
            raise InvalidInput(f"unknown phase mode {value!r}") from None


def lerp_angle(a, b, t):
    """Interpolate angles (radians) along the shorter arc.

    diff = b - a is brought into [-pi, pi] by whole turns before scaling,
    so 170deg -> -170deg passes through 180deg, not through 0deg.
    Works elementwise on arrays.
    """
    two_pi = 2.0 * np.pi
    diff = np.asarray(b, dtype=np.float64) - np.asarray(a, dtype=np.float64)
    # Same result as subtracting/adding 2*pi until diff is in range
    diff = np.where(diff > np.pi, diff - two_pi * np.ceil((diff - np.pi) / two_pi), diff)
    diff = np.where(diff < -np.pi, diff + two_pi * np.ceil((-np.pi - diff) / two_pi), diff)
    out = a + diff * t
    if np.ndim(out) == 0:
        return float(out)
    return out


def _raised_cosine(x):
    # 1 at x=0, 0 at x=1
    return 0.5 * (1.0 + np.cos(np.pi * x))


def rolloff_gain(k, cutoff, roll):
    """Keep factor for a single bin k: 1 up to cutoff, raised-cosine down to 0 at cutoff + roll.

    cutoff and roll are in bins. morph_spectrum uses the vectorized form,
    rolloff_curve, which gives the same value for every bin.
    """
    if k <= cutoff:
        return 1.0
    if k >= cutoff + roll:
        return 0.0
    # only reachable with roll > 0
    return float(_raised_cosine((k - cutoff) / roll))


def rolloff_curve(n, cutoff_frac, roll_frac):
    """Vectorized rolloff_gain over bins 0..n/2 of an n-point spectrum.

    cutoff_frac and roll_frac are fractions of the Nyquist bin (n/2).
    """
    nyquist_bin = n / 2.0
    cutoff = cutoff_frac * nyquist_bin
    roll = roll_frac * nyquist_bin
    k = np.arange(n // 2 + 1, dtype=np.float64)

    if roll > 0:
        x = np.clip((k - cutoff) / roll, 0.0, 1.0)
        taper = _raised_cosine(x)
    else:
        taper = np.zeros_like(k)
    return np.where(k <= cutoff, 1.0, np.where(k >= cutoff + roll, 0.0, taper))


def _select_phase(phase_a, phase_b, t, mode):
    if mode is PhaseMode.KEEP_A:
        return phase_a
    elif mode is PhaseMode.KEEP_B:
        return phase_b
    elif mode is PhaseMode.LERP:
        return lerp_angle(phase_a, phase_b, t)
    raise InvalidInput(f"unhandled phase mode {mode!r}")


def _check_unit(name, value):
    value = float(value)
    if not 0.0 <= value <= 1.0:
        raise InvalidInput(f"{name} must be in [0, 1], got {value}")
    return value


def morph_spectrum(a, b, t, phase_mode=PhaseMode.KEEP_A,
                   cutoff_frac=1.0, roll_frac=0.0) -> np.ndarray:
    """Blended, conjugate-symmetric spectrum of A and B (before the IFFT).

    Returns:
        interleaved complex buffer, length 2*N
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape or a.ndim != 1:
        raise InvalidInput(f"A/B length mismatch: {a.shape} vs {b.shape}")
    n = len(a)
    if n < 2 or not is_power_of_two(n):
        raise InvalidInput(f"frame length must be a power of two >= 2, got {n}")
    t = _check_unit("t", t)
    cutoff_frac = _check_unit("cutoff", cutoff_frac)
    roll_frac = _check_unit("roll", roll_frac)
    mode = PhaseMode.parse(phase_mode)

    spec_a = real_to_complex(a)
    spec_b = real_to_complex(b)
    transform(spec_a)
    transform(spec_b)

    half = n // 2
    ar, ai = spec_a[0:2 * half + 2:2], spec_a[1:2 * half + 2:2]
    br, bi = spec_b[0:2 * half + 2:2], spec_b[1:2 * half + 2:2]

    mag_a = np.hypot(ar, ai)
    mag_b = np.hypot(br, bi)
    mag = mag_a + (mag_b - mag_a) * t
    mag *= rolloff_curve(n, cutoff_frac, roll_frac)

    phase = _select_phase(np.arctan2(ai, ar), np.arctan2(bi, br), t, mode)

    out_r = mag * np.cos(phase)
    out_i = mag * np.sin(phase)
    # DC and Nyquist must be real
    out_i[0] = 0.0
    out_i[half] = 0.0

    out = np.zeros(2 * n, dtype=np.float64)
    out[0:2 * half + 2:2] = out_r
    out[1:2 * half + 2:2] = out_i

    # Negative frequencies: bin n-k = conj(bin k) for 0 < k < n/2
    k = np.arange(1, half)
    out[2 * (n - k)] = out_r[1:half]
    out[2 * (n - k) + 1] = -out_i[1:half]
    return out


def morph_frame(a, b, t, phase_mode=PhaseMode.KEEP_A,
                cutoff_frac=1.0, roll_frac=0.0) -> np.ndarray:
    """Morph one wavetable frame between cycles A and B.

    Args:
        a, b: time-domain cycles, same power-of-two length N
        t: 0.0 yields A's magnitudes, 1.0 yields B's
        phase_mode: PhaseMode (or its name)
        cutoff_frac: fraction of Nyquist where the rolloff starts (0-1)
        roll_frac: fraction of Nyquist over which it tapers to zero (0-1)

    Returns:
        float64 frame of length N, DC-free, peak FRAME_PEAK (unless silent)

    Raises:
        InvalidInput: length mismatch, bad length, or t/cutoff/roll outside [0, 1].
    """
    buf = morph_spectrum(a, b, t, phase_mode, cutoff_frac, roll_frac)
    transform(buf, inverse=True)
    frame = complex_to_real(buf)

    # Clean up round-trip drift
    remove_dc(frame)
    normalize(frame, FRAME_PEAK)
    return frame
