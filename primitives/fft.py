"""In-place radix-2 FFT on interleaved complex buffers.

Buffer layout (length 2*N, N a power of two):
    data[2*i]     = real part of element i
    data[2*i + 1] = imaginary part of element i

The butterfly loop runs under Numba; the Python wrappers only validate.
"""

import numpy as np
from numba import njit

from shared.errors import InvalidInput


def is_power_of_two(n) -> bool:
    if isinstance(n, bool) or not isinstance(n, (int, np.integer)):
        return False
    return n > 0 and (n & (n - 1)) == 0


@njit(cache=True)
def _fft_kernel(data, inverse):
    n = len(data) // 2

    # --- Bit-reversal permutation ---
    # j tracks the bit-reversed index of i, updated by a reversed-carry add.
    j = 0
    for i in range(n):
        if i < j:
            i2 = i << 1
            j2 = j << 1
            tr = data[i2]
            ti = data[i2 + 1]
            data[i2] = data[j2]
            data[i2 + 1] = data[j2 + 1]
            data[j2] = tr
            data[j2 + 1] = ti
        m = n >> 1
        while m >= 1 and j >= m:
            j -= m
            m >>= 1
        j += m

    # --- Cooley-Tukey butterflies ---
    sign = 1.0 if inverse else -1.0
    length = 2
    while length <= n:
        ang = sign * 2.0 * np.pi / length
        wlen_r = np.cos(ang)
        wlen_i = np.sin(ang)
        half = length >> 1

        for i in range(0, n, length):
            w_r = 1.0
            w_i = 0.0
            for k in range(half):
                even = (i + k) << 1
                odd = (i + k + half) << 1

                u_r = data[even]
                u_i = data[even + 1]
                v_r = data[odd]
                v_i = data[odd + 1]

                # v *= w
                t_r = v_r * w_r - v_i * w_i
                t_i = v_r * w_i + v_i * w_r

                data[even] = u_r + t_r
                data[even + 1] = u_i + t_i
                data[odd] = u_r - t_r
                data[odd + 1] = u_i - t_i

                # w *= wlen
                nw_r = w_r * wlen_r - w_i * wlen_i
                w_i = w_r * wlen_i + w_i * wlen_r
                w_r = nw_r
        length <<= 1

    if inverse:
        inv_n = 1.0 / n
        for i in range(len(data)):
            data[i] *= inv_n


def _check_buffer(data):
    if not isinstance(data, np.ndarray) or data.dtype != np.float64 or data.ndim != 1:
        raise InvalidInput("complex buffer must be a 1-D float64 ndarray")
    if not data.flags.writeable or not data.flags.c_contiguous:
        raise InvalidInput("complex buffer must be writable and contiguous")
    if len(data) % 2 != 0:
        raise InvalidInput(f"complex buffer length must be even, got {len(data)}")
    n = len(data) // 2
    if n < 2 or not is_power_of_two(n):
        raise InvalidInput(f"FFT length must be a power of two >= 2, got {n}")


def transform(data: np.ndarray, inverse: bool = False):
    """Forward (or inverse, scaled by 1/N) FFT of `data`, in place.

    Args:
        data: interleaved complex buffer, float64, length 2*N
        inverse: compute the inverse transform instead of the forward one

    Raises:
        InvalidInput: N is not a power of two >= 2, or the buffer is not a
            writable contiguous float64 array.
    """
    _check_buffer(data)
    _fft_kernel(data, bool(inverse))


def real_to_complex(real) -> np.ndarray:
    """Interleave real samples with zero imaginary parts."""
    real = np.asarray(real, dtype=np.float64)
    out = np.zeros(2 * len(real), dtype=np.float64)
    out[0::2] = real
    return out


def complex_to_real(buffer) -> np.ndarray:
    """Real parts of an interleaved buffer (imaginary parts are dropped)."""
    buffer = np.asarray(buffer, dtype=np.float64)
    return buffer[0::2].copy()
