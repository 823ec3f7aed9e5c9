"""Test wavetable assembly — frame sweep, global normalization, workers.

Run: uv run python tests/test_wavetable.py   (or: uv run pytest tests/test_wavetable.py)
"""

import numpy as np
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from primitives.dsp import normalize, remove_dc
from shared.audio import Waveform
from shared.errors import InvalidInput
from wavemorph.engine.params import SR
from wavemorph.engine.spectral import PhaseMode
from wavemorph.engine.wavetable import (
    build_wavetable, frame_positions, output_sample_rate, prepare_cycle, render_wavetable,
)


def sine_cycle(n, phase=0.0):
    return np.sin(2 * np.pi * np.arange(n) / n + phase)


def cleaned(x):
    y = np.array(x, dtype=np.float64)
    remove_dc(y)
    normalize(y, 0.99)
    return y


def two_sines_params(mode):
    return {"frames": 2, "table_size": 64, "phase_mode": mode,
            "cutoff": 1.0, "roll": 0.0}


# ---------------------------------------------------------------------------
# Test 1: frame positions
# ---------------------------------------------------------------------------
def test_frame_positions():
    assert frame_positions(1).tolist() == [0.0]
    assert np.allclose(frame_positions(5), [0.0, 0.25, 0.5, 0.75, 1.0])
    assert frame_positions(64)[-1] == 1.0
    with pytest.raises(InvalidInput):
        frame_positions(0)


# ---------------------------------------------------------------------------
# Test 2: two sine cycles, rolloff disabled
# ---------------------------------------------------------------------------
def test_two_sines_lerp():
    print("Test 2: two-frame table from two sine phases")
    a, b = sine_cycle(64), sine_cycle(64, phase=1.1)
    table, sr = render_wavetable(Waveform(a, 48000), Waveform(b, 48000),
                                 two_sines_params("LERP"))
    assert len(table) == 128 and sr == 48000
    assert np.allclose(table[:64], cleaned(a), atol=1e-9), "frame 0 should be A"
    assert np.allclose(table[64:], cleaned(b), atol=1e-9), "frame 1 should be B"
    print("  LERP: frame 0 == A, frame 1 == B")


def test_two_sines_keep_b():
    a, b = sine_cycle(64), sine_cycle(64, phase=1.1)
    table, _ = render_wavetable(Waveform(a, SR), Waveform(b, SR), two_sines_params("KEEP_B"))
    assert np.allclose(table[64:], cleaned(b), atol=1e-9)


def test_two_sines_keep_a():
    # KEEP_A: frame 1 has B's magnitudes (equal here) on A's phases -> still A
    a, b = sine_cycle(64), sine_cycle(64, phase=1.1)
    table, _ = render_wavetable(Waveform(a, SR), Waveform(b, SR), two_sines_params("KEEP_A"))
    assert np.allclose(table[:64], cleaned(a), atol=1e-9)
    assert np.allclose(table[64:], cleaned(a), atol=1e-9)


# ---------------------------------------------------------------------------
# Test 3: assembly details
# ---------------------------------------------------------------------------
def test_single_global_gain():
    # A is silent, so frame 0 stays silent and only later frames carry level
    a, b = np.zeros(64), sine_cycle(64)
    table = build_wavetable(a, b, 4, PhaseMode.KEEP_B, cutoff=1.0, roll=0.0)
    assert len(table) == 4 * 64
    assert np.all(table[:64] == 0.0)
    assert np.isclose(np.max(np.abs(table)), 0.99)
    peaks = [np.max(np.abs(table[f * 64:(f + 1) * 64])) for f in range(4)]
    assert peaks[0] == 0.0 and all(p > 0 for p in peaks[1:])


def test_single_frame_uses_t0():
    a, b = sine_cycle(32), sine_cycle(32, 0.5)
    table = build_wavetable(a, b, 1, PhaseMode.LERP, cutoff=1.0, roll=0.0)
    assert np.allclose(table, cleaned(a), atol=1e-9)


def test_prepare_cycle():
    src = sine_cycle(100) + 0.25
    cycle = prepare_cycle(src, 256)
    assert len(cycle) == 256
    assert abs(np.mean(cycle)) < 1e-12


def test_sources_of_different_length():
    table, _ = render_wavetable(Waveform(sine_cycle(100), SR),
                                Waveform(np.sign(sine_cycle(37)), SR),
                                {"frames": 8, "table_size": 128})
    assert len(table) == 8 * 128
    assert np.all(np.isfinite(table))
    assert np.isclose(np.max(np.abs(table)), 0.99)


def test_mismatched_cycles_rejected():
    with pytest.raises(InvalidInput):
        build_wavetable(np.zeros(64), np.zeros(32), 4)


@pytest.mark.parametrize("params", [
    {"table_size": 1000},
    {"frames": 0},
    {"cutoff": 2.0},
    {"phase_mode": "average"},
])
def test_bad_params_rejected(params):
    src = Waveform(sine_cycle(64), SR)
    with pytest.raises(InvalidInput):
        render_wavetable(src, src, params)


def test_too_short_source_rejected():
    with pytest.raises(InvalidInput):
        render_wavetable(Waveform([0.5], SR), Waveform(sine_cycle(64), SR), {"table_size": 64})


# ---------------------------------------------------------------------------
# Test 4: workers and early stop
# ---------------------------------------------------------------------------
def test_workers_match_inline():
    a, b = sine_cycle(128), np.sign(sine_cycle(128, 0.3))
    inline = build_wavetable(a, b, 6, PhaseMode.LERP, 0.85, 0.1, workers=1)
    pooled = build_wavetable(a, b, 6, PhaseMode.LERP, 0.85, 0.1, workers=3)
    assert np.array_equal(inline, pooled)


def test_workers_without_fork_render_inline(monkeypatch):
    import wavemorph.engine.wavetable as wavetable

    def no_fork(method=None):
        raise ValueError(f"cannot find context for {method!r}")

    monkeypatch.setattr(wavetable.multiprocessing, "get_all_start_methods", lambda: ["spawn"])
    monkeypatch.setattr(wavetable.multiprocessing, "get_context", no_fork)
    a, b = sine_cycle(64), np.sign(sine_cycle(64, 0.3))
    inline = build_wavetable(a, b, 4, PhaseMode.LERP, 0.85, 0.1, workers=1)
    fallback = build_wavetable(a, b, 4, PhaseMode.LERP, 0.85, 0.1, workers=3)
    assert np.array_equal(inline, fallback)


def test_frame_callback_progress_and_stop():
    a, b = sine_cycle(64), np.sign(sine_cycle(64))
    seen = []

    def progress(done, total):
        seen.append((done, total))
        return done < 3

    table = build_wavetable(a, b, 10, PhaseMode.KEEP_A, 0.85, 0.1, frame_callback=progress)
    assert seen == [(1, 10), (2, 10), (3, 10)]
    assert len(table) == 3 * 64


def test_output_sample_rate():
    assert output_sample_rate({"sample_rate": 96000}, Waveform([0, 1], 48000)) == 96000
    assert output_sample_rate({"sample_rate": None}, Waveform([0, 1], 48000)) == 48000
    assert output_sample_rate({"sample_rate": None}, Waveform([0, 1], 0)) == SR


if __name__ == "__main__":
    test_frame_positions()
    test_two_sines_lerp()
    test_two_sines_keep_a()
    test_single_global_gain()
    test_workers_match_inline()
    print("\nDone!")
