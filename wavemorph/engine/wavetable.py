"""Wavetable assembly — sweep t from 0 to 1 and morph one frame per step.

Signal chain:
    Wave A/B -> resample to table size -> remove DC -> morph_frame(t_f) per frame
             -> concatenate -> normalize whole table once -> Output

Frames are independent, so they can be rendered on a process pool; the
table-wide normalization waits for every frame.

All callers -- CLI, interactive prompt, tests -- use render_wavetable().
"""

import logging
import multiprocessing
import time

import numpy as np

from primitives.dsp import normalize, remove_dc, resample_cycle
from shared.errors import InvalidInput
from wavemorph.engine.params import SR, TABLE_PEAK, validate_params
from wavemorph.engine.spectral import PhaseMode, morph_frame

log = logging.getLogger(__name__)


def frame_positions(frames: int) -> np.ndarray:
    """Morph position t for every frame: 0, 1/(F-1), ..., 1 (just 0 for one frame)."""
    frames = int(frames)
    if frames < 1:
        raise InvalidInput(f"frames must be >= 1, got {frames}")
    if frames == 1:
        return np.zeros(1)
    return np.arange(frames) / (frames - 1)


def prepare_cycle(samples, table_size: int) -> np.ndarray:
    """Resample a raw cycle to the table size and strip its DC offset."""
    cycle = resample_cycle(samples, table_size)
    remove_dc(cycle)
    return cycle


def _render_frame(args):
    """Worker function for multiprocessing. Morphs a single frame.

    Takes a tuple to be pickle-friendly:
        (index, cycle_a, cycle_b, t, phase_mode, cutoff, roll)
    """
    index, cycle_a, cycle_b, t, phase_mode, cutoff, roll = args
    return index, morph_frame(cycle_a, cycle_b, t, phase_mode, cutoff, roll)


def build_wavetable(cycle_a, cycle_b, frames, phase_mode=PhaseMode.KEEP_A,
                    cutoff=0.85, roll=0.10, workers=1, frame_callback=None) -> np.ndarray:
    """Morph `frames` frames from cycle A to cycle B and concatenate them.

    Args:
        cycle_a, cycle_b: prepared cycles (same power-of-two length)
        frames: number of frames (>= 1)
        phase_mode: PhaseMode or its name
        cutoff, roll: rolloff fractions of Nyquist (0-1)
        workers: processes to render frames on; 1 renders inline, as does any
            platform without the fork start method
        frame_callback: if provided, called as frame_callback(done, total)
            after each frame. Return False to stop early; the table then
            holds only the frames finished so far.

    Returns:
        float64 array of length frames_done * table_size, peak TABLE_PEAK
    """
    cycle_a = np.asarray(cycle_a, dtype=np.float64)
    cycle_b = np.asarray(cycle_b, dtype=np.float64)
    if cycle_a.shape != cycle_b.shape:
        raise InvalidInput(f"A/B length mismatch: {cycle_a.shape} vs {cycle_b.shape}")
    mode = PhaseMode.parse(phase_mode)
    positions = frame_positions(frames)
    total = len(positions)
    size = len(cycle_a)

    t0 = time.perf_counter()
    table = np.zeros(total * size, dtype=np.float64)
    work_items = [(f, cycle_a, cycle_b, float(t), mode, cutoff, roll)
                  for f, t in enumerate(positions)]
    n_workers = max(1, min(int(workers or 1), total))
    if n_workers > 1 and 'fork' not in multiprocessing.get_all_start_methods():
        log.warning("'fork' start method unavailable, rendering frames inline")
        n_workers = 1

    done = 0
    if n_workers == 1:
        results = map(_render_frame, work_items)
        done = _collect(results, table, size, total, frame_callback)
    else:
        ctx = multiprocessing.get_context('fork')
        with ctx.Pool(processes=n_workers) as pool:
            # imap keeps frame order, so an early stop leaves a contiguous prefix
            done = _collect(pool.imap(_render_frame, work_items), table, size,
                            total, frame_callback)

    table = table[:done * size]
    # One gain for the whole table keeps the frames' relative levels
    normalize(table, TABLE_PEAK)

    elapsed = time.perf_counter() - t0
    log.info("morph %d frames x %d samples in %.3fs (%s, %d worker%s)",
             done, size, elapsed, mode.name, n_workers, "" if n_workers == 1 else "s")
    return table


def _collect(results, table, size, total, frame_callback):
    done = 0
    for index, frame in results:
        table[index * size:(index + 1) * size] = frame
        done += 1
        log.debug("frame %d/%d", done, total)
        if frame_callback is not None and frame_callback(done, total) is False:
            log.info("stopped after %d of %d frames", done, total)
            break
    return done


def output_sample_rate(params, wave_a) -> int:
    """Explicit sample_rate, else input A's rate, else SR."""
    if params.get("sample_rate"):
        return int(params["sample_rate"])
    if wave_a.sample_rate > 0:
        return int(wave_a.sample_rate)
    return SR


def render_wavetable(wave_a, wave_b, params: dict,
                     workers=1, frame_callback=None):
    """The single entry point: two Waveforms + params -> (table, sample_rate).

    Args:
        wave_a, wave_b: shared.audio.Waveform sources, one cycle each
        params: parameter dict (see engine/params.py); missing keys take defaults
        workers: frame rendering processes
        frame_callback: see build_wavetable

    Raises:
        InvalidInput: invalid params or unusable source cycles.
    """
    params = validate_params(params)
    size = params["table_size"]

    cycle_a = prepare_cycle(wave_a.samples, size)
    cycle_b = prepare_cycle(wave_b.samples, size)
    log.debug("prepared cycles: A %d -> %d, B %d -> %d samples",
              len(wave_a.samples), size, len(wave_b.samples), size)

    table = build_wavetable(
        cycle_a, cycle_b, params["frames"],
        phase_mode=params["phase_mode"],
        cutoff=params["cutoff"], roll=params["roll"],
        workers=workers, frame_callback=frame_callback,
    )
    return table, output_sample_rate(params, wave_a)
