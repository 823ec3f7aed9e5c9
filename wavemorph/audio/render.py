"""Offline wavetable rendering — load two cycles, morph, save the table.

Usage:
    python -m wavemorph.audio.render wave1.wav wave2.wav -o table.wav [--preset preset.json]
    python -m wavemorph.audio.render Wave1 Wave2 --base_dir ~/cycles --frames 256 --phase_mode lerp

Names without a path are taken from --base_dir; ".wav" is appended if missing.
Without --preset, uses default params.
"""

import argparse
import json
import logging
import os
import re
import sys
import time

from shared.audio import load_wav, save_wav
from shared.errors import IOFailure, InvalidInput, WavetableError
from wavemorph.engine.params import (
    PHASE_MODE_NAMES, default_params, phase_mode_name, validate_params,
)
from wavemorph.engine.wavetable import render_wavetable

DEFAULT_OUTPUT = "wave3"

_WIN_ABS = re.compile(r"^[A-Za-z]:[\\/]")


def qualify_wav_path(base_dir, name_or_path):
    """Join a bare name onto base_dir and make sure it ends in .wav."""
    s = name_or_path.strip()
    looks_absolute = (os.path.isabs(s) or bool(_WIN_ABS.match(s))
                      or s.startswith("\\\\"))
    if not looks_absolute and base_dir:
        s = os.path.join(os.path.expanduser(base_dir), s)
    if not s.lower().endswith(".wav"):
        s += ".wav"
    return s


def input_wav_path(base_dir, name_or_path):
    path = qualify_wav_path(base_dir, name_or_path)
    if not os.path.isfile(path):
        raise IOFailure(f"Input file not found: {path}")
    return path


def output_wav_path(base_dir, name_or_path):
    """Output file may not exist yet, but its folder must."""
    path = qualify_wav_path(base_dir, name_or_path or DEFAULT_OUTPUT)
    parent = os.path.dirname(path)
    if parent and not os.path.isdir(parent):
        raise IOFailure(f"Output folder not found: {os.path.abspath(parent)}")
    return path


def load_preset(path):
    """Load a partial params dict from JSON."""
    try:
        with open(path) as f:
            preset = json.load(f)
    except OSError as exc:
        raise IOFailure(f"cannot read preset {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise InvalidInput(f"preset {path} is not valid JSON: {exc}") from exc
    if not isinstance(preset, dict):
        raise InvalidInput(f"preset {path} must hold a JSON object")
    preset.pop("_meta", None)
    return preset


def format_settings(params):
    return (f"  frames={params['frames']} size={params['table_size']} "
            f"mode={params['phase_mode']} cut={params['cutoff']} roll={params['roll']}")


def generate(path_a, path_b, out_path, params, workers=1, strict=False):
    """Load A and B, render the wavetable, write it. Returns the table."""
    params = validate_params(params)
    print("\nReading:")
    print(f"  A: {path_a}")
    print(f"  B: {path_b}")
    wave_a = load_wav(path_a, strict=strict)
    wave_b = load_wav(path_b, strict=strict)
    print(f"Loaded wave A: {len(wave_a)} samples, {wave_a.sample_rate} Hz")
    print(f"Loaded wave B: {len(wave_b)} samples, {wave_b.sample_rate} Hz")

    t0 = time.time()
    table, sr = render_wavetable(wave_a, wave_b, params, workers=workers)
    elapsed = time.time() - t0
    print(f"Rendered {len(table)} samples in {elapsed:.2f}s")

    save_wav(out_path, table, sr)
    print("\nSettings:")
    print(format_settings(params))
    print(f"Wrote: {out_path}")
    return table


def build_parser():
    parser = argparse.ArgumentParser(description="Spectral-morph wavetable renderer")
    parser.add_argument("wave_a", help="Wave A file (name or path)")
    parser.add_argument("wave_b", help="Wave B file (name or path)")
    parser.add_argument("-o", "--output", default=DEFAULT_OUTPUT,
                        help=f"Output WAV file (default: {DEFAULT_OUTPUT}.wav)")
    parser.add_argument("--base_dir", default="",
                        help="Folder for names given without a path")
    parser.add_argument("--preset", help="JSON preset file (default params if omitted)")
    parser.add_argument("--frames", type=int)
    parser.add_argument("--table_size", type=int)
    parser.add_argument("--phase_mode", type=phase_mode_name, choices=PHASE_MODE_NAMES,
                        help="KEEP_A, KEEP_B or LERP (KeepA/KeepB/Lerp also accepted)")
    parser.add_argument("--cutoff", type=float, help="Rolloff start, fraction of Nyquist (0-1)")
    parser.add_argument("--roll", type=float, help="Rolloff width, fraction of Nyquist (0-1)")
    parser.add_argument("--sample_rate", type=int,
                        help="Output sample rate (default: wave A's)")
    parser.add_argument("--workers", type=int, default=1,
                        help="Processes for frame rendering (default: 1)")
    parser.add_argument("--strict", action="store_true",
                        help="Only accept mono 16-bit PCM input")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(name)s %(levelname)s: %(message)s")

    try:
        params = default_params()
        if args.preset:
            params.update(load_preset(args.preset))
            print(f"Loaded preset: {args.preset}")
        for key in ("frames", "table_size", "phase_mode", "cutoff", "roll", "sample_rate"):
            value = getattr(args, key)
            if value is not None:
                params[key] = value

        path_a = input_wav_path(args.base_dir, args.wave_a)
        path_b = input_wav_path(args.base_dir, args.wave_b)
        out_path = output_wav_path(args.base_dir, args.output)
        generate(path_a, path_b, out_path, params,
                 workers=args.workers, strict=args.strict)
    except WavetableError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
