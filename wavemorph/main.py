#!/usr/bin/env python3
"""Wavemorph — interactive spectral wavetable generator.

Asks for a base folder, two source cycles and the morph settings (empty
answer = default), then renders and writes the wavetable.

    uv run python -m wavemorph.main
"""

import logging
import sys

from shared.errors import WavetableError
from wavemorph.audio.render import (
    DEFAULT_OUTPUT, generate, input_wav_path, output_wav_path,
)
from wavemorph.engine.params import PHASE_MODE_NAMES, SCHEMA, validate_params

logging.basicConfig(level=logging.INFO, format="%(name)s %(levelname)s: %(message)s")

# Prompt hints per param key (shown after the label)
_HINTS = {
    "table_size": "512/1024/2048/...",
    "phase_mode": " / ".join(PHASE_MODE_NAMES),
    "cutoff": "0-1",
    "roll": "0-1",
    "sample_rate": "Hz",
}


def _ask_param(ask, key):
    p = SCHEMA.get(key)
    hint = _HINTS.get(key)
    default = "wave A's" if p.default is None else p.default
    label = f"{p.label} ({hint}, default {default}): " if hint else \
        f"{p.label} (default {default}): "
    answer = ask(label).strip()
    return answer if answer else p.default


def prompt_settings(ask=input):
    """Collect paths and params through `ask` (input() by default).

    Returns (path_a, path_b, out_path, params). Params are validated, so a
    bad answer raises InvalidInput before anything is read from disk.
    """
    base_dir = ask("Please enter base folder (e.g. ~/wavetables): ").strip()
    path_a = input_wav_path(base_dir, ask("Wave A file (e.g., Wave1.wav or Wave1): "))
    path_b = input_wav_path(base_dir, ask("Wave B file (e.g., Wave2.wav or Wave2): "))

    raw = {p.key: _ask_param(ask, p.key) for p in SCHEMA}
    params = validate_params(raw)

    out_name = ask(f"Output file name (e.g., Wave3.wav or Wave3, default {DEFAULT_OUTPUT}): ")
    out_path = output_wav_path(base_dir, out_name.strip() or DEFAULT_OUTPUT)
    return path_a, path_b, out_path, params


def main(ask=input):
    try:
        path_a, path_b, out_path, params = prompt_settings(ask)
        generate(path_a, path_b, out_path, params)
    except WavetableError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
