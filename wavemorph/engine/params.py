"""Parameter schema for the spectral wavetable morph.

All callers (CLI, interactive prompt, presets) use the same params dict contract.
"""

from primitives.fft import is_power_of_two
from shared.params import ParamDef, ParamSchema, ParamType

# Fallback output rate when input A reports none
SR = 44100

# Peak level for each morphed frame and for the finished table
FRAME_PEAK = 0.99
TABLE_PEAK = 0.99

# Phase mode names (see engine/spectral.PhaseMode)
PHASE_MODE_NAMES = ["KEEP_A", "KEEP_B", "LERP"]
_PHASE_MODE_ALIASES = {"KEEPA": "KEEP_A", "KEEPB": "KEEP_B"}


def phase_mode_name(value) -> str:
    """Canonical phase mode spelling: "KeepA", "keep-a" and "KEEP_A" all give "KEEP_A".

    Unknown names are returned as-is (upper-cased) for the caller to reject.
    """
    key = str(value).strip().upper().replace("-", "_")
    return _PHASE_MODE_ALIASES.get(key, key)


SCHEMA = ParamSchema([
    # --- Table shape ---
    ParamDef("frames", ParamType.INT, 64, "table",
             label="Frames", range=(1, None)),
    ParamDef("table_size", ParamType.INT, 2048, "table",
             label="Table size", range=(2, None),
             check=is_power_of_two,
             check_msg="table size must be a power of two (512/1024/2048/...)"),

    # --- Spectral morph ---
    ParamDef("phase_mode", ParamType.CHOICE, "KEEP_A", "spectral",
             label="Phase mode", choices=PHASE_MODE_NAMES,
             normalize=phase_mode_name),
    ParamDef("cutoff", ParamType.FLOAT, 0.85, "spectral",
             label="Cutoff", range=(0.0, 1.0)),   # fraction of Nyquist where rolloff starts
    ParamDef("roll", ParamType.FLOAT, 0.10, "spectral",
             label="Roll", range=(0.0, 1.0)),     # taper width, fraction of Nyquist

    # --- Output ---
    # None = follow input A's sample rate
    ParamDef("sample_rate", ParamType.INT, None, "output",
             label="Output sample rate", range=(1, None), optional=True),
])


def default_params():
    return SCHEMA.default_params()


PARAM_RANGES = SCHEMA.param_ranges()


def validate_params(raw: dict) -> dict:
    """Defaults merged with `raw`; raises InvalidInput on anything off-contract."""
    return SCHEMA.validate(raw)
