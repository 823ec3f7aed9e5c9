"""Error taxonomy shared by the DSP core and the I/O layer.

InvalidInput is raised by the core (bad sizes, mismatched buffers, bad
config). IOFailure and UnsupportedFormat only come from the WAV boundary.
"""


class WavetableError(Exception):
    """Base class for every error the generator raises on purpose."""


class InvalidInput(WavetableError, ValueError):
    pass


class IOFailure(WavetableError, OSError):
    pass


class UnsupportedFormat(WavetableError, ValueError):
    pass
