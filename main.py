#!/usr/bin/env python3
"""Launch the wavetable generator from the project root.

Usage:
    uv run python main.py                           # interactive prompts
    uv run python main.py render a.wav b.wav -o t   # offline renderer (see wavemorph/audio/render.py)
"""

import sys

if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "render":
        from wavemorph.audio.render import main
        main(sys.argv[2:])
    else:
        from wavemorph.main import main
        main()
