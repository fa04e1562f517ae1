#!/usr/bin/env python3
"""
levelforge - command line entry point

Runs the generator CLI from a source checkout without installing:

    python main.py bsp --seed 42 -o level.json
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "src"))

from levelforge.cli import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
