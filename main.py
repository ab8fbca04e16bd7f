#!/usr/bin/env python3
"""
Chipper -- CHIP-8 interpreter.

Source-tree launcher.  Equivalent to the installed ``chipper`` command::

    python main.py games/PONG.ch8 --quirks cosmac_vip
"""

from __future__ import annotations

import os
import sys

# ---------------------------------------------------------------------------
# Ensure the project root is on sys.path so that ``chipper`` can be imported
# regardless of how the script is invoked.
# ---------------------------------------------------------------------------
_PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from chipper.main import main


if __name__ == "__main__":
    sys.exit(main())
