from __future__ import annotations

import sys
from pathlib import Path

# Import datacat from the working tree's src/, ahead of any installed copy.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))
