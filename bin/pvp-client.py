"""Play a match from the terminal against a running lobby.

Usage:
  python bin/pvp-client.py --username alice --password secret123 host --category animals --auto-accept
  python bin/pvp-client.py --username bob --password secret123 join ABC123
"""

import asyncio
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from arena.console import main

if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
