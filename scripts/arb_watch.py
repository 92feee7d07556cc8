import sys
from pathlib import Path

# Ensure project root and src/ are on sys.path
ROOT = Path(__file__).resolve().parents[1]
for path in (ROOT, ROOT / "src"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from integration.arb_watcher import main  # noqa: E402

if __name__ == "__main__":
    main()
