import os
import sys
import tempfile
from pathlib import Path

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

# Keep module-level storage and engine away from the developer's media/ and app.db
_TEST_ROOT = Path(tempfile.mkdtemp(prefix="plate_studio_tests_"))
os.environ.setdefault("MEDIA_ROOT", str(_TEST_ROOT / "media"))
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TEST_ROOT / 'test.db'}")
os.environ.setdefault("MOTIF_REMOTE_URL", "")
