import os
import sys
from pathlib import Path


# Keep tests deterministic and local-only.
os.environ["EXAMDIG_SKIP_DOTENV"] = "1"
os.environ["EXAMDIG_STORE_BACKEND"] = "memory"
os.environ["EXAMDIG_LLM_BACKEND"] = "mock"
os.environ["EXAMDIG_SYNC_PROCESSING"] = "1"
os.environ["EXAMDIG_EXTRACTION_BACKOFF_MS"] = "0"
os.environ["EXAMDIG_LOG_LEVEL"] = "WARNING"
os.environ["GEMINI_API_KEY"] = ""

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

TEST_DB_PATH = BACKEND_ROOT / "test_exam_digitizer.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
if TEST_DB_PATH.exists():
    TEST_DB_PATH.unlink()
