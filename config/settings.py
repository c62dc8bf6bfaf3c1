"""
Station Series Synthesizer - Central Configuration

Loads environment variables and defines all process-level constants.
Tuning values for the synthesis engine live in config.presets; this module
only holds what varies per deployment.
"""

import os
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Load environment
# ---------------------------------------------------------------------------
load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
LOG_DIR = Path(os.getenv("LOG_DIR", str(PROJECT_ROOT / "logs")))

# ---------------------------------------------------------------------------
# Timezone
# Hour-of-day and day-of-year noise factors are evaluated in station time.
# ---------------------------------------------------------------------------
STATION_TZ = ZoneInfo(os.getenv("STATION_TZ", "UTC"))

# ---------------------------------------------------------------------------
# Sampling
# ---------------------------------------------------------------------------
SAMPLE_INTERVAL_MINUTES = int(os.getenv("SAMPLE_INTERVAL_MINUTES", "10"))
FILL_WINDOW_SAMPLES = int(os.getenv("FILL_WINDOW_SAMPLES", "288"))                # 48h of history
EXTENSION_BASELINE_SAMPLES = int(os.getenv("EXTENSION_BASELINE_SAMPLES", "432"))  # 72h of history

# ---------------------------------------------------------------------------
# Synthesis
# ---------------------------------------------------------------------------
RANDOM_SEED = int(os.getenv("RANDOM_SEED", "42"))
SYNTHESIS_PRESET = os.getenv("SYNTHESIS_PRESET", "medium-oscillation")
SEAMLESS_BLEND_ENABLED = _env_flag("SEAMLESS_BLEND_ENABLED")

# ---------------------------------------------------------------------------
# Deterministic mode
# When enabled, extension to "now" uses FIXED_REFERENCE_TIME instead of the
# wall clock so that full runs are reproducible.
# ---------------------------------------------------------------------------
DETERMINISTIC_MODE = _env_flag("DETERMINISTIC_MODE")
FIXED_REFERENCE_TIME = datetime.fromisoformat(
    os.getenv("FIXED_REFERENCE_TIME", "2025-07-28T19:10:00+00:00")
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
