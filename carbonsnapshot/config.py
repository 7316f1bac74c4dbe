from __future__ import annotations

import os
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parent
DEFAULT_FACTOR_FILE = PACKAGE_ROOT / "data" / "emission_factors.csv"

APP_NAME = "CarbonSnapshot"
TAGLINE = "Get your carbon footprint estimate in minutes."
TEAL_COLOR = "#14b8a6"
GREEN_COLOR = "#10b981"
CHART_COLORS = ["#14b8a6", "#10b981", "#0d9488", "#059669", "#0f766e", "#047857"]


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return max(0.0, float(raw))
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}.") from exc


FACTOR_FILE = Path(os.environ.get("CARBONSNAPSHOT_FACTOR_FILE", "") or DEFAULT_FACTOR_FILE)
PROCESSING_DELAY_SECONDS = _env_float("CARBONSNAPSHOT_PROCESSING_DELAY", 1.5)
LOG_LEVEL = os.environ.get("CARBONSNAPSHOT_LOG_LEVEL", "INFO").strip().upper() or "INFO"
