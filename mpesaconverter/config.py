"""Tunables for layout reconstruction and conversion.

Defaults are tuned for M-PESA statements rendered at the usual 8-10pt font
sizes. Every value can be overridden through an ``MPESA_*`` environment
variable, which is how the CLI and the web app pick them up.
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

# Runs whose baselines differ by no more than this belong to one printed line.
LINE_TOLERANCE = 3.0
# Horizontal gap at or below which two runs are glued without a space.
JOIN_TOLERANCE = 1.0
# Horizontal gap at or above which a column separator is emitted.
COLUMN_TOLERANCE = 40.0
COLUMN_GAP = "  "

METHODS = ("auto", "text", "tabula")
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class ExtractionSettings:
  line_tolerance: float = LINE_TOLERANCE
  join_tolerance: float = JOIN_TOLERANCE
  column_tolerance: float = COLUMN_TOLERANCE
  method: str = "auto"
  log_level: str = DEFAULT_LOG_LEVEL


def _float_from(env: Mapping[str, str], key: str, default: float) -> float:
  value = env.get(key)
  if value is None or not value.strip():
    return default
  try:
    return float(value)
  except ValueError:
    logger.warning(f"Ignoring non-numeric {key}={value!r}, using {default}")
    return default


def load_settings(env: Optional[Mapping[str, str]] = None) -> ExtractionSettings:
  """Build settings from ``MPESA_*`` environment variables."""
  env = os.environ if env is None else env

  method = env.get("MPESA_METHOD", "auto").strip().lower()
  if method not in METHODS:
    logger.warning(f"Unknown MPESA_METHOD={method!r}, falling back to 'auto'")
    method = "auto"

  return ExtractionSettings(
    line_tolerance=_float_from(env, "MPESA_LINE_TOLERANCE", LINE_TOLERANCE),
    join_tolerance=_float_from(env, "MPESA_JOIN_TOLERANCE", JOIN_TOLERANCE),
    column_tolerance=_float_from(env, "MPESA_COLUMN_TOLERANCE", COLUMN_TOLERANCE),
    method=method,
    log_level=env.get("MPESA_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper() or DEFAULT_LOG_LEVEL,
  )


def configure_logging(level: Optional[str] = None):
  """Attach the root handler. Only entry points call this."""
  level_name = (level or DEFAULT_LOG_LEVEL).upper()
  numeric = getattr(logging, level_name, None)
  if not isinstance(numeric, int):
    numeric = logging.INFO
  logging.basicConfig(level=numeric, format="%(levelname)s | %(name)s | %(message)s")
