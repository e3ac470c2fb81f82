"""Reading-order text reconstruction from positioned glyph runs.

PDF content streams carry text as fragments with coordinates, not as lines.
This module puts the fragments of one page back into reading order:

1.  Sort runs top to bottom (``y`` descending, PDF user space) and group the
    ones whose baselines sit within ``line_tolerance`` into a printed line.
2.  Order each line left to right and join neighbouring runs according to
    the horizontal gap between them: glued, one space, or the column marker.
3.  Collapse any run of two or more spaces/tabs into one column marker so
    the transaction table's amount columns stay distinguishable from prose.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Union

from .config import COLUMN_GAP, ExtractionSettings

logger = logging.getLogger(__name__)

_MULTI_SPACE_RE = re.compile(r"[ \t]{2,}")


@dataclass(frozen=True)
class GlyphRun:
  """One positioned fragment of extracted PDF text."""

  x: float
  y: float
  width: float
  text: str

  @property
  def end(self) -> float:
    return self.x + self.width

  @classmethod
  def from_mapping(cls, record: Mapping[str, Any]) -> "GlyphRun":
    return cls(
      x=float(record.get("x", 0.0)),
      y=float(record.get("y", 0.0)),
      width=float(record.get("width", 0.0) or 0.0),
      text=str(record.get("text", "") or ""),
    )


RunLike = Union[GlyphRun, Mapping[str, Any]]


def _as_run(item: RunLike) -> GlyphRun:
  if isinstance(item, GlyphRun):
    return item
  return GlyphRun.from_mapping(item)


def group_lines(runs: Iterable[RunLike], line_tolerance: float) -> List[List[GlyphRun]]:
  """Group runs into printed lines, top line first, each line sorted by x."""
  ordered = sorted(
    (r for r in map(_as_run, runs) if r.text.strip()),
    key=lambda r: (-r.y, r.x),
  )

  lines: List[List[GlyphRun]] = []
  last_y: Optional[float] = None
  for run in ordered:
    if last_y is None or abs(run.y - last_y) > line_tolerance:
      lines.append([run])
    else:
      lines[-1].append(run)
    last_y = run.y

  return [sorted(line, key=lambda r: r.x) for line in lines]


def gap_separator(gap: float, settings: ExtractionSettings) -> str:
  """Spacing to insert for a horizontal gap between two runs."""
  if gap <= settings.join_tolerance:
    return ""
  if gap >= settings.column_tolerance:
    return COLUMN_GAP
  return " "


def reconstruct_page_text(glyph_runs: Iterable[RunLike], settings: Optional[ExtractionSettings] = None) -> str:
  """Turn one page of glyph runs into a reading-order text blob.

  A page without runs gives ``""``.
  """
  settings = settings or ExtractionSettings()
  lines = group_lines(glyph_runs, settings.line_tolerance)

  rendered = []
  for line in lines:
    parts = [line[0].text.strip()]
    for prev, run in zip(line, line[1:]):
      parts.append(gap_separator(run.x - prev.end, settings))
      parts.append(run.text.strip())
    rendered.append(_MULTI_SPACE_RE.sub(COLUMN_GAP, "".join(parts)))

  logger.debug(f"Reconstructed {len(rendered)} lines from page")
  return "\n".join(rendered)


def join_pages(page_texts: Iterable[str]) -> str:
  """Concatenate page texts in order, one newline after each page."""
  return "".join(f"{text}\n" for text in page_texts)
