"""Locate the transaction table and cut it into one block per transaction.

Both steps are ordered lists of independent strategies. The first strategy
that produces something wins; the later ones exist for statement versions
where line reconstruction did not leave the text in the expected shape.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

RECEIPT_PATTERN = r"\b[A-Z0-9]{10}\b"
DATE_PATTERN = r"\d{4}-\d{2}-\d{2}"
TIME_PATTERN = r"\d{2}:\d{2}:\d{2}"

RECEIPT_RE = re.compile(RECEIPT_PATTERN)
# Block start anchor: receipt code, completion date and time at the head of a line.
ANCHOR_RE = re.compile(rf"^[ \t]*{RECEIPT_PATTERN}\s+{DATE_PATTERN}\s+{TIME_PATTERN}", re.MULTILINE)
LINE_START_RE = re.compile(rf"^{RECEIPT_PATTERN}\s+{DATE_PATTERN}")
RECEIPT_DATE_RE = re.compile(rf"{RECEIPT_PATTERN}\s+{DATE_PATTERN}")
RECEIPT_DATE_SPLIT_RE = re.compile(rf"(?={RECEIPT_PATTERN}\s+{DATE_PATTERN})")

DISCLAIMER_RE = re.compile(r"\bDisclaimer\s*:", re.IGNORECASE)


class AnchorStrategy(Enum):
  HEADER_KEYWORD = "header_keyword"
  COLUMN_HEADER_ROW = "column_header_row"
  DIRECT_RECEIPT_PATTERN = "direct_receipt_pattern"
  FULL_DOCUMENT = "full_document"


class BlockStrategy(Enum):
  ANCHOR_PAIRS = "anchor_pairs"
  LINE_STATE = "line_state"
  LOOKAHEAD_SPLIT = "lookahead_split"


TABLE_START_PATTERNS: Tuple[Tuple[AnchorStrategy, re.Pattern], ...] = (
  (
    AnchorStrategy.HEADER_KEYWORD,
    re.compile(
      rf"(?i:DETAILED\s+STATEMENT)[\s\S]*?(?:(?i:Receipt\s*No\.?|Receipt\s*Number)|{RECEIPT_PATTERN})"
    ),
  ),
  (
    AnchorStrategy.COLUMN_HEADER_ROW,
    re.compile(r"Receipt\s+No\.?\s+Completion\s+Time\s+Details", re.IGNORECASE),
  ),
  (AnchorStrategy.DIRECT_RECEIPT_PATTERN, RECEIPT_DATE_RE),
)


@dataclass(frozen=True)
class TableLocation:
  strategy: AnchorStrategy
  offset: int


def locate_table_start(text: str) -> Optional[TableLocation]:
  """Find where the detailed transaction table begins.

  Returns ``None`` when the text holds no receipt-like token at all.
  """
  for strategy, pattern in TABLE_START_PATTERNS:
    match = pattern.search(text)
    if match:
      logger.info(f"Found transaction table using {strategy.value} at offset {match.start()}")
      return TableLocation(strategy, match.start())

  if RECEIPT_RE.search(text):
    logger.info("No table heading found, scanning the full document for receipts")
    return TableLocation(AnchorStrategy.FULL_DOCUMENT, 0)

  logger.warning("Could not find the detailed statement section")
  return None


def strip_trailing_boilerplate(block: str) -> str:
  """Cut legal disclaimer text printed after the final transaction."""
  match = DISCLAIMER_RE.search(block)
  if match:
    block = block[:match.start()]
  return block.strip()


# ---------------------------------------------------------------------------
# Block strategies
# ---------------------------------------------------------------------------

def split_by_anchor_pairs(section: str) -> List[str]:
  """Each line-leading ``code date time`` anchor opens a block that runs to the next."""
  starts = [m.start() for m in ANCHOR_RE.finditer(section)]
  ends = starts[1:] + [len(section)]
  return [section[s:e].strip() for s, e in zip(starts, ends) if section[s:e].strip()]


def split_by_line_state(section: str) -> List[str]:
  """Line state machine: a ``code date`` line starts a block, other lines extend it."""
  blocks: List[str] = []
  current: List[str] = []
  for raw_line in section.split("\n"):
    line = raw_line.strip()
    if LINE_START_RE.match(line):
      if current:
        blocks.append("\n".join(current))
      current = [line]
    elif current and line:
      current.append(line)
  if current:
    blocks.append("\n".join(current))
  return blocks


def split_by_lookahead(section: str) -> List[str]:
  """Last resort: split wherever a ``code date`` pair starts, ignoring lines."""
  parts = RECEIPT_DATE_SPLIT_RE.split(section)
  return [p.strip() for p in parts if RECEIPT_DATE_RE.search(p)]


BLOCK_STRATEGIES: Tuple[Tuple[BlockStrategy, Callable[[str], List[str]]], ...] = (
  (BlockStrategy.ANCHOR_PAIRS, split_by_anchor_pairs),
  (BlockStrategy.LINE_STATE, split_by_line_state),
  (BlockStrategy.LOOKAHEAD_SPLIT, split_by_lookahead),
)


def segment_blocks(section: str) -> Tuple[Optional[BlockStrategy], List[str]]:
  """Apply the block strategies in priority order; the first non-empty result wins."""
  for strategy, splitter in BLOCK_STRATEGIES:
    blocks = splitter(section)
    if blocks:
      last = strip_trailing_boilerplate(blocks[-1])
      blocks = blocks[:-1] + ([last] if last else [])
    if blocks:
      logger.info(f"Segmented {len(blocks)} blocks using {strategy.value}")
      return strategy, blocks
    logger.debug(f"Block strategy {strategy.value} found nothing")

  logger.warning("All block strategies came back empty")
  return None, []


def split_transactions(text: str) -> List[str]:
  """Document text in, raw per-transaction blocks out. Never raises."""
  location = locate_table_start(text)
  if location is None:
    return []
  _, blocks = segment_blocks(text[location.offset:])
  return blocks
