"""Decide which decimal tokens of a block are paid in, withdrawn and balance.

After layout reconstruction a block holds a run of bare decimal numbers with
no reliable column alignment. The classifier works in three tiers:

1.  Labels: when "Paid In" / "Withdrawn" labels survive next to a number,
    the number following each label is taken as is.
2.  Position + lexicon: unsigned tokens in reading order. The last one is
    the running balance, the first one the transaction amount. Whether the
    amount is money in or money out is decided by matching the narrative
    against a fixed inbound lexicon; anything else is money out.
3.  Relaxed: when tier 2 resolved no amount but the block holds numbers with
    a leading minus sign (the "Withdrawn" column of some statement versions
    prints ``-500.00``), rescan allowing the sign and re-apply tier 2.

This is a heuristic and it can be wrong. It is, however, deterministic: the
same block text always gives the same answer, so it can be golden-tested.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

UNSIGNED_AMOUNT_RE = re.compile(r"(?<![\d.,\-])\d[\d,]*\.\d{2}(?!\d)")
RELAXED_AMOUNT_RE = re.compile(r"(?<![\d.,])-?\d[\d,]*\.\d{2}(?!\d)")

AMOUNT_TOKEN = r"(-?\d[\d,]*\.\d{2})(?!\d)"
PAID_IN_LABEL_RE = re.compile(rf"Paid\s+In\s*:?\s*{AMOUNT_TOKEN}", re.IGNORECASE)
WITHDRAWN_LABEL_RE = re.compile(rf"Withdrawn\s*:?\s*{AMOUNT_TOKEN}", re.IGNORECASE)
BALANCE_LABEL_RE = re.compile(rf"Balance\s*:?\s*{AMOUNT_TOKEN}", re.IGNORECASE)

# Narrative phrases that mean money came into the account.
INBOUND_LEXICON: Tuple[re.Pattern, ...] = tuple(
  re.compile(pattern, re.IGNORECASE)
  for pattern in (
    r"\btransfer\s+from\b",
    r"\bmerchant\s+payment\s+from\b",
    r"\bbusiness\s+payment\s+from\b",
    r"\bfunds\s+received\b",
    r"\breceived\s+from\b",
    r"\bb2c\s+payment\b",
    r"\bdeposit\s+of\s+funds\b",
  )
)


class AmountTier(Enum):
  LABELS = "labels"
  POSITIONAL = "positional"
  RELAXED = "relaxed"
  NONE = "none"


@dataclass(frozen=True)
class AmountResult:
  paid_in: Optional[float]
  withdrawn: Optional[float]
  balance: float
  tier: AmountTier
  token_count: int = 0


def parse_amount(token: str) -> float:
  """``"1,234.56"`` -> ``1234.56``; a lone ``"-"`` or garbage gives 0.0."""
  cleaned = re.sub(r"[^\d.\-]", "", token or "")
  if not cleaned or cleaned == "-":
    return 0.0
  parts = cleaned.split(".")
  if len(parts) > 2:
    cleaned = f"{parts[0]}.{''.join(parts[1:])}"
  try:
    return float(cleaned)
  except ValueError:
    logger.warning(f"Could not parse amount {token!r}")
    return 0.0


def is_inbound(narrative: str) -> bool:
  return any(pattern.search(narrative) for pattern in INBOUND_LEXICON)


def classify_tokens(values: List[float], narrative: str) -> Tuple[Optional[float], Optional[float], float]:
  """Tier 2 decision over numbers already in reading order."""
  if not values:
    return None, None, 0.0

  balance = values[-1]
  if len(values) == 1:
    return None, None, balance

  amount = abs(values[0])
  for extra in values[1:-1]:
    if extra == balance:
      logger.debug(f"Discarding duplicated balance token {extra}")
    else:
      logger.debug(f"Ignoring unclassifiable token {extra}")

  if is_inbound(narrative):
    return amount, None, balance
  return None, amount, balance


def _classify_labels(block: str, narrative: str) -> Optional[AmountResult]:
  paid_in_match = PAID_IN_LABEL_RE.search(block)
  withdrawn_match = WITHDRAWN_LABEL_RE.search(block)
  if not paid_in_match and not withdrawn_match:
    return None

  paid_in = abs(parse_amount(paid_in_match.group(1))) if paid_in_match else None
  withdrawn = abs(parse_amount(withdrawn_match.group(1))) if withdrawn_match else None
  balance_match = BALANCE_LABEL_RE.search(block)
  balance = parse_amount(balance_match.group(1)) if balance_match else 0.0

  if paid_in is not None and withdrawn is not None:
    if not paid_in:
      paid_in = None
    elif not withdrawn:
      withdrawn = None
    elif is_inbound(narrative):
      logger.warning(f"Both Paid In and Withdrawn labelled, keeping Paid In {paid_in}")
      withdrawn = None
    else:
      logger.warning(f"Both Paid In and Withdrawn labelled, keeping Withdrawn {withdrawn}")
      paid_in = None

  count = sum(m is not None for m in (paid_in_match, withdrawn_match, balance_match))
  return AmountResult(paid_in, withdrawn, balance, AmountTier.LABELS, count)


def classify_amounts(block: str, details: str = "") -> AmountResult:
  """Resolve paid in / withdrawn / balance for one block.

  ``details`` is the extracted narrative; the raw block is used for the
  lexicon test when it is empty. Never raises; with no tokens at all the
  balance is 0.0 and both amounts stay unset.
  """
  narrative = details or block

  labelled = _classify_labels(block, narrative)
  if labelled is not None:
    return labelled

  tokens = UNSIGNED_AMOUNT_RE.findall(block)
  paid_in, withdrawn, balance = classify_tokens([parse_amount(t) for t in tokens], narrative)
  result = AmountResult(paid_in, withdrawn, balance, AmountTier.POSITIONAL, len(tokens))

  if paid_in is None and withdrawn is None:
    relaxed = RELAXED_AMOUNT_RE.findall(block)
    if len(relaxed) > len(tokens):
      logger.debug(f"Relaxed amount scan found {relaxed} where the strict scan found {tokens}")
      paid_in, withdrawn, balance = classify_tokens([parse_amount(t) for t in relaxed], narrative)
      result = AmountResult(paid_in, withdrawn, balance, AmountTier.RELAXED, len(relaxed))

  if result.token_count == 0:
    logger.debug("No decimal tokens in block, balance defaults to 0")
    return AmountResult(None, None, 0.0, AmountTier.NONE, 0)
  return result
