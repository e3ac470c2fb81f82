"""Per-block field extraction: receipt, completion time, status, details."""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from .models import UNKNOWN_STATUS
from .segmenter import DATE_PATTERN, DISCLAIMER_RE, RECEIPT_RE, TIME_PATTERN

logger = logging.getLogger(__name__)

DATE_RE = re.compile(DATE_PATTERN)
TIME_RE = re.compile(TIME_PATTERN)
STATUS_RE = re.compile(r"\b(COMPLETED|FAILED|PENDING)\b", re.IGNORECASE)
SIGNED_AMOUNT_RE = re.compile(r"-?\d[\d,]*\.\d{2}(?!\d)")
COLUMN_HEADER_RE = re.compile(
  r"Receipt\s+No\.?\s+Completion\s+Time\s+Details"
  r"(?:\s+Transaction\s+Status)?(?:\s+Paid\s+In)?(?:\s+Withdrawn)?(?:\s+Balance)?",
  re.IGNORECASE,
)
WHITESPACE_RE = re.compile(r"\s+")
PAGE_FOOTER_RE = re.compile(r"\bPage\s+\d+\s+of\s+\d+\b", re.IGNORECASE)

# Details shorter than this are probably a wrapped first line only.
MIN_DETAILS_LENGTH = 20

BUSINESS_PAYMENT_RE = re.compile(r"Business\s+Payment\s+from\s+.+?\s+via\s+API", re.IGNORECASE)
CONVERSATION_ID_RE = re.compile(r"[.,]?\s*Conversation\s+ID\s+is\s+([A-Z0-9]+)\.?", re.IGNORECASE)
CUSTOMER_TRANSFER_RE = re.compile(
  r"^Customer\s+Transfer\b(?!\s+of\b)(?:\s+to\b|\s*-)?\s*(?P<party>(?!to\b)\S.*)$",
  re.IGNORECASE,
)
MERCHANT_ONLINE_RE = re.compile(r"Merchant\s+Payment\s+Online\s+to\b\s*(?P<party>.*)$", re.IGNORECASE)


@dataclass
class BlockFields:
  """Everything but the amounts, pulled out of one block."""

  receipt_no: str
  completion_time: str
  status: str
  details: str


def _collapse(text: str) -> str:
  return WHITESPACE_RE.sub(" ", text).strip()


def extract_receipt(block: str) -> Optional[str]:
  match = RECEIPT_RE.search(block)
  return match.group(0) if match else None


def find_timestamp(block: str):
  """Locate the date token and, independently, the time token.

  The time is looked for after the date first, since some layouts print
  them in separate cells; any time in the block is accepted otherwise.
  """
  date_match = DATE_RE.search(block)
  time_match = None
  if date_match:
    time_match = TIME_RE.search(block, date_match.end())
  if time_match is None:
    time_match = TIME_RE.search(block)
  return date_match, time_match


def last_status_match(block: str) -> Optional[re.Match]:
  """Narrative text can contain status words too, so the last one wins."""
  matches = list(STATUS_RE.finditer(block))
  return matches[-1] if matches else None


def fallback_details(block: str, receipt_no: Optional[str], date_token: str, time_token: str) -> str:
  """Strip every known token from the block and keep what is left."""
  text = DISCLAIMER_RE.split(block, maxsplit=1)[0]
  text = COLUMN_HEADER_RE.sub(" ", text)
  text = PAGE_FOOTER_RE.sub(" ", text)
  for token in (receipt_no, date_token, time_token):
    if token:
      text = text.replace(token, " ", 1)
  text = STATUS_RE.sub(" ", text)
  text = SIGNED_AMOUNT_RE.sub(" ", text)
  return _collapse(" ".join(line.strip() for line in text.splitlines()))


def normalize_details(details: str, block: str) -> str:
  """Cosmetic clean-up for narrative templates the statements repeat."""
  details = _collapse(details)

  if BUSINESS_PAYMENT_RE.search(details):
    conversation = CONVERSATION_ID_RE.search(block)
    if conversation:
      base = _collapse(CONVERSATION_ID_RE.sub(" ", details)).rstrip(" ,.-")
      return f"{base} - Conversation ID: {conversation.group(1)}"
    return details

  transfer = CUSTOMER_TRANSFER_RE.match(details)
  if transfer:
    return f"Customer Transfer to {transfer.group('party').strip()}"

  merchant = MERCHANT_ONLINE_RE.match(details)
  if merchant:
    party = merchant.group("party").strip()
    if not party:
      # Store name wrapped below the amount columns
      wrapped = MERCHANT_ONLINE_RE.search(fallback_details(block, None, "", ""))
      party = wrapped.group("party").strip() if wrapped else ""
    if party:
      return f"Merchant Payment Online to {party}"

  return details


def extract_fields(block: str) -> Optional[BlockFields]:
  """Pull receipt, timestamp, status and details out of a block.

  Returns ``None`` only when the block has no receipt code. Missing status
  and details degrade to ``"Unknown"`` and ``""``.
  """
  receipt_no = extract_receipt(block)
  if receipt_no is None:
    logger.debug("Skipping block without a receipt code")
    return None

  date_match, time_match = find_timestamp(block)
  date_token = date_match.group(0) if date_match else ""
  time_token = time_match.group(0) if time_match else ""
  completion_time = " ".join(t for t in (date_token, time_token) if t)

  status_match = last_status_match(block)
  status = status_match.group(0).strip() if status_match else UNKNOWN_STATUS

  details = ""
  if time_match and status_match and status_match.start() > time_match.end():
    details = _collapse(block[time_match.end():status_match.start()])

  if len(details) < MIN_DETAILS_LENGTH:
    alternative = fallback_details(block, receipt_no, date_token, time_token)
    if len(alternative) > len(details):
      logger.debug(f"{receipt_no}: using token-stripped details over {details!r}")
      details = alternative

  details = _collapse(PAGE_FOOTER_RE.sub(" ", DISCLAIMER_RE.split(details, maxsplit=1)[0]))
  details = normalize_details(details, block)

  return BlockFields(
    receipt_no=receipt_no,
    completion_time=completion_time,
    status=status,
    details=details,
  )
