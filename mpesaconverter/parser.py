"""Engine entry points: glyph-run pages in, Statement out."""

import logging
from typing import Iterable, List, Optional

from .amounts import classify_amounts
from .assembler import assemble_statement
from .config import ExtractionSettings
from .fields import extract_fields
from .layout import RunLike, join_pages, reconstruct_page_text
from .models import Statement, Transaction
from .segmenter import split_transactions

logger = logging.getLogger(__name__)

__all__ = [
  "reconstruct_page_text",
  "parse_block",
  "parse_transactions",
  "parse_statement_text",
  "parse_statement",
]


def parse_block(block: str) -> Optional[Transaction]:
  """Turn one raw block into a Transaction, ``None`` if it has no receipt."""
  fields = extract_fields(block)
  if fields is None:
    return None

  amounts = classify_amounts(block, fields.details)
  return Transaction(
    receipt_no=fields.receipt_no,
    completion_time=fields.completion_time,
    details=fields.details,
    status=fields.status,
    paid_in=amounts.paid_in,
    withdrawn=amounts.withdrawn,
    balance=amounts.balance,
    raw=block.strip(),
  )


def parse_transactions(text: str) -> List[Transaction]:
  """Segment document text and parse every block.

  A block that fails to parse is logged and skipped; it never stops the
  rest of the document.
  """
  transactions: List[Transaction] = []
  for index, block in enumerate(split_transactions(text)):
    try:
      transaction = parse_block(block)
    except Exception as e:
      logger.warning(f"Skipping block {index}: {e}")
      continue
    if transaction is not None:
      transactions.append(transaction)

  logger.info(f"Parsed {len(transactions)} transactions")
  return transactions


def parse_statement_text(text: str, file_name: Optional[str] = None) -> Statement:
  if not text.strip():
    logger.warning("Document text is empty")
    return Statement(file_name=file_name)
  return assemble_statement(parse_transactions(text), file_name=file_name)


def parse_statement(pages: Iterable[Iterable[RunLike]], file_name: Optional[str] = None,
                    settings: Optional[ExtractionSettings] = None) -> Statement:
  """Parse a whole statement from its pages of glyph runs.

  Pages are reconstructed independently and concatenated in order.
  """
  page_texts = []
  for page_number, runs in enumerate(pages, start=1):
    page_texts.append(reconstruct_page_text(runs, settings))
    logger.debug(f"Reconstructed page {page_number}")

  text = join_pages(page_texts)
  logger.info(f"Extracted {len(text)} characters from {len(page_texts)} pages")
  return parse_statement_text(text, file_name=file_name)
