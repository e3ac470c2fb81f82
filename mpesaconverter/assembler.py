"""Build chronologically ordered Statements and merge them across files."""

import logging
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from .models import Statement, Transaction

logger = logging.getLogger(__name__)

CHARGE_KEYWORD = "charge"


def completion_sort_key(transaction: Transaction) -> pd.Timestamp:
  """Parsed completion time; missing or unparseable values sort first.

  Rows without a readable timestamp therefore end up at the top of the
  statement instead of being dropped.
  """
  value = transaction.completion_time
  if not value:
    return pd.Timestamp.min
  ts = pd.to_datetime(value, errors="coerce")
  if pd.isna(ts):
    return pd.Timestamp.min
  if ts.tzinfo is not None:
    ts = ts.tz_convert(None)
  return ts


def sort_transactions(transactions: Iterable[Transaction], descending: bool = False) -> List[Transaction]:
  """Stable sort by completion time, so equal timestamps keep input order."""
  return sorted(transactions, key=completion_sort_key, reverse=descending)


def calculate_total_charges(transactions: Iterable[Transaction]) -> float:
  """Sum of fee/charge rows, recognised by "charge" in the details."""
  return sum(t.amount for t in transactions if CHARGE_KEYWORD in t.details.lower())


def assemble_statement(transactions: Iterable[Transaction], file_name: Optional[str] = None,
                       total_charges: Optional[float] = None) -> Statement:
  ordered = sort_transactions(transactions)
  logger.info(f"Assembled statement with {len(ordered)} transactions")
  return Statement(transactions=ordered, file_name=file_name, total_charges=total_charges)


def combine_statements(statements: Sequence[Statement]) -> Statement:
  """Merge several per-file statements into a new one.

  All transactions are concatenated first and the union is sorted once,
  so the result is in global chronological order whatever the file order.
  The inputs are left untouched.
  """
  if not statements:
    return Statement()

  if len(statements) == 1:
    only = statements[0]
    return Statement(list(only.transactions), only.file_name, only.total_charges)

  union = [t for s in statements for t in s.transactions]
  total_charges = None
  if any(s.total_charges is not None for s in statements):
    total_charges = calculate_total_charges(union)

  logger.info(f"Combining {len(statements)} statements, {len(union)} transactions in total")
  return Statement(
    transactions=sort_transactions(union),
    file_name=f"Combined_{len(statements)}_statements",
    total_charges=total_charges,
  )
