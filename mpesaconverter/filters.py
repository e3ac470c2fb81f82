"""Filtering and ordering applied to a Statement before it is written out."""

from enum import Enum
from typing import Optional

from .assembler import CHARGE_KEYWORD, sort_transactions
from .models import UNKNOWN_STATUS, Statement, Transaction


class SortOrder(Enum):
  ASC = "asc"
  DESC = "desc"


def is_charge_transaction(transaction: Transaction) -> bool:
  return CHARGE_KEYWORD in transaction.details.lower()


def apply_transaction_filters(statement: Statement, filter_out_charges: bool = False,
                              sort_order: Optional[SortOrder] = None,
                              exclude_unknown_status: bool = False) -> Statement:
  """Return a new Statement with the requested rows dropped and order applied.

  Transactions whose status is "Unknown" are kept unless
  ``exclude_unknown_status`` is set.
  """
  transactions = list(statement.transactions)

  if filter_out_charges:
    transactions = [t for t in transactions if not is_charge_transaction(t)]
  if exclude_unknown_status:
    transactions = [t for t in transactions if t.status != UNKNOWN_STATUS]
  if sort_order is not None:
    transactions = sort_transactions(transactions, descending=sort_order is SortOrder.DESC)

  return Statement(
    transactions=transactions,
    file_name=statement.file_name,
    total_charges=statement.total_charges,
  )
