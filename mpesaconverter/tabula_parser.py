"""Table-structured statement variant read through Tabula.

Some statements (pay-bill and till statements in particular) come out of
Tabula as a clean grid with explicit "Transaction Type" and "Other Party"
columns. For those the column order is trusted and no amount heuristics are
needed.
"""

import csv
import io
import logging
from typing import List, Optional, Sequence

import pandas as pd

from .assembler import calculate_total_charges, sort_transactions
from .errors import TableExtractionError
from .models import UNKNOWN_STATUS, Statement, Transaction

logger = logging.getLogger(__name__)

MIN_FIELDS = 4


def _cell(row: Sequence[str], index: int) -> str:
  if index >= len(row) or row[index] is None:
    return ""
  return str(row[index]).replace("\r", " ").strip()


def _table_amount(value: str) -> Optional[float]:
  """Blank or ``-`` cells are unset; signs are dropped."""
  value = (value or "").strip()
  if not value or value == "-":
    return None
  cleaned = "".join(ch for ch in value if ch.isdigit() or ch in ".-")
  try:
    return abs(float(cleaned))
  except ValueError:
    return None


def _is_header_row(row: Sequence[str]) -> bool:
  line = " ".join(_cell(row, i) for i in range(len(row))).lower()
  return "receipt" in line and "completion" in line and ("details" in line or "transaction" in line)


def parse_table_rows(rows: Sequence[Sequence[str]], file_name: Optional[str] = None) -> Statement:
  """Map Tabula rows onto Transactions.

  Everything above the header row is ignored. Repeated header rows (one per
  page) and rows carrying neither receipt nor completion time are skipped.
  """
  header_index = next((i for i, row in enumerate(rows) if _is_header_row(row)), None)
  if header_index is None:
    logger.warning("No receipt/completion header row in the extracted tables")
    return Statement(file_name=file_name, total_charges=0.0)

  header = " ".join(_cell(rows[header_index], i) for i in range(len(rows[header_index]))).lower()
  is_paybill = "other party" in header or "transaction type" in header

  transactions: List[Transaction] = []
  for row in rows[header_index + 1:]:
    if len(row) < MIN_FIELDS:
      continue
    if "receipt" in _cell(row, 0).lower():
      continue

    transaction = Transaction(
      receipt_no=_cell(row, 0),
      completion_time=_cell(row, 1),
      details=_cell(row, 2),
      status=_cell(row, 3) or UNKNOWN_STATUS,
      paid_in=_table_amount(_cell(row, 4)),
      withdrawn=_table_amount(_cell(row, 5)),
      balance=_table_amount(_cell(row, 6)) or 0.0,
      raw=",".join(_cell(row, i) for i in range(len(row))),
    )
    if is_paybill and len(row) >= 8:
      transaction.transaction_type = _cell(row, 7)
      transaction.other_party = _cell(row, 8)

    if not transaction.receipt_no and not transaction.completion_time:
      continue
    transactions.append(transaction)

  ordered = sort_transactions(transactions)
  logger.info(f"Parsed {len(ordered)} transactions from tables (paybill={is_paybill})")
  return Statement(
    transactions=ordered,
    file_name=file_name,
    total_charges=calculate_total_charges(ordered),
  )


def parse_table_csv(csv_text: str, file_name: Optional[str] = None) -> Statement:
  """Same as ``parse_table_rows`` for Tabula's CSV output."""
  rows = [row for row in csv.reader(io.StringIO(csv_text)) if any(c.strip() for c in row)]
  return parse_table_rows(rows, file_name=file_name)


def extract_tables(pdf_path: str, password: Optional[str] = None) -> List[List[str]]:
  """Read every table on every page with Tabula, as rows of strings."""
  import tabula

  try:
    tables = tabula.read_pdf(
      pdf_path,
      pages="all",
      multiple_tables=True,
      lattice=True,
      password=password,
      pandas_options={"header": None},
    )
  except Exception as e:
    raise TableExtractionError(f"Tabula extraction failed: {e}") from e

  rows: List[List[str]] = []
  for table in tables:
    if table.empty:
      continue
    for row in table.values.tolist():
      rows.append([str(cell) if pd.notna(cell) else "" for cell in row])
  logger.info(f"Tabula returned {len(tables)} tables, {len(rows)} rows")
  return rows
