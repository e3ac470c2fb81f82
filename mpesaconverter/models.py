"""Data model shared by every stage of the extraction engine."""

from dataclasses import asdict, dataclass, field
from typing import List, Optional

import numpy as np
import pandas as pd

UNKNOWN_STATUS = "Unknown"

BASE_COLUMNS = [
  "Receipt No",
  "Completion Time",
  "Details",
  "Transaction Status",
  "Paid In",
  "Withdrawn",
  "Balance",
]
TABLE_COLUMNS = ["Transaction Type", "Other Party"]


@dataclass
class Transaction:
  """One ledger entry of an M-PESA statement.

  ``balance`` is always a number: downstream summaries assume a running
  balance exists for every row, so an unresolved balance is stored as 0.0.
  ``paid_in`` and ``withdrawn`` are ``None`` when the block did not carry
  enough decimal tokens to tell them apart.
  """

  receipt_no: str
  completion_time: str = ""
  details: str = ""
  status: str = UNKNOWN_STATUS
  paid_in: Optional[float] = None
  withdrawn: Optional[float] = None
  balance: float = 0.0
  raw: str = ""
  other_party: Optional[str] = None
  transaction_type: Optional[str] = None

  @property
  def amount(self) -> float:
    """Whichever of paid in / withdrawn is set, 0.0 when neither is."""
    return self.withdrawn or self.paid_in or 0.0

  def to_dict(self) -> dict:
    """JSON-friendly form; unset amounts are ``None``."""
    data = asdict(self)
    if self.transaction_type is None and self.other_party is None:
      data.pop("transaction_type")
      data.pop("other_party")
    return data

  def to_record(self) -> dict:
    record = {
      "Receipt No": self.receipt_no,
      "Completion Time": self.completion_time,
      "Details": self.details,
      "Transaction Status": self.status,
      "Paid In": self.paid_in if self.paid_in is not None else np.nan,
      "Withdrawn": self.withdrawn if self.withdrawn is not None else np.nan,
      "Balance": self.balance,
    }
    if self.transaction_type is not None or self.other_party is not None:
      record["Transaction Type"] = self.transaction_type
      record["Other Party"] = self.other_party
    return record


@dataclass
class Statement:
  transactions: List[Transaction] = field(default_factory=list)
  file_name: Optional[str] = None
  total_charges: Optional[float] = None

  def __len__(self) -> int:
    return len(self.transactions)

  @property
  def is_empty(self) -> bool:
    return not self.transactions

  def to_dataframe(self) -> pd.DataFrame:
    """Tabular view of the statement, one row per transaction."""
    records = [t.to_record() for t in self.transactions]
    columns = list(BASE_COLUMNS)
    if any("Transaction Type" in r for r in records):
      columns.extend(TABLE_COLUMNS)
    df = pd.DataFrame(records, columns=columns)
    if not df.empty:
      df[["Paid In", "Withdrawn", "Balance"]] = df[["Paid In", "Withdrawn", "Balance"]].astype(float)
    return df
