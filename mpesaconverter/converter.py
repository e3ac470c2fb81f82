"""File-level conversion with multiple extraction strategies.

``StatementConverter`` opens PDFs, runs the text engine (and/or Tabula) on
them and merges a batch of files into one statement. Files are processed
sequentially: a password-protected file suspends the batch and the caller
resumes it at ``resume_index`` once it has the password.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from .assembler import combine_statements
from .config import METHODS, ExtractionSettings
from .errors import IncorrectPasswordError
from .models import Statement
from .parser import parse_statement
from .pdf_reader import load_pdf
from .tabula_parser import extract_tables, parse_table_rows

logger = logging.getLogger(__name__)

# Key in a passwords mapping that applies to every file.
ANY_FILE = "*"


@dataclass
class ConversionResult:
  path: str
  statement: Optional[Statement] = None
  needs_password: bool = False
  error: Optional[str] = None
  method: Optional[str] = None

  @property
  def ok(self) -> bool:
    return self.statement is not None and not self.needs_password and self.error is None


@dataclass
class BatchResult:
  statement: Statement
  statements: List[Statement] = field(default_factory=list)
  needs_password: bool = False
  resume_index: int = 0
  pending_file: Optional[str] = None
  errors: Dict[str, str] = field(default_factory=dict)


class StatementConverter:
  def __init__(self, method: str = "auto", settings: Optional[ExtractionSettings] = None):
    if method not in METHODS:
      raise ValueError(f"Unknown extraction method {method!r}, expected one of {METHODS}")
    self.method = method
    self.settings = settings or ExtractionSettings()

  def convert_file(self, pdf_path: str, password: Optional[str] = None) -> ConversionResult:
    """Convert one PDF. Never raises for a bad file; see the result flags."""
    file_name = os.path.basename(pdf_path)

    try:
      loaded = load_pdf(pdf_path, password)
    except IncorrectPasswordError as e:
      logger.warning(str(e))
      return ConversionResult(pdf_path, needs_password=True, error=str(e))
    except Exception as e:
      logger.error(f"Error opening {pdf_path}: {str(e)}")
      return ConversionResult(pdf_path, error=f"Failed to open PDF: {e}")

    if loaded.needs_password:
      return ConversionResult(pdf_path, needs_password=True)

    statement = None
    used = None

    # Strategy 1: glyph-run text engine
    if self.method in ("auto", "text"):
      try:
        statement = parse_statement(loaded.pages, file_name=file_name, settings=self.settings)
        used = "text"
      except Exception as e:
        logger.warning(f"Text extraction failed for {file_name}: {str(e)}")

    # Strategy 2: Tabula tables, on request or when the text engine came back empty
    if self.method == "tabula" or (self.method == "auto" and (statement is None or statement.is_empty)):
      try:
        tabula_statement = parse_table_rows(extract_tables(pdf_path, password), file_name=file_name)
        if self.method == "tabula" or not tabula_statement.is_empty:
          statement = tabula_statement
          used = "tabula"
      except Exception as e:
        logger.warning(f"Tabula extraction failed for {file_name}: {str(e)}")

    if statement is None:
      return ConversionResult(pdf_path, error="No extraction strategy succeeded")

    logger.info(f"{file_name}: {len(statement)} transactions via {used}")
    return ConversionResult(pdf_path, statement=statement, method=used)

  def convert_multiple(self, pdf_paths: Sequence[str], passwords: Optional[Dict[str, str]] = None,
                       start_index: int = 0, existing: Optional[Sequence[Statement]] = None,
                       stop_on_error: bool = False,
                       progress_callback: Optional[Callable] = None) -> BatchResult:
    """Process files in order and combine the results.

    Stops early, with ``needs_password`` set, at the first protected file
    for which ``passwords`` has no entry (by path, by file name, or the
    ``"*"`` wildcard). Call again with ``start_index=result.resume_index``
    and ``existing=result.statements`` to continue.
    """
    passwords = passwords or {}
    statements = list(existing or [])
    errors: Dict[str, str] = {}
    total_files = len(pdf_paths)

    for i in range(start_index, total_files):
      path = pdf_paths[i]
      if progress_callback:
        progress_callback(i * 100 // total_files, f'Processing {os.path.basename(path)}...')

      password = passwords.get(path, passwords.get(os.path.basename(path), passwords.get(ANY_FILE)))
      result = self.convert_file(path, password)

      if result.needs_password:
        if result.error:
          errors[path] = result.error
        return BatchResult(
          statement=combine_statements(statements),
          statements=statements,
          needs_password=True,
          resume_index=i,
          pending_file=path,
          errors=errors,
        )

      if result.error or result.statement is None:
        errors[path] = result.error or "No statement produced"
        logger.error(f"Error processing {path}: {errors[path]}")
        if stop_on_error:
          return BatchResult(combine_statements(statements), statements, resume_index=i, errors=errors)
        continue

      if result.statement.is_empty:
        errors[path] = "No transactions found"
        logger.warning(f"No transactions found in {path}")
        continue

      statements.append(result.statement)

    if progress_callback:
      progress_callback(100, 'Processing complete!')

    return BatchResult(
      statement=combine_statements(statements),
      statements=statements,
      resume_index=total_files,
      errors=errors,
    )


def write_statement(statement: Statement, output_path: str, fmt: str = "csv"):
  """Write the statement's table view as CSV or JSON records."""
  df = statement.to_dataframe()
  if fmt == "json":
    df.to_json(output_path, orient="records", indent=2)
  else:
    df.to_csv(output_path, index=False)
  logger.info(f"Wrote {len(df)} rows to {output_path}")
