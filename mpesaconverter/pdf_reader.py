"""PDF boundary: open a statement with PyMuPDF and hand out glyph runs.

The engine only ever sees readable text. Encrypted statements (M-PESA
statements are usually protected with the owner's ID number) are reported
through ``PdfLoadResult.needs_password`` instead of an exception, so the
caller can ask for the password and come back to the same file.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import fitz  # PyMuPDF

from .errors import IncorrectPasswordError
from .layout import GlyphRun

logger = logging.getLogger(__name__)


@dataclass
class PdfLoadResult:
  needs_password: bool
  pages: List[List[GlyphRun]] = field(default_factory=list)

  @property
  def page_count(self) -> int:
    return len(self.pages)


def page_glyph_runs(page) -> List[GlyphRun]:
  """Word boxes of one page as glyph runs in PDF user space (y grows upwards)."""
  height = page.rect.height
  runs = []
  for x0, y0, x1, y1, text, *_ in page.get_text("words"):
    runs.append(GlyphRun(x=x0, y=height - y1, width=x1 - x0, text=text))
  return runs


def is_password_protected(pdf_path: str) -> bool:
  with fitz.open(pdf_path) as doc:
    return bool(doc.needs_pass)


def load_pdf(pdf_path: str, password: Optional[str] = None) -> PdfLoadResult:
  """Open ``pdf_path`` and extract glyph runs for every page.

  Without a password an encrypted file yields ``needs_password=True``; a
  wrong password raises ``IncorrectPasswordError``.
  """
  with fitz.open(pdf_path) as doc:
    if doc.needs_pass:
      if password is None:
        logger.info(f"{pdf_path} is password protected")
        return PdfLoadResult(needs_password=True)
      if not doc.authenticate(password):
        raise IncorrectPasswordError(pdf_path)

    pages = []
    for page_num, page in enumerate(doc):
      runs = page_glyph_runs(page)
      logger.info(f"Page {page_num + 1}: {len(runs)} glyph runs")
      pages.append(runs)

  return PdfLoadResult(needs_password=False, pages=pages)
