"""Exceptions raised at the edges of the converter.

The extraction engine itself never raises for malformed statements; it
degrades to empty or partial results instead. These exceptions belong to
the PDF boundary and the table extraction path.
"""


class ConversionError(Exception):
  """Base class for converter failures."""


class IncorrectPasswordError(ConversionError):
  """A password was supplied for an encrypted PDF but did not unlock it."""

  def __init__(self, path: str):
    super().__init__(f"Incorrect password for {path}. Please try again.")
    self.path = path


class TableExtractionError(ConversionError):
  """Tabula could not read tables out of the PDF."""
