"""
M-PESA Statement Converter Package

Extracts the transaction ledger from M-PESA statement PDFs.
"""

from .converter import StatementConverter, write_statement
from .models import Statement, Transaction
from .parser import parse_statement, parse_statement_text, reconstruct_page_text, split_transactions
from .assembler import combine_statements

__version__ = "1.0.0"

__all__ = [
    "StatementConverter",
    "Statement",
    "Transaction",
    "combine_statements",
    "parse_statement",
    "parse_statement_text",
    "reconstruct_page_text",
    "split_transactions",
    "write_statement",
]
