import argparse
import logging
import sys

from .config import METHODS, configure_logging, load_settings
from .converter import StatementConverter, write_statement
from .filters import SortOrder, apply_transaction_filters

logger = logging.getLogger(__name__)


def parse_passwords(values):
  """``FILE=PW`` pairs to a dict; a bare ``PW`` applies to every file."""
  passwords = {}
  for value in values or []:
    name, sep, password = value.partition('=')
    if sep:
      passwords[name] = password
    else:
      passwords['*'] = value
  return passwords


def build_parser():
  settings = load_settings()
  parser = argparse.ArgumentParser(description='Extract transactions from M-PESA statement PDFs')
  parser.add_argument('pdfs', nargs='+', help='Input PDF files')
  parser.add_argument('--output', required=True, help='Output file')
  parser.add_argument('--password', action='append', metavar='FILE=PW',
                      help='Password for an encrypted statement (repeatable)')
  parser.add_argument('--method', choices=METHODS, default=settings.method, help='Extraction method')
  parser.add_argument('--no-charges', action='store_true', help='Drop charge transactions')
  parser.add_argument('--sort', choices=[o.value for o in SortOrder], help='Order by completion time')
  parser.add_argument('--format', choices=['csv', 'json'], default='csv', help='Output format')
  parser.add_argument('--log-level', default=settings.log_level, help='Logging level')
  return parser


def main(argv=None):
  args = build_parser().parse_args(argv)
  configure_logging(args.log_level)

  converter = StatementConverter(method=args.method, settings=load_settings())
  result = converter.convert_multiple(args.pdfs, passwords=parse_passwords(args.password))

  if result.needs_password:
    logger.error(f'{result.pending_file} is password protected, pass --password {result.pending_file}=PW')
    return 2

  statement = apply_transaction_filters(
    result.statement,
    filter_out_charges=args.no_charges,
    sort_order=SortOrder(args.sort) if args.sort else None,
  )
  if statement.is_empty:
    logger.error('No transactions found in the supplied files')
    return 1

  write_statement(statement, args.output, args.format)
  print(f'{len(statement)} transactions written to {args.output}')
  if statement.total_charges is not None:
    print(f'Total charges: {statement.total_charges:.2f}')
  return 0


if __name__ == '__main__':
  sys.exit(main())
