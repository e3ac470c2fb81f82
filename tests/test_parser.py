import unittest
from unittest import mock

from mpesaconverter.layout import GlyphRun
from mpesaconverter.models import Transaction
from mpesaconverter.parser import parse_block, parse_statement, parse_statement_text, parse_transactions

STATEMENT_TEXT = (
  'DETAILED STATEMENT\n'
  'Receipt No.  Completion Time  Details  Transaction Status  Paid In  Withdrawn  Balance\n'
  'EF11223344 2024-01-07 18:30:00  Pay Bill Charge  COMPLETED  5.00  1,295.00\n'
  'CD98765432 2024-01-06 09:00:00  Funds received from Jane Roe  COMPLETED  300.00  1,300.00\n'
  'AB12345678 2024-01-05 10:00:00  Customer Transfer to John Doe  COMPLETED  500.00  1,000.00\n'
  'Disclaimer: This record is produced for your information only.\n'
)


class ParseStatementTextTest(unittest.TestCase):
  def test_sorted_oldest_first(self):
    statement = parse_statement_text(STATEMENT_TEXT, file_name='jan.pdf')
    self.assertEqual([t.receipt_no for t in statement.transactions], ['AB12345678', 'CD98765432', 'EF11223344'])
    self.assertEqual(statement.file_name, 'jan.pdf')

  def test_amounts(self):
    by_receipt = {t.receipt_no: t for t in parse_statement_text(STATEMENT_TEXT).transactions}
    self.assertEqual(by_receipt['AB12345678'].withdrawn, 500.0)
    self.assertEqual(by_receipt['CD98765432'].paid_in, 300.0)
    self.assertEqual(by_receipt['EF11223344'].withdrawn, 5.0)
    self.assertEqual(by_receipt['EF11223344'].balance, 1295.0)

  def test_balances_set_and_amounts_exclusive(self):
    for t in parse_statement_text(STATEMENT_TEXT).transactions:
      self.assertIsInstance(t.balance, float)
      self.assertFalse(t.paid_in is not None and t.withdrawn is not None)
      self.assertNotIn('Disclaimer', t.details)

  def test_idempotent(self):
    self.assertEqual(parse_statement_text(STATEMENT_TEXT), parse_statement_text(STATEMENT_TEXT))

  def test_empty_text(self):
    self.assertTrue(parse_statement_text('  \n').is_empty)

  def test_no_table(self):
    self.assertTrue(parse_statement_text('Nothing but a cover letter.').is_empty)


class ParseBlockTest(unittest.TestCase):
  def test_raw_block_kept(self):
    block = 'AB12345678 2024-01-05 10:00:00 Customer Transfer to John Doe COMPLETED 500.00 1000.00'
    transaction = parse_block('  ' + block + '\n')
    self.assertEqual(transaction.raw, block)
    self.assertEqual(transaction.status, 'COMPLETED')

  def test_block_without_receipt(self):
    self.assertIsNone(parse_block('no receipt here 1.00 2.00'))

  def test_failing_block_is_skipped(self):
    good = Transaction('CD98765432', '2024-01-06 09:00:00')
    with mock.patch('mpesaconverter.parser.parse_block', side_effect=[ValueError('boom'), good, good]):
      with self.assertLogs('mpesaconverter.parser', level='WARNING'):
        transactions = parse_transactions(STATEMENT_TEXT)
    self.assertEqual(transactions, [good, good])


class ParseStatementTest(unittest.TestCase):
  def test_glyph_run_pages(self):
    page = [
      GlyphRun(10, 800, 50, 'DETAILED'),
      GlyphRun(65, 800, 60, 'STATEMENT'),
      GlyphRun(10, 760, 60, 'AB12345678'),
      GlyphRun(80, 760, 50, '2024-01-05'),
      GlyphRun(135, 760, 40, '10:00:00'),
      GlyphRun(200, 760, 150, 'Funds received from Jane Roe'),
      GlyphRun(400, 760, 50, 'COMPLETED'),
      GlyphRun(480, 760, 30, '300.00'),
      GlyphRun(540, 760, 40, '5,000.00'),
    ]
    statement = parse_statement([page, []], file_name='runs.pdf')
    self.assertEqual(len(statement), 1)
    transaction = statement.transactions[0]
    self.assertEqual(transaction.completion_time, '2024-01-05 10:00:00')
    self.assertEqual(transaction.details, 'Funds received from Jane Roe')
    self.assertEqual(transaction.paid_in, 300.0)
    self.assertEqual(transaction.balance, 5000.0)

  def test_no_pages(self):
    self.assertTrue(parse_statement([]).is_empty)


if __name__ == '__main__':
  unittest.main()
