import unittest

from mpesaconverter.segmenter import (
  AnchorStrategy,
  BlockStrategy,
  locate_table_start,
  segment_blocks,
  split_transactions,
  strip_trailing_boilerplate,
)

STATEMENT_TEXT = (
  'M-PESA STATEMENT\n'
  'Customer Name:  Jane Roe\n'
  'DETAILED STATEMENT\n'
  'Receipt No.  Completion Time  Details  Transaction Status  Paid In  Withdrawn  Balance\n'
  'CD98765432 2024-01-06 09:00:00  Funds received from Jane Roe  COMPLETED  300.00  1,300.00\n'
  'AB12345678 2024-01-05 10:00:00  Customer Transfer to John  COMPLETED  500.00  1,000.00\n'
  'Doe\n'
  'Disclaimer: This record is produced for your information only.\n'
)


class LocateTableStartTest(unittest.TestCase):
  def test_detailed_statement_heading(self):
    location = locate_table_start(STATEMENT_TEXT)
    self.assertEqual(location.strategy, AnchorStrategy.HEADER_KEYWORD)
    self.assertEqual(location.offset, STATEMENT_TEXT.index('DETAILED STATEMENT'))

  def test_column_header_row(self):
    text = 'Receipt No. Completion Time Details Balance\nAB12345678 2024-01-05 10:00:00 x 1.00 2.00'
    self.assertEqual(locate_table_start(text).strategy, AnchorStrategy.COLUMN_HEADER_ROW)

  def test_direct_receipt_pattern(self):
    text = 'summary\nAB12345678 2024-01-05 10:00:00 x 1.00 2.00'
    location = locate_table_start(text)
    self.assertEqual(location.strategy, AnchorStrategy.DIRECT_RECEIPT_PATTERN)
    self.assertEqual(location.offset, text.index('AB12345678'))

  def test_full_document_when_only_receipt_codes(self):
    location = locate_table_start('Ref ABCDEFGHIJ settled')
    self.assertEqual(location.strategy, AnchorStrategy.FULL_DOCUMENT)
    self.assertEqual(location.offset, 0)

  def test_no_receipts(self):
    self.assertIsNone(locate_table_start('nothing to see here'))


class SegmentBlocksTest(unittest.TestCase):
  def test_anchor_pairs_keep_wrapped_lines(self):
    blocks = split_transactions(STATEMENT_TEXT)
    self.assertEqual(len(blocks), 2)
    self.assertTrue(blocks[0].startswith('CD98765432'))
    self.assertTrue(blocks[1].startswith('AB12345678'))
    self.assertTrue(blocks[1].endswith('Doe'))

  def test_disclaimer_is_cut_from_last_block(self):
    blocks = split_transactions(STATEMENT_TEXT)
    self.assertNotIn('Disclaimer', blocks[-1])

  def test_header_never_reaches_a_block(self):
    for block in split_transactions(STATEMENT_TEXT):
      self.assertNotIn('Receipt No.', block)

  def test_line_state_without_times(self):
    section = (
      'AB12345678 2024-01-05 Airtime Purchase COMPLETED 50.00 950.00\n'
      'for 0712345678\n'
      'CD98765432 2024-01-06 Pay Bill COMPLETED 20.00 930.00\n'
    )
    strategy, blocks = segment_blocks(section)
    self.assertEqual(strategy, BlockStrategy.LINE_STATE)
    self.assertEqual(len(blocks), 2)
    self.assertIn('for 0712345678', blocks[0])

  def test_lookahead_split_mid_line(self):
    section = 'Statement AB12345678 2024-01-05 x 1.00 2.00 CD98765432 2024-01-06 y 3.00 4.00'
    strategy, blocks = segment_blocks(section)
    self.assertEqual(strategy, BlockStrategy.LOOKAHEAD_SPLIT)
    self.assertEqual(blocks, ['AB12345678 2024-01-05 x 1.00 2.00', 'CD98765432 2024-01-06 y 3.00 4.00'])

  def test_nothing_to_segment(self):
    self.assertEqual(segment_blocks('no transactions'), (None, []))
    self.assertEqual(split_transactions(''), [])

  def test_strip_trailing_boilerplate(self):
    self.assertEqual(strip_trailing_boilerplate('X 1.00 2.00\nDISCLAIMER: legal text'), 'X 1.00 2.00')
    self.assertEqual(strip_trailing_boilerplate('  plain  '), 'plain')


if __name__ == '__main__':
  unittest.main()
