import unittest

from mpesaconverter.filters import SortOrder, apply_transaction_filters, is_charge_transaction
from mpesaconverter.models import Statement, Transaction


class FiltersTest(unittest.TestCase):
  def setUp(self):
    self.statement = Statement(
      transactions=[
        Transaction('AA00000001', '2024-01-01 08:00:00', 'Pay Bill to KPLC', 'COMPLETED', withdrawn=500.0),
        Transaction('AA00000002', '2024-01-01 08:00:01', 'Pay Bill Charge', 'COMPLETED', withdrawn=5.0),
        Transaction('AA00000003', '2024-01-02 09:00:00', 'Funds received from Jane', paid_in=300.0),
      ],
      file_name='statement.pdf',
      total_charges=5.0,
    )

  def test_is_charge_transaction(self):
    self.assertFalse(is_charge_transaction(self.statement.transactions[0]))
    self.assertTrue(is_charge_transaction(self.statement.transactions[1]))

  def test_no_filters_is_a_copy(self):
    filtered = apply_transaction_filters(self.statement)
    self.assertEqual(filtered, self.statement)
    self.assertIsNot(filtered.transactions, self.statement.transactions)

  def test_filter_out_charges(self):
    filtered = apply_transaction_filters(self.statement, filter_out_charges=True)
    self.assertEqual([t.receipt_no for t in filtered.transactions], ['AA00000001', 'AA00000003'])
    self.assertEqual(filtered.total_charges, 5.0)
    self.assertEqual(len(self.statement), 3)

  def test_unknown_status_kept_unless_excluded(self):
    self.assertEqual(len(apply_transaction_filters(self.statement)), 3)
    filtered = apply_transaction_filters(self.statement, exclude_unknown_status=True)
    self.assertEqual([t.receipt_no for t in filtered.transactions], ['AA00000001', 'AA00000002'])

  def test_sort_descending(self):
    filtered = apply_transaction_filters(self.statement, sort_order=SortOrder.DESC)
    self.assertEqual([t.receipt_no for t in filtered.transactions], ['AA00000003', 'AA00000002', 'AA00000001'])
    self.assertEqual(filtered.file_name, 'statement.pdf')


if __name__ == '__main__':
  unittest.main()
