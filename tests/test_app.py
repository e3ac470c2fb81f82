import io
import json
import os
import tempfile
import unittest

from app import app
from tests.pdf_fixtures import RECEIVED_LINE, TRANSFER_LINE, detailed_statement, encrypt_pdf, statement_pdf


class AppTest(unittest.TestCase):
  def setUp(self):
    self._tmp = tempfile.TemporaryDirectory()
    self.upload_folder = os.path.join(self._tmp.name, 'uploads')
    app.config['UPLOAD_FOLDER'] = self.upload_folder
    app.config['TESTING'] = True
    self.client = app.test_client()

    self.plain_bytes = statement_pdf(detailed_statement(TRANSFER_LINE))
    source = statement_pdf(detailed_statement(RECEIVED_LINE), os.path.join(self._tmp.name, 'source.pdf'))
    locked = encrypt_pdf(source, os.path.join(self._tmp.name, 'locked.pdf'), '1234')
    with open(locked, 'rb') as f:
      self.locked_bytes = f.read()

  def tearDown(self):
    self._tmp.cleanup()

  def post(self, files, **form):
    data = dict(form)
    data['files'] = [(io.BytesIO(content), name) for name, content in files]
    return self.client.post('/convert', data=data, content_type='multipart/form-data')

  def test_health(self):
    response = self.client.get('/health')
    self.assertEqual(response.get_json(), {'status': 'ok'})

  def test_no_files(self):
    response = self.client.post('/convert', data={}, content_type='multipart/form-data')
    self.assertEqual(response.status_code, 400)

  def test_rejects_non_pdf(self):
    response = self.post([('notes.txt', b'hello')])
    self.assertEqual(response.status_code, 400)

  def test_rejects_unknown_format(self):
    response = self.post([('january.pdf', self.plain_bytes)], format='xlsx')
    self.assertEqual(response.status_code, 400)

  def test_convert_json(self):
    response = self.post([('january.pdf', self.plain_bytes)])
    self.assertEqual(response.status_code, 200)
    body = response.get_json()
    self.assertTrue(body['success'])
    self.assertEqual(body['file_name'], 'january.pdf')
    self.assertEqual(body['transaction_count'], 1)
    self.assertEqual(body['transactions'][0]['receipt_no'], 'AB12345678')
    self.assertEqual(body['transactions'][0]['withdrawn'], 500.0)
    self.assertIsNone(body['transactions'][0]['paid_in'])
    self.assertEqual(os.listdir(self.upload_folder), [])

  def test_convert_csv(self):
    response = self.post([('january.pdf', self.plain_bytes)], format='csv')
    self.assertEqual(response.status_code, 200)
    self.assertEqual(response.mimetype, 'text/csv')
    self.assertIn('filename=january.csv', response.headers['Content-Disposition'])
    lines = response.data.decode('utf-8').splitlines()
    self.assertEqual(lines[0], 'Receipt No,Completion Time,Details,Transaction Status,Paid In,Withdrawn,Balance')
    self.assertTrue(lines[1].startswith('AB12345678'))

  def test_password_round_trip(self):
    files = [('january.pdf', self.plain_bytes), ('locked.pdf', self.locked_bytes)]
    response = self.post(files)
    self.assertEqual(response.status_code, 401)
    body = response.get_json()
    self.assertTrue(body['needs_password'])
    self.assertEqual(body['file'], 'locked.pdf')

    response = self.post(files, passwords=json.dumps({'locked.pdf': '1234'}))
    self.assertEqual(response.status_code, 200)
    body = response.get_json()
    self.assertEqual(body['file_name'], 'Combined_2_statements')
    self.assertEqual([t['receipt_no'] for t in body['transactions']], ['AB12345678', 'CD98765432'])

  def test_invalid_passwords(self):
    response = self.post([('january.pdf', self.plain_bytes)], passwords='not json')
    self.assertEqual(response.status_code, 400)


if __name__ == '__main__':
  unittest.main()
