import io
import json
import logging
import os
import uuid

from flask import Flask, jsonify, request, send_file
from werkzeug.utils import secure_filename

from mpesaconverter.config import configure_logging, load_settings
from mpesaconverter.converter import StatementConverter
from mpesaconverter.filters import SortOrder, apply_transaction_filters

logger = logging.getLogger(__name__)

settings = load_settings()

app = Flask(__name__)
app.config['UPLOAD_FOLDER'] = os.environ.get('MPESA_UPLOAD_FOLDER', 'uploads')
app.config['MAX_CONTENT_LENGTH'] = 100 * 1024 * 1024  # 100MB max upload


def _remove_files(paths):
  for path in paths:
    try:
      if os.path.exists(path):
        os.remove(path)
    except OSError as e:
      logger.warning(f'Could not remove upload {path}: {str(e)}')


def _parse_passwords(raw, saved):
  """Map the client's filename -> password object onto the saved paths."""
  if not raw:
    return {}
  mapping = json.loads(raw)
  if not isinstance(mapping, dict):
    raise ValueError('passwords must be a JSON object')
  passwords = {}
  for original_name, path in saved:
    if original_name in mapping:
      passwords[path] = str(mapping[original_name])
  if '*' in mapping:
    passwords['*'] = str(mapping['*'])
  return passwords


@app.route('/health')
def health():
  return jsonify({'status': 'ok'})


@app.route('/convert', methods=['POST'])
def convert():
  if 'files' not in request.files:
    return jsonify({'success': False, 'error': 'No files uploaded'}), 400

  files = [f for f in request.files.getlist('files') if f and f.filename.lower().endswith('.pdf')]
  if not files:
    return jsonify({'success': False, 'error': 'Please upload valid PDF files'}), 400

  fmt = request.form.get('format', 'json').lower()
  if fmt not in ('json', 'csv'):
    return jsonify({'success': False, 'error': f'Unsupported format: {fmt}'}), 400

  sort = request.form.get('sort')
  if sort and sort not in [o.value for o in SortOrder]:
    return jsonify({'success': False, 'error': f'Unsupported sort order: {sort}'}), 400

  os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)
  job_id = str(uuid.uuid4())
  saved = []
  try:
    for file in files:
      path = os.path.join(app.config['UPLOAD_FOLDER'], f'{job_id}_{secure_filename(file.filename)}')
      file.save(path)
      saved.append((file.filename, path))

    try:
      passwords = _parse_passwords(request.form.get('passwords'), saved)
    except ValueError as e:
      return jsonify({'success': False, 'error': f'Invalid passwords: {str(e)}'}), 400

    converter = StatementConverter(method=settings.method, settings=settings)
    result = converter.convert_multiple([path for _, path in saved], passwords=passwords)

    if result.needs_password:
      original_name = next(name for name, path in saved if path == result.pending_file)
      return jsonify({
        'success': False,
        'needs_password': True,
        'file': original_name,
        'error': result.errors.get(result.pending_file),
      }), 401

    statement = apply_transaction_filters(
      result.statement,
      filter_out_charges=request.form.get('no_charges', '').lower() in ('1', 'true', 'yes'),
      sort_order=SortOrder(sort) if sort else None,
    )
    upload_names = {os.path.basename(path): name for name, path in saved}
    statement.file_name = upload_names.get(statement.file_name, statement.file_name)

    if fmt == 'csv':
      buffer = io.BytesIO(statement.to_dataframe().to_csv(index=False).encode('utf-8'))
      return send_file(
        buffer,
        as_attachment=True,
        download_name=f'{os.path.splitext(statement.file_name or "statement")[0]}.csv',
        mimetype='text/csv'
      )

    errors = {name: result.errors[path] for name, path in saved if path in result.errors}
    return jsonify({
      'success': True,
      'file_name': statement.file_name,
      'total_charges': statement.total_charges,
      'transaction_count': len(statement),
      'transactions': [t.to_dict() for t in statement.transactions],
      'errors': errors,
    })

  except Exception as e:
    logger.error(f'Conversion failed: {str(e)}')
    return jsonify({'success': False, 'error': f'Conversion failed: {str(e)}'}), 500
  finally:
    _remove_files([path for _, path in saved])


if __name__ == '__main__':
  configure_logging(settings.log_level)
  app.run(debug=True, host='0.0.0.0', port=8080)
