# app.py
import os

from flask import Flask, request, jsonify, send_from_directory
from flask_cors import CORS
from werkzeug.utils import secure_filename

import orchestrator
import progress
from pptgen import GenerationError, PreconditionError, TemplateNotFoundError

app = Flask(__name__)
CORS(app)

app.config['SEND_FILE_MAX_AGE_DEFAULT'] = 0
app.config['MAX_CONTENT_LENGTH'] = 64 * 1024 * 1024


def sync_config():
    """Mirror the orchestrator's folders into app.config (call again after orchestrator.configure)."""
    app.config['DATA_DIR'] = str(orchestrator.DATA_DIR)
    app.config['OUTPUT_FOLDER'] = str(orchestrator.OUTPUT_FOLDER)
    app.config['IMAGES_FOLDER'] = str(orchestrator.IMAGES_FOLDER)
    app.config['TEMPLATES_FOLDER'] = str(orchestrator.TEMPLATES_FOLDER)
    app.config['DEFAULT_TEMPLATE_NAME'] = orchestrator.DEFAULT_TEMPLATE_NAME


sync_config()


def _payload():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


def _run_generation(pipeline, content_field, template_missing_status=400, **extra):
    """Shared body of the create-* routes: validate, run `pipeline`, map errors to status codes."""
    data = _payload()
    if data is None or not data.get(content_field):
        return jsonify({'error': f'{content_field} is required'}), 400

    request_id = data.get('request_id') or orchestrator.new_request_id()
    progress.append(request_id, "Started generating presentation")
    kwargs = {key: data.get(key) for key in extra}
    try:
        result = pipeline(
            data[content_field],
            presentation_name=data.get('presentation_name'),
            presentation_title=data.get('presentation_title'),
            author=data.get('author'),
            request_id=request_id,
            **kwargs
        )
    except TemplateNotFoundError as e:
        app.logger.error(f"Template not found: {e}")
        return jsonify({'error': e.message, 'available_templates': orchestrator.list_templates(),
                        'request_id': request_id}), template_missing_status
    except PreconditionError as e:
        app.logger.error(f"Rejected generation request: {e}")
        return jsonify({'error': e.message, 'stage': e.stage, 'request_id': request_id}), 400
    except GenerationError as e:
        app.logger.error(f"Generation failed: {e}", exc_info=True)
        return jsonify({'error': 'Failed to create presentation', 'details': e.message,
                        'stage': e.stage, 'request_id': request_id}), 500

    progress.append(request_id, "Finished generating presentation")
    return jsonify(result)


@app.route('/api/presentation/create-from-json', methods=['POST'])
def create_from_json():
    return _run_generation(orchestrator.generate_from_json, 'json_content')


@app.route('/api/presentation/create-from-text', methods=['POST'])
def create_from_text():
    return _run_generation(orchestrator.generate_from_text, 'text_content')


@app.route('/api/presentation/create-from-template', methods=['POST'])
def create_from_template():
    return _run_generation(orchestrator.generate_from_template, 'json_content', template_name=None)


@app.route('/api/presentation/create-from-template-with-embedded-images', methods=['POST'])
def create_from_template_with_embedded_images():
    return _run_generation(
        orchestrator.generate_from_template_with_embedded_images, 'json_content',
        template_missing_status=404, template_name=None)


@app.route('/api/presentation/download/<file_name>')
def download_presentation(file_name):
    return send_from_directory(
        app.config['OUTPUT_FOLDER'], secure_filename(file_name), as_attachment=True,
        mimetype='application/vnd.openxmlformats-officedocument.presentationml.presentation')


@app.route('/api/presentation/list', methods=['GET'])
def list_presentations():
    return jsonify(orchestrator.list_presentations())


@app.route('/api/presentation/delete/<file_name>', methods=['DELETE'])
def delete_presentation(file_name):
    path = os.path.join(app.config['OUTPUT_FOLDER'], secure_filename(file_name))
    if not os.path.isfile(path):
        return jsonify({'error': f'Presentation not found: {file_name}'}), 404
    os.remove(path)
    return jsonify({'success': True, 'file_name': file_name})


@app.route('/api/presentation/upload-image', methods=['POST'])
def upload_image():
    if 'file' not in request.files:
        return jsonify({'success': False, 'error': 'No file part in request.'}), 400
    file = request.files['file']
    if file.filename == '':
        return jsonify({'success': False, 'error': 'No file selected.'}), 400
    try:
        return jsonify(orchestrator.save_image(file))
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400


@app.route('/api/presentation/upload-images', methods=['POST'])
def upload_images():
    files = request.files.getlist('files')
    if not files:
        return jsonify({'success': False, 'error': 'No files in request.'}), 400
    results = []
    for file in files:
        try:
            results.append(orchestrator.save_image(file))
        except ValueError as e:
            results.append({'success': False, 'file_name': file.filename, 'error': str(e)})
    return jsonify(results)


@app.route('/api/presentation/image/<file_name>')
def get_image(file_name):
    return send_from_directory(app.config['IMAGES_FOLDER'], secure_filename(file_name))


@app.route('/api/presentation/image/<file_name>', methods=['DELETE'])
def delete_image(file_name):
    path = os.path.join(app.config['IMAGES_FOLDER'], secure_filename(file_name))
    if not os.path.isfile(path):
        return jsonify({'error': f'Image not found: {file_name}'}), 404
    os.remove(path)
    return jsonify({'success': True, 'file_name': file_name})


@app.route('/api/presentation/images', methods=['GET'])
def list_images():
    return jsonify(orchestrator.list_images())


@app.route('/api/presentation/templates', methods=['GET'])
def list_templates():
    return jsonify(orchestrator.list_templates())


@app.route('/progress', methods=['GET'])
def get_progress():
    request_id = request.args.get('request_id', '')
    since = max(0, request.args.get('since', 0, type=int))
    messages = progress.get(request_id, since)
    return jsonify({
        'request_id': request_id,
        'since': since,
        'messages': messages,
        'entries': progress.entries(request_id)[since:],
        'next_index': since + len(messages)
    })


if __name__ == '__main__':
    app.run(host='127.0.0.1', port=5001, debug=True)
