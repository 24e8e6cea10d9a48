"""
HTTP front end for the compressor.

POST /api/compress takes a multipart upload (file, quality, format) and returns
the original metadata, the compressed image as a data URI and the compression
ratio as JSON.
"""

import logging
from typing import Optional

from flask import Flask, current_app, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge

from .compressor import AVIF_AVAILABLE, ImageCompressor, normalize_quality
from .config import Config

logger = logging.getLogger(__name__)

COMPRESSION_FAILED = "Image compression failed, please check that the file format is correct"


def create_app(config: Optional[Config] = None, compressor: Optional[ImageCompressor] = None) -> Flask:
    """Build the Flask application."""
    config = config or Config()

    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = config.max_content_length
    app.config['DEFAULT_QUALITY'] = config.default_quality
    app.extensions['imgsqueeze.compressor'] = compressor or ImageCompressor(verbose=True)

    @app.errorhandler(RequestEntityTooLarge)
    def too_large(e):
        return jsonify({'error': f"File too large (limit {config.max_upload_mb} MB)"}), 413

    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok', 'avif': AVIF_AVAILABLE})

    @app.route('/api/compress', methods=['POST'])
    def compress():
        file = request.files.get('file')
        if file is None:
            return jsonify({'error': 'No file uploaded'}), 400

        quality = normalize_quality(
            request.form.get('quality'), default=current_app.config['DEFAULT_QUALITY']
        )
        output_format = request.form.get('format') or 'original'

        compressor = current_app.extensions['imgsqueeze.compressor']
        try:
            result = compressor.compress_bytes(
                file.read(), file.filename or 'image', quality, output_format
            )
        except Exception:
            logger.exception(f"Compression error for {file.filename}")
            return jsonify({'error': COMPRESSION_FAILED}), 500

        return jsonify(result.to_dict())

    return app
