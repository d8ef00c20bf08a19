#!/usr/bin/env python3
"""
Leaf VQ Compressor API Server
Accepts a leaf photo, quantizes it to a 64-color palette and returns
whichever of the quantized PNG or the original is smaller.
"""

import os
import logging
from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from flask import Flask, request, jsonify
from flask_cors import CORS
from werkzeug.utils import secure_filename
import numpy as np

# --- Centralized Logging Configuration ---
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
    datefmt='%H:%M:%S'
)

from models.source_image import SourceImage
from models.compression_result import format_bytes
from models.errors import CompressionError, DecodeError, EmptyImageError
from pipeline.vector_quantizer import compress_with_vector_quantization

app = Flask(__name__)
CORS(app)  # Enable CORS for frontend communication

# Configuration
MAX_UPLOAD_SIZE_MB = int(os.getenv("MAX_UPLOAD_SIZE_MB", "10"))
MAX_CONTENT_LENGTH = MAX_UPLOAD_SIZE_MB * 1024 * 1024
RANDOM_SEED = os.getenv("VQ_RANDOM_SEED")

app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH

logger = logging.getLogger(__name__)


def make_rng() -> np.random.Generator:
    """Per-request random source; seeded only when VQ_RANDOM_SEED is set."""
    seed = int(RANDOM_SEED) if RANDOM_SEED else None
    return np.random.default_rng(seed)


@app.route('/api/compress', methods=['POST'])
def compress():
    """Compress one uploaded image with vector quantization."""
    if 'image' not in request.files:
        return jsonify({'success': False, 'message': 'No image provided'}), 400

    file = request.files['image']
    if file.filename == '':
        return jsonify({'success': False, 'message': 'No file selected'}), 400

    if not (file.mimetype or '').startswith('image/'):
        return jsonify({'success': False, 'message': 'Invalid file type. Please upload an image.'}), 400

    filename = secure_filename(file.filename) or 'image'
    source = SourceImage(data=file.read(), mime_type=file.mimetype, name=filename)
    logger.info(f"Compressing {filename} ({format_bytes(source.size)}, {source.mime_type})")

    try:
        result = compress_with_vector_quantization(source, rng=make_rng())
    except (DecodeError, EmptyImageError) as e:
        logger.warning(f"Rejected {filename}: {e}")
        return jsonify({'success': False, 'message': f'An error occurred: {e}'}), 400
    except CompressionError as e:
        logger.error(f"Compression error for {filename}: {e}")
        return jsonify({'success': False, 'message': f'An error occurred: {e}'}), 500

    stats = result.stats
    return jsonify({
        'success': True,
        **result.to_dict(),
        'dataUrl': result.data_url,
        'filename': result.download_name(filename),
        'originalSizeLabel': format_bytes(stats.original_size),
        'compressedSizeLabel': format_bytes(stats.compressed_size),
    })


@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'message': 'Leaf VQ Compressor API is running',
    })


@app.errorhandler(413)
def too_large(e):
    """Handle file too large error."""
    return jsonify({'success': False, 'message': f'File too large. Maximum size is {MAX_UPLOAD_SIZE_MB}MB.'}), 413


@app.errorhandler(500)
def internal_error(e):
    """Handle internal server error."""
    logger.error(f"Internal server error: {e}")
    return jsonify({'success': False, 'message': 'Internal server error'}), 500


def main():
    print("🚀 Starting Leaf VQ Compressor API Server...")
    print(f"🔧 Max upload size: {MAX_UPLOAD_SIZE_MB}MB")
    print("🌐 CORS enabled for frontend communication")
    print("📋 Endpoints:")
    print("   POST /api/compress")
    print("   GET  /api/health")
    print("="*60)

    app.run(host=os.getenv("API_HOST", "0.0.0.0"), port=int(os.getenv("API_PORT", "5000")), debug=False)


if __name__ == '__main__':
    main()
