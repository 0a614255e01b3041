# CORS configuration
import logging
import os

from flask import request
from flask_cors import CORS

logger = logging.getLogger(__name__)

DEFAULT_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5002",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5002",
]


def allowed_origins():
    raw = os.environ.get("CORS_ORIGINS", "")
    extra = [o.strip() for o in raw.split(",") if o.strip()]
    return DEFAULT_ORIGINS + [o for o in extra if o not in DEFAULT_ORIGINS]


def configure_cors(app):
    # Read-only dashboard API: GET only, no credentials
    CORS(app, resources={
        r"/checks/*": {"origins": allowed_origins(), "methods": ["GET", "OPTIONS"]},
        r"/api/*": {"origins": allowed_origins(), "methods": ["GET", "OPTIONS"]},
    })

    @app.after_request
    def log_cross_origin(response):
        origin = request.headers.get('Origin')
        if origin:
            logger.debug(f"CORS - Origin: {origin} {request.method} {request.path} -> {response.status_code}")
        return response

    return app
