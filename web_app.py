#!/usr/bin/env python3
"""
Flask web application for the StuckWatch pipeline dashboard.
Features: stuck-item check endpoints per pipeline stage, CSV export, rolled-up health summary,
server-rendered dashboard pages, security headers, rate limiting.
"""

from flask import Flask, render_template, jsonify, request, send_file
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_compress import Compress
import io
import logging
from datetime import datetime
import os
from functools import wraps
from dotenv import load_dotenv
from pymongo.errors import PyMongoError

from stuckwatch.checks.stages import STAGES, UnknownStageError, get_stage
from stuckwatch.reports.aggregator import fetch_all_stages, summarize
from stuckwatch.reports.csv_export import NoDataToExport, build_bulk_export, build_single_export
from stuckwatch.reports.filtering import available_countries, classify_status, filter_by_country
from stuckwatch.storage.mongo_links import MongoLinksStore

# Load environment variables from .env file
load_dotenv()

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

APP_VERSION = '1.0.0'
RATE_LIMITS = os.environ.get('RATE_LIMITS', '2000 per day;600 per hour')

# Initialize Flask app
from cors_config import configure_cors

app = Flask(__name__)
# Configure app to trust proxy headers (nginx forwards X-Forwarded-Proto, etc.)
app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)
app = configure_cors(app)
app.json.sort_keys = False

# Initialize extensions
compress = Compress(app)
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[lim.strip() for lim in RATE_LIMITS.split(';') if lim.strip()],
    storage_uri="memory://"
)
limiter.init_app(app)

# Read-only view of the pipeline's links collection; connects on first query
links_store = MongoLinksStore()


def add_security_headers(response):
    """Add security headers"""
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['Content-Security-Policy'] = (
        "default-src 'self'; "
        "style-src 'self' 'unsafe-inline'; "
        "img-src 'self' data:; "
        "connect-src 'self'"
    )
    response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
    return response

app.after_request(add_security_headers)


def handle_store_error(f):
    """Decorator: every failure ends in the same opaque 500; the cause only goes to the log"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except HTTPException:
            raise
        except PyMongoError as e:
            logger.error(f"Store error in {f.__name__}: {e}", exc_info=True)
            return jsonify({'error': 'Internal Server Error'}), 500
        except Exception as e:
            logger.error(f"Unexpected error in {f.__name__}: {e}", exc_info=True)
            return jsonify({'error': 'Internal Server Error'}), 500
    return decorated_function


def _lookup_stage(slug):
    try:
        return get_stage(slug)
    except UnknownStageError:
        return None


def _requested_country():
    # typed into the free-text box as well as picked from the list; codes are stored upper-case
    return (request.args.get('country') or '').strip().upper() or None


def _csv_response(export):
    # filenames can carry a raw link_yid; send_file quotes them (and adds filename* when needed)
    return send_file(
        io.BytesIO(export.content.encode('utf-8')),
        mimetype='text/csv',
        as_attachment=True,
        download_name=export.filename
    )


@app.route('/api/health')
@limiter.exempt
def health_check():
    """API health check endpoint"""
    return jsonify({
        'status': 'healthy',
        'timestamp': datetime.now().isoformat(),
        'version': APP_VERSION
    })


# =====================
# Stuck-item checks
# =====================

@app.route('/checks/stuck-in-<slug>')
@app.route('/api/checks/stuck-in-<slug>')
@handle_store_error
def stuck_report(slug):
    """Count + capped sample of links stuck at one pipeline stage"""
    stage = _lookup_stage(slug)
    if stage is None:
        return jsonify({'error': 'Endpoint not found'}), 404
    report = links_store.stuck_report(stage)
    return jsonify(report.to_payload())


@app.route('/checks/stuck-in-<slug>/export.csv')
@app.route('/api/checks/stuck-in-<slug>/export.csv')
@handle_store_error
def export_stuck_report(slug):
    """Download the displayed (optionally country-filtered) sample as CSV"""
    stage = _lookup_stage(slug)
    if stage is None:
        return jsonify({'error': 'Endpoint not found'}), 404
    country = _requested_country()
    report = filter_by_country(links_store.stuck_report(stage), country)
    try:
        export = build_bulk_export(report, stage.export_prefix)
    except NoDataToExport as e:
        return jsonify({'error': str(e)}), 422
    logger.info(f"CSV export {export.filename} ({export.rows} rows)")
    return _csv_response(export)


@app.route('/checks/stuck-in-<slug>/export/<path:link_yid>.csv')
@app.route('/api/checks/stuck-in-<slug>/export/<path:link_yid>.csv')
@handle_store_error
def export_stuck_item(slug, link_yid):
    """Download a single sampled link as CSV"""
    stage = _lookup_stage(slug)
    if stage is None:
        return jsonify({'error': 'Endpoint not found'}), 404
    item = links_store.stuck_report(stage).find(link_yid)
    if item is None:
        return jsonify({'error': 'Link not found in sample'}), 404
    return _csv_response(build_single_export(item, stage.export_prefix))


def _stage_overview():
    results = fetch_all_stages(links_store.stuck_report)
    stages = []
    for stage, report in results:
        stages.append({
            'stage': stage,
            'report': report,
            'status': classify_status(report.total).value if report is not None else None,
        })
    return stages, summarize(results)


@app.route('/api/dashboard/summary')
@handle_store_error
def dashboard_summary():
    """All four stages fetched concurrently; a failed stage is null and counts as zero"""
    stages, summary = _stage_overview()
    return jsonify({
        'stages': {
            s['stage'].slug: (
                {
                    'total': s['report'].total,
                    'status': s['status'],
                    'sampled': len(s['report'].results),
                } if s['report'] is not None else None
            )
            for s in stages
        },
        'summary': summary.to_dict(),
        'generated_at': datetime.now().isoformat(),
    })


# =====================
# Dashboard pages
# =====================

@app.route('/')
@handle_store_error
def dashboard():
    """Overview page with one card per stage"""
    stages, summary = _stage_overview()
    return render_template('dashboard.html', stages=stages, stages_nav=STAGES, summary=summary,
                           generated_at=datetime.now())


@app.route('/dashboard/<slug>')
@handle_store_error
def stage_page(slug):
    """Stage table with country filter and export links"""
    stage = _lookup_stage(slug)
    if stage is None:
        return jsonify({'error': 'Endpoint not found'}), 404
    country = _requested_country()

    try:
        report = links_store.stuck_report(stage)
    except PyMongoError as e:
        # the page shows the empty state rather than an error
        logger.error(f"Error fetching {stage.slug} data: {e}", exc_info=True)
        report = None

    display = filter_by_country(report, country)
    displayed_total = display.total if display is not None else 0
    return render_template(
        'stage.html',
        stage=stage,
        stages_nav=STAGES,
        report=report,
        display=display,
        displayed_total=displayed_total,
        status=classify_status(displayed_total).value,
        countries=available_countries(report),
        selected_country=country,
        last_updated=datetime.now() if report is not None else None,
    )


@app.errorhandler(404)
def not_found(error):
    """Custom 404 handler"""
    return jsonify({'error': 'Endpoint not found'}), 404

@app.errorhandler(429)
def rate_limit_handler(error):
    """Custom rate limit handler"""
    return jsonify({
        'error': 'Rate limit exceeded',
        'message': 'Too many requests, please slow down',
        'retry_after': 60
    }), 429

@app.errorhandler(500)
def internal_error(error):
    """Custom 500 handler"""
    logger.error(f"Internal server error: {error}")
    return jsonify({'error': 'Internal Server Error'}), 500


# Main execution block
if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5002))
    debug = os.environ.get('FLASK_ENV') == 'development'

    logger.info(f"Starting StuckWatch dashboard on port {port}")
    logger.info(f"Debug mode: {debug}")
    logger.info(f"Rate limits: {RATE_LIMITS}")

    app.run(
        host='0.0.0.0',
        port=port,
        debug=debug,
        threaded=True
    )
