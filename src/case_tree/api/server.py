import time
import uuid
import json
import logging
from datetime import datetime, timezone
from flask import Flask, request, g, jsonify
from werkzeug.exceptions import BadRequest
from flask_cors import CORS
from flasgger import Swagger
from prometheus_client import Counter, Histogram
import sentry_sdk
from sentry_sdk.integrations.flask import FlaskIntegration

from case_tree.api import config, state, dependencies
from case_tree.api.routes import flow_bp, cases_bp, monitoring_bp
from case_tree.api.extensions import limiter

# Logging
logging.basicConfig(level=logging.INFO, format='%(message)s')
logger = logging.getLogger("api")

# Metrics
try:
    state.REQUEST_COUNT = Counter('case_tree_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
    state.REQUEST_LATENCY = Histogram('case_tree_request_latency_seconds', 'Request latency in seconds', ['endpoint'])
    state.CASE_MUTATIONS = Counter('case_tree_case_mutations_total', 'Case record mutations', ['op'])
except ValueError:
    # Metrics might be already defined if reloaded
    pass

# Sentry
if config.SENTRY_DSN:
    sentry_sdk.init(
        dsn=config.SENTRY_DSN,
        integrations=[FlaskIntegration()],
        traces_sample_rate=config.SENTRY_TRACES_SAMPLE_RATE,
        profiles_sample_rate=config.SENTRY_PROFILES_SAMPLE_RATE,
        environment=config.APP_ENV,
        release=config.APP_VERSION,
    )
    logger.info("Sentry initialized")

app = Flask(__name__)
CORS(app)
Swagger(app)
app.config['MAX_CONTENT_LENGTH'] = config.MAX_CONTENT_LENGTH

# Initialize extensions
limiter.init_app(app)

# Register Blueprints
app.register_blueprint(flow_bp)
app.register_blueprint(cases_bp)
app.register_blueprint(monitoring_bp)

# Middleware
@app.before_request
def _before_request():
    g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    g.started_at = time.time()
    g.endpoint_for_metrics = request.endpoint or request.path

@app.after_request
def _after_request(response):
    duration = (time.time() - getattr(g, 'started_at', time.time()))
    log_obj = {
        "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "lvl": "info",
        "request_id": getattr(g, 'request_id', None),
        "method": request.method,
        "path": request.path,
        "status": response.status_code,
        "duration_ms": int(duration * 1000),
        "remote_addr": request.headers.get('X-Forwarded-For', request.remote_addr),
        "ua": request.headers.get('User-Agent')
    }
    logger.info(json.dumps(log_obj, ensure_ascii=False))
    ep = getattr(g, 'endpoint_for_metrics', request.path)
    if state.REQUEST_COUNT:
        state.REQUEST_COUNT.labels(request.method, ep, response.status_code).inc()
    if state.REQUEST_LATENCY:
        state.REQUEST_LATENCY.labels(ep).observe(duration)
    if getattr(g, 'request_id', None):
        response.headers["X-Request-ID"] = g.request_id
    return response

@app.errorhandler(BadRequest)
def _bad_request(e):
    return jsonify({"error": "bad_request", "detail": e.description}), 400

# Load saved cases on startup
dependencies.load_tracker()
