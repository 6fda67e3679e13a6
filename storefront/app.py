import logging
import re
import time

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from quart import Quart, g, jsonify, request
from quart_cors import cors

from .common.config import settings
from .common.database import engine, init_db
from .common.errors import register_error_handlers
from .common.redis_client import close_redis
from .catalog.controller import bp as catalog_bp
from .orders.controller import bp as orders_bp
from .seed import seed_products

log = logging.getLogger(__name__)

_LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, float("inf"))

REQUEST_COUNT = Counter("http_requests_total", "Storefront API requests", ["method", "endpoint", "status"])
REQUEST_LATENCY = Histogram("http_request_duration_seconds", "Storefront API latency", ["endpoint"], buckets=_LATENCY_BUCKETS)

# Group dynamic routes so label cardinality stays bounded
_ENDPOINT_PATTERNS = (
    (re.compile(r"^/orders/[^/]+/(status|payment|cancel)$"), r"/orders/<id>/\1"),
    (re.compile(r"^/orders/[^/]+$"), "/orders/<id>"),
    (re.compile(r"^/products/[^/]+$"), "/products/<id>"),
)


def normalize_endpoint(path: str) -> str:
    for pattern, replacement in _ENDPOINT_PATTERNS:
        if pattern.match(path):
            return pattern.sub(replacement, path)
    return path


def _observe(method: str, path: str, status: int, started: float) -> None:
    endpoint = normalize_endpoint(path)
    REQUEST_LATENCY.labels(endpoint=endpoint).observe(time.perf_counter() - started)
    REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=str(status)).inc()


def create_app() -> Quart:
    app = Quart(__name__)

    app.register_blueprint(catalog_bp)
    app.register_blueprint(orders_bp)
    register_error_handlers(app)
    app = cors(
        app,
        allow_origin=list(settings.CORS_ORIGINS),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With", "Accept"],
        max_age=86400,
    )

    @app.before_request
    async def start_timer():
        g.request_started = time.perf_counter()
        log.debug("%s %s", request.method, request.path)

    @app.after_request
    async def finish_request(response):
        started = g.get("request_started")
        if started is not None:
            try:
                _observe(request.method, request.path, response.status_code, started)
            except Exception as e:
                log.error("Error recording metrics | path=%s err=%s", request.path, e)
        return response

    @app.get("/metrics")
    async def metrics():
        return app.response_class(generate_latest(), mimetype=CONTENT_TYPE_LATEST)

    @app.get("/health")
    async def health():
        return jsonify({"status": "ok"})

    @app.before_serving
    async def startup():
        logging.basicConfig(
            level=settings.LOG_LEVEL,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
        await init_db()
        seeded = await seed_products() if settings.SEED_SAMPLE_PRODUCTS else 0
        log.info("Storefront API ready | db=%s seeded_products=%s", engine.url.render_as_string(hide_password=True), seeded)

    @app.after_serving
    async def shutdown():
        await close_redis()
        await engine.dispose()
        log.info("Storefront API stopped")

    return app
