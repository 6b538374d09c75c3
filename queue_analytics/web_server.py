"""
Web server exposing queue analytics to the presentation layer

Provides:
- /health endpoint for monitoring
- /api/shops/<shop_id>/analytics/summary for the full dashboard summary
- /api/shops/<shop_id>/analytics/dashboard for the compact dashboard view
- /api/shops/<shop_id>/analytics[/time|/peak-hours|/services] for one range
- /api/shops/<shop_id>/optimize for bottlenecks and recommendations
"""

import logging
import sys
from datetime import datetime, timezone

from flask import Flask, jsonify, request

from .cache import AnalyticsCache
from .constants import AnalyticsDefaults
from .exceptions import QueueAnalyticsError, QueueAnalyticsErrorType
from .optimizer import QueueFlowOptimizer
from .range_analytics import QueueRangeAnalytics
from .summary import AnalyticsSummaryOrchestrator

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR_TYPE = {
    QueueAnalyticsErrorType.VALIDATION_ERROR: 400,
    QueueAnalyticsErrorType.UNAUTHORIZED: 401,
    QueueAnalyticsErrorType.NOT_FOUND: 404,
    QueueAnalyticsErrorType.INSUFFICIENT_DATA: 422,
}


def _error_response(error: QueueAnalyticsError):
    status = _STATUS_BY_ERROR_TYPE.get(error.error_type, 500)
    return jsonify(error.to_dict()), status


class AnalyticsWebServer:
    """Flask application serving analytics and optimization results"""

    def __init__(self, config, gateway, cache: AnalyticsCache = None):
        """
        Initialize web server

        Args:
            config: Config object
            gateway: Record gateway shared by all use-cases
            cache: Snapshot cache (created from config when omitted)
        """
        self.config = config
        self.gateway = gateway
        self.cache = cache if cache is not None else AnalyticsCache(
            config.cache_ttl_seconds, single_flight=config.cache_single_flight
        )

        self.summary = AnalyticsSummaryOrchestrator.from_config(config, gateway, self.cache)
        self.range_analytics = QueueRangeAnalytics.from_config(config, gateway, self.cache)
        self.optimizer = QueueFlowOptimizer.from_config(config, gateway)

        self.app = Flask(__name__)
        self._setup_routes()

    def _range_args(self):
        return (
            request.args.get("dateFrom"),
            request.args.get("dateTo"),
            request.args.get("employeeId") or None,
        )

    def _setup_routes(self):
        """Setup Flask routes"""

        @self.app.route("/health")
        def health_check():
            """
            Health check endpoint

            Returns:
                200 OK if service is running
            """
            return (
                jsonify(
                    {
                        "status": "ok",
                        "gateway": self.config.gateway_type,
                        "cache": self.cache.stats(),
                        "timestamp": datetime.now(timezone.utc).isoformat(),
                    }
                ),
                200,
            )

        @self.app.route("/api/shops/<shop_id>/analytics/summary")
        def analytics_summary(shop_id):
            try:
                summary = self.summary.get_summary(shop_id)
            except QueueAnalyticsError as e:
                return _error_response(e)
            return jsonify(summary.to_dict())

        @self.app.route("/api/shops/<shop_id>/analytics/dashboard")
        def analytics_dashboard(shop_id):
            try:
                summary = self.summary.get_summary(shop_id)
            except QueueAnalyticsError as e:
                return _error_response(e)
            return jsonify(summary.to_dashboard_dict(AnalyticsDefaults.DASHBOARD_SLICE_SIZE))

        @self.app.route("/api/shops/<shop_id>/analytics")
        def analytics_for_range(shop_id):
            date_from, date_to, employee_id = self._range_args()
            try:
                snapshot = self.range_analytics.get_analytics(
                    shop_id, date_from, date_to,
                    employee_id=employee_id,
                    service_id=request.args.get("serviceId") or None,
                )
            except QueueAnalyticsError as e:
                return _error_response(e)
            return jsonify(snapshot.to_dict())

        @self.app.route("/api/shops/<shop_id>/analytics/time")
        def time_analytics(shop_id):
            date_from, date_to, employee_id = self._range_args()
            try:
                result = self.range_analytics.get_time_analytics(
                    shop_id, date_from, date_to,
                    employee_id=employee_id,
                    service_id=request.args.get("serviceId") or None,
                )
            except QueueAnalyticsError as e:
                return _error_response(e)
            return jsonify(result.to_dict())

        @self.app.route("/api/shops/<shop_id>/analytics/peak-hours")
        def peak_hours(shop_id):
            date_from, date_to, employee_id = self._range_args()
            try:
                result = self.range_analytics.get_peak_hours(
                    shop_id, date_from, date_to,
                    employee_id=employee_id,
                    service_id=request.args.get("serviceId") or None,
                )
            except QueueAnalyticsError as e:
                return _error_response(e)
            return jsonify(result.to_dict())

        @self.app.route("/api/shops/<shop_id>/analytics/services")
        def service_analytics(shop_id):
            date_from, date_to, employee_id = self._range_args()
            try:
                result = self.range_analytics.get_service_analytics(
                    shop_id, date_from, date_to, employee_id=employee_id
                )
            except QueueAnalyticsError as e:
                return _error_response(e)
            return jsonify(result.to_dict())

        @self.app.route("/api/shops/<shop_id>/optimize", methods=["GET", "POST"])
        def optimize(shop_id):
            department_id = request.args.get("departmentId")
            if request.method == "POST" and request.is_json:
                body = request.get_json(silent=True) or {}
                department_id = body.get("departmentId", department_id)
            try:
                result = self.optimizer.optimize(shop_id, department_id=department_id or None)
            except QueueAnalyticsError as e:
                return _error_response(e)
            return jsonify(result.to_dict())

    def run(self, host="0.0.0.0", port=8080):
        """
        Run the web server

        Args:
            host: Host to bind to
            port: Port to listen on
        """
        logger.info("Starting web server on %s:%s", host, port)
        self.app.run(host=host, port=port, debug=False, threaded=True)


def create_app(config_path="config.yaml"):
    """
    Factory function to create Flask app

    Args:
        config_path: Path to config file

    Returns:
        Flask app instance
    """
    from queue_analytics.config import Config
    from queue_analytics.gateway import create_gateway
    from queue_analytics.datetime_utils import configure_timezone
    from queue_analytics.math_utils import configure_rounding

    config = Config(config_path)
    configure_rounding(config.rounding)
    configure_timezone(config.timezone)
    gateway = create_gateway(config)

    server = AnalyticsWebServer(config, gateway)
    return server.app


# For running standalone
if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Queue Analytics Web Server")
    parser.add_argument(
        "--config", default="config.yaml", help="Config file path"
    )
    parser.add_argument("--host", default=None, help="Host to bind to")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        from queue_analytics.config import Config
        from queue_analytics.gateway import create_gateway
        from queue_analytics.datetime_utils import configure_timezone
        from queue_analytics.math_utils import configure_rounding

        config = Config(args.config)
        configure_rounding(config.rounding)
        configure_timezone(config.timezone)
        server = AnalyticsWebServer(config, create_gateway(config))
        server.run(
            host=args.host or config.web_server_host,
            port=args.port or config.web_server_port,
        )

    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.error("Error: %s", e, exc_info=True)
        sys.exit(1)
