"""Command line entry point - summary, optimization and web server"""

import json
import logging
import sys

from queue_analytics.config import Config
from queue_analytics.datetime_utils import configure_timezone
from queue_analytics.exceptions import ConfigurationError, QueueAnalyticsError
from queue_analytics.gateway import create_gateway
from queue_analytics.logging_config import setup_logging_from_config
from queue_analytics.math_utils import configure_rounding
from queue_analytics.optimizer import QueueFlowOptimizer
from queue_analytics.summary import AnalyticsSummaryOrchestrator

logger = logging.getLogger(__name__)


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, sort_keys=False))


def run_summary(config, gateway, args) -> int:
    orchestrator = AnalyticsSummaryOrchestrator.from_config(config, gateway)
    summary = orchestrator.get_summary(args.shop_id)
    if args.dashboard:
        _print_json(summary.to_dashboard_dict())
    else:
        _print_json(summary.to_dict())
    return 0


def run_optimize(config, gateway, args) -> int:
    optimizer = QueueFlowOptimizer.from_config(config, gateway)
    result = optimizer.optimize(args.shop_id, department_id=args.department)
    _print_json(result.to_dict())
    return 0


def run_serve(config, gateway, args) -> int:
    from queue_analytics.web_server import AnalyticsWebServer

    server = AnalyticsWebServer(config, gateway)
    server.run(
        host=args.host or config.web_server_host,
        port=args.port or config.web_server_port,
    )
    return 0


def build_parser():
    import argparse

    parser = argparse.ArgumentParser(description="Queue Analytics & Optimization Engine")
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="Path to configuration file (default: config.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    summary = subparsers.add_parser("summary", help="Print the analytics summary of a shop")
    summary.add_argument("shop_id", help="Shop ID")
    summary.add_argument(
        "--dashboard", action="store_true", help="Print the compact dashboard view"
    )
    summary.set_defaults(handler=run_summary)

    optimize = subparsers.add_parser("optimize", help="Print queue flow recommendations")
    optimize.add_argument("shop_id", help="Shop ID")
    optimize.add_argument("--department", default=None, help="Department ID filter")
    optimize.set_defaults(handler=run_optimize)

    serve = subparsers.add_parser("serve", help="Run the analytics web server")
    serve.add_argument("--host", default=None, help="Host to bind to")
    serve.add_argument("--port", type=int, default=None, help="Port to listen on")
    serve.set_defaults(handler=run_serve)

    return parser


def main(argv=None) -> int:
    """Entry point for the queue-analytics command"""
    args = build_parser().parse_args(argv)

    try:
        config = Config(args.config)
        # Keep stdout clean for JSON output
        setup_logging_from_config(config, console_output=args.command == "serve")
        configure_rounding(config.rounding)
        configure_timezone(config.timezone)
        gateway = create_gateway(config)
    except (ConfigurationError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    try:
        return args.handler(config, gateway, args)
    except QueueAnalyticsError as e:
        logger.error("%s failed: %s", e.operation or args.command, e)
        print(json.dumps(e.to_dict()), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        return 0
    finally:
        gateway.close()


if __name__ == "__main__":
    sys.exit(main())
