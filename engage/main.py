"""Command-line entry point: approve a need and notify its matches."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import json
import os
import sys
import time
from pathlib import Path
from typing import Optional, Tuple

from engage.approval import NeedApprovalWorkflow
from engage.config.environment import EnvironmentConfig
from engage.config.exceptions import ConfigurationError
from engage.config.loader import load_config, validate_config_file
from engage.config.models import AppConfig
from engage.logging import get_logger
from engage.logging.config import configure_logging
from engage.notifications import KnockClient, NotificationService
from engage.persistence.database import close_database, init_database

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str], notify: bool = True
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load and prepare runtime configuration.

    Args:
        config_path: Path to configuration file (None uses the default lookup)
        log_level_override: Log level from CLI (takes precedence)
        notify: Whether this run sends notifications

    Returns:
        Tuple of (AppConfig, EnvironmentConfig) with the effective log level set

    Raises:
        ConfigurationError: If configuration is invalid
    """
    # Without notifications the Knock key is never used
    app_config, env_config = load_config(
        config_path, require_knock_api_key=None if notify else False
    )

    # Log level priority: CLI > Environment > Config
    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level

    return app_config, env_config


def build_notification_service(
    app_config: AppConfig, env_config: EnvironmentConfig, notify: bool
) -> NotificationService:
    """Create the notification service, with a Knock client when it will be used."""
    knock_client = None
    if notify and app_config.notifications.enabled:
        knock_client = KnockClient(
            api_key=env_config.knock_api_key,
            base_url=app_config.notifications.api_base_url,
            timeout=app_config.notifications.request_timeout,
        )
    return NotificationService(knock_client=knock_client)


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Engage matching - approve a need and notify the volunteers who fit it"
    )
    parser.add_argument("--need-id", help="Identifier of the need to approve")
    parser.add_argument("--org-id", help="Organization that owns the need")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml, then config/config.yaml)",
    )
    parser.add_argument(
        "--no-notify",
        action="store_true",
        help="Approve and rank without notifying matched members",
    )
    parser.add_argument(
        "--max-results",
        type=_positive_int,
        default=None,
        help="Maximum number of matches (overrides matching.max_results)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    parser.add_argument(
        "--validate-config",
        action="store_true",
        help="Validate the configuration file and exit",
    )
    return parser


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for the Engage matching CLI.

    Returns:
        Exit code (0 for success, 1 for configuration errors, unknown needs
        or failed runs).
    """
    start_time = time.time()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.validate_config:
        return 0 if validate_config_file(args.config) else 1

    if not args.need_id or not args.org_id:
        parser.error("--need-id and --org-id are required")

    notify = not args.no_notify

    try:
        # Step 1: Load configuration (before logging for format detection)
        app_config, env_config = load_runtime_config(args.config, args.log_level, notify)

        # Step 2: Configure logging
        environment = os.environ.get("ENVIRONMENT", "local")
        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=environment,
        )

        logger.info(
            "Engage matching starting",
            extra={
                "event": "service.starting",
                "config_path": str(args.config) if args.config else None,
                "log_level": env_config.log_level,
                "notify": notify,
            },
        )

        # Step 3: Initialize database
        init_database(env_config.database_url)

        # Step 4: Build services and run the approval
        workflow = NeedApprovalWorkflow(
            app_config=app_config,
            notification_service=build_notification_service(app_config, env_config, notify),
        )
        result = workflow.approve(
            args.need_id, args.org_id, notify=notify, max_results=args.max_results
        )

        print(json.dumps(result.to_response(), indent=2, ensure_ascii=False))

        logger.info(
            "Engage matching stopped",
            extra={
                "event": "service.stopping",
                "status": result.status,
                "uptime_seconds": round(time.time() - start_time, 2),
            },
        )

        return 0 if result.success else 1

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error during run",
            extra={
                "event": "service.run.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return 1
    finally:
        close_database()


if __name__ == "__main__":
    sys.exit(main())
