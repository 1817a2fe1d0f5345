"""Main module entrypoint for local runtime execution.

This module validates startup configuration and either launches the FastAPI
service or runs one attribution or PnL sync command and prints JSON.
"""

import argparse
import json
import logging

import uvicorn

from pnl_attribution.analytics import AttributionError
from pnl_attribution.api.routers.analytics import (
    api_serialize_attribution_bundle,
    api_serialize_sync_snapshot,
    api_serialize_sync_status,
)
from pnl_attribution.bootstrap import (
    bootstrap_build_attribution_facade,
    bootstrap_create_application,
    bootstrap_create_ledger_query_service,
)
from pnl_attribution.config import config_load_settings
from pnl_attribution.domain import domain_build_attribution_filter
from pnl_attribution.jobs import PnlSyncReconciler

logger = logging.getLogger(__name__)


def main() -> None:
    """Run selected runtime command with validated startup configuration.

    Returns:
        None: This function does not return a runtime value.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
        SystemExit: Raised with code 1 when a command fails.
    """

    argument_parser = argparse.ArgumentParser(description="PnL attribution runtime entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="api",
        choices=("api", "sync-check", "sync-repair", "attribution"),
        help="Runtime command: `api` starts server, `sync-check` reports cached PnL staleness, "
        "`sync-repair` checks, repairs and rechecks, `attribution` prints the full attribution batch",
        type=str,
    )
    argument_parser.add_argument(
        "--environment",
        dest="environment",
        type=str,
        help="Trading environment `testnet` or `mainnet`; defaults to DEFAULT_TRADING_ENVIRONMENT",
    )
    argument_parser.add_argument(
        "--account-id",
        dest="account_id",
        type=str,
        help="Optional account id for `attribution`; `all` or omitted means all accounts",
    )
    argument_parser.add_argument(
        "--period",
        dest="period",
        default="all",
        type=str,
        help="Period for `attribution`: today, week, month or all",
    )
    parsed_arguments = argument_parser.parse_args()

    settings = config_load_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    if parsed_arguments.command == "api":
        uvicorn.run(
            bootstrap_create_application(),
            host=settings.application_host,
            port=settings.application_port,
        )
        return

    environment = parsed_arguments.environment or settings.default_trading_environment
    ledger_query_service = bootstrap_create_ledger_query_service(settings)
    try:
        if parsed_arguments.command == "attribution":
            attribution_filter = domain_build_attribution_filter(
                environment=environment,
                account_id=parsed_arguments.account_id,
            )
            facade = bootstrap_build_attribution_facade(settings, ledger_query_service)
            bundle = facade.analytics_load_attribution_for_period(
                environment=attribution_filter.environment,
                account_id=attribution_filter.account_id,
                period=parsed_arguments.period,
            )
            main_print_json(api_serialize_attribution_bundle(bundle, order="first_seen"))
            return

        reconciler = PnlSyncReconciler(ledger_query_port=ledger_query_service)
        if parsed_arguments.command == "sync-check":
            sync_status = reconciler.sync_check(environment)
        else:
            sync_status = reconciler.sync_check_and_repair(environment)
        main_print_json(
            {
                **api_serialize_sync_status(sync_status),
                "reconciler": api_serialize_sync_snapshot(reconciler.sync_snapshot(environment)),
            }
        )
    except (AttributionError, ValueError) as error:
        logger.error("command failed command=%s error=%s", parsed_arguments.command, error)
        raise SystemExit(1) from error


def main_print_json(payload: dict[str, object]) -> None:
    """Print one JSON payload to stdout.

    Args:
        payload: JSON-serializable payload.

    Returns:
        None: Prints payload to stdout as side effect.

    Raises:
        TypeError: Raised when payload is not JSON-serializable.
    """

    print(json.dumps(payload, indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
