"""Application master security bootstrap. Use --help for usage."""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from config.config import AppMasterConfig, load_config
from core.errors.exceptions import (
    EXIT_BAD_CONFIGURATION,
    EXIT_SUCCESS,
    SecurityConfigError,
    exit_code_for,
)
from core.logging.setup import setup_logging
from core.logging.utilities import log_exception
from core.security.identity import create_identity_provider
from core.security.keys import COMPONENT_AM
from core.security.keytab import SecureKeytabFetcher
from core.security.security_config import SecurityConfiguration
from core.storage.filesystem import create_shared_filesystem

# Project root directory (where .env file is located)
# __main__.py is at src/appmaster/__main__.py, so root is 3 levels up
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Placeholder logger until setup_logging() is called in main()
logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Validate the application master's Kerberos configuration and stage its keytab",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Resolve principal and keytab using src/config/config.yaml
    python -m appmaster

    # Use a specific config file and print machine-readable output
    python -m appmaster --config /etc/appmaster/config.yaml --json

    # Only validate, do not stage the keytab
    python -m appmaster --validate-only

Exit codes:
    0   success
    70  environment failure while looking up the login identity
    73  keytab staging directory or permission failure
    74  shared filesystem or identity lookup I/O failure
    78  invalid security configuration
        """,
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config.yaml (default: $AMSECURITY_CONFIG or src/config/config.yaml)",
    )

    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Validate configuration and resolve the principal without staging the keytab",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Console logging level (default: INFO)",
    )

    parser.add_argument(
        "--log-dir",
        type=str,
        default=None,
        help="Log directory path (default: from LOG_DIR env var or config; console only if unset)",
    )

    return parser.parse_args(argv)


def _setup_logging(args: argparse.Namespace, config: AppMasterConfig | None) -> None:
    log_dir = args.log_dir or os.getenv("LOG_DIR") or (config.log_dir if config else None)
    json_logs = config.log_json if config else True
    setup_logging(
        name="appmaster",
        cluster_name=config.cluster_name if config else None,
        component=COMPONENT_AM,
        log_dir=Path(log_dir) if log_dir else None,
        json_format=json_logs,
        console_level=getattr(logging, args.log_level),
    )


def build_security_configuration(config: AppMasterConfig) -> SecurityConfiguration:
    """
    Build and validate the security configuration for the loaded settings.

    Raises:
        BadConfigurationError, BadStateError: If validation fails
    """
    return SecurityConfiguration(
        configuration=config.cluster,
        instance_definition=config.instance_definition,
        cluster_name=config.cluster_name,
        identity_provider=create_identity_provider(config.login_identity),
        fetcher=SecureKeytabFetcher(staging_root=config.staging_root),
    )


def resolve_security(config: AppMasterConfig, stage_keytab: bool = True) -> dict[str, Any]:
    """
    Resolve the principal and keytab the application master will log in with.

    Returns:
        Result dict: security_enabled, and when enabled principal, keytab_source
        and keytab_path (None when stage_keytab is False)

    Raises:
        SecurityConfigError: On any configuration, environment or staging failure
        OSError: If the shared filesystem copy or identity lookup fails
    """
    security = build_security_configuration(config)
    if not security.is_security_enabled():
        logger.info("Cluster security is disabled; no Kerberos login required")
        return {"cluster_name": config.cluster_name, "security_enabled": False}

    principal = security.get_principal()
    source = security.keytab_source

    keytab_path = None
    if stage_keytab:
        fs = create_shared_filesystem(config.shared_fs)
        keytab_path = security.get_keytab_file(fs, principal)

    logger.info(
        "Security configuration resolved",
        extra={
            "principal": principal,
            "keytab_source": source.describe(),
            "keytab_path": str(keytab_path) if keytab_path else None,
        },
    )
    return {
        "cluster_name": config.cluster_name,
        "security_enabled": True,
        "principal": principal,
        "keytab_source": source.describe(),
        "keytab_path": str(keytab_path) if keytab_path else None,
    }


def _print_result(result: dict[str, Any], json_output: bool) -> None:
    if json_output:
        print(json.dumps(result, indent=2))
        return

    print(f"Cluster: {result['cluster_name']}")
    if not result["security_enabled"]:
        print("Security: disabled")
        return
    print("Security: kerberos")
    print(f"Principal: {result['principal']}")
    print(f"Keytab source: {result['keytab_source']}")
    if result.get("keytab_path"):
        print(f"Keytab file: {result['keytab_path']}")


def _print_error(exc: BaseException, exit_code: int, json_output: bool) -> None:
    if json_output:
        payload = {"error": str(exc), "error_type": type(exc).__name__, "exit_code": exit_code}
        context = getattr(exc, "context", None)
        if context:
            payload["context"] = context
        print(json.dumps(payload, default=str))
    else:
        print(f"✗ {exc}", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    load_dotenv(PROJECT_ROOT / ".env")
    args = parse_args(argv)

    try:
        config = load_config(config_path=args.config)
    except (FileNotFoundError, ValueError) as e:
        _setup_logging(args, None)
        log_exception(logger, e, "Unable to load application master configuration", include_traceback=False)
        _print_error(e, EXIT_BAD_CONFIGURATION, args.json)
        return EXIT_BAD_CONFIGURATION

    _setup_logging(args, config)

    try:
        result = resolve_security(config, stage_keytab=not args.validate_only)
    except (SecurityConfigError, OSError) as e:
        exit_code = exit_code_for(e)
        log_exception(logger, e, "Security setup failed", exit_code=exit_code)
        _print_error(e, exit_code, args.json)
        return exit_code
    except ValueError as e:
        # shared filesystem settings or keytab names rejected by the client
        log_exception(logger, e, "Security setup failed", exit_code=EXIT_BAD_CONFIGURATION)
        _print_error(e, EXIT_BAD_CONFIGURATION, args.json)
        return EXIT_BAD_CONFIGURATION

    _print_result(result, args.json)
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
