"""CLI entry point for Azure login."""

import argparse
import sys
from pathlib import Path

# Initialize SSL truststore early, before any HTTPS requests
from .utils.ssl_utils import init_ssl
init_ssl()

from .auth.credential_store import CredentialStore
from .auth.resolver import CredentialResolver
from .config import LoginSettings, load_auth_configuration
from .login import login, logout, select_subscription
from .models.environment import is_known_environment
from .utils.exceptions import AzureLoginError
from .utils.logging import setup_logging


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Azure login - acquire, refresh and persist Azure credentials"
    )
    parser.add_argument(
        "--login",
        action="store_true",
        help="Log in with the browser (falls back to device login)",
    )
    parser.add_argument(
        "--device-code",
        action="store_true",
        help="Log in with device login instead of the browser",
    )
    parser.add_argument(
        "--environment",
        type=str,
        default=None,
        help="Azure cloud: AZURE, AZURE_CHINA, AZURE_GERMANY or AZURE_US_GOVERNMENT",
    )
    parser.add_argument(
        "--logout",
        action="store_true",
        help="Remove the saved credential",
    )
    parser.add_argument(
        "--select-subscription",
        type=str,
        metavar="ID",
        help="Set the default subscription of the saved credential",
    )
    parser.add_argument(
        "--token",
        action="store_true",
        help="Print an access token from the first available credential",
    )
    parser.add_argument(
        "--resource",
        type=str,
        default=None,
        help="Resource to get the token for (default: management endpoint)",
    )
    parser.add_argument(
        "--server-id",
        type=str,
        default=None,
        help="Service principal server id in the settings file",
    )
    parser.add_argument(
        "--settings-file",
        type=Path,
        default=Path("settings.yaml"),
        help="YAML settings file with service principal servers (default: settings.yaml)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )

    args = parser.parse_args(argv)

    settings = LoginSettings()
    log_level = "DEBUG" if args.verbose else settings.log_level
    logger = setup_logging(level=log_level, log_file=settings.log_file)

    if args.environment and not is_known_environment(args.environment):
        logger.error(f"Invalid environment: {args.environment}")
        return 1

    try:
        store = CredentialStore(settings.secret_file)

        if args.logout:
            if logout(store):
                print(f"Logged out, removed {store.path}")
            else:
                print("You are not logged in.")
            return 0

        if args.login or args.device_code:
            credential = login(args.environment, device_code=args.device_code, store=store)
            user = (credential.user_info or {}).get("displayableId")
            print(f"Logged in{f' as {user}' if user else ''} ({credential.environment})")
            return 0

        if args.select_subscription:
            select_subscription(args.select_subscription, store=store)
            print(f"Default subscription: {args.select_subscription}")
            return 0

        if args.token:
            explicit = (
                load_auth_configuration(args.server_id, args.settings_file)
                if args.server_id
                else None
            )
            credential = CredentialResolver(settings=settings, store=store).resolve(explicit)
            if credential is None:
                logger.error("No Azure credential found, please login first.")
                return 1
            logger.info(f"Using {credential.auth_method} credential ({credential.environment})")
            print(credential.get_token(args.resource))
            return 0

        # No action specified
        parser.print_help()
        return 0

    except AzureLoginError as e:
        logger.error(f"Azure login error: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
