"""Main module entrypoint for local runtime execution.

This module validates startup configuration and launches the FastAPI service.
"""

import argparse
import logging

import uvicorn

from pubsite.bootstrap import bootstrap_create_application
from pubsite.config import ConfigurationLoadError, config_get_active_configuration

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    """Run selected runtime command with validated startup configuration.

    Args:
        argv: Optional argument list, defaults to `sys.argv[1:]`.

    Returns:
        None: This function does not return a runtime value.

    Raises:
        ConfigurationLoadError: Raised when configuration validation fails for `api`.
        SystemExit: Raised with code 1 when `config-check` finds an invalid configuration.
    """

    argument_parser = argparse.ArgumentParser(description="Pub site runtime entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="api",
        choices=("api", "config-check"),
        help="Runtime command: `api` starts server, `config-check` validates the configuration file "
        "referenced by PUB_CONFIG and exits",
        type=str,
    )
    argument_parser.add_argument("--host", dest="host", type=str, default="0.0.0.0", help="Server bind address")
    argument_parser.add_argument("--port", dest="port", type=int, default=8080, help="Server port")
    argument_parser.add_argument(
        "--log-level",
        dest="log_level",
        type=str,
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Root logging level",
    )
    parsed_arguments = argument_parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, parsed_arguments.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if parsed_arguments.command == "config-check":
        main_check_configuration()
        return

    application = bootstrap_create_application()
    uvicorn.run(application, host=parsed_arguments.host, port=parsed_arguments.port)


def main_check_configuration() -> None:
    """Validate the active configuration and print a one-line summary.

    Returns:
        None: Prints the summary to stdout as side effect.

    Raises:
        SystemExit: Raised with code 1 when the configuration is invalid.
    """

    try:
        configuration = config_get_active_configuration()
    except ConfigurationLoadError as error:
        logger.error("%s", error)
        raise SystemExit(1) from error

    print(
        f"Configuration OK: project={configuration.project_id} "
        f"api={configuration.primary_api_uri} site={configuration.primary_site_uri} "
        f"admins={len(configuration.admins)}"
    )


if __name__ == "__main__":
    main()
