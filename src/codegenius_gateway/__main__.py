"""``python -m codegenius_gateway``: load config, build the assistant, serve HTTP."""

import argparse
import asyncio
import sys
from pathlib import Path

import structlog
import uvicorn

from codegenius_gateway._version import __version__
from codegenius_gateway.config.loader import CONFIG_PATH_ENV, find_config_path, load_config
from codegenius_gateway.utils.logging import LogEventNames, LogLevel, configure_logging
from codegenius_gateway.utils.security import mask_config_value

log = structlog.get_logger()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="codegenius-gateway",
        description="Serve the CodeGenius debug/translate/explain/chat API.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        help=f"YAML config file (falls back to ${CONFIG_PATH_ENV}, then config/config.yaml)",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="log at DEBUG level")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="validate the config and exit without binding a port",
    )
    parser.add_argument(
        "--format",
        choices=["json", "console"],
        default="console",
        help="log renderer used until the config file is read",
    )
    parser.add_argument("--host", help="bind address, overrides server.host")
    parser.add_argument("--port", type=int, help="bind port, overrides server.port")
    return parser.parse_args(argv)


async def run_gateway(
    config_path: Path,
    dry_run: bool = False,
    host: str | None = None,
    port: int | None = None,
) -> int:
    """Serve until uvicorn shuts down; return the process exit code."""
    log.info(LogEventNames.GATEWAY_STARTING, version=__version__, config_path=str(config_path))

    try:
        config = load_config(config_path)
        configure_logging(
            level=config.logging.level,
            log_format=config.logging.format,
            file_path=config.logging.file.path,
            file_enabled=config.logging.file.enabled,
        )

        provider_config = getattr(config.llm, config.llm.provider)
        log.info(
            LogEventNames.CONFIGURATION_LOADED,
            provider=config.llm.provider,
            model=provider_config.model,
            api_key=mask_config_value("api_key", provider_config.api_key),
        )
        if dry_run:
            log.info(LogEventNames.DRY_RUN_COMPLETE)
            return 0

        # Provider SDKs are imported only when actually serving
        from codegenius_gateway.api.app import create_app
        from codegenius_gateway.core.assistant import create_assistant

        app = create_app(create_assistant(config), config.limits)
        uvicorn_config = uvicorn.Config(
            app,
            host=host or config.server.host,
            port=port or config.server.port,
            log_config=None,
        )
        await uvicorn.Server(uvicorn_config).serve()
    except FileNotFoundError as e:
        log.error(LogEventNames.CONFIGURATION_NOT_FOUND, path=str(config_path), error=str(e))
        return 1
    except ValueError as e:
        # pydantic.ValidationError is a ValueError
        log.error(LogEventNames.CONFIGURATION_INVALID, path=str(config_path), error=str(e))
        return 1
    except Exception as e:
        log.exception(LogEventNames.GATEWAY_FATAL_ERROR, error=str(e))
        return 1

    log.info(LogEventNames.GATEWAY_STOPPED)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(level=LogLevel.DEBUG if args.debug else LogLevel.INFO, log_format=args.format)

    try:
        return asyncio.run(
            run_gateway(find_config_path(args.config), args.dry_run, args.host, args.port)
        )
    except KeyboardInterrupt:
        log.info(LogEventNames.GATEWAY_INTERRUPTED)
        return 0


if __name__ == "__main__":
    sys.exit(main())
