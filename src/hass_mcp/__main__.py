"""Home Assistant MCP Server."""

import truststore
truststore.inject_into_ssl()

import asyncio  # noqa: E402
import logging  # noqa: E402
import signal  # noqa: E402
import sys  # noqa: E402
from typing import Any  # noqa: E402

logger = logging.getLogger(__name__)

# Shutdown configuration
SHUTDOWN_TIMEOUT_SECONDS = 2.0

# Global shutdown state
_shutdown_event: asyncio.Event | None = None
_shutdown_in_progress = False

# Environment variable shown for each settings field in configuration errors
_FIELD_ENV_NAMES = {
    "homeassistant_token": "HASS_ACCESS_TOKEN",
    "homeassistant_url": "HASS_URL",
}

_CONFIG_ERROR_MESSAGE = """
==============================================================================
                    Home Assistant MCP Server - Configuration Error
==============================================================================

Missing required environment variables:
{missing_vars}

To fix this, you need to provide your Home Assistant connection details:

  1. HASS_URL - Your Home Assistant instance URL (http(s):// or ws(s)://)
     Example: http://homeassistant.local:8123

  2. HASS_ACCESS_TOKEN - A long-lived access token
     Get one from: Home Assistant -> Profile -> Long-Lived Access Tokens

Configuration options:
  - Set environment variables directly:
      export HASS_URL=http://homeassistant.local:8123
      export HASS_ACCESS_TOKEN=your_token_here

  - Or create a .env file in the working directory

==============================================================================
"""


def _handle_config_error(error: Exception) -> None:
    """Print a user-friendly configuration error and exit."""
    from pydantic import ValidationError

    if isinstance(error, ValidationError):
        missing_vars = []
        for err in error.errors():
            if err.get("type") == "missing":
                field_loc = err.get("loc", ())
                if field_loc:
                    name = str(field_loc[0])
                    missing_vars.append(f"  - {_FIELD_ENV_NAMES.get(name, name)}")

        if missing_vars:
            print(
                _CONFIG_ERROR_MESSAGE.format(missing_vars="\n".join(missing_vars)),
                file=sys.stderr,
            )
            sys.exit(1)

    print(
        f"""
==============================================================================
                    Home Assistant MCP Server - Configuration Error
==============================================================================

{error}

==============================================================================
""",
        file=sys.stderr,
    )
    sys.exit(1)


def _load_settings():
    """Load settings, turning validation errors into a friendly exit."""
    from pydantic import ValidationError

    from hass_mcp.config import get_settings

    try:
        return get_settings()
    except ValidationError as e:
        _handle_config_error(e)
        raise


def _configure_logging(settings: Any) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.effective_log_level),
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def _create_server():
    """Create server instance (deferred until first use)."""
    from hass_mcp.server import HomeAssistantMCPServer

    return HomeAssistantMCPServer(_load_settings())


# Lazy server creation - only create when needed
_server = None


def _get_server():
    """Get the server instance, creating it if needed."""
    global _server
    if _server is None:
        _server = _create_server()
    return _server


def _get_mcp():
    return _get_server().mcp


# For module-level access (e.g. `fastmcp run hass_mcp.__main__:mcp`)
class _DeferredMCP:
    """Wrapper that defers MCP creation until actually accessed."""

    def __getattr__(self, name: str) -> Any:
        return getattr(_get_mcp(), name)

    def run(self, *args: Any, **kwargs: Any) -> None:
        return _get_mcp().run(*args, **kwargs)


mcp = _DeferredMCP()


async def _cleanup_resources() -> None:
    """Close the hub connection of the running server."""
    logger.info("Cleaning up server resources...")
    if _server is not None:
        await _server.close()
    logger.info("Server resources cleaned up")


def _signal_handler(signum: int, frame: Any) -> None:
    """Handle shutdown signals (SIGTERM, SIGINT).

    The first signal starts a graceful shutdown; a second one forces exit.
    """
    global _shutdown_in_progress

    sig_name = signal.Signals(signum).name

    if _shutdown_in_progress:
        logger.warning(f"Received {sig_name} again, forcing exit")
        sys.exit(1)

    _shutdown_in_progress = True
    logger.info(f"Received {sig_name}, initiating graceful shutdown...")

    if _shutdown_event is not None:
        try:
            loop = asyncio.get_running_loop()
            loop.call_soon_threadsafe(_shutdown_event.set)
        except RuntimeError:
            # No running event loop, just exit
            sys.exit(0)


def _setup_signal_handlers() -> None:
    signal.signal(signal.SIGTERM, _signal_handler)
    signal.signal(signal.SIGINT, _signal_handler)


async def _run_with_graceful_shutdown(**run_kwargs: Any) -> None:
    """Run the MCP server until it stops or a shutdown signal arrives."""
    global _shutdown_event

    _shutdown_event = asyncio.Event()

    server_task = asyncio.create_task(_get_mcp().run_async(show_banner=False, **run_kwargs))
    shutdown_task = asyncio.create_task(_shutdown_event.wait())

    try:
        done, pending = await asyncio.wait(
            [server_task, shutdown_task],
            return_when=asyncio.FIRST_COMPLETED,
        )

        if shutdown_task in done:
            logger.info("Shutdown signal received, stopping server...")
            server_task.cancel()
            try:
                await asyncio.wait_for(server_task, timeout=SHUTDOWN_TIMEOUT_SECONDS)
            except TimeoutError:
                logger.warning("Server did not stop within timeout")
            except asyncio.CancelledError:
                pass
        elif server_task.exception() is not None:
            raise server_task.exception()  # type: ignore[misc]

    except asyncio.CancelledError:
        logger.info("Server task cancelled")
    finally:
        try:
            await asyncio.wait_for(_cleanup_resources(), timeout=SHUTDOWN_TIMEOUT_SECONDS)
        except TimeoutError:
            logger.warning("Resource cleanup timed out")

        for task in [server_task, shutdown_task]:
            if not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass


def _run(transport: str) -> None:
    """Common runner for all transports.

    Args:
        transport: One of ``stdio``, ``sse`` or ``streamablehttp``.
    """
    settings = _load_settings()
    _configure_logging(settings)

    # Build the server (and register capabilities) before serving
    _get_server()

    run_kwargs: dict[str, Any] = {}
    if transport == "stdio":
        run_kwargs["transport"] = "stdio"
    else:
        run_kwargs.update(
            transport="sse" if transport == "sse" else "streamable-http",
            host=settings.host,
            port=settings.port,
        )
        if transport != "sse":
            run_kwargs["path"] = settings.mcp_path
        logger.info(f"Serving {transport} on {settings.host}:{settings.port}")

    _setup_signal_handlers()

    try:
        asyncio.run(_run_with_graceful_shutdown(**run_kwargs))
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
    except SystemExit:
        raise
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)

    sys.exit(0)


def main() -> None:
    """Run the server on the transport selected by TRANSPORT (default stdio)."""
    if "--version" in sys.argv or "-V" in sys.argv:
        from hass_mcp import __version__

        print(f"hass-mcp {__version__}")
        sys.exit(0)

    _run(_load_settings().transport)


def main_web() -> None:
    """Run the server over streamable HTTP.

    Environment:
    - HASS_URL, HASS_ACCESS_TOKEN
    - PORT (optional, default: 3000)
    - MCP_SECRET_PATH (optional, default: "/mcp")
    """
    _run("streamablehttp")


def main_sse() -> None:
    """Run the server using the Server-Sent Events transport."""
    _run("sse")


if __name__ == "__main__":
    main()
