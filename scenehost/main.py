"""
Control service entrypoint.

Resolves configuration, initialises logging and serves the catalog/runtime
API with uvicorn.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from . import SceneHostConfig
from .api.server import create_app
from .catalog import SceneCatalog
from .runtime.loader import RuntimeLoader
from .utils.logging import configure_logging

LOG = logging.getLogger(__name__)


async def serve(
    config: SceneHostConfig,
    host: str = "127.0.0.1",
    port: int = 8080,
    *,
    preload: bool = False,
) -> None:
    """
    Run the control API inside an asyncio loop.

    Parameters
    ----------
    config:
        Scene hosting configuration.
    host, port:
        Bind address for the FastAPI/uvicorn server.
    preload:
        Start resolving the default engine runtime as soon as the app is up.
    """

    import uvicorn

    configure_logging()
    loader = RuntimeLoader(config=config)
    catalog = SceneCatalog.from_yaml(config.scenes_path)
    LOG.info("Loaded %d scene variants from %s", len(catalog), config.scenes_path)

    @asynccontextmanager
    async def app_lifespan(_app) -> AsyncIterator[None]:
        LOG.info("SceneHost service starting")
        preload_task = loader.preload() if preload else None
        try:
            yield
        finally:
            if preload_task is not None and not preload_task.done():
                preload_task.cancel()
            LOG.info("SceneHost service shutting down")

    app = create_app(catalog=catalog, loader=loader, config=config, lifespan=app_lifespan)
    server_config = uvicorn.Config(
        app=app,
        host=host,
        port=port,
        log_config=None,
        log_level="info",
        reload=False,
    )
    server = uvicorn.Server(config=server_config)

    def _handle_signal(signum: int, frame: Optional[object]) -> None:
        LOG.info("Received signal %s, shutting down server...", signum)
        server.should_exit = True

    for signame in ("SIGINT", "SIGTERM"):
        signal.signal(getattr(signal, signame), _handle_signal)

    await server.serve()


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="SceneHost control service")
    parser.add_argument("--host", default="127.0.0.1", help="bind host for the API server")
    parser.add_argument("--port", type=int, default=8080, help="bind port for the API server")
    parser.add_argument("--scenes", type=Path, default=None, help="path to the scene table (YAML)")
    parser.add_argument("--runtime-version", default=None, help="default engine runtime version")
    parser.add_argument(
        "--engine",
        default=None,
        help="import target of an installed engine (module or module:attr), overrides SCENEHOST_ENGINE",
    )
    parser.add_argument("--preload", action="store_true", help="resolve the engine runtime at startup")
    return parser.parse_args(argv)


def run(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    config = SceneHostConfig.from_env(
        scenes_path=args.scenes,
        runtime_version=args.runtime_version,
        engine_target=args.engine,
    )

    try:
        asyncio.run(serve(config=config, host=args.host, port=args.port, preload=args.preload))
    except KeyboardInterrupt:
        LOG.info("Service interrupted by user.")


if __name__ == "__main__":
    run()
