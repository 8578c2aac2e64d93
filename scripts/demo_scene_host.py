"""Quick demo script for the scene host lifecycle.

Mounts one entry of the scene table on an in-memory surface, lets it reach
``ready`` (or ``error``), toggles page visibility, resizes the surface and
finally unmounts, printing the host snapshot after each step.

Examples
--------
Load the home robot scene with the engine named by ``SCENEHOST_ENGINE``::

    SCENEHOST_ENGINE=my_engine.runtime python scripts/demo_scene_host.py --scene home-robot

Name the installed engine on the command line instead::

    python scripts/demo_scene_host.py --scene loader --engine my_engine.runtime

Without an engine target the host settles in ``error``: remote bundles need a
registered adapter, which this demo does not install.

Delay the surface layout to watch the size gate hold back engine creation::

    python scripts/demo_scene_host.py --scene drift --layout-delay 0.5
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Iterable

from scenehost import SceneHostConfig
from scenehost.catalog import SceneCatalog
from scenehost.host import SceneHost
from scenehost.runtime import RuntimeLoader
from scenehost.surface import HostDocument, Surface
from scenehost.utils.logging import configure_logging


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="SceneHost lifecycle demo")
    parser.add_argument("--scene", default="home-robot", help="scene table entry to mount")
    parser.add_argument("--scenes", type=Path, default=None, help="alternative scene table (YAML)")
    parser.add_argument(
        "--engine",
        default=None,
        help="import target of an installed engine (module or module:attr), overrides SCENEHOST_ENGINE",
    )
    parser.add_argument("--width", type=float, default=300.0)
    parser.add_argument("--height", type=float, default=200.0)
    parser.add_argument("--dpr", type=float, default=2.0, help="simulated device pixel ratio")
    parser.add_argument(
        "--layout-delay",
        type=float,
        default=0.0,
        help="seconds the surface stays 0x0 before receiving its size",
    )
    return parser.parse_args(argv)


def dump(label: str, host: SceneHost) -> None:
    print(f"--- {label}")
    print(json.dumps(host.describe(), indent=2, sort_keys=True))


async def run_demo(args: argparse.Namespace) -> int:
    config = SceneHostConfig.from_env(scenes_path=args.scenes, engine_target=args.engine)
    catalog = SceneCatalog.from_yaml(config.scenes_path)
    variant = catalog.get(args.scene)

    loader = RuntimeLoader(config=config)

    document = HostDocument()
    surface = Surface(0, 0, device_pixel_ratio=args.dpr, document=document, name=args.scene)
    host = SceneHost(variant.request_for(surface), loader=loader)

    host.mount()
    dump("mounted", host)

    if args.layout_delay > 0:
        await asyncio.sleep(args.layout_delay)
    surface.resize(args.width, args.height)

    await host.wait_settled()
    dump("settled", host)

    if host.load_state.is_ready:
        document.set_hidden(True)
        document.set_hidden(False)
        surface.resize(args.width * 2, args.height * 2)
        dump("after visibility toggle and resize", host)

    host.unmount()
    dump("unmounted", host)
    return 0 if not host.load_state.is_error else 1


def main(argv: Iterable[str] | None = None) -> int:
    configure_logging()
    args = parse_args(argv)
    try:
        return asyncio.run(run_demo(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
