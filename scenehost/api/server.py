"""
FastAPI control surface for scene hosting.

Lists the scene table, lets admins attach a scene to an event, and reports or
warms the shared engine runtime.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Set

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .. import SceneHostConfig
from ..catalog import SceneCatalog
from ..errors import InvalidSceneUrl, UnknownScene
from ..runtime.loader import RuntimeLoader
from . import schemas

LOG = logging.getLogger(__name__)


def create_app(
    *,
    catalog: Optional[SceneCatalog] = None,
    loader: Optional[RuntimeLoader] = None,
    config: Optional[SceneHostConfig] = None,
    lifespan: Optional[Callable[..., object]] = None,
) -> FastAPI:
    host_config = config or (loader.config if loader is not None else SceneHostConfig.from_env())
    scene_catalog = catalog if catalog is not None else SceneCatalog.from_yaml(host_config.scenes_path)
    runtime_loader = loader or RuntimeLoader(config=host_config)
    preload_tasks: Set["asyncio.Task[None]"] = set()

    app = FastAPI(title="SceneHost API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.catalog = scene_catalog
    app.state.loader = runtime_loader

    def runtime_status(version: Optional[str]) -> schemas.RuntimeStatusModel:
        url = runtime_loader.runtime_url(version)
        return schemas.RuntimeStatusModel(
            url=url,
            version=version or runtime_loader.config.runtime_version,
            loaded=runtime_loader.is_loaded(version),
            pending=runtime_loader.cache.is_pending(url),
        )

    @app.get("/healthz")
    async def healthz() -> dict:
        return {
            "status": "ok",
            "runtimeVersion": runtime_loader.config.runtime_version,
            "scenes": len(scene_catalog),
        }

    @app.get("/api/scenes", response_model=schemas.SceneCollection, response_model_by_alias=True)
    async def list_scenes() -> schemas.SceneCollection:
        return schemas.SceneCollection(scenes={variant.name: variant for variant in scene_catalog})

    @app.get("/api/scenes/{name}")
    async def get_scene(name: str) -> dict:
        try:
            return scene_catalog.get(name).to_dict()
        except UnknownScene as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    @app.delete("/api/scenes/{name}")
    async def delete_scene(name: str) -> dict:
        if not scene_catalog.remove(name):
            raise HTTPException(status_code=404, detail=f"Unknown scene '{name}'")
        return {"removed": name}

    @app.put("/api/events/{event_id}/spline")
    async def set_event_scene(event_id: str, payload: schemas.SplineUrlRequest) -> dict:
        existed = scene_catalog.exists(event_id)
        options = {}
        if payload.pixel_ratio_cap is not None:
            options["pixel_ratio_cap"] = payload.pixel_ratio_cap
        try:
            variant = scene_catalog.register(
                event_id,
                payload.spline_url,
                runtime_version=payload.runtime_version,
                **options,
            )
        except InvalidSceneUrl as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"scene": variant.to_dict(), "created": not existed}

    @app.get("/api/runtime", response_model=schemas.RuntimeStatusModel)
    async def get_runtime(version: Optional[str] = None) -> schemas.RuntimeStatusModel:
        return runtime_status(version)

    @app.post("/api/runtime/preload")
    async def preload_runtime(version: Optional[str] = None) -> dict:
        task = runtime_loader.preload(version)
        if task is not None:
            preload_tasks.add(task)
            task.add_done_callback(preload_tasks.discard)
            LOG.info("Preloading engine runtime %s", runtime_loader.runtime_url(version))
        return {"started": task is not None, "runtime": runtime_status(version).model_dump()}

    return app
