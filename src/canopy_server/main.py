"""canopy-gis map service.

Main FastAPI application. One MapSession is created at startup and kept
on ``app.state.map_session``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from canopy.session import MapSession
from canopy.sources.postgrest import PostgrestSource
from canopy.surface.memory import ClusteringMapSurface, MemoryMapSurface
from canopy_server.config import Settings, settings
from canopy_server.routers.layers import router as layers_router


def create_session(cfg: Settings, source=None) -> MapSession:
    """Build a MapSession from settings; ``source`` overrides the PostgREST client."""
    if source is None:
        source = PostgrestSource(
            cfg.postgrest_url, api_key=cfg.postgrest_key, timeout=cfg.http_timeout
        )
    surface = ClusteringMapSurface() if cfg.clustering_enabled else MemoryMapSurface()
    return MapSession(
        source,
        surface,
        fit_padding=(cfg.fit_padding, cfg.fit_padding),
        fit_max_zoom=cfg.fit_max_zoom,
        cluster_options={"disableClusteringAtZoom": cfg.disable_clustering_at_zoom},
    )


def create_app(cfg: Settings = settings, source=None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        session = create_session(cfg, source)
        app.state.map_session = session
        app.state.settings = cfg
        projects = await session.load_projects()
        logger.info(f"{cfg.app_name}: {len(projects)} projects available")
        yield
        session.clear()

    app = FastAPI(title=cfg.app_name, debug=cfg.debug, lifespan=lifespan)
    app.include_router(layers_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
