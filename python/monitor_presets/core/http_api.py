"""Optional HTTP control surface."""

from fastapi import FastAPI, HTTPException
import uvicorn

from ..utils.logger import get_logger
from .app import PresetApp, __version__

logger = get_logger("http_api")


def create_api(app: PresetApp) -> FastAPI:
    """Build a FastAPI application bound to a running PresetApp."""
    api = FastAPI(title=f"Monitor Presets: {app.config.app_name}", version=__version__)

    @api.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy" if app.is_running else "starting",
            "app_name": app.config.app_name,
            "host": app.config.host,
            "connected": app.device.is_connected,
            "subscriptions": app.triggers.subscriptions.get_all()
        }

    @api.get("/presets")
    async def list_presets():
        state = app.registry.config.preset
        return {
            "default": state.default,
            "current": state.current,
            "presets": [
                {"index": index, **entry.to_dict()}
                for index, entry in enumerate(state.entries)
            ]
        }

    @api.post("/presets/{index}/activate")
    async def activate_preset(index: int):
        if app.registry.resolve(index) is None:
            raise HTTPException(status_code=404, detail=f"Monitor Preset index [{index}] does not exist")

        logger.info(f"🗣️ Activation requested over HTTP for index [{index}]")
        await app.activation.activate(index)
        return {"status": "ok", "current": app.registry.current_index}

    return api


async def serve(app: PresetApp, host: str = "0.0.0.0") -> None:
    """Serve the HTTP API until cancelled."""
    logger.info(f"🎯 HTTP API running at http://localhost:{app.config.http_port}")
    config = uvicorn.Config(
        app=create_api(app),
        host=host,
        port=app.config.http_port,
        log_level="debug" if app.config.debug else "info"
    )
    server = uvicorn.Server(config)
    await server.serve()
