"""
Dashboard admin (SPA buildée) servi en production.
- /assets -> fichiers du build (js, css)
- fichiers présents à la racine du build (favicon, manifest) servis tels quels
- tout autre chemin hors /api -> index.html, le routeur côté client prend le relais
Enregistré après les routers: les routes /api/* gardent la priorité.
"""
import logging
from pathlib import Path
from fastapi import FastAPI
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from storefront import config
from .exceptions import NotFound

logger = logging.getLogger(__name__)

def mount_admin_dashboard(app: FastAPI) -> None:
    if config.APP_ENV != "production":
        return
    dist_dir = Path(config.ADMIN_DIST_DIR).resolve()
    index_path = dist_dir / "index.html"
    if not index_path.is_file():
        logger.warning("ADMIN_DIST_DIR sans index.html (%s): dashboard non servi", dist_dir)
        return

    assets_dir = dist_dir / "assets"
    if assets_dir.is_dir():
        app.mount("/assets", StaticFiles(directory=str(assets_dir)), name="admin-assets")

    @app.get("/{full_path:path}", include_in_schema=False)
    def admin_dashboard(full_path: str):
        if full_path == "api" or full_path.startswith("api/"):
            raise NotFound("Route introuvable")
        if full_path:
            candidate = (dist_dir / full_path).resolve()
            # pas de sortie du répertoire de build (../)
            if candidate.is_file() and candidate.is_relative_to(dist_dir):
                return FileResponse(str(candidate))
        return FileResponse(str(index_path))
