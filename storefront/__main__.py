"""
Lancement local: `python -m storefront`.

Variables lues:
- HOST / PORT: interface et port d'écoute (0.0.0.0:8000 par défaut)
- UVICORN_RELOAD: rechargement auto en dev ("1"/"true"/"yes")
- LOG_LEVEL: niveau des logs uvicorn et de l'application
"""
import logging
import os

import uvicorn


def main() -> None:
    log_level = os.environ.get("LOG_LEVEL", "info").lower()
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    uvicorn.run(
        "storefront.app_setup.factory:create_app",
        factory=True,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", 8000)),
        reload=os.environ.get("UVICORN_RELOAD", "").lower() in ("1", "true", "yes"),
        log_level=log_level,
    )


if __name__ == "__main__":
    main()
