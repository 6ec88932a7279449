"""
Factory d’application utilisée par les entrypoints (storefront.asgi, python -m storefront).
Ordonne les étapes d’initialisation de manière lisible et testable.
"""
from fastapi import FastAPI
from .lifespan import lifespan
from .middlewares import register_basic_middlewares, register_security_middleware
from .exceptions import register_exception_handlers
from .routers import register_routers
from .static import mount_admin_dashboard

def create_app() -> FastAPI:
    """
    Construit l’app FastAPI avec le lifespan et enregistre:
      - middlewares de base (CORS, hosts, proxy) et en-têtes de sécurité
      - gestionnaires d’exceptions (erreurs métier, validation, 500 générique)
      - tous les routers (API, admin, health)
      - le dashboard admin statique, monté en dernier pour ne pas masquer /api
    Retour:
      FastAPI prêt à être utilisé par le serveur ASGI.
    """
    app = FastAPI(title="Storefront API", lifespan=lifespan)
    register_basic_middlewares(app)
    register_security_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    mount_admin_dashboard(app)
    return app
