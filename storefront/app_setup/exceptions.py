"""
Erreurs métier et gestionnaires d’exceptions.
- Les erreurs métier héritent de HTTPException: les services les lèvent, la couche HTTP les rend en JSON.
- Les erreurs de validation pydantic sont rendues en 400 (même famille que ValidationFailed).
- Toute autre exception devient un 500 générique; le détail reste dans les logs serveur.
"""
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

class ValidationFailed(HTTPException):
    def __init__(self, detail: str = "Requête invalide"):
        super().__init__(status_code=400, detail=detail)

class NotFound(HTTPException):
    def __init__(self, detail: str = "Ressource introuvable"):
        super().__init__(status_code=404, detail=detail)

class Conflict(HTTPException):
    def __init__(self, detail: str = "Ressource déjà existante"):
        super().__init__(status_code=400, detail=detail)

class InsufficientStock(HTTPException):
    def __init__(self, product_name: str):
        super().__init__(status_code=400, detail=f"Stock insuffisant pour {product_name}")
        self.product_name = product_name

class InvalidTotal(HTTPException):
    def __init__(self, detail: str = "Total de commande invalide"):
        super().__init__(status_code=400, detail=detail)

class SignatureInvalid(HTTPException):
    def __init__(self, detail: str = "Signature webhook invalide"):
        super().__init__(status_code=400, detail=detail)

def register_exception_handlers(app: FastAPI) -> None:
    """
    Enregistre les handlers:
    - HTTPException (et erreurs métier): {"detail": ...} avec le code associé
    - RequestValidationError: 400 avec la liste des erreurs pydantic
    - Exception: 500 générique, trace complète loggée
    """
    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Erreur non gérée sur %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Erreur interne du serveur"})
