"""
ASGI entrypoint: `uvicorn storefront.asgi:app` (ou gunicorn avec workers uvicorn).
Toute la configuration FastAPI est centralisée dans storefront.app_setup.factory.
"""
from storefront.app_setup.factory import create_app

app = create_app()
