"""
Registre central des routers (API, admin, health).
- API: products, cart, users (adresses/wishlist), orders, payment
- Admin: admin_router
- Health: health_router
"""
from fastapi import FastAPI
from storefront.products import views as products_views
from storefront.cart import views as cart_views
from storefront.users import views as users_views
from storefront.orders import views as orders_views
from storefront.payments import views as payments_views
from storefront.admin.views import router as admin_router
from storefront.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    """
    Agrège tous les routers de l’application.
    - L’ordre n’a pas d’impact sauf conflits de chemins (évités par préfixes).
    """
    app.include_router(products_views.router)
    app.include_router(cart_views.router)
    app.include_router(users_views.router)
    app.include_router(orders_views.router)
    app.include_router(payments_views.router)
    # Admin
    app.include_router(admin_router)
    # Health & monitoring
    app.include_router(health_router)
