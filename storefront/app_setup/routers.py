"""
Registre central des routers.
- API: checkout (création de session), webhooks Stripe
- Health: état du service, du rate limiting et de la configuration Stripe
"""
from fastapi import FastAPI
from storefront.checkout import views as checkout_views
from storefront.webhooks import views as webhook_views
from storefront.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    # API
    app.include_router(checkout_views.router)
    app.include_router(webhook_views.router)
    # Health & monitoring
    app.include_router(health_router)
