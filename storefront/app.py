# module storefront.app
from fastapi import FastAPI

from storefront.app_setup.lifespan import lifespan
from storefront.app_setup.middlewares import (
    register_basic_middlewares,
    register_security_middleware,
    register_force_https_middleware,
)
from storefront.app_setup.exceptions import register_exception_handlers
from storefront.app_setup.routers import register_routers

def create_app() -> FastAPI:
    """
    Crée et configure l'instance FastAPI de la boutique.
    Étapes et ordre (important pour la sécurité et le comportement):
      1) register_basic_middlewares: CORS, TrustedHost, ProxyHeaders.
      2) register_security_middleware: en-têtes de sécurité.
      3) register_exception_handlers: réponses d'erreur JSON {"error": ...}.
      4) register_routers: checkout, webhooks, health.
      5) register_force_https_middleware: ajouté en dernier pour s'exécuter en premier (redirection HTTPS).
    Retourne:
      - FastAPI: l'application prête à être servie (ASGI).
    """
    app = FastAPI(title="Storefront API", lifespan=lifespan)
    register_basic_middlewares(app)
    register_security_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    register_force_https_middleware(app)
    return app

# App globale
app = create_app()
