from fastapi import APIRouter, Request

from storefront import config
from storefront.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root():
    return {"ok": True}

@router.get("/rate-limit")
def health_rate_limit(request: Request):
    return rate_limit_health_info(request)

@router.get("/stripe")
def health_stripe():
    # Booléens uniquement: aucune valeur secrète exposée
    return {
        "secret_key": bool(config.STRIPE_SECRET_KEY),
        "webhook_secret": bool(config.STRIPE_WEBHOOK_SECRET),
        "live_mode": config.STRIPE_SECRET_KEY.startswith("sk_live_"),
    }
