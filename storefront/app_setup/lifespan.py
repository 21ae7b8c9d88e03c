"""
Lifespan FastAPI: initialisation/arrêt des ressources partagées.
- Configure le SDK Stripe (clé, timeout) une seule fois au démarrage.
- Registre des événements webhook: Redis si WEBHOOK_LEDGER_REDIS_URL, sinon mémoire bornée.
- Transport des notifications (EmailJS si configuré, sinon log).
- Initialise FastAPILimiter (Redis) avec options de test (fakeredis).
Variables d'environnement supportées:
  - DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS=1: désactive complètement le rate limiting (tests)
  - USE_FAKE_REDIS_FOR_TESTS=1: utilise fakeredis (tests)
  - LOCAL_RATE_LIMIT_FALLBACK=1: active un fallback local si l'init échoue
"""
import os
import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter

from storefront import config
from storefront.checkout.stripe_client import require_stripe
from storefront.notifications import default_sender
from storefront.webhooks.ledger import InMemoryEventLedger, RedisEventLedger

try:
    from fakeredis.aioredis import FakeRedis  # tests only
except ImportError:
    FakeRedis = None

async def _init_rate_limiter(app: FastAPI, logger: logging.Logger) -> None:
    try:
        if os.getenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS") == "1":
            app.state.rate_limit_enabled = False
            logger.info("Rate limiting disabled by DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS")
            return

        if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
            if not FakeRedis:
                raise RuntimeError("USE_FAKE_REDIS_FOR_TESTS=1 mais fakeredis n'est pas installé.")
            r = FakeRedis(decode_responses=True)
        else:
            redis_url = os.getenv("RATE_LIMIT_REDIS_URL", "redis://127.0.0.1:6379/0")
            r = aioredis.from_url(redis_url, encoding="utf-8", decode_responses=True)

        await FastAPILimiter.init(r)
        app.state.rate_limit_enabled = True
        logger.info("Rate limiting enabled")
    except Exception as e:
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            app.state.rate_limit_enabled = True
            logger.warning(f"Rate limiting falling back to local in-memory due to init error: {e}")
        else:
            app.state.rate_limit_enabled = False
            logger.warning(f"Rate limiting disabled due to init error: {e}")

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Prépare Stripe, le registre webhook, l'envoi d'emails et le rate limiting.
    - En cas d'échec de Redis et sans fallback, le rate limiting est désactivé proprement.
    - Les logs indiquent l'état effectif pour observabilité.
    """
    logger = logging.getLogger("uvicorn.error")

    require_stripe()
    if not config.STRIPE_SECRET_KEY:
        logger.warning("STRIPE_SECRET_KEY manquant: la création de sessions échouera")
    if not config.STRIPE_WEBHOOK_SECRET:
        logger.warning("STRIPE_WEBHOOK_SECRET manquant: tous les webhooks seront rejetés")

    ledger_redis = None
    if config.WEBHOOK_LEDGER_REDIS_URL:
        ledger_redis = aioredis.from_url(config.WEBHOOK_LEDGER_REDIS_URL, decode_responses=True)
        app.state.event_ledger = RedisEventLedger(ledger_redis, config.WEBHOOK_LEDGER_TTL_SECONDS)
        logger.info("Webhook ledger: redis")
    else:
        app.state.event_ledger = InMemoryEventLedger(config.WEBHOOK_LEDGER_SIZE)
        logger.info(f"Webhook ledger: memory (max {config.WEBHOOK_LEDGER_SIZE})")

    app.state.notification_sender = default_sender()
    logger.info(f"Notification sender: {type(app.state.notification_sender).__name__}")

    await _init_rate_limiter(app, logger)

    yield

    if ledger_redis is not None:
        await ledger_redis.aclose()
