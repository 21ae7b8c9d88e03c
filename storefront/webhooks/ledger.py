"""
Registre des événements webhook déjà pris en charge (idempotence).

Stripe peut livrer plusieurs fois le même événement: l'identifiant est « réclamé »
avant l'exécution des effets de bord; une seconde réclamation renvoie False.
- InMemoryEventLedger: ensemble borné (les plus anciens sont évincés), par processus.
- RedisEventLedger: SET NX avec TTL, partagé entre workers.
"""
import logging
from collections import OrderedDict
from typing import Protocol

from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

# module storefront.webhooks.ledger
class EventLedger(Protocol):
    async def claim(self, event_id: str) -> bool: ...


class InMemoryEventLedger:
    def __init__(self, max_size: int = 1024):
        self.max_size = max(1, max_size)
        self._seen: "OrderedDict[str, None]" = OrderedDict()

    def __contains__(self, event_id: str) -> bool:
        return event_id in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    def __bool__(self) -> bool:
        # Un registre vide reste un registre valide (pas de `ledger or ...`)
        return True

    async def claim(self, event_id: str) -> bool:
        # Pas d'await entre le test et l'insertion: atomique dans la boucle asyncio
        if event_id in self._seen:
            self._seen.move_to_end(event_id)
            return False
        self._seen[event_id] = None
        while len(self._seen) > self.max_size:
            self._seen.popitem(last=False)
        return True


class RedisEventLedger:
    def __init__(self, redis_client, ttl_seconds: int, prefix: str = "webhook:event:"):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    async def claim(self, event_id: str) -> bool:
        try:
            created = await self.redis.set(f"{self.prefix}{event_id}", "1", nx=True, ex=self.ttl_seconds)
        except RedisError:
            # Redis indisponible: on traite l'événement plutôt que de perdre la notification
            logger.exception("Erreur registre webhook (redis) event_id=%s", event_id)
            return True
        return bool(created)
