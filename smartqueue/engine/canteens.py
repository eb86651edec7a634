"""
SmartQueue — Canteen registry
"""
import logging
import random

from smartqueue.engine.tokens import new_id
from smartqueue.schemas.queue import Canteen
from smartqueue.store.base import EntityType, RecordStore, StoreWriteError

logger = logging.getLogger(__name__)

THEMES = [
    "from-blue-500 to-indigo-600",
    "from-amber-600 to-orange-600",
    "from-red-500 to-pink-600",
    "from-green-500 to-emerald-600",
    "from-purple-500 to-violet-600",
]


class CanteenRegistry:

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def register(self, name: str, campus: str) -> Canteen:
        canteen = Canteen(id=new_id(), name=name, campus=campus, theme_color=random.choice(THEMES))
        await self.save(canteen)
        logger.info("Registered canteen %s (%s) on %s", canteen.name, canteen.id, canteen.campus)
        return canteen

    async def save(self, canteen: Canteen) -> Canteen:
        """Upsert, e.g. a canteen decoded from a scanned QR code."""
        if not await self._store.upsert(EntityType.CANTEEN, canteen.id, canteen.model_dump(mode="json")):
            raise StoreWriteError(f"Could not persist canteen {canteen.id}")
        return canteen

    async def get(self, canteen_id: str) -> Canteen | None:
        record = await self._store.get_by_id(EntityType.CANTEEN, canteen_id)
        return Canteen.model_validate(record) if record is not None else None

    async def list_all(self) -> list[Canteen]:
        return [Canteen.model_validate(r) for r in await self._store.get_all(EntityType.CANTEEN)]
