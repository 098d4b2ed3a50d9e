"""Record helpers for a single collection (table)."""
from typing import Any, Dict, List, Optional, TYPE_CHECKING
from urllib.parse import quote

from .async_client import AsyncAPIClient

if TYPE_CHECKING:
    from ..realtime import RealtimeChannel, RealtimeClient


class Collection:
    """
    Thin request wrapper bound to one collection.

    Example:
        >>> orders = client.collection('orders')
        >>> await orders.create({'total': 10})
        >>> orders.channel().on('INSERT', print).subscribe()
    """

    def __init__(
        self,
        name: str,
        api: AsyncAPIClient,
        realtime: Optional['RealtimeClient'] = None
    ):
        self.name = name
        self._api = api
        self._realtime = realtime

    @property
    def records_path(self) -> str:
        return f"/api/collections/{quote(self.name, safe='')}/records"

    async def get_list(self) -> List[Dict[str, Any]]:
        return await self._api.request('GET', self.records_path)

    async def get_one(self, record_id: Any) -> Dict[str, Any]:
        return await self._api.request(
            'GET', f"{self.records_path}/{quote(str(record_id), safe='')}"
        )

    async def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._api.request('POST', self.records_path, data)

    def channel(self) -> 'RealtimeChannel':
        """Realtime channel scoped to this collection."""
        if self._realtime is None:
            raise RuntimeError("Collection was created without a realtime client")
        return self._realtime.channel(self.name)
