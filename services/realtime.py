import asyncio
import json
import logging
from typing import Any

from starlette.websockets import WebSocketState

log = logging.getLogger("realtime")


def _is_writable(socket: Any) -> bool:
    return (
        getattr(socket, "client_state", None) == WebSocketState.CONNECTED
        and getattr(socket, "application_state", None) == WebSocketState.CONNECTED
    )


class ConnectionRegistry:
    """
    Per-shop set of open dashboard websockets.

    add/remove are serialized by a lock; broadcast iterates over a snapshot,
    so a socket closing mid-broadcast is just skipped.
    Purely ephemeral: no backlog for clients that connect later.
    """

    def __init__(self) -> None:
        # dicts keep insertion order -> delivery order within one shop
        self._connections: dict[str, dict[Any, None]] = {}
        self._lock = asyncio.Lock()

    def count(self, shop_id: str | None = None) -> int:
        if shop_id is not None:
            return len(self._connections.get(shop_id, {}))
        return sum(len(conns) for conns in self._connections.values())

    def shops(self) -> list[str]:
        return list(self._connections.keys())

    async def add(self, shop_id: str, socket: Any) -> None:
        async with self._lock:
            self._connections.setdefault(shop_id, {})[socket] = None
        log.info("WebSocket connected for shop: %s (%d open)", shop_id, self.count(shop_id))

    async def remove(self, shop_id: str, socket: Any) -> None:
        async with self._lock:
            conns = self._connections.get(shop_id)
            if conns is None:
                return
            conns.pop(socket, None)
            if not conns:
                del self._connections[shop_id]
        log.info("WebSocket disconnected for shop: %s", shop_id)

    async def broadcast(self, shop_id: str, data: Any) -> int:
        """
        Push {"type": "update", "data": data} to every writable socket of the shop.
        Returns how many sockets got the message.
        """
        async with self._lock:
            sockets = list(self._connections.get(shop_id, {}))

        if not sockets:
            return 0

        message = json.dumps({"type": "update", "data": data}, default=str)

        delivered = 0
        for socket in sockets:
            if not _is_writable(socket):
                continue
            try:
                await socket.send_text(message)
                delivered += 1
            except Exception as e:
                log.warning("WebSocket send failed for shop %s, dropping connection: %s", shop_id, e)
                await self.remove(shop_id, socket)

        log.info("Broadcasted update to %d/%d clients for shop: %s", delivered, len(sockets), shop_id)
        return delivered

    async def notify_new_order(self, shop_id: str, order_summary: dict) -> int:
        return await self.broadcast(shop_id, {"event": "new_order", "order": order_summary})
