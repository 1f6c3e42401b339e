from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from core.logger import log

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def order_updates(websocket: WebSocket, shop: Optional[str] = None):
    """
    Dashboard live feed for one shop: /ws?shop=<shop domain>

    server -> client:
      {"type": "connection", "message": "..."}                       once, on attach
      {"type": "update", "data": {"event": "new_order", "order": ...}}  per scored order
    """
    registry = websocket.app.state.connections

    if not shop:
        log.error("WebSocket connection attempt without shop ID")
        # accept first: a close before accept goes out as an HTTP 403, not a 1008 frame
        await websocket.accept()
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Shop ID is required")
        return

    await websocket.accept()
    await registry.add(shop, websocket)
    try:
        await websocket.send_json({"type": "connection", "message": "Connected to order updates"})

        # client messages are ignored; reading keeps the disconnect observable
        while True:
            await websocket.receive_text()

    except WebSocketDisconnect:
        pass

    except Exception as e:
        log.exception("WebSocket error for shop %s: %s", shop, e)

    finally:
        await registry.remove(shop, websocket)
