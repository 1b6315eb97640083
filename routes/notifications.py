from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from core.db import get_db
from core.tenancy import seller_from_token
from services.notifications import registry

router = APIRouter(tags=["notifications"])


@router.websocket("/ws/orders")
async def order_events(websocket: WebSocket, token: str = Query(default=""), db: Session = Depends(get_db)):
    """Push order.created / order.status_changed events for the signed-in seller."""
    try:
        seller_id = seller_from_token(token, db).id
    except HTTPException as exc:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=str(exc.detail))
        return
    finally:
        # Release the pooled connection; the socket may stay open for hours
        db.commit()

    await websocket.accept()
    registry.connect(seller_id, websocket)
    await websocket.send_json({"event": "connected", "sellerId": seller_id})
    try:
        while True:
            # Clients only ping; anything they send is ignored
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        registry.disconnect(seller_id, websocket)
