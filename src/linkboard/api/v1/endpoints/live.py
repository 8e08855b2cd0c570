"""WebSocket endpoint for real-time notification delivery."""

import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from linkboard.core.errors import LinkboardError

from ..dependencies import SessionFactoryDep, resolve_token_user

router = APIRouter(tags=["live"])
logger = logging.getLogger(__name__)


@router.websocket("/live")
async def live_channel(
    websocket: WebSocket,
    session_factory: SessionFactoryDep,
    token: str = Query(...),
) -> None:
    """Authenticate with ``?token=`` and receive pushes until disconnect.

    The database session only lives for the authentication step. A newer
    connection from the same user replaces the older one.
    """
    try:
        with session_factory() as db:
            user_id = resolve_token_user(db, token).id
    except LinkboardError as err:
        logger.info("Rejected live connection: %s", err.detail)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    registry = websocket.app.state.connections
    await websocket.accept()
    registry.register(user_id, websocket)
    try:
        await websocket.send_json({"event": "connected", "data": {"user_id": user_id}})
        while True:
            # Client frames are only keep-alives.
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        registry.unregister(user_id, websocket)
