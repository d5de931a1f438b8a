"""Chat API routes."""

import asyncio

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder

from ...app import Application
from ...errors import AccessDenied, AuthenticationFailed, NotFound
from ...feed import Subscription
from ...logging_config import get_logger
from ...models import Profile
from ..deps import current_user_dependency
from ..schemas import (
    ConversationIdResponse,
    ConversationViewResponse,
    InboxEntryResponse,
    MessageRequest,
    MessageResponse,
)

logger = get_logger(__name__)


async def _close_on_disconnect(websocket: WebSocket, subscription: Subscription) -> None:
    """Close the subscription once the client goes away."""
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        subscription.close()


def create_chat_router(app: Application) -> APIRouter:
    """Create chat router."""
    router = APIRouter(prefix="/api/conversations", tags=["chat"])
    current_user = current_user_dependency(app)

    @router.post("/resolve/{user_id}", response_model=ConversationIdResponse)
    async def resolve_conversation(user_id: str, user: Profile = Depends(current_user)) -> dict:
        """Find or create the conversation with another user."""
        conversation_id = await app.chat.resolve(user.id, user_id)
        return {"conversation_id": conversation_id}

    @router.get("", response_model=list[InboxEntryResponse])
    async def inbox(user: Profile = Depends(current_user)):
        return await app.chat.inbox(user.id)

    @router.get("/{conversation_id}", response_model=ConversationViewResponse)
    async def open_conversation(conversation_id: str, user: Profile = Depends(current_user)):
        return await app.chat.open_conversation(conversation_id, user.id)

    @router.get("/{conversation_id}/messages", response_model=list[MessageResponse])
    async def get_messages(conversation_id: str, user: Profile = Depends(current_user)):
        return await app.chat.get_messages(conversation_id, user.id)

    @router.post(
        "/{conversation_id}/messages", response_model=MessageResponse, status_code=201
    )
    async def send_message(
        conversation_id: str, request: MessageRequest, user: Profile = Depends(current_user)
    ):
        return await app.chat.send_message(conversation_id, user.id, request.text)

    @router.websocket("/{conversation_id}/stream")
    async def stream_messages(
        websocket: WebSocket, conversation_id: str, token: str = Query(...)
    ) -> None:
        """Push new messages of one conversation as JSON."""
        try:
            user = await app.identity.authenticate(token)
            subscription = await app.chat.subscribe(conversation_id, user.id)
        except AuthenticationFailed:
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return
        except (NotFound, AccessDenied) as e:
            logger.info("Stream refused for %s: %s", conversation_id, e.message)
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return

        await websocket.accept()
        watcher = asyncio.create_task(_close_on_disconnect(websocket, subscription))
        try:
            async with subscription:
                async for event in subscription:
                    await websocket.send_json(
                        {
                            "type": event.type.value,
                            "message": jsonable_encoder(event.record),
                        }
                    )
        except WebSocketDisconnect:
            logger.debug("Stream for %s closed by client", conversation_id)
        finally:
            watcher.cancel()

    return router
