"""
Chat endpoint - the client sends the whole conversation on every call.
"""
import anthropic
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse

from smarty.api.deps import get_chat_handler
from smarty.core.chat import ChatHandler
from smarty.schemas.chat import ChatRequest, ChatResponse

router = APIRouter()


def wants_plain_text(request: Request) -> bool:
    return "text/plain" in request.headers.get("accept", "")


@router.post("/chat", response_model=ChatResponse)
async def chat(
    chat_request: ChatRequest,
    request: Request,
    handler: ChatHandler = Depends(get_chat_handler),
):
    """
    Reply to a conversation.
    Returns JSON by default, or streams plain text when the client accepts text/plain.
    """
    messages = chat_request.messages
    if not messages:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Messages array is required",
        )
    if messages[-1].role != "user":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Last message must be from user",
        )

    if wants_plain_text(request):
        payload = [{"role": m.role, "content": m.content} for m in messages]
        return StreamingResponse(
            handler.stream(payload),
            media_type="text/plain; charset=utf-8",
            headers={"Cache-Control": "no-cache"},
        )

    try:
        return await handler.process_messages(messages)
    except anthropic.APIError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error processing message: {str(e)}",
        )
