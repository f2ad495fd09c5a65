"""
Real-time WebSocket channel + text chat REST endpoint.
"""

import json
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Request
from pydantic import ValidationError
from typing import Optional
from loguru import logger

from voice_friend.config import settings
from voice_friend.middleware.rate_limit import limiter, chat_rate_limit
from voice_friend.models.schemas import (
    AIResponse,
    Envelope,
    ErrorMessage,
    TextChatRequest,
    TextChatResponse,
    UserMessage,
    VoiceConfig,
)
from voice_friend.services.pipeline import ResponsePipeline

router = APIRouter(tags=["voice"])

RETRY_MESSAGE = "Sorry, I had trouble processing that. Can you try again?"


# ---- Text Chat Endpoint ----
@router.post("/api/chat/text", response_model=TextChatResponse)
@limiter.limit(chat_rate_limit)
async def text_chat(request: Request, req: TextChatRequest):
    """
    Text-based chat endpoint. Send a message, get a reply plus its source.
    """
    pipeline: ResponsePipeline = request.app.state.pipeline
    result = await pipeline.handle_input(req.message)

    logger.info(f"Text chat: '{req.message[:50]}' -> '{result.reply_text[:50]}'")

    return TextChatResponse(
        text=result.reply_text,
        source=result.source(settings.DATASET_SOURCE),
        latency=result.elapsed_ms,
        provenance=result.provenance.value,
        voice_gender=req.voice_gender or settings.DEFAULT_VOICE,
    )


# ---- WebSocket Endpoint ----
class _Session:
    def __init__(self):
        self.voice_gender = settings.DEFAULT_VOICE
        self.message_count = 0


async def _handle_frame(
    pipeline: ResponsePipeline, session: _Session, raw: str
) -> Optional[dict]:
    """Process one inbound frame and return the envelope to send back, if any."""
    data = json.loads(raw)
    envelope = Envelope.model_validate(data)

    if envelope.type == "voice_config":
        config = VoiceConfig.model_validate(data)
        session.voice_gender = config.gender or settings.DEFAULT_VOICE
        logger.info(f"Voice changed to: {session.voice_gender}")
        return {"type": "config_updated", "gender": session.voice_gender}

    if envelope.type == "user_message":
        message = UserMessage.model_validate(data)
        session.message_count += 1
        logger.info(f"User: '{message.text}'")

        result = await pipeline.handle_input(message.text)
        source = result.source(settings.DATASET_SOURCE)
        logger.info(f"AI ({source}, {result.elapsed_ms}ms): '{result.reply_text}'")

        return AIResponse(
            text=result.reply_text,
            source=source,
            latency=result.elapsed_ms,
            voiceGender=session.voice_gender,
        ).model_dump()

    if envelope.type == "ping":
        return {"type": "pong"}

    logger.warning(f"Unknown message type: {envelope.type}")
    return None


async def _receive_frame(websocket: WebSocket) -> Optional[str]:
    """
    Next frame as text. Binary frames are decoded as UTF-8; returns None for
    frames that carry no usable text.
    """
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", 1000))

    if message.get("text") is not None:
        return message["text"]

    data = message.get("bytes")
    if data is None:
        return None
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        logger.error(f"Undecodable binary frame ({len(data)} bytes)")
        return None


@router.websocket("/ws")
async def voice_websocket(websocket: WebSocket):
    await websocket.accept()
    logger.info("New client connected")

    pipeline: ResponsePipeline = websocket.app.state.pipeline
    session = _Session()

    await websocket.send_json({
        "type": "connected",
        "message": "Connected to Voice AI Friend",
    })

    try:
        while True:
            raw = await _receive_frame(websocket)
            if raw is None:
                await websocket.send_json(ErrorMessage(message=RETRY_MESSAGE).model_dump())
                continue

            if len(raw.encode("utf-8")) > settings.WS_MAX_PAYLOAD:
                logger.warning(f"Dropped oversized frame ({len(raw)} chars)")
                await websocket.send_json(ErrorMessage(message="Message too large.").model_dump())
                continue

            try:
                reply = await _handle_frame(pipeline, session, raw)
            except (json.JSONDecodeError, ValidationError) as e:
                logger.error(f"Invalid message: {e}")
                reply = ErrorMessage(message=RETRY_MESSAGE).model_dump()
            except Exception:
                logger.exception("Error processing message")
                reply = ErrorMessage(message=RETRY_MESSAGE).model_dump()

            if reply is not None:
                await websocket.send_json(reply)

    except WebSocketDisconnect:
        logger.info(f"Client disconnected ({session.message_count} messages)")
