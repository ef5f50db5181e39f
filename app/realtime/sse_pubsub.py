# SSE + Redis Pub/Sub: 이벤트 채팅 실시간 메시지
# SSE: 폴링 없이 서버→클라이언트 푸시 (long-lived connection → 예외 처리 필수)
# Redis Pub/Sub: 멀티 워커 환경에서도 발행/구독 분리

import asyncio
import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict

import redis.asyncio as redis

logger = logging.getLogger(__name__)

# Docker 환경에서는 localhost가 아니라 서비스명(redis)을 사용해야 함
REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")
CHANNEL_PREFIX = "event:"
CHANNEL_SUFFIX = ":chat"
HEARTBEAT_INTERVAL = 15.0

# 모듈 단일 클라이언트 재사용 (매 루프마다 새 연결 생성 방지)
redis_client = redis.from_url(REDIS_URL, decode_responses=True)


def _channel(event_id: int) -> str:
    return f"{CHANNEL_PREFIX}{event_id}{CHANNEL_SUFFIX}"


async def publish_chat_message(event_id: int, message: Dict[str, Any]) -> None:
    """메시지 commit 후 라우터에서 호출. Redis 실패는 로그만 남기고 전송 자체는 유지."""
    payload = {
        "type": "message_created",
        "event_id": event_id,
        "message": message,
        "ts": datetime.now(timezone.utc).isoformat(),
    }
    try:
        await redis_client.publish(_channel(event_id), json.dumps(payload, ensure_ascii=False, default=str))
    except Exception:
        logger.warning("chat publish failed for event %s", event_id, exc_info=True)


async def stream_chat_events(event_id: int) -> AsyncGenerator[str, None]:
    """
    GET /events/{id}/messages/stream 용.
    채팅 채널 구독 → SSE `message_created` 이벤트로 전달, 15초마다 heartbeat.
    """
    channel = _channel(event_id)
    pubsub = redis_client.pubsub()
    try:
        await pubsub.subscribe(channel)
        last_heartbeat = datetime.now(timezone.utc).timestamp()

        while True:
            message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
            now = datetime.now(timezone.utc).timestamp()
            if now - last_heartbeat >= HEARTBEAT_INTERVAL:
                yield ": ping\n\n"
                last_heartbeat = now
            if message and message.get("type") == "message":
                data = message.get("data") or ""
                yield f"event: message_created\ndata: {data}\n\n"
    except asyncio.CancelledError:
        pass
    finally:
        await pubsub.unsubscribe(channel)
        await pubsub.close()
