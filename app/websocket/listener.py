# =============================================================================
# app/websocket/listener.py - Redis -> WebSocket Relay
# =============================================================================
# Every API process runs one relay (started from the app lifespan). It
# subscribes to WEBSOCKET_CHANNEL and hands each project event to the local
# ConnectionManager, so an event published by any process or Celery worker
# reaches every viewer regardless of which process holds their socket.
# =============================================================================

import asyncio
import json
import logging
from typing import Any

from app.config import settings
from app.websocket.broadcast import WEBSOCKET_CHANNEL
from app.websocket.manager import websocket_manager

logger = logging.getLogger(__name__)


def parse_event(raw: bytes | str) -> tuple[str, dict[str, Any]] | None:
    """
    Split a published message into (project_id, payload).

    Returns None for malformed messages and messages without a project.
    """
    try:
        event = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning(f"Ignoring malformed change event: {e}")
        return None

    if not isinstance(event, dict):
        return None

    project_id = event.pop("project_id", None)
    if not project_id:
        return None
    return str(project_id), event


async def relay_project_events(stop: asyncio.Event) -> None:
    """Forward published project events to local WebSocket viewers until stopped."""
    import redis.asyncio as aioredis

    client = aioredis.from_url(settings.REDIS_URL)
    pubsub = client.pubsub()

    try:
        await pubsub.subscribe(WEBSOCKET_CHANNEL)
        logger.info(f"Relaying {WEBSOCKET_CHANNEL} to WebSocket viewers")

        async for message in pubsub.listen():
            if stop.is_set():
                break
            if message.get("type") != "message":
                continue

            parsed = parse_event(message["data"])
            if parsed:
                project_id, payload = parsed
                await websocket_manager.broadcast(project_id, payload)

    except asyncio.CancelledError:
        logger.info("Change event relay cancelled")
    except Exception as e:
        logger.error(f"Change event relay stopped: {e}")
    finally:
        try:
            await pubsub.unsubscribe(WEBSOCKET_CHANNEL)
            await client.close()
        except Exception as e:
            logger.debug(f"Relay cleanup failed: {e}")
