"""
Socket.IO server

Every connection is authenticated once in the connect handler; the
resolved role, user id and tenant are kept in the socket session for the
lifetime of the connection. All other events go through the event router.
"""
import logging
from typing import Any, Callable, Dict, Optional

import socketio
from socketio.exceptions import ConnectionRefusedError
from starlette.concurrency import run_in_threadpool

import superadmin_handlers  # noqa: F401  registers the superadmin modules
from auth import AuthenticationError, Identity, resolve_identity
from config import CORS_ORIGINS
from events import Connection, room_for, router

logger = logging.getLogger(__name__)

ROOM_SCOPED_ROLES = {"superadmin"}

sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins="*" if CORS_ORIGINS == ["*"] else CORS_ORIGINS,
)


def _handshake_token(auth: Any) -> Optional[str]:
    token = auth.get("token") if isinstance(auth, dict) else None
    return token if isinstance(token, str) else None


async def open_session(server, sid: str, auth: Any, resolver: Optional[Callable[[Optional[str]], Identity]] = None) -> Dict[str, Any]:
    """
    Authenticate a new socket and set up its session.

    Raises AuthenticationError; nothing is stored for rejected sockets.
    """
    identity = await run_in_threadpool(resolver or resolve_identity, _handshake_token(auth))
    session = {
        "user_id": identity.user_id,
        "role": identity.role,
        "company_id": identity.company_id,
        "claims": identity.claims,
        "attached_modules": {},
    }
    await server.save_session(sid, session)
    if identity.role in ROOM_SCOPED_ROLES:
        await server.enter_room(sid, room_for(identity.role))
        logger.info("Socket %s joined %s", sid, room_for(identity.role))
    logger.info(
        "Client connected: %s, role: %s, company: %s, user: %s",
        sid, identity.role, identity.company_id or "None", identity.user_id,
    )
    return session


async def route_event(server, sid: str, event: str, args: tuple) -> bool:
    session = await server.get_session(sid)
    if not session:
        return False
    return await router.dispatch(Connection(server, sid, session), event, args)


@sio.event
async def connect(sid, environ, auth=None):
    logger.info("Socket connection attempt %s", sid)
    try:
        await open_session(sio, sid, auth)
    except AuthenticationError as e:
        logger.warning("Rejected socket %s: %s", sid, e)
        raise ConnectionRefusedError(str(e))
    except Exception:
        logger.exception("Unexpected error while authenticating socket %s", sid)
        raise ConnectionRefusedError("Authentication error: Token verification failed")


@sio.on("*")
async def any_event(event, sid, *args):
    logger.debug("[%s] Received event: %s", sid, event)
    await route_event(sio, sid, event, args)


@sio.event
async def disconnect(sid, *args):
    logger.info("Client disconnected: %s", sid)
