"""
Socket event routing

Events are named "<role>/<module>/<action>" and answered on
"<role>/<module>/<action>-response". The router ignores events whose role
prefix does not match the connection's role, and attaches the handler set
of a module to a connection the first time one of its events arrives.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from bson import ObjectId
from fastapi.encoders import jsonable_encoder
from starlette.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)

Handler = Callable[..., Awaitable[Any]]


def module_for(event: str) -> Optional[str]:
    parts = event.split("/")
    return parts[1] if len(parts) > 1 and parts[1] else None


def room_for(role: str) -> str:
    return f"{role}_room"


def encode(payload: Any) -> Any:
    return jsonable_encoder(payload, custom_encoder={ObjectId: str})


class Connection:
    """One authenticated socket and its session state."""

    def __init__(self, server, sid: str, session: Dict[str, Any]):
        self.server = server
        self.sid = sid
        self.session = session

    @property
    def role(self) -> str:
        return self.session.get("role") or "guest"

    @property
    def user_id(self) -> Optional[str]:
        return self.session.get("user_id")

    @property
    def company_id(self) -> Optional[str]:
        return self.session.get("company_id")

    @property
    def attached(self) -> Dict[str, "HandlerSet"]:
        return self.session.setdefault("attached_modules", {})

    async def emit(self, event: str, data: Any) -> None:
        await self.server.emit(event, encode(data), to=self.sid)

    async def broadcast(self, room: str, event: str, data: Any) -> None:
        await self.server.emit(event, encode(data), to=room)


class HandlerSet:
    """Per-connection event handlers of one module, registered like socket.on."""

    def __init__(self, conn: Connection):
        self.conn = conn
        self.handlers: Dict[str, Handler] = {}

    def on(self, event: str):
        def decorator(fn: Handler) -> Handler:
            self.handlers[event] = fn
            return fn
        return decorator

    def get(self, event: str) -> Optional[Handler]:
        return self.handlers.get(event)


ModuleFactory = Callable[[Connection], HandlerSet]


class EventRouter:
    def __init__(self):
        self._modules: Dict[Tuple[str, str], ModuleFactory] = {}

    def module(self, role: str, name: str):
        def decorator(factory: ModuleFactory) -> ModuleFactory:
            self._modules[(role, name)] = factory
            return factory
        return decorator

    def attach(self, conn: Connection, module: str) -> Optional[HandlerSet]:
        """Attach a module's handlers to the connection once and return them."""
        handlers = conn.attached.get(module)
        if handlers is not None:
            return handlers
        factory = self._modules.get((conn.role, module))
        if factory is None:
            return None
        logger.info("Attaching %s handlers for %s on %s", conn.role, module, conn.sid)
        handlers = factory(conn)
        conn.attached[module] = handlers
        return handlers

    async def dispatch(self, conn: Connection, event: str, args: tuple = ()) -> bool:
        """Route one event. Returns False when nothing handled it."""
        if not event.startswith(f"{conn.role}/"):
            return False
        module = module_for(event)
        if module is None:
            return False
        handlers = self.attach(conn, module)
        if handlers is None:
            logger.debug("No %s module %r for event %s", conn.role, module, event)
            return False
        handler = handlers.get(event)
        if handler is None:
            logger.debug("Unhandled event %s on %s", event, conn.sid)
            return False
        await handler(*args)
        return True


router = EventRouter()


async def call_service(service: Callable[..., Dict[str, Any]], *args) -> Dict[str, Any]:
    """Run a blocking service in the threadpool; exceptions become a failed envelope."""
    try:
        return await run_in_threadpool(service, *args)
    except Exception as e:
        logger.exception("Service %s failed", getattr(service, "__name__", service))
        return {"done": False, "error": str(e)}


async def respond(conn: Connection, event: str, service: Callable[..., Dict[str, Any]], *args) -> Dict[str, Any]:
    """Call the service and emit exactly one "<event>-response" to the caller."""
    result = await call_service(service, *args)
    await conn.emit(f"{event}-response", result)
    return result


async def broadcast(conn: Connection, room: str, event: str, service: Callable[..., Dict[str, Any]], *args) -> None:
    result = await call_service(service, *args)
    await conn.broadcast(room, event, result)
