import asyncio
from typing import Any, Dict, List, Optional, Tuple

import mongomock
import pytest

import database
from events import Connection


class FakeServer:
    """Stands in for socketio.AsyncServer: records emits, rooms and sessions."""

    def __init__(self):
        self.emitted: List[Tuple[str, Any, Optional[str]]] = []
        self.sessions: Dict[str, dict] = {}
        self.rooms: Dict[str, set] = {}

    async def emit(self, event, data=None, to=None, room=None, **kwargs):
        self.emitted.append((event, data, to or room))

    async def save_session(self, sid, session):
        self.sessions[sid] = session

    async def get_session(self, sid):
        return self.sessions.get(sid)

    async def enter_room(self, sid, room):
        self.rooms.setdefault(room, set()).add(sid)

    def events(self, to=None):
        return [event for event, _, target in self.emitted if to is None or target == to]

    def last(self, event):
        for name, data, _ in reversed(self.emitted):
            if name == event:
                return data
        raise AssertionError(f"{event} was not emitted; got {self.events()}")


class FakeClerk:
    def __init__(self, users: Optional[Dict[str, dict]] = None, fail_get: bool = False):
        self.users = users or {}
        self.fail_get = fail_get
        self.metadata_updates: List[Tuple[str, dict]] = []
        self.created: List[dict] = []

    def get_user(self, user_id):
        from clerk import IdentityError
        if self.fail_get or user_id not in self.users:
            raise IdentityError("Identity provider returned 404")
        return self.users[user_id]

    def update_user_metadata(self, user_id, public_metadata):
        self.metadata_updates.append((user_id, public_metadata))
        self.users.setdefault(user_id, {})["public_metadata"] = public_metadata
        return self.users[user_id]

    def create_user(self, email, password, public_metadata):
        user = {"id": f"user_{len(self.created) + 1}", "email": email, "public_metadata": public_metadata}
        self.created.append({"email": email, "password": password, "public_metadata": public_metadata})
        return user


def run(coro):
    return asyncio.run(coro)


@pytest.fixture(autouse=True)
def mongo():
    client = mongomock.MongoClient()
    database.set_client(client)
    yield client
    database.set_client(None)


@pytest.fixture
def admin_db(mongo):
    return database.get_superadmin_collections()


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def superadmin_conn(server):
    session = {"user_id": "user_super", "role": "superadmin", "company_id": None, "attached_modules": {}}
    server.sessions["sid-1"] = session
    return Connection(server, "sid-1", session)


@pytest.fixture
def plan_payload():
    return {
        "planName": "Advanced",
        "planType": "Monthly",
        "price": 200,
        "planPosition": "1",
        "planCurrency": "USD",
        "planCurrencytype": "Fixed",
        "discountType": "Fixed",
        "discount": 10,
        "limitationsInvoices": 100,
        "maxCustomers": 500,
        "product": 50,
        "supplier": 20,
        "planModules": ["Employees", "Invoices"],
        "accessTrial": True,
        "trialDays": 14,
        "isRecommended": False,
        "status": "Active",
        "description": "For growing teams",
        "logo": "plan.svg",
    }
