"""
Warden - Test Fixtures
======================

Shared fixtures for all tests.
"""

import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set up test environment before importing modules
os.environ.setdefault("WARDEN_LOGS_DIR", tempfile.mkdtemp(prefix="warden-logs-"))

from warden.core import config as config_module  # noqa: E402
from warden.core.config import ModerationSettings  # noqa: E402
from warden.core.errors import NotFoundError  # noqa: E402
from warden.core.models import Account, Message, Room, VirtualTarget  # noqa: E402
from warden.services.reports import (  # noqa: E402
    ModerationActuator,
    ReportIngestionService,
    ScoreAggregator,
)
from warden.services.telemetry import Telemetry  # noqa: E402


NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
DENYLISTED_GROUP = "crypto-raiders"


# =============================================================================
# Clock
# =============================================================================

class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = NOW) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> None:
        self._now += timedelta(**kwargs)


# =============================================================================
# In-Memory Collaborators
# =============================================================================

class InMemoryMessageStore:
    """MessageStore that records every deletion."""

    def __init__(self) -> None:
        self.messages: Dict[str, Message] = {}
        self.deleted: List[str] = []
        self.purged_accounts: List[str] = []
        self.purged_identities: List[VirtualTarget] = []

    def add(self, message: Message) -> Message:
        self.messages[message.id] = message
        return message

    async def find_by_id(self, message_id: str) -> Optional[Message]:
        return self.messages.get(message_id)

    async def find_earliest_message_for_virtual_identity(self, identity):
        relayed = [m for m in self.messages.values() if m.virtual_identity == identity]
        return min(relayed, key=lambda m: m.sent_at, default=None)

    async def delete(self, room: Room, message: Message) -> None:
        self.deleted.append(message.id)
        self.messages.pop(message.id, None)

    async def delete_all_by_account(self, account_id: str) -> None:
        self.purged_accounts.append(account_id)
        for message_id in [
            m.id for m in self.messages.values()
            if m.author_id == account_id and m.virtual_identity is None
        ]:
            del self.messages[message_id]

    async def delete_all_by_virtual_identity(self, identity: VirtualTarget) -> None:
        self.purged_identities.append(identity)
        for message_id in [m.id for m in self.messages.values() if m.virtual_identity == identity]:
            del self.messages[message_id]


class InMemoryRoomStore:
    """RoomStore over a dict."""

    def __init__(self) -> None:
        self.rooms: Dict[str, Room] = {}

    def add(self, room: Room) -> Room:
        self.rooms[room.id] = room
        return room

    async def find_by_id(self, room_id: str) -> Optional[Room]:
        return self.rooms.get(room_id)


class InMemoryAccountDirectory:
    """AccountDirectory that records suspension calls."""

    def __init__(self) -> None:
        self.accounts: Dict[str, Account] = {}
        self.suspend_calls: List[str] = []

    def add(self, account: Account) -> Account:
        self.accounts[account.id] = account
        return account

    async def find_by_id(self, account_id: str) -> Optional[Account]:
        return self.accounts.get(account_id)

    async def set_suspended(self, account_id: str, suspended: bool) -> None:
        if account_id not in self.accounts:
            raise NotFoundError(f"Account {account_id} not found", resource="account")
        self.suspend_calls.append(account_id)
        self.accounts[account_id].suspended = suspended

    async def creation_timestamp(self, account_id: str) -> datetime:
        if account_id not in self.accounts:
            raise NotFoundError(f"Account {account_id} not found", resource="account")
        return self.accounts[account_id].created_at


class FakeBridge:
    """BridgeGateway that records bans and can be told to fail."""

    def __init__(self) -> None:
        self.handles: Dict[str, str] = {}
        self.bans: List[tuple] = []
        self.error: Optional[Exception] = None

    async def resolve_external_room_handle(self, room_id: str) -> Optional[str]:
        return self.handles.get(room_id)

    async def ban_identity(self, room_handle: str, external_id: str, reason: str) -> None:
        if self.error is not None:
            raise self.error
        self.bans.append((room_handle, external_id, reason))


class StaticWeightPolicy:
    """Per-reporter weights with a default."""

    def __init__(self, default: float = 1.0) -> None:
        self.default = default
        self.weights: Dict[str, float] = {}
        self.calls = 0

    async def compute(self, reporter_id: str, room: Room, message: Message) -> float:
        self.calls += 1
        return self.weights.get(reporter_id, self.default)


class RecordingSink:
    """TelemetrySink that keeps every event."""

    def __init__(self) -> None:
        self.events: List[tuple] = []

    def emit(self, event_name: str, payload: dict) -> None:
        self.events.append((event_name, payload))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]


# =============================================================================
# Pipeline
# =============================================================================

class Pipeline:
    """Report pipeline wired to in-memory collaborators and a real database."""

    def __init__(self, db, settings: ModerationSettings) -> None:
        self.db = db
        self.settings = settings
        self.clock = FrozenClock()
        self.messages = InMemoryMessageStore()
        self.rooms = InMemoryRoomStore()
        self.accounts = InMemoryAccountDirectory()
        self.bridge = FakeBridge()
        self.weights = StaticWeightPolicy()
        self.sink = RecordingSink()
        self.telemetry = Telemetry([self.sink])

        self.aggregator = ScoreAggregator(db=db, settings=settings, clock=self.clock)
        self.actuator = ModerationActuator(
            aggregator=self.aggregator,
            messages=self.messages,
            accounts=self.accounts,
            bridge=self.bridge,
            telemetry=self.telemetry,
            settings=settings,
            clock=self.clock,
            ban_reason="spam",
        )
        self.service = ReportIngestionService(
            messages=self.messages,
            rooms=self.rooms,
            weight_policy=self.weights,
            actuator=self.actuator,
            telemetry=self.telemetry,
            db=db,
            clock=self.clock,
        )

    def add_account(self, account_id: str, age: timedelta = timedelta(days=1)) -> Account:
        return self.accounts.add(Account(id=account_id, created_at=self.clock.now() - age))

    def add_room(self, room_id: str = "room-1", group_id: Optional[str] = None) -> Room:
        return self.rooms.add(Room(id=room_id, group_id=group_id))

    def add_message(
        self,
        message_id: str,
        author_id: str,
        room_id: str = "room-1",
        text: str = "buy cheap followers now",
        virtual: Optional[VirtualTarget] = None,
        age: timedelta = timedelta(minutes=5),
    ) -> Message:
        return self.messages.add(Message(
            id=message_id,
            room_id=room_id,
            author_id=author_id,
            text=text,
            sent_at=self.clock.now() - age,
            virtual_identity=virtual,
        ))


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def reset_config(monkeypatch):
    """Every test starts from an unloaded configuration."""
    for name in list(os.environ):
        if name.startswith(("WARDEN_", "BRIDGE_")) and name != "WARDEN_LOGS_DIR":
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config_module, "_config", None)


@pytest.fixture
def temp_db_path(tmp_path):
    """Create a temporary database path for testing."""
    return tmp_path / "test_warden.db"


@pytest.fixture
def test_db(temp_db_path):
    """Create a fresh test database instance."""
    from warden.core.database.manager import DatabaseManager

    DatabaseManager._instance = None
    db = DatabaseManager(temp_db_path)
    yield db
    db.close()
    DatabaseManager._instance = None


@pytest.fixture
def settings():
    """Default thresholds with one denylisted group."""
    return ModerationSettings(pattern_denylist_groups=frozenset({DENYLISTED_GROUP}))


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def pipeline(test_db, settings):
    """Report pipeline with room-1 already created."""
    p = Pipeline(test_db, settings)
    p.add_room("room-1")
    return p
