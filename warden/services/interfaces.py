"""
Warden - Collaborator Interfaces
================================

Structural types for everything the moderation core talks to but does not
own: message and room storage, the account directory, the federation
bridge, the weight policy, telemetry sinks and the duplicate-content
detector.

Any object with matching methods satisfies these protocols; the SQLite
and HTTP implementations live in warden.services.platform and
warden.services.bridge.
"""

from datetime import datetime
from typing import Any, Awaitable, Dict, Optional, Protocol, runtime_checkable

from warden.core.models import Account, Message, Room, VirtualTarget


@runtime_checkable
class MessageStore(Protocol):
    """Chat message storage."""

    async def find_by_id(self, message_id: str) -> Optional[Message]:
        ...

    async def find_earliest_message_for_virtual_identity(
        self, identity: VirtualTarget
    ) -> Optional[Message]:
        ...

    async def delete(self, room: Room, message: Message) -> None:
        """Remove one message. Must tolerate repeats."""
        ...

    async def delete_all_by_account(self, account_id: str) -> None:
        ...

    async def delete_all_by_virtual_identity(self, identity: VirtualTarget) -> None:
        ...


@runtime_checkable
class RoomStore(Protocol):
    """Chat room storage."""

    async def find_by_id(self, room_id: str) -> Optional[Room]:
        ...


@runtime_checkable
class AccountDirectory(Protocol):
    """Account storage. The core only reads creation time and flips suspension."""

    async def find_by_id(self, account_id: str) -> Optional[Account]:
        ...

    async def set_suspended(self, account_id: str, suspended: bool) -> None:
        """Set the suspended flag. Must tolerate repeats."""
        ...

    async def creation_timestamp(self, account_id: str) -> datetime:
        ...


@runtime_checkable
class BridgeGateway(Protocol):
    """Client for the federation bridge."""

    async def resolve_external_room_handle(self, room_id: str) -> Optional[str]:
        """External room handle for a local room, None if the room is not bridged."""
        ...

    async def ban_identity(self, room_handle: str, external_id: str, reason: str) -> None:
        """Ban a virtual identity from an external room. Must tolerate repeats."""
        ...


@runtime_checkable
class WeightPolicy(Protocol):
    """Assigns a severity weight (>= 0) to a new report."""

    async def compute(self, reporter_id: str, room: Room, message: Message) -> float:
        ...


@runtime_checkable
class TelemetrySink(Protocol):
    """
    Receives moderation events.

    emit may return None or an awaitable; awaitables are scheduled in the
    background and never awaited by the caller.
    """

    def emit(self, event_name: str, payload: Dict[str, Any]) -> Optional[Awaitable[None]]:
        ...


@runtime_checkable
class DuplicateContentDetector(Protocol):
    """Opaque duplicate-content signal for the spam classifier."""

    async def detect(self, account_id: str, text: str) -> bool:
        ...


__all__ = [
    "MessageStore",
    "RoomStore",
    "AccountDirectory",
    "BridgeGateway",
    "WeightPolicy",
    "TelemetrySink",
    "DuplicateContentDetector",
]
