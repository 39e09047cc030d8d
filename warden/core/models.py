"""
Warden - Domain Models
======================

Dataclasses shared by the report pipeline, the spam classifier and the
storage adapters.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union


# =============================================================================
# Moderation Targets
# =============================================================================

@dataclass(frozen=True)
class NativeTarget:
    """An account that lives on this platform and can be suspended locally."""
    account_id: str


@dataclass(frozen=True)
class VirtualTarget:
    """
    A participant relayed in through the federation bridge.

    Virtual identities share the bridge's platform account, so they are
    keyed by (provider, external_id) and never by account id.
    """
    provider: str
    external_id: str


ModerationTarget = Union[NativeTarget, VirtualTarget]


# =============================================================================
# Platform Entities
# =============================================================================

@dataclass
class Account:
    """Platform account as seen by the moderation core."""
    id: str
    created_at: datetime
    suspended: bool = False
    username: Optional[str] = None


@dataclass
class Room:
    """Chat room; group_id identifies the community it belongs to."""
    id: str
    group_id: Optional[str] = None
    name: Optional[str] = None


@dataclass
class Message:
    """Chat message. virtual_identity is set for bridged messages."""
    id: str
    room_id: str
    author_id: str
    text: str
    sent_at: datetime
    virtual_identity: Optional[VirtualTarget] = None


def target_for_message(message: Message) -> ModerationTarget:
    """The moderation target a report against this message concerns."""
    if message.virtual_identity is not None:
        return message.virtual_identity
    return NativeTarget(account_id=message.author_id)


def describe_target(target: ModerationTarget) -> str:
    """Short label for logs and telemetry."""
    if isinstance(target, VirtualTarget):
        return f"{target.provider}:{target.external_id}"
    if isinstance(target, NativeTarget):
        return target.account_id
    return repr(target)


# =============================================================================
# Reports
# =============================================================================

@dataclass(frozen=True)
class Report:
    """
    A single abuse report. Immutable once stored.

    weight and snapshot_text are captured at submission time and never
    recomputed.
    """
    id: int
    reporter_id: str
    message_id: str
    target_account_id: str
    target_virtual: Optional[VirtualTarget]
    weight: float
    submitted_at: datetime
    snapshot_text: str

    @property
    def target(self) -> ModerationTarget:
        if self.target_virtual is not None:
            return self.target_virtual
        return NativeTarget(account_id=self.target_account_id)


__all__ = [
    "NativeTarget",
    "VirtualTarget",
    "ModerationTarget",
    "Account",
    "Room",
    "Message",
    "Report",
    "target_for_message",
    "describe_target",
]
