"""
Warden - Moderation Actuator
============================

Turns crossed thresholds into suspensions, bans and message removal.

DESIGN:
    Each new report triggers two independent evaluations. The account
    evaluation acts on the report's target: native accounts are suspended
    locally, virtual identities are banned through the bridge. Young
    targets additionally lose their whole message history. The message
    evaluation removes only the reported message.

    Neither evaluation looks at prior suspension state, and nothing locks
    "read score then act". Two concurrent reports can both fire the same
    side effects; collaborators are expected to treat repeats as no-ops.
"""

from datetime import datetime
from typing import Optional

from warden.core.clock import Clock, SystemClock
from warden.core.config import ModerationSettings
from warden.core.constants import DEFAULT_BAN_REASON
from warden.core.errors import NotFoundError, UpstreamError
from warden.core.logger import logger
from warden.core.models import Message, NativeTarget, Report, Room, VirtualTarget, describe_target
from warden.services.interfaces import AccountDirectory, BridgeGateway, MessageStore
from warden.services.reports.aggregator import ScoreAggregator
from warden.services.telemetry import EVENT_BAD_ACCOUNT, EVENT_BAD_MESSAGE, Telemetry


class ModerationActuator:
    """
    Executes moderation side effects once report scores cross thresholds.

    Attributes:
        aggregator: Source of windowed scores.
        settings: Thresholds and windows.
        ban_reason: Reason sent with external bans.
    """

    def __init__(
        self,
        aggregator: ScoreAggregator,
        messages: MessageStore,
        accounts: AccountDirectory,
        bridge: Optional[BridgeGateway] = None,
        telemetry: Optional[Telemetry] = None,
        settings: Optional[ModerationSettings] = None,
        clock: Optional[Clock] = None,
        ban_reason: str = DEFAULT_BAN_REASON,
    ) -> None:
        self.aggregator = aggregator
        self.messages = messages
        self.accounts = accounts
        self.bridge = bridge
        self.telemetry = telemetry or Telemetry()
        self.settings = settings or aggregator.settings
        self.clock = clock or SystemClock()
        self.ban_reason = ban_reason

    # =========================================================================
    # Threshold Evaluations
    # =========================================================================

    async def check_account_threshold(self, report: Report, message: Message, room: Room) -> bool:
        """
        Suspend or ban the report's target if its score crossed the user threshold.

        Args:
            report: The newly created report.
            message: The reported message.
            room: The room the message was posted in.

        Returns:
            True if the threshold was crossed and action was taken.

        Raises:
            NotFoundError: A virtual target's room is not bridged.
            UpstreamError: The bridge is unavailable or rejected the ban.
            TypeError: The target is neither native nor virtual.
        """
        target = report.target
        score = await self.aggregator.sum_for_target(target)

        if score < self.settings.bad_user_threshold:
            logger.debug("Account Below Threshold", [
                ("Target", describe_target(target)),
                ("Score", f"{score:g}/{self.settings.bad_user_threshold:g}"),
            ])
            return False

        self.telemetry.emit(EVENT_BAD_ACCOUNT, {
            "report_id": report.id,
            "account_id": report.target_account_id,
            "target": describe_target(target),
            "score": score,
        })

        created_at = await self._creation_time(target, message)
        should_purge_history = self.clock.now() - created_at < self.settings.new_account_clear_window

        logger.tree("Bad Account Detected", [
            ("Target", describe_target(target)),
            ("Score", f"{score:g}/{self.settings.bad_user_threshold:g}"),
            ("Created", created_at.isoformat()),
            ("Purge History", "Yes" if should_purge_history else "No"),
        ], emoji="🚨")

        if isinstance(target, VirtualTarget):
            await self._ban_virtual_identity(target, room, should_purge_history)
        elif isinstance(target, NativeTarget):
            await self.suspend_account(target.account_id, purge_history=should_purge_history)
        else:
            raise TypeError(f"Unsupported moderation target: {target!r}")

        return True

    async def check_message_threshold(self, report: Report, message: Message, room: Room) -> bool:
        """
        Remove the reported message if its score crossed the message threshold.

        Returns:
            True if the message was removed.
        """
        score = await self.aggregator.sum_for_message(message.id)

        if score < self.settings.bad_message_threshold:
            return False

        self.telemetry.emit(EVENT_BAD_MESSAGE, {
            "report_id": report.id,
            "message_id": message.id,
            "room_id": room.id,
            "score": score,
        })

        logger.tree("Bad Message Removed", [
            ("Message", message.id),
            ("Room", room.id),
            ("Score", f"{score:g}/{self.settings.bad_message_threshold:g}"),
        ], emoji="🗑️")

        await self.messages.delete(room, message)
        return True

    # =========================================================================
    # Suspension Primitive
    # =========================================================================

    async def suspend_account(self, account_id: str, purge_history: bool = False) -> None:
        """
        Suspend a native account and optionally delete everything it posted.

        Shared by the report pipeline and the spam classifier.
        """
        await self.accounts.set_suspended(account_id, True)
        if purge_history:
            await self.messages.delete_all_by_account(account_id)

        logger.tree("Account Suspended", [
            ("Account", account_id),
            ("History Purged", "Yes" if purge_history else "No"),
        ], emoji="🔒")

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _ban_virtual_identity(
        self,
        identity: VirtualTarget,
        room: Room,
        purge_history: bool,
    ) -> None:
        if self.bridge is None:
            raise UpstreamError("No bridge gateway configured", resource="bridge")

        handle = await self.bridge.resolve_external_room_handle(room.id)
        if handle is None:
            raise NotFoundError(f"Room {room.id} is not bridged", resource="bridged_room")

        await self.bridge.ban_identity(handle, identity.external_id, self.ban_reason)
        if purge_history:
            await self.messages.delete_all_by_virtual_identity(identity)

        logger.tree("Virtual Identity Banned", [
            ("Identity", describe_target(identity)),
            ("External Room", handle),
            ("History Purged", "Yes" if purge_history else "No"),
        ], emoji="🔨")

    async def _creation_time(self, target, message: Message) -> datetime:
        """
        When the target came into existence.

        Virtual identities have no account, so their first relayed message
        stands in. The reported message may already be deleted by the
        message-level evaluation running alongside, so the earlier of the
        two send times wins.
        """
        if isinstance(target, NativeTarget):
            return await self.accounts.creation_timestamp(target.account_id)
        if isinstance(target, VirtualTarget):
            earliest = await self.messages.find_earliest_message_for_virtual_identity(target)
            if earliest is None:
                return message.sent_at
            return min(earliest.sent_at, message.sent_at)
        raise TypeError(f"Unsupported moderation target: {target!r}")


__all__ = ["ModerationActuator"]
