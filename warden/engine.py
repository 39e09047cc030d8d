"""
Warden - Moderation Engine
==========================

Builds and owns every moderation component.

DESIGN:
    One place decides which collaborator implementations are used. With
    no arguments the engine runs standalone on the SQLite adapters, the
    constant weight policy and (when configured) the Matrix bridge. Any
    collaborator can be swapped by passing it in, which is how tests and
    embedding applications plug in their own storage.
"""

from typing import Iterable, Optional

from warden.core.clock import Clock, SystemClock
from warden.core.config import Config, get_config
from warden.core.database import DatabaseManager, get_db
from warden.core.errors import NotFoundError
from warden.core.logger import logger
from warden.services.antispam import PatternDetector, RecentDuplicateDetector, SpamClassifier
from warden.services.bridge import MatrixBridgeGateway
from warden.services.interfaces import (
    AccountDirectory,
    BridgeGateway,
    DuplicateContentDetector,
    MessageStore,
    RoomStore,
    TelemetrySink,
    WeightPolicy,
)
from warden.services.platform import (
    ConstantWeightPolicy,
    SqliteAccountDirectory,
    SqliteMessageStore,
    SqliteRoomStore,
)
from warden.services.reports import ModerationActuator, ReportIngestionService, ScoreAggregator
from warden.services.telemetry import LoggingTelemetrySink, Telemetry


class ModerationEngine:
    """Wires the report pipeline and the spam classifier together."""

    def __init__(
        self,
        config: Optional[Config] = None,
        db: Optional[DatabaseManager] = None,
        clock: Optional[Clock] = None,
        messages: Optional[MessageStore] = None,
        rooms: Optional[RoomStore] = None,
        accounts: Optional[AccountDirectory] = None,
        bridge: Optional[BridgeGateway] = None,
        weight_policy: Optional[WeightPolicy] = None,
        duplicate_detector: Optional[DuplicateContentDetector] = None,
        telemetry_sinks: Optional[Iterable[TelemetrySink]] = None,
    ) -> None:
        self.config = config or get_config()
        self.db = db or get_db()
        self.clock = clock or SystemClock()
        settings = self.config.moderation

        sinks = list(telemetry_sinks) if telemetry_sinks is not None else [LoggingTelemetrySink()]
        self.telemetry = Telemetry(sinks)

        self.messages = messages or SqliteMessageStore(self.db)
        self.rooms = rooms or SqliteRoomStore(self.db)
        self.accounts = accounts or SqliteAccountDirectory(self.db)
        self.weight_policy = weight_policy or ConstantWeightPolicy(self.config.default_report_weight)

        if bridge is None and self.config.bridge_enabled:
            bridge = MatrixBridgeGateway(
                self.config.bridge_homeserver_url,
                self.config.bridge_as_token,
                db=self.db,
            )
        self.bridge = bridge

        self.aggregator = ScoreAggregator(db=self.db, settings=settings, clock=self.clock)
        self.actuator = ModerationActuator(
            aggregator=self.aggregator,
            messages=self.messages,
            accounts=self.accounts,
            bridge=self.bridge,
            telemetry=self.telemetry,
            settings=settings,
            clock=self.clock,
            ban_reason=self.config.bridge_ban_reason,
        )
        self.reports = ReportIngestionService(
            messages=self.messages,
            rooms=self.rooms,
            weight_policy=self.weight_policy,
            actuator=self.actuator,
            telemetry=self.telemetry,
            db=self.db,
            clock=self.clock,
        )
        self.classifier = SpamClassifier(
            actuator=self.actuator,
            duplicate_detector=duplicate_detector or RecentDuplicateDetector(clock=self.clock),
            pattern_detector=PatternDetector(settings.pattern_denylist_groups),
            settings=settings,
            clock=self.clock,
            telemetry=self.telemetry,
        )

        logger.tree("Moderation Engine Ready", [
            ("Storage", type(self.messages).__name__),
            ("Weight Policy", type(self.weight_policy).__name__),
            ("Bridge", type(self.bridge).__name__ if self.bridge else "Disabled"),
            ("Telemetry Sinks", str(len(sinks))),
        ], emoji="🛡️")

    async def classify_message(self, room_id: str, account_id: str, message_id: str) -> bool:
        """
        Load the room, account and message by id and classify the message.

        Raises:
            NotFoundError: Any of the three does not exist.
        """
        room = await self.rooms.find_by_id(room_id)
        if room is None:
            raise NotFoundError(f"Room {room_id} not found", resource="room")
        account = await self.accounts.find_by_id(account_id)
        if account is None:
            raise NotFoundError(f"Account {account_id} not found", resource="account")
        message = await self.messages.find_by_id(message_id)
        if message is None:
            raise NotFoundError(f"Message {message_id} not found", resource="message")
        return await self.classifier.classify(room, account, message)

    async def close(self) -> None:
        """Flush telemetry and release HTTP sessions."""
        await self.telemetry.flush()
        close = getattr(self.bridge, "close", None)
        if close is not None:
            await close()


__all__ = ["ModerationEngine"]
