"""
Warden - Moderation Actuator Tests
==================================

Threshold evaluation, branch selection and the purge rule.
"""

from datetime import timedelta

import pytest

from warden.core.errors import NotFoundError, UpstreamError
from warden.core.models import VirtualTarget
from warden.services.reports import ModerationActuator


V = VirtualTarget(provider="matrix", external_id="@spammer:example.org")


def _report(pipeline, reporter, message, weight):
    report, _ = pipeline.db.insert_report_if_absent(
        reporter_id=reporter,
        message_id=message.id,
        target_account_id=message.author_id,
        target_virtual=message.virtual_identity,
        weight=weight,
        submitted_at=pipeline.clock.now(),
        snapshot_text=message.text,
    )
    return report


class TestAccountThreshold:
    """Tests for the user-level evaluation."""

    @pytest.mark.asyncio
    async def test_below_threshold_does_nothing(self, pipeline):
        """Test a score under the threshold takes no action."""
        pipeline.add_account("user-u")
        message = pipeline.add_message("m1", "user-u")
        report = _report(pipeline, "a", message, 4.9)

        acted = await pipeline.actuator.check_account_threshold(report, message, pipeline.rooms.rooms["room-1"])

        assert acted is False
        assert pipeline.accounts.suspend_calls == []
        assert pipeline.sink.events == []

    @pytest.mark.asyncio
    async def test_native_branch_only(self, pipeline):
        """Test a native target is suspended and nothing is banned."""
        pipeline.add_account("user-u", age=timedelta(days=10))
        pipeline.bridge.handles["room-1"] = "!ext:example.org"
        message = pipeline.add_message("m1", "user-u")
        report = _report(pipeline, "a", message, 5.0)

        acted = await pipeline.actuator.check_account_threshold(report, message, pipeline.rooms.rooms["room-1"])

        assert acted is True
        assert pipeline.accounts.suspend_calls == ["user-u"]
        assert pipeline.bridge.bans == []

    @pytest.mark.asyncio
    async def test_virtual_branch_only(self, pipeline):
        """Test a virtual target is banned and no account is suspended."""
        pipeline.add_account("bridge-bot", age=timedelta(days=1))
        pipeline.bridge.handles["room-1"] = "!ext:example.org"
        message = pipeline.add_message("m1", "bridge-bot", virtual=V, age=timedelta(days=10))
        report = _report(pipeline, "a", message, 5.0)

        acted = await pipeline.actuator.check_account_threshold(report, message, pipeline.rooms.rooms["room-1"])

        assert acted is True
        assert pipeline.bridge.bans == [("!ext:example.org", V.external_id, "spam")]
        assert pipeline.accounts.suspend_calls == []

    @pytest.mark.asyncio
    async def test_missing_bridged_room(self, pipeline):
        """Test a virtual target in an unbridged room is NotFound."""
        message = pipeline.add_message("m1", "bridge-bot", virtual=V)
        report = _report(pipeline, "a", message, 5.0)

        with pytest.raises(NotFoundError):
            await pipeline.actuator.check_account_threshold(report, message, pipeline.rooms.rooms["room-1"])
        assert pipeline.bridge.bans == []

    @pytest.mark.asyncio
    async def test_no_bridge_configured(self, pipeline):
        """Test banning without a bridge gateway is Upstream."""
        actuator = ModerationActuator(
            aggregator=pipeline.aggregator,
            messages=pipeline.messages,
            accounts=pipeline.accounts,
            bridge=None,
            telemetry=pipeline.telemetry,
            clock=pipeline.clock,
        )
        message = pipeline.add_message("m1", "bridge-bot", virtual=V)
        report = _report(pipeline, "a", message, 5.0)

        with pytest.raises(UpstreamError):
            await actuator.check_account_threshold(report, message, pipeline.rooms.rooms["room-1"])

    @pytest.mark.asyncio
    async def test_repeat_crossing_acts_again(self, pipeline):
        """Test the evaluation does not consult prior suspension state."""
        pipeline.add_account("user-u", age=timedelta(days=10))
        message = pipeline.add_message("m1", "user-u")
        report = _report(pipeline, "a", message, 5.0)
        room = pipeline.rooms.rooms["room-1"]

        await pipeline.actuator.check_account_threshold(report, message, room)
        await pipeline.actuator.check_account_threshold(report, message, room)

        assert pipeline.accounts.suspend_calls == ["user-u", "user-u"]
        assert pipeline.accounts.accounts["user-u"].suspended is True


class TestPurgeRule:
    """Tests for the new-account history purge."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("age, purged", [
        (timedelta(days=2, hours=23), True),
        (timedelta(days=3), False),
        (timedelta(days=3, seconds=1), False),
    ])
    async def test_native_purge_boundary(self, pipeline, age, purged):
        """Test purge happens only strictly inside the clear window."""
        pipeline.add_account("user-u", age=age)
        message = pipeline.add_message("m1", "user-u")
        report = _report(pipeline, "a", message, 5.0)

        await pipeline.actuator.check_account_threshold(report, message, pipeline.rooms.rooms["room-1"])

        assert (pipeline.messages.purged_accounts == ["user-u"]) is purged

    @pytest.mark.asyncio
    async def test_virtual_uses_earliest_message(self, pipeline):
        """Test a virtual identity's age comes from its first relayed message."""
        pipeline.bridge.handles["room-1"] = "!ext:example.org"
        pipeline.add_message("old", "bridge-bot", room_id="room-2", virtual=V, age=timedelta(days=4))
        message = pipeline.add_message("m1", "bridge-bot", virtual=V, age=timedelta(minutes=1))
        report = _report(pipeline, "a", message, 5.0)

        await pipeline.actuator.check_account_threshold(report, message, pipeline.rooms.rooms["room-1"])

        assert pipeline.messages.purged_identities == []

    @pytest.mark.asyncio
    async def test_virtual_falls_back_to_reported_message(self, pipeline):
        """Test the reported message's time is used once no history remains."""
        pipeline.bridge.handles["room-1"] = "!ext:example.org"
        message = pipeline.add_message("m1", "bridge-bot", virtual=V, age=timedelta(hours=1))
        report = _report(pipeline, "a", message, 5.0)
        del pipeline.messages.messages["m1"]

        await pipeline.actuator.check_account_threshold(report, message, pipeline.rooms.rooms["room-1"])

        assert pipeline.messages.purged_identities == [V]


    @pytest.mark.asyncio
    async def test_virtual_uses_earlier_of_reported_and_remaining(self, pipeline):
        """Test a removed earliest message still counts toward the identity's age."""
        pipeline.bridge.handles["room-1"] = "!ext:example.org"
        message = pipeline.add_message("m1", "bridge-bot", virtual=V, age=timedelta(days=10))
        pipeline.add_message("m2", "bridge-bot", virtual=V, age=timedelta(hours=1))
        report = _report(pipeline, "a", message, 5.0)
        del pipeline.messages.messages["m1"]

        await pipeline.actuator.check_account_threshold(report, message, pipeline.rooms.rooms["room-1"])

        assert len(pipeline.bridge.bans) == 1
        assert pipeline.messages.purged_identities == []

class TestMessageThreshold:
    """Tests for the message-level evaluation."""

    @pytest.mark.asyncio
    async def test_removes_only_reported_message(self, pipeline):
        """Test crossing the message threshold deletes exactly that message."""
        pipeline.add_account("user-u", age=timedelta(days=1))
        message = pipeline.add_message("m1", "user-u")
        pipeline.add_message("m2", "user-u")
        _report(pipeline, "a", message, 1.0)
        report = _report(pipeline, "b", message, 1.0)

        acted = await pipeline.actuator.check_message_threshold(report, message, pipeline.rooms.rooms["room-1"])

        assert acted is True
        assert pipeline.messages.deleted == ["m1"]
        assert "m2" in pipeline.messages.messages
        assert pipeline.accounts.suspend_calls == []

    @pytest.mark.asyncio
    async def test_below_threshold_keeps_message(self, pipeline):
        """Test a single weight-1 report leaves the message alone."""
        message = pipeline.add_message("m1", "user-u")
        report = _report(pipeline, "a", message, 1.0)

        acted = await pipeline.actuator.check_message_threshold(report, message, pipeline.rooms.rooms["room-1"])

        assert acted is False
        assert pipeline.messages.deleted == []


class TestSuspendAccount:
    """Tests for the shared suspension primitive."""

    @pytest.mark.asyncio
    async def test_suspend_without_purge(self, pipeline):
        """Test the default suspension keeps message history."""
        pipeline.add_account("user-u")
        pipeline.add_message("m1", "user-u")

        await pipeline.actuator.suspend_account("user-u")

        assert pipeline.accounts.accounts["user-u"].suspended is True
        assert "m1" in pipeline.messages.messages

    @pytest.mark.asyncio
    async def test_suspend_unknown_account(self, pipeline):
        """Test suspending a missing account propagates NotFound."""
        with pytest.raises(NotFoundError):
            await pipeline.actuator.suspend_account("ghost")
