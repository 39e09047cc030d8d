"""
Warden - Score Aggregator Tests
===============================

Windowed scoring at the target and message level.
"""

from datetime import timedelta

import pytest

from warden.core.models import NativeTarget, Report, VirtualTarget
from warden.services.reports import reporter_weight_map


V = VirtualTarget(provider="matrix", external_id="@spammer:example.org")


def _store(pipeline, reporter, message, author="user-u", virtual=None, weight=1.0, age=timedelta(0)):
    report, _ = pipeline.db.insert_report_if_absent(
        reporter_id=reporter,
        message_id=message,
        target_account_id=author,
        target_virtual=virtual,
        weight=weight,
        submitted_at=pipeline.clock.now() - age,
        snapshot_text="text",
    )
    return report


class TestReporterWeightMap:
    """Tests for the per-reporter max weight map."""

    def test_keeps_largest_weight_per_reporter(self, pipeline):
        """Test each reporter keeps only their heaviest report."""
        reports = [
            _store(pipeline, "a", "m1", weight=1.0),
            _store(pipeline, "a", "m2", weight=3.0),
            _store(pipeline, "b", "m1", weight=2.0),
        ]
        assert reporter_weight_map(reports) == {"a": 3.0, "b": 2.0}

    def test_empty(self):
        """Test no reports gives an empty map."""
        assert reporter_weight_map([]) == {}

    def test_accepts_plain_reports(self, clock):
        """Test the map only needs reporter_id and weight."""
        report = Report(
            id=1, reporter_id="a", message_id="m", target_account_id="u",
            target_virtual=None, weight=0.5, submitted_at=clock.now(), snapshot_text="",
        )
        assert reporter_weight_map([report, report]) == {"a": 0.5}


class TestSumForTarget:
    """Tests for target-level scores."""

    @pytest.mark.asyncio
    async def test_same_reporter_counts_once(self, pipeline):
        """Test one reporter on two messages counts the larger weight only."""
        _store(pipeline, "a", "m1", weight=1.0)
        _store(pipeline, "a", "m2", weight=2.5)

        assert await pipeline.aggregator.sum_for_target(NativeTarget("user-u")) == 2.5

    @pytest.mark.asyncio
    async def test_distinct_reporters_sum(self, pipeline):
        """Test different reporters add up."""
        for i in range(5):
            _store(pipeline, f"r{i}", f"m{i}")

        assert await pipeline.aggregator.sum_for_target(NativeTarget("user-u")) == 5.0

    @pytest.mark.asyncio
    async def test_native_and_virtual_never_cross_match(self, pipeline):
        """Test reports on a virtual identity do not count against the bridge account."""
        _store(pipeline, "a", "m1", author="bridge-bot", virtual=V, weight=4.0)
        _store(pipeline, "b", "m2", author="bridge-bot", weight=1.0)

        assert await pipeline.aggregator.sum_for_target(NativeTarget("bridge-bot")) == 1.0
        assert await pipeline.aggregator.sum_for_target(V) == 4.0

    @pytest.mark.asyncio
    async def test_virtual_identity_matches_provider_and_external_id(self, pipeline):
        """Test the same external id from another provider is a different target."""
        other = VirtualTarget(provider="irc", external_id=V.external_id)
        _store(pipeline, "a", "m1", author="bridge-bot", virtual=other, weight=4.0)

        assert await pipeline.aggregator.sum_for_target(V) == 0.0

    @pytest.mark.asyncio
    async def test_expired_reports_excluded_but_kept(self, pipeline):
        """Test reports older than the window stop counting but stay stored."""
        _store(pipeline, "a", "m1", weight=3.0, age=timedelta(days=6))
        _store(pipeline, "b", "m2", weight=1.0, age=timedelta(days=1))

        assert await pipeline.aggregator.sum_for_target(NativeTarget("user-u")) == 1.0
        assert pipeline.db.count_reports() == 2

    @pytest.mark.asyncio
    async def test_report_exactly_at_window_edge_counts(self, pipeline):
        """Test a report exactly sum_period old is still inside the window."""
        _store(pipeline, "a", "m1", weight=2.0, age=pipeline.settings.sum_period)

        assert await pipeline.aggregator.sum_for_target(NativeTarget("user-u")) == 2.0

    @pytest.mark.asyncio
    async def test_window_moves_with_clock(self, pipeline):
        """Test advancing the clock expires reports."""
        _store(pipeline, "a", "m1", weight=2.0)
        pipeline.clock.advance(days=5, seconds=1)

        assert await pipeline.aggregator.sum_for_target(NativeTarget("user-u")) == 0.0

    @pytest.mark.asyncio
    async def test_unknown_target_type_rejected(self, pipeline):
        """Test targets must be native or virtual."""
        with pytest.raises(TypeError):
            await pipeline.aggregator.sum_for_target("user-u")


class TestSumForMessage:
    """Tests for message-level scores."""

    @pytest.mark.asyncio
    async def test_two_reporters_sum_both_weights(self, pipeline):
        """Test message scores are a raw sum with no per-reporter cap."""
        _store(pipeline, "a", "m1", weight=1.5)
        _store(pipeline, "b", "m1", weight=2.0)
        _store(pipeline, "c", "m2", weight=9.0)

        assert await pipeline.aggregator.sum_for_message("m1") == 3.5

    @pytest.mark.asyncio
    async def test_expired_reports_excluded(self, pipeline):
        """Test message scores honor the same window."""
        _store(pipeline, "a", "m1", age=timedelta(days=10))
        _store(pipeline, "b", "m1")

        assert await pipeline.aggregator.sum_for_message("m1") == 1.0

    @pytest.mark.asyncio
    async def test_no_reports(self, pipeline):
        """Test an unreported message scores zero."""
        assert await pipeline.aggregator.sum_for_message("nothing") == 0.0
