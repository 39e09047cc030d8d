"""
Reports Package
===============

Report ingestion, score aggregation and threshold actuation.
"""

from .actuator import ModerationActuator
from .aggregator import ScoreAggregator, reporter_weight_map
from .service import ReportIngestionService

__all__ = [
    "ModerationActuator",
    "ScoreAggregator",
    "ReportIngestionService",
    "reporter_weight_map",
]
