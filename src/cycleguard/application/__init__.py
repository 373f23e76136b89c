"""
Application layer for the convergence orchestrator.

Contains the lifecycle state machine and the services it coordinates.
"""

from cycleguard.application.controller import LifecycleController
from cycleguard.application.extractor import MetricsExtractor
from cycleguard.application.heartbeat import Heartbeat
from cycleguard.application.monitor import (
    AgentHealth,
    Health,
    OverallHealth,
    StatusMonitor,
)
from cycleguard.application.records import AgentRecords
from cycleguard.application.resolver import DependencyResolver
from cycleguard.application.transcript import TranscriptScraper

__all__ = [
    "AgentHealth",
    "AgentRecords",
    "DependencyResolver",
    "Health",
    "Heartbeat",
    "LifecycleController",
    "MetricsExtractor",
    "OverallHealth",
    "StatusMonitor",
    "TranscriptScraper",
]
