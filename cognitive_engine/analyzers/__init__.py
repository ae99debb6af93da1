"""
Pattern analyzers.

Each analyzer is a pure function of the DataCube returning a list of
CognitiveFinding. See registry.ANALYZERS for the run order.
"""

from cognitive_engine.analyzers.base import (
    Analyzer,
    gap_severity,
    make_finding,
    recommend,
)
from cognitive_engine.analyzers.composition import analyze_composition
from cognitive_engine.analyzers.demographic import analyze_demographics
from cognitive_engine.analyzers.device import analyze_devices
from cognitive_engine.analyzers.efficiency import analyze_efficiency
from cognitive_engine.analyzers.geographic import analyze_geographic
from cognitive_engine.analyzers.opportunity import analyze_opportunities
from cognitive_engine.analyzers.planning_gap import analyze_planning_gap
from cognitive_engine.analyzers.registry import ANALYZERS, run_analyzers
from cognitive_engine.analyzers.risk import analyze_risks


__all__ = [
    "Analyzer",
    "gap_severity",
    "make_finding",
    "recommend",
    "analyze_planning_gap",
    "analyze_efficiency",
    "analyze_opportunities",
    "analyze_risks",
    "analyze_composition",
    "analyze_devices",
    "analyze_demographics",
    "analyze_geographic",
    "ANALYZERS",
    "run_analyzers",
]
