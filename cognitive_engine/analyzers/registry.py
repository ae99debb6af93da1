"""
Ordered registry of pattern analyzers.

Analyzers are independent; the order here only fixes the order of the
concatenated finding list, which keeps the ranker's tie-break stable.
"""

import logging
from typing import List, Sequence, Tuple

from cognitive_engine.analyzers.base import Analyzer
from cognitive_engine.analyzers.composition import analyze_composition
from cognitive_engine.analyzers.demographic import analyze_demographics
from cognitive_engine.analyzers.device import analyze_devices
from cognitive_engine.analyzers.efficiency import analyze_efficiency
from cognitive_engine.analyzers.geographic import analyze_geographic
from cognitive_engine.analyzers.opportunity import analyze_opportunities
from cognitive_engine.analyzers.planning_gap import analyze_planning_gap
from cognitive_engine.analyzers.risk import analyze_risks
from cognitive_engine.models.schemas import CognitiveFinding, DataCube


logger = logging.getLogger(__name__)


ANALYZERS: Tuple[Analyzer, ...] = (
    analyze_planning_gap,
    analyze_efficiency,
    analyze_opportunities,
    analyze_risks,
    analyze_composition,
    analyze_devices,
    analyze_demographics,
    analyze_geographic,
)


def run_analyzers(cube: DataCube, analyzers: Sequence[Analyzer] = ANALYZERS) -> List[CognitiveFinding]:
    """Run every analyzer over the cube and concatenate their findings."""
    findings: List[CognitiveFinding] = []
    for analyzer in analyzers:
        produced = analyzer(cube)
        logger.debug(f"{analyzer.__name__}: {len(produced)} finding(s)")
        findings.extend(produced)
    return findings
