"""
Budget Optimizer.

Greedy two-bucket reallocation between SKUs:

1. Sources: active SKUs with ROAS below the minimum and spend above R$ 100.
   Each gives up 50% of its spend when ROAS < 3, 30% when ROAS < minimum,
   20% otherwise (rules checked in that order).
2. Destinations: active SKUs with ROAS above 1.3x the account ROAS and at
   least 2 conversions. The freed budget is split in proportion to each
   destination's ROAS, and the new budget is expected to return only 70% of
   the current ROAS.

Guardrails: at least 3 SKUs with at least 3 active (spend > R$ 50), total
account spend of R$ 500 and R$ 100 freed. Otherwise no plan is proposed.
"""

import logging
from typing import List, Optional

from cognitive_engine.models.schemas import BudgetAllocation, BudgetPlan, DataCube, SkuSlice
from cognitive_engine.services.financial_impact import format_brl
from cognitive_engine.services.ratios import round2, safe_div


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_MIN_ROAS: float = 5.0
MIN_SKUS: int = 3
MIN_ACTIVE_SKUS: int = 3
ACTIVE_SPEND_FLOOR: float = 50.0
MIN_TOTAL_BUDGET: float = 500.0
SOURCE_SPEND_FLOOR: float = 100.0
MIN_REALLOCATION: float = 100.0

DESTINATION_ROAS_MULTIPLIER: float = 1.3
DESTINATION_MIN_CONVERSIONS: float = 2.0

CRITICAL_ROAS: float = 3.0
CRITICAL_REDUCTION: float = 0.5
BELOW_MIN_REDUCTION: float = 0.3
DEFAULT_REDUCTION: float = 0.2

# Share of current ROAS expected on transplanted budget
SCALE_EFFICIENCY: float = 0.7

# Allocations at or below this absolute delta are not reported
MIN_REPORTED_DELTA: float = 50.0

PLAN_CONFIDENCE: float = 0.5


def reduction_rate(roas: float, min_roas: float = DEFAULT_MIN_ROAS) -> float:
    """Share of a source's spend to free; order of checks matters."""
    if roas < CRITICAL_ROAS:
        return CRITICAL_REDUCTION
    if roas < min_roas:
        return BELOW_MIN_REDUCTION
    return DEFAULT_REDUCTION


def _source_allocation(sku: SkuSlice, min_roas: float) -> BudgetAllocation:
    rate = reduction_rate(sku.roas, min_roas)
    reduction = round2(sku.ads * rate)
    remaining = round2(sku.ads - reduction)
    return BudgetAllocation(
        entity=sku.sku,
        entityName=sku.nome,
        currentBudget=sku.ads,
        recommendedBudget=remaining,
        delta=-reduction,
        expectedRoas=sku.roas,
        expectedRevenue=round2(remaining * sku.roas),
        rationale=f"Cut {rate:.0%}: ROAS {sku.roas:.1f} below the minimum {min_roas:g}",
    )


def _destination_allocation(sku: SkuSlice, freed: float, share_of_roas: float) -> BudgetAllocation:
    increase = round2(freed * share_of_roas)
    effective_roas = sku.roas * SCALE_EFFICIENCY
    return BudgetAllocation(
        entity=sku.sku,
        entityName=sku.nome,
        currentBudget=sku.ads,
        recommendedBudget=round2(sku.ads + increase),
        delta=increase,
        expectedRoas=round2(effective_roas),
        expectedRevenue=round2((sku.ads + increase) * effective_roas),
        rationale=(
            f"Add {format_brl(increase)}: ROAS {sku.roas:.1f} "
            f"(est. {effective_roas:.1f} at scale)"
        ),
    )


def optimize_budget(cube: DataCube, min_roas: float = DEFAULT_MIN_ROAS) -> Optional[BudgetPlan]:
    """
    Propose a SKU budget reallocation, or None when a guardrail is not met.

    Example (SKU spends 1000/800/600/400/200 at ROAS 2/2/9/9/9):
        The two ROAS-2 SKUs lose 50% (R$ 900 freed) and each ROAS-9 SKU
        gains R$ 300.
    """
    account = cube.account
    if account is None or len(cube.skus) < MIN_SKUS:
        return None

    total_budget = account.ads
    if total_budget < MIN_TOTAL_BUDGET:
        return None

    active = [s for s in cube.skus if s.ads > ACTIVE_SPEND_FLOOR]
    if len(active) < MIN_ACTIVE_SKUS:
        return None

    avg_roas = account.roas
    sources: List[SkuSlice] = []
    destinations: List[SkuSlice] = []
    for sku in active:
        if sku.roas < min_roas and sku.ads > SOURCE_SPEND_FLOOR:
            sources.append(sku)
        elif sku.roas > avg_roas * DESTINATION_ROAS_MULTIPLIER and sku.conversions >= DESTINATION_MIN_CONVERSIONS:
            destinations.append(sku)

    if not sources or not destinations:
        return None

    sources.sort(key=lambda s: s.roas)
    destinations.sort(key=lambda s: -s.roas)

    source_allocations = [_source_allocation(s, min_roas) for s in sources]
    freed = sum(-a.delta for a in source_allocations)
    if freed < MIN_REALLOCATION:
        logger.debug(f"Budget optimizer abstains for {cube.meta.tenantId}: only {freed:.2f} freed")
        return None

    total_dest_roas = sum(d.roas for d in destinations)
    destination_allocations = [
        _destination_allocation(
            d, freed,
            safe_div(d.roas, total_dest_roas) if total_dest_roas > 0 else 1 / len(destinations),
        )
        for d in destinations
    ]

    current_revenue = sum(s.revenue for s in sources) + sum(d.revenue for d in destinations)
    new_revenue = sum(a.expectedRevenue for a in source_allocations + destination_allocations)
    improvement = round2(new_revenue - current_revenue)

    allocations = sorted(
        (a for a in source_allocations + destination_allocations if abs(a.delta) > MIN_REPORTED_DELTA),
        key=lambda a: -a.delta,
    )

    expected_total_revenue = account.revenue + improvement
    logger.info(
        f"Budget plan for {cube.meta.tenantId}: {format_brl(freed)} moved across "
        f"{len(allocations)} SKU(s), improvement {format_brl(improvement)}"
    )

    return BudgetPlan(
        totalBudget=total_budget,
        allocations=allocations,
        expectedTotalRevenue=round2(expected_total_revenue),
        expectedTotalRoas=round2(safe_div(expected_total_revenue, total_budget)),
        currentTotalRoas=avg_roas,
        improvementBRL=max(improvement, 0.0),
        confidence=PLAN_CONFIDENCE,
    )
