"""
Financial Impact Calculator.

Shared, stateless library of impact-estimation formulas. Every analyzer rule
quantifies its finding through one of these functions, so that all findings
carry a comparable FinancialImpact.

Contracts:
    - Money values are rounded to 2 decimals before netImpact is derived, so
      netImpact == estimatedRevenueGain + estimatedCostSaving holds exactly.
    - A finding with no quantifiable effect uses zero_impact(): zero money,
      confidence 0.3, medium timeframe.
    - Downside exposure (concentration risk) is reported as a negative revenue
      gain; rankers and the health score read |netImpact|.

Confidence discounts encode how speculative each estimate is: wasted spend is
observed money (0.9), reallocation and underinvestment extrapolate ROAS to
new budget (0.5 / 0.4), funnel fixes depend on behaviour change (0.35-0.4).
"""

from typing import Optional

from cognitive_engine.models.enums import Timeframe
from cognitive_engine.models.schemas import FinancialImpact, GA4Slice
from cognitive_engine.services.ratios import round2, safe_div


# =============================================================================
# Constants
# =============================================================================

PLACEHOLDER_CONFIDENCE: float = 0.3

# Share of reallocated ROAS delta expected to survive diminishing returns
REALLOCATION_EFFICIENCY: float = 0.6

# Share of extrapolated ROAS expected when scaling an underinvested entity
UNDERINVESTMENT_EFFICIENCY: float = 0.5

# Revenue drop simulated for the concentrated entity
CONCENTRATION_DROP: float = 0.3

IDEAL_PAID_SESSION_PCT: float = 50.0

TARGET_BOUNCE_RATE: float = 0.45

TARGET_CART_ABANDONMENT_PCT: float = 70.0

# Fallback average order value when the funnel has no purchases
DEFAULT_AOV: float = 500.0


# =============================================================================
# Formatting
# =============================================================================

def format_brl(value: float) -> str:
    """
    Format a value as Brazilian Real.

    Example:
        >>> format_brl(1234.5)
        'R$ 1.234,50'
        >>> format_brl(-80)
        '-R$ 80,00'
    """
    text = f"{abs(value):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"-R$ {text}" if value < 0 else f"R$ {text}"


# =============================================================================
# Builders
# =============================================================================

def build_impact(
    revenue_gain: float,
    cost_saving: float,
    confidence: float,
    timeframe: Timeframe,
    calculation: str,
) -> FinancialImpact:
    """Round money to 2 decimals and derive netImpact from the rounded parts."""
    gain = round2(revenue_gain)
    saving = round2(cost_saving)
    return FinancialImpact(
        estimatedRevenueGain=gain,
        estimatedCostSaving=saving,
        netImpact=gain + saving,
        confidence=confidence,
        timeframe=timeframe,
        calculation=calculation,
    )


def zero_impact(calculation: str = "Not quantifiable with the available data") -> FinancialImpact:
    """Low-confidence placeholder for findings with no measurable effect."""
    return build_impact(0.0, 0.0, PLACEHOLDER_CONFIDENCE, Timeframe.MEDIUM, calculation)


# =============================================================================
# Formulas
# =============================================================================

def quantify_revenue_gap(
    actual: float,
    monthly_target: float,
    day_of_month: int,
    days_in_month: int,
) -> FinancialImpact:
    """
    Revenue missing at month end if the current run rate holds.

    projection = actual + (actual / dayOfMonth) * daysRemaining
    impact     = max(target - projection, 0)

    Example:
        >>> quantify_revenue_gap(45000, 100000, 15, 30).estimatedRevenueGain
        10000.0
    """
    days_remaining = max(days_in_month - day_of_month, 0)
    daily_rate = safe_div(actual, day_of_month)
    projection = actual + daily_rate * days_remaining
    gap = monthly_target - projection

    if gap <= 0:
        return build_impact(
            0.0, 0.0, 0.7, Timeframe.MEDIUM,
            f"Projection {format_brl(projection)} reaches target {format_brl(monthly_target)}",
        )
    return build_impact(
        gap, 0.0, 0.6, Timeframe.MEDIUM,
        f"Target {format_brl(monthly_target)} - projection {format_brl(projection)} = {format_brl(gap)}",
    )


def quantify_wasted_spend(amount: float, label: str = "spend") -> FinancialImpact:
    """Spend with no return: the whole amount is a cost saving."""
    return build_impact(
        0.0, amount, 0.9, Timeframe.IMMEDIATE,
        f"Wasted {label}: {format_brl(amount)} with no return",
    )


def quantify_budget_reallocation(amount: float, from_roas: float, to_roas: float) -> FinancialImpact:
    """
    Revenue from moving budget between entities.

    gain = amount * (toROAS - fromROAS) * 0.6, never negative
    """
    gain = max(amount * (to_roas - from_roas) * REALLOCATION_EFFICIENCY, 0.0)
    return build_impact(
        gain, 0.0, 0.5, Timeframe.SHORT,
        f"Move {format_brl(amount)} from ROAS {from_roas:.1f} to ROAS {to_roas:.1f} "
        f"x {REALLOCATION_EFFICIENCY:.0%} efficiency = {format_brl(gain)}",
    )


def quantify_underinvestment(current_spend: float, avg_spend: float, roas: float) -> FinancialImpact:
    """
    Revenue from raising an underinvested entity toward the average spend.

    increase = min(avgSpend - currentSpend, currentSpend * 2)
    gain     = increase * ROAS * 0.5
    """
    increase = max(min(avg_spend - current_spend, current_spend * 2), 0.0)
    gain = increase * roas * UNDERINVESTMENT_EFFICIENCY
    return build_impact(
        gain, 0.0, 0.4, Timeframe.SHORT,
        f"+{format_brl(increase)} spend x ROAS {roas:.1f} x {UNDERINVESTMENT_EFFICIENCY:.0%} = {format_brl(gain)}",
    )


def quantify_pause_skus(wasted_spend: float, avg_roas: float) -> FinancialImpact:
    """
    Net saving from pausing low-return SKUs.

    Pausing forfeits wasted_spend * avg_roas of revenue. When the saving
    outweighs that loss the net is an immediate saving; otherwise the spend is
    reported as a short-term saving with lower confidence.
    """
    lost_revenue = wasted_spend * avg_roas
    net_saving = wasted_spend - lost_revenue

    if net_saving > 0:
        return build_impact(
            0.0, net_saving, 0.7, Timeframe.IMMEDIATE,
            f"Saving {format_brl(wasted_spend)} - lost revenue {format_brl(lost_revenue)} = {format_brl(net_saving)}",
        )
    return build_impact(
        0.0, wasted_spend, 0.5, Timeframe.SHORT,
        f"Reallocating {format_brl(wasted_spend)} from low-ROAS SKUs ({avg_roas:.1f}x)",
    )


def quantify_conversion_improvement(
    ga4: Optional[GA4Slice],
    current_rate: float,
    target_rate: float,
    day_of_month: int,
    days_in_month: int,
    fallback_aov: float = DEFAULT_AOV,
) -> FinancialImpact:
    """
    Monthly revenue from lifting the session conversion rate to target.

    Rates are fractions (purchases per session). The period gain is prorated
    to a full month.
    """
    if ga4 is None or ga4.sessions <= 0 or target_rate <= current_rate:
        return zero_impact()

    aov = ga4.avgOrderValue or fallback_aov
    additional_purchases = ga4.sessions * (target_rate - current_rate)
    gain = additional_purchases * aov
    if day_of_month > 0:
        gain = gain / day_of_month * days_in_month

    return build_impact(
        gain, 0.0, 0.4, Timeframe.MEDIUM,
        f"+{additional_purchases:.0f} orders x {format_brl(aov)} ticket, projected to month = {format_brl(gain)}",
    )


def quantify_concentration_risk(entity_revenue: float, total_revenue: float) -> FinancialImpact:
    """
    Revenue exposed if the concentrated entity dropped 30%.

    No action is implied, so both money fields stay at zero and the exposure
    is stated only in the calculation text.
    """
    at_risk = entity_revenue * CONCENTRATION_DROP
    share_pct = safe_div(entity_revenue, total_revenue) * 100
    return build_impact(
        0.0, 0.0, 0.5, Timeframe.MEDIUM,
        f"If the top entity ({share_pct:.0f}% of revenue) dropped {CONCENTRATION_DROP:.0%}: "
        f"{format_brl(-at_risk)}",
    )


def quantify_paid_dependency(paid_pct: float, total_sessions: float, avg_cost_per_session: float) -> FinancialImpact:
    """Spend saved if paid sessions above 50% of traffic came from organic instead."""
    if paid_pct <= IDEAL_PAID_SESSION_PCT:
        return zero_impact()

    excess_sessions = total_sessions * (paid_pct - IDEAL_PAID_SESSION_PCT) / 100
    saving = excess_sessions * avg_cost_per_session
    return build_impact(
        0.0, saving, 0.3, Timeframe.MEDIUM,
        f"{excess_sessions:.0f} excess paid sessions x CPS {format_brl(avg_cost_per_session)} = {format_brl(saving)}",
    )


def quantify_bounce_impact(ga4: Optional[GA4Slice], fallback_aov: float) -> FinancialImpact:
    """
    Revenue recovered by bringing bounce rate down to 45%.

    recovered sessions = sessions * (bounce - 0.45)
    gain               = recovered * conversion rate * AOV
    """
    if ga4 is None or ga4.bounceRate <= TARGET_BOUNCE_RATE:
        return zero_impact()

    recovered_sessions = ga4.sessions * (ga4.bounceRate - TARGET_BOUNCE_RATE)
    aov = ga4.avgOrderValue or fallback_aov
    gain = recovered_sessions * ga4.conversionRate * aov
    return build_impact(
        gain, 0.0, 0.35, Timeframe.MEDIUM,
        f"{recovered_sessions:.0f} recoverable sessions x {ga4.conversionRate * 100:.2f}% conv "
        f"x {format_brl(aov)} = {format_brl(gain)}",
    )


def quantify_cart_abandonment(ga4: Optional[GA4Slice]) -> FinancialImpact:
    """
    Revenue from cutting cart abandonment to 70%.

    carts      = purchases / current completion rate
    additional = carts * (target completion - current completion)
    """
    if ga4 is None or ga4.cartAbandonmentRate <= TARGET_CART_ABANDONMENT_PCT:
        return zero_impact()

    current_completion = (100 - ga4.cartAbandonmentRate) / 100
    target_completion = (100 - TARGET_CART_ABANDONMENT_PCT) / 100
    estimated_carts = safe_div(ga4.purchases, current_completion)
    additional_purchases = estimated_carts * (target_completion - current_completion)
    aov = ga4.avgOrderValue or DEFAULT_AOV
    gain = additional_purchases * aov
    return build_impact(
        gain, 0.0, 0.4, Timeframe.MEDIUM,
        f"Abandonment {ga4.cartAbandonmentRate:.0f}% -> {TARGET_CART_ABANDONMENT_PCT:.0f}%: "
        f"+{additional_purchases:.0f} orders x {format_brl(aov)} = {format_brl(gain)}",
    )


def quantify_trend_decline(current_avg: float, previous_avg: float, days_remaining: int) -> FinancialImpact:
    """
    Revenue lost over the rest of the month if a declining daily average does
    not recover to its previous level.
    """
    daily_loss = max(previous_avg - current_avg, 0.0)
    gain = daily_loss * days_remaining
    return build_impact(
        gain, 0.0, 0.4, Timeframe.SHORT,
        f"{format_brl(daily_loss)}/day below the previous 7-day average x {days_remaining} days "
        f"= {format_brl(gain)}",
    )
