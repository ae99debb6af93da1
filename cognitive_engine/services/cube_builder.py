"""
Data Cube Builder.

Normalizes the raw metric slices of an AnalysisContext into a DataCube with
every derived field populated, so analyzers never recompute ratios on their
own.

Derived fields:
    - ROAS = revenue / spend
    - CPA = spend / conversions
    - CTR = clicks / impressions (percent)
    - conversion rate = conversions / clicks (percent) for ads slices,
      purchases / sessions (fraction) for GA4 and channels
    - share-of-total fields (percent, 2 decimals) computed against the sum of
      the slice list actually present, never a global constant

Every ratio guards its denominator and yields exactly 0 when it is zero.

SKU enrichment:
    Margin and stock come from the catalog extras (defaults: 30% margin, 0
    stock). A SKU that arrives without a status tag gets one derived from its
    ROAS, CPA, margin and stock (see derive_sku_status).

The builder is a pure function: no I/O, no logging, no mutation of its input.
"""

from typing import Dict, List, Optional

from cognitive_engine.models.enums import DemographicType, SkuStatus
from cognitive_engine.models.schemas import (
    AccountMetrics,
    AccountSlice,
    AnalysisContext,
    CampaignMetrics,
    CampaignSlice,
    ChannelMetrics,
    ChannelSlice,
    CubeMeta,
    CubeTrends,
    DataCube,
    DemographicMetrics,
    DemographicSlice,
    DeviceMetrics,
    DeviceSlice,
    GA4Metrics,
    GA4Slice,
    GeographicMetrics,
    GeographicSlice,
    PlanningSlice,
    SkuExtras,
    SkuMetrics,
    SkuSlice,
)
from cognitive_engine.services.ratios import pct, round2, safe_div, share


# =============================================================================
# Constants
# =============================================================================

DEFAULT_MARGIN_PCT: float = 30.0

# SKU status derivation thresholds
STATUS_PAUSE_ROAS: float = 5.0
STATUS_PAUSE_CPA: float = 80.0
STATUS_KEEP_ROAS: float = 7.0
STATUS_KEEP_MARGIN: float = 25.0
STATUS_SCALE_STOCK: float = 20.0

AGE_LABELS: Dict[str, str] = {
    "AGE_RANGE_18_24": "18-24",
    "AGE_RANGE_25_34": "25-34",
    "AGE_RANGE_35_44": "35-44",
    "AGE_RANGE_45_54": "45-54",
    "AGE_RANGE_55_64": "55-64",
    "AGE_RANGE_65_UP": "65+",
    "AGE_RANGE_UNDETERMINED": "Undetermined",
}

GENDER_LABELS: Dict[str, str] = {
    "MALE": "Male",
    "FEMALE": "Female",
    "UNDETERMINED": "Undetermined",
}


# =============================================================================
# Status Derivation
# =============================================================================

def derive_sku_status(
    roas: float,
    cpa: float,
    conversions: float,
    margin_pct: float,
    stock: float,
) -> SkuStatus:
    """
    Derive the operational tag of a SKU from its performance.

    Rules, first match wins:
        1. no conversions and no return            -> pausar
        2. ROAS < 5 or CPA > 80                    -> pausar
        3. ROAS < 7 or margin < 25%                -> manter
        4. stock > 20 units                        -> escalar
        5. otherwise                               -> manter

    Example:
        >>> derive_sku_status(roas=9.0, cpa=40.0, conversions=12, margin_pct=35, stock=50)
        <SkuStatus.ESCALAR: 'escalar'>
    """
    if conversions == 0 and roas == 0:
        return SkuStatus.PAUSAR
    if roas < STATUS_PAUSE_ROAS or cpa > STATUS_PAUSE_CPA:
        return SkuStatus.PAUSAR
    if roas < STATUS_KEEP_ROAS or margin_pct < STATUS_KEEP_MARGIN:
        return SkuStatus.MANTER
    if stock > STATUS_SCALE_STOCK:
        return SkuStatus.ESCALAR
    return SkuStatus.MANTER


# =============================================================================
# Slice Builders
# =============================================================================

def build_account_slice(account: AccountMetrics) -> AccountSlice:
    return AccountSlice(
        ads=account.ads,
        impressions=account.impressions,
        clicks=account.clicks,
        conversions=account.conversions,
        revenue=account.revenue,
        roas=round2(safe_div(account.revenue, account.ads)),
        cpa=round2(safe_div(account.ads, account.conversions)),
        ctr=round2(pct(account.clicks, account.impressions)),
    )


def build_sku_slices(
    skus: List[SkuMetrics],
    extras: Dict[str, SkuExtras],
) -> List[SkuSlice]:
    """
    Build SKU slices with profitability and share-of-total fields.

    Shares are computed against the totals of the given SKU list.

    Args:
        skus: Raw per-SKU metrics
        extras: Catalog margin/stock keyed by SKU; missing SKUs use defaults

    Returns:
        One SkuSlice per input SKU, in input order
    """
    total_revenue = sum(s.revenue for s in skus)
    total_ads = sum(s.ads for s in skus)

    slices: List[SkuSlice] = []
    for item in skus:
        extra = extras.get(item.sku)
        margin_pct = extra.marginPct if extra else DEFAULT_MARGIN_PCT
        stock = extra.stock if extra else 0.0

        roas = round2(safe_div(item.revenue, item.ads))
        cpa = round2(safe_div(item.ads, item.conversions))
        gross_profit = round2(item.revenue * margin_pct / 100)
        status = item.status or derive_sku_status(
            roas, cpa, item.conversions, margin_pct, stock
        )

        slices.append(SkuSlice(
            sku=item.sku,
            nome=item.nome or item.sku,
            revenue=item.revenue,
            ads=item.ads,
            impressions=item.impressions,
            clicks=item.clicks,
            conversions=item.conversions,
            roas=roas,
            cpa=cpa,
            ctr=round2(pct(item.clicks, item.impressions)),
            convRate=round2(pct(item.conversions, item.clicks)),
            marginPct=margin_pct,
            stock=stock,
            grossProfit=gross_profit,
            profitAfterAds=round2(gross_profit - item.ads),
            revenueShare=share(item.revenue, total_revenue),
            adsShare=share(item.ads, total_ads),
            status=status,
        ))
    return slices


def build_campaign_slices(campaigns: List[CampaignMetrics]) -> List[CampaignSlice]:
    return [
        CampaignSlice(
            campaignId=c.campaignId,
            campaignName=c.campaignName or c.campaignId,
            channelType=c.channelType,
            status=c.status,
            costBRL=c.costBRL,
            revenue=c.revenue,
            roas=round2(safe_div(c.revenue, c.costBRL)),
            cpa=round2(safe_div(c.costBRL, c.conversions)),
            conversions=c.conversions,
            impressions=c.impressions,
            clicks=c.clicks,
        )
        for c in campaigns
    ]


def build_ga4_slice(ga4: GA4Metrics) -> GA4Slice:
    return GA4Slice(
        sessions=ga4.sessions,
        users=ga4.users,
        purchases=ga4.purchases,
        purchaseRevenue=ga4.purchaseRevenue,
        bounceRate=ga4.bounceRate,
        engagedSessions=ga4.engagedSessions,
        cartAbandonmentRate=ga4.cartAbandonmentRate,
        conversionRate=safe_div(ga4.purchases, ga4.sessions),
        avgOrderValue=round2(safe_div(ga4.purchaseRevenue, ga4.purchases)),
    )


def build_channel_slices(channels: List[ChannelMetrics]) -> List[ChannelSlice]:
    total_sessions = sum(c.sessions for c in channels)
    return [
        ChannelSlice(
            channel=c.channel,
            sessions=c.sessions,
            users=c.users,
            conversions=c.conversions,
            revenue=c.revenue,
            sessionShare=share(c.sessions, total_sessions),
            conversionRate=safe_div(c.conversions, c.sessions),
        )
        for c in channels
    ]


def build_device_slices(devices: List[DeviceMetrics]) -> List[DeviceSlice]:
    total_revenue = sum(d.revenue for d in devices)
    return [
        DeviceSlice(
            device=d.device,
            cost=d.cost,
            revenue=d.revenue,
            impressions=d.impressions,
            clicks=d.clicks,
            conversions=d.conversions,
            roas=round2(safe_div(d.revenue, d.cost)),
            cpa=round2(safe_div(d.cost, d.conversions)),
            ctr=round2(pct(d.clicks, d.impressions)),
            convRate=round2(pct(d.conversions, d.clicks)),
            revenueShare=share(d.revenue, total_revenue),
        )
        for d in devices
    ]


def build_demographic_slices(demographics: List[DemographicMetrics]) -> List[DemographicSlice]:
    """Demographic slices; revenue share is computed within each dimension (age, gender)."""
    totals: Dict[DemographicType, float] = {}
    for d in demographics:
        totals[d.type] = totals.get(d.type, 0.0) + d.revenue

    slices: List[DemographicSlice] = []
    for d in demographics:
        labels = AGE_LABELS if d.type == DemographicType.AGE else GENDER_LABELS
        slices.append(DemographicSlice(
            type=d.type,
            segment=d.segment,
            label=labels.get(d.segment, d.segment),
            cost=d.cost,
            revenue=d.revenue,
            impressions=d.impressions,
            clicks=d.clicks,
            conversions=d.conversions,
            roas=round2(safe_div(d.revenue, d.cost)),
            cpa=round2(safe_div(d.cost, d.conversions)),
            ctr=round2(pct(d.clicks, d.impressions)),
            revenueShare=share(d.revenue, totals[d.type]),
        ))
    return slices


def build_geographic_slices(regions: List[GeographicMetrics]) -> List[GeographicSlice]:
    """Geographic slices sorted by revenue, highest first."""
    total_revenue = sum(g.revenue for g in regions)
    slices = [
        GeographicSlice(
            region=g.region,
            cost=g.cost,
            revenue=g.revenue,
            impressions=g.impressions,
            clicks=g.clicks,
            conversions=g.conversions,
            roas=round2(safe_div(g.revenue, g.cost)),
            cpa=round2(safe_div(g.cost, g.conversions)),
            ctr=round2(pct(g.clicks, g.impressions)),
            revenueShare=share(g.revenue, total_revenue),
        )
        for g in regions
    ]
    return sorted(slices, key=lambda g: g.revenue, reverse=True)


# =============================================================================
# Cube Assembly
# =============================================================================

def build_data_cube(context: AnalysisContext) -> DataCube:
    """
    Build the DataCube for one analysis context.

    Args:
        context: Validated raw metric slices for one tenant and period

    Returns:
        DataCube with no trends attached (see attach_trends)

    Raises:
        pydantic.ValidationError: If a derived field violates a cube invariant
    """
    meta = CubeMeta(
        tenantId=context.tenantId,
        periodStart=context.periodStart,
        periodEnd=context.periodEnd,
        daysInPeriod=context.daysInPeriod,
        dayOfMonth=context.dayOfMonth,
        daysInMonth=context.daysInMonth,
    )

    return DataCube(
        meta=meta,
        account=build_account_slice(context.account) if context.account else None,
        skus=build_sku_slices(context.skus, context.skuExtras),
        campaigns=build_campaign_slices(context.campaigns),
        channels=build_channel_slices(context.channels),
        ga4=build_ga4_slice(context.ga4) if context.ga4 else None,
        planning=context.planning or PlanningSlice(),
        devices=build_device_slices(context.devices),
        demographics=build_demographic_slices(context.demographics),
        geographic=build_geographic_slices(context.geographic),
    )


def attach_trends(cube: DataCube, trends: Optional[CubeTrends]) -> DataCube:
    """
    Return a copy of the cube with trends attached at account and SKU level.

    SKUs without a trend entry keep trend=None (unknown, not stable).
    """
    if trends is None:
        return cube
    skus = [
        s.model_copy(update={"trend": trends.skus.get(s.sku)}) for s in cube.skus
    ]
    return cube.model_copy(update={"trends": trends, "skus": skus})
