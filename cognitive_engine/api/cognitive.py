"""
FastAPI router for the cognitive engine.

Endpoints:
- POST /cognitive/analyze: full cognitive response (ranked findings, mode,
  bottleneck, budget plan, pacing, executive summary, legacy projection)
- POST /cognitive/insights: legacy insights projection only

Both accept an AnalysisContext body holding the already-fetched metric
slices for one tenant and period. Malformed bodies are rejected with 422 by
FastAPI's request validation.

Trend enrichment and snapshot persistence only run when a snapshot database
is configured (DATABASE_URL). Persistence is handed to BackgroundTasks and
runs after the response is sent.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query

from cognitive_engine.core.dependencies import SettingsDep, SnapshotFetcherDep
from cognitive_engine.jobs.snapshot_persist import run_snapshot_persist
from cognitive_engine.models import (
    AnalysisContext,
    CognitiveResponse,
    LegacyIntelligenceResponse,
)
from cognitive_engine.services.engine import analyze, analyze_with_trends, to_legacy


# Configure logging
logger = logging.getLogger(__name__)

# Create router with prefix and tags for OpenAPI documentation
router = APIRouter(prefix="/cognitive", tags=["cognitive"])


async def _run_engine(
    context: AnalysisContext,
    settings,
    fetch,
    include_trends: bool,
) -> CognitiveResponse:
    if include_trends and settings.snapshots_enabled:
        return await analyze_with_trends(context, fetch, settings)
    return analyze(
        context,
        min_roas=settings.budget_min_roas,
        max_findings=settings.max_ranked_findings,
        max_insights=settings.max_legacy_insights,
    )


@router.post("/analyze", response_model=CognitiveResponse)
async def analyze_context(
    context: AnalysisContext,
    settings: SettingsDep,
    fetch: SnapshotFetcherDep,
    background_tasks: BackgroundTasks,
    include_trends: bool = Query(
        True, description="Enrich the analysis with historical snapshot trends"
    ),
    persist_snapshot: bool = Query(
        False, description="Store today's account and SKU metrics as a snapshot"
    ),
) -> CognitiveResponse:
    """
    Run the cognitive engine over one tenant's metrics.

    Args:
        context: Metric slices for the tenant and period
        include_trends: Fetch history for the account and top SKUs first
        persist_snapshot: Schedule the daily snapshot job after responding

    Returns:
        CognitiveResponse

    Raises:
        HTTPException 500: If the engine fails unexpectedly
    """
    try:
        response = await _run_engine(context, settings, fetch, include_trends)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error analyzing tenant {context.tenantId}: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error running cognitive analysis: {str(e)}",
        )

    if persist_snapshot and settings.snapshots_enabled:
        background_tasks.add_task(run_snapshot_persist, context)

    return response


@router.post("/insights", response_model=LegacyIntelligenceResponse)
async def legacy_insights(
    context: AnalysisContext,
    settings: SettingsDep,
    fetch: SnapshotFetcherDep,
    include_trends: bool = Query(
        False, description="Enrich the analysis with historical snapshot trends"
    ),
) -> LegacyIntelligenceResponse:
    """
    Legacy insights projection: findings without financial impact data,
    plus health score, top priority and quick wins.

    Raises:
        HTTPException 500: If the engine fails unexpectedly
    """
    try:
        response = await _run_engine(context, settings, fetch, include_trends)
        return to_legacy(response)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error building legacy insights for {context.tenantId}: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error building insights: {str(e)}",
        )
