'''
Cognitive Engine Test Suite

Test Modules:
-------------
- test_cube_builder.py: ratio helpers, SKU status derivation, cube
  construction and trend attachment
- test_trend_analyzer.py: series normalization, OLS slope, moving-average
  classification and the concurrent history fan-out
- test_financial_impact.py: impact formulas and the netImpact invariant
- test_analyzers.py: planning gap, efficiency, opportunity, risk and
  composition analyzers
- test_segmentation_analyzers.py: device, demographic and geographic analyzers
- test_correlation.py: causal patterns, first-match-wins and idempotency
- test_diagnostics.py: strategic mode, bottleneck and budget reallocation
- test_ranker_pacing.py: decision ranking and month-end projections
- test_engine.py: orchestrator, health score, legacy projection and templates
- test_snapshot_store.py: snapshot reads/writes and the pool lifecycle
- test_jobs.py: daily snapshot persistence job
- test_api.py: FastAPI endpoints

Running Tests:
--------------
    pytest cognitive_engine/tests/ -v
    pytest -m scenario
'''
