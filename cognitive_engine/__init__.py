"""
Cognitive Engine Package.

FastAPI service that turns a tenant's already-fetched marketing and
e-commerce metrics into ranked, financially quantified decisions.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, and dependencies
    - models: Pydantic schemas and enums
    - analyzers: Pattern analyzers over the data cube
    - services: Cube building, trends, correlation, diagnostics and ranking
    - jobs: Background snapshot persistence
    - sql: Parameterized SQL for the snapshot store
"""

__version__ = "1.0.0"
