"""
API routers for the cognitive engine service.

- cognitive: POST /cognitive/analyze and POST /cognitive/insights
"""

from cognitive_engine.api.cognitive import router as cognitive_router


__all__ = [
    "cognitive_router",
]
