"""
API endpoints package.

Contains FastAPI routers for all service endpoints:
- /api/dataset - Translation-pair ingestion
- /api/health - Liveness check
- /api/metrics, /metrics - Ingestion counters (JSON and Prometheus)
"""
from .dataset import router as dataset_router
from .health import router as health_router
from .metrics import router as metrics_router

__all__ = ["dataset_router", "health_router", "metrics_router"]
