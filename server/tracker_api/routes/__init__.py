"""API route modules."""
from .entries import router as entries_router
from .stats import router as stats_router

__all__ = [
    "entries_router",
    "stats_router",
]
