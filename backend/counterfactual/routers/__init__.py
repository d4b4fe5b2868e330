# backend/counterfactual/routers/__init__.py
"""
API routers for the Counterfactual Portfolio Analyzer.

Each router handles a specific domain:
- comparison: Portfolio vs. benchmark index comparison
- market_data: Single-ticker price and split lookups
- upload: Brokerage CSV parsing and merging
"""

from counterfactual.routers.comparison import router as comparison_router
from counterfactual.routers.market_data import router as market_data_router
from counterfactual.routers.upload import router as upload_router

__all__ = [
    "comparison_router",
    "market_data_router",
    "upload_router",
]
