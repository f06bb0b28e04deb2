"""
tradelens - Trading performance analytics

Risk-adjusted statistics, equity curve reconstruction and grouped breakdowns
for closed trades.
"""

from importlib.metadata import version

try:
    __version__ = version("tradelens")
except Exception:
    __version__ = "0.0.0.dev"  # Fallback for development


__all__ = [
    "__version__",
]
