"""
AquaTrack Operations Console

Role-scoped dashboards over a shared bottle delivery backend.
"""

__version__ = "0.1.0"
