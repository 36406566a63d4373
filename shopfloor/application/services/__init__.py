"""
Application services coordinating the production use cases.
"""

from .production_engine import ProductionEngine

__all__ = ["ProductionEngine"]
