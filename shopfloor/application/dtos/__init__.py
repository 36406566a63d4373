"""
Data transfer objects for engine requests.
"""

from .breakdown_dtos import ReportBreakdownRequest

__all__ = ["ReportBreakdownRequest"]
