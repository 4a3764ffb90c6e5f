"""
Superstore Margin Analytics

Descriptive-statistics pipeline over line-item sales data:
load, clean, enrich, aggregate and select top/bottom cohorts.
"""

__version__ = "1.0.0"
