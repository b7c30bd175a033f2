"""
Finance Tracker - Source Package

A personal finance tracker for expenses, jobs, work entries and
salary payments, with month-based aggregation for the dashboards.

DESIGN PRINCIPLES:
1. Aggregation is pure and never fails on bad data
2. Bad input is stopped at the form, not in the math
3. Changes are optimistic and rolled back on failure
4. Every change must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
