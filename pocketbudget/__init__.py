"""
Pocket Budget - Source Package

A personal budgeting assistant for students managing a weekly or
monthly allowance.

DESIGN PRINCIPLES:
1. Validate at the boundary, never silently correct
2. Fail early, fail visibly
3. Every change must be auditable
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Pocket Budget Team"
