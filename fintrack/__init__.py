"""
fintrack - Source Package

Derived-state engines for a personal finance tracker: budgets, debts,
income and investments.

DESIGN PRINCIPLES:
1. Engines are pure: snapshot in, new snapshot out
2. Fail early, fail visibly (typed errors, never partial updates)
3. No silent corrections
4. Every mutation must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "fintrack Team"
