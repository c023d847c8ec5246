"""
Finora - Source Package

A personal-finance tracker: income and expense logging, a monthly
budget, debt payoff planning, savings goals and a small
financial-literacy course with quizzes.

DESIGN PRINCIPLES:
1. Every record belongs to exactly one user
2. Fail early, fail visibly
3. No silent no-ops on missing records
4. Derived numbers are pure functions of stored data
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finora Team"
