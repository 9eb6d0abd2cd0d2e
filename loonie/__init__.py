"""
Loonie - Source Package

Split shared expenses inside a group and work out who owes whom.

DESIGN PRINCIPLES:
1. Balances and settlements are derived, never stored
2. Bad input is rejected at the boundary, not inside the math
3. The ledger is pure: same snapshot in, same answer out
4. Every write is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Loonie Team"
