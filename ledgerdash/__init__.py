"""
LedgerDash - Source Package

A personal and business finance dashboard: accounts, categories,
transactions, credit cards and invoices, projects and cost centers,
and the reports built on top of them.

DESIGN PRINCIPLES:
1. Money is Decimal end to end
2. Fail early, fail visibly
3. Multi-row writes are all-or-nothing
4. Every mutation is auditable
5. Storage and presentation are swappable
"""

__version__ = "1.0.0"
__author__ = "LedgerDash Team"
