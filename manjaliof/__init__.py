"""
manjaliof - Source Package

A small subscription ledger: who paid, how much, to whom, and when
their subscription runs out.

DESIGN PRINCIPLES:
1. One run is one session: every change commits together, or none does
2. Fail early, fail visibly
3. No silent corrections of user input
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "manjaliof team"
