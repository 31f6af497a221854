"""
Jantrik - Source Package

A small ledger for tracking collected amounts against fixed number
ranges ("3up": 000-999, "down": 00-99).

DESIGN PRINCIPLES:
1. Every number in range always has exactly one entry
2. Reject bad input loudly, never half-apply it
3. Storage layer is swappable
4. Exports never touch the live collection
"""

__version__ = "1.0.0"
__author__ = "Jantrik Team"
