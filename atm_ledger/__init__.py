"""
ATM Ledger

A single-branch ATM simulator: named accounts, cash transfers, and automatic
IOU tracking with FIFO debt settlement. All amounts use Decimal precision.
"""

__version__ = "1.0.0"
