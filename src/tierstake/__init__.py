# src/tierstake/__init__.py
"""Tiered staking reward-accrual engine."""

__version__ = "0.1.0"
