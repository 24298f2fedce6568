"""Automated trading agent core: indicators, strategies, risk, ledger, scheduler."""

__version__ = "0.1.0"
