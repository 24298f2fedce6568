"""Risk controls for entries and exits."""

from autotrader.risk.manager import ApprovedOrder, ExitReason, RiskManager

__all__ = ["ApprovedOrder", "ExitReason", "RiskManager"]
