"""Bounded activity log of scheduler actions."""

from autotrader.activity.log import ActivityEntry, ActivityKind, ActivityLog

__all__ = ["ActivityEntry", "ActivityKind", "ActivityLog"]
