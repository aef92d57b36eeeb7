"""Pending-command registry for cmdrelay."""

from cmdrelay.registry.pending import PendingRegistry

__all__ = ["PendingRegistry"]
