"""Persistent execution log for cmdrelay."""

from cmdrelay.store.log_store import LogStore

__all__ = ["LogStore"]
