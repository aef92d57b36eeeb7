"""Caller-side HTTP client for cmdrelay."""

from cmdrelay.client.http_client import CommandClient

__all__ = ["CommandClient"]
