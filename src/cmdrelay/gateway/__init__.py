"""Command gateway for cmdrelay.

Exposes the submit / poll / report operations that connect a waiting
caller with the polling agent.
"""

from cmdrelay.gateway.service import CommandGateway

__all__ = ["CommandGateway"]
