"""Readiness probes used by wait_for_init()."""

from bgserver.adapters.readiness.probes import CallableProbe, TcpProbe

__all__ = ["CallableProbe", "TcpProbe"]
