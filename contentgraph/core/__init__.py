"""Core infrastructure: document store, blob store, fan-out executor, factories."""

from contentgraph.core.fanout import FanOutExecutor

__all__ = ["FanOutExecutor"]
