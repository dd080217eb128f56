"""statusflow: status-change automation engine (event bus, trigger matcher, graph interpreter)."""

__version__ = "1.0.0"
