"""diskscope - incremental, cancellable disk usage breakdown."""

__version__ = "0.1.0"
