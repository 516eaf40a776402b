"""daybook: a local-first personal journal with remote sync and calendar views."""

__version__ = "0.1.0"
