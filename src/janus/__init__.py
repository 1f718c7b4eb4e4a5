"""Janus - period-synchronized dual limit-start bot for 15-minute up/down markets."""

__version__ = "0.1.0"
