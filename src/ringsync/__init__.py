"""ringsync - bidirectional sync between a task backlog and GitHub Issues."""

__version__ = "0.1.0"
