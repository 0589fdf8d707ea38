"""Backup storage backends with multi-storage replication."""

__version__ = "0.1.0"
