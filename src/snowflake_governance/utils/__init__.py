"""Shared utilities (structured logging)."""

__all__ = ["logging"]
