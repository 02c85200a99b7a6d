"""Persistence of per-file review comment state."""
