"""Utility helpers for tgcli."""
