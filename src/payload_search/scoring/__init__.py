"""Payload-aware information-based scoring."""
