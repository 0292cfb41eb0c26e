"""Adapters reading third-party tool output."""
