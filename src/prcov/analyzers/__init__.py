"""Analyzers over parsed coverage data."""
