"""prcov: LCOV coverage reports for GitHub pull requests."""

__version__ = "0.1.0"
