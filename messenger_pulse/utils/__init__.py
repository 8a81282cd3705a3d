"""
Shared utilities: structured logging, metrics and time helpers.
"""
