"""
Shared utilities.

Configuration, errors, logging, models and the job orchestration primitives.
"""
