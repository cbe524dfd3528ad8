"""
Provider Task Client Module.

Create/poll/extract client for the task-based media generation API.
"""

from modules.provider_client.client import KieAiClient

__all__ = [
    "KieAiClient",
]
