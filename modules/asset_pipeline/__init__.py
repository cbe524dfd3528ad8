"""
Asset Pipeline Module.

Per-scene visual and voiceover generation with partial-failure isolation.
"""

from modules.asset_pipeline.generator import AssetGenerator, VoiceSettings

__all__ = [
    "AssetGenerator",
    "VoiceSettings",
]
