"""
Render Module.

Render job orchestration against an external compositor.
"""

from modules.render.compositor import Compositor, RemotionCompositor
from modules.render.service import RenderService

__all__ = [
    "Compositor",
    "RemotionCompositor",
    "RenderService",
]
