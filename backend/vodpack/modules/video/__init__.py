"""Video module for upload handling."""

from vodpack.modules.video.router import router

__all__ = ["router"]
