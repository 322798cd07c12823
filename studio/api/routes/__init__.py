from . import slides, video

__all__ = ["slides", "video"]
