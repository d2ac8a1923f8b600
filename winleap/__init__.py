"""winleap — jump to an open X11 window by prefix or mark."""

from winleap.__version__ import __version__

__all__ = ['__version__']
