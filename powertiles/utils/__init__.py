# -*- coding: utf-8 -*-
"""
Presentation utilities: the `WindowBoard` class drawing a session with Matplotlib.
"""

from .windows import WindowBoard

__all__ = ["WindowBoard"]
