"""Package to detect ripples.
"""
from .ripple import DetectRipple
