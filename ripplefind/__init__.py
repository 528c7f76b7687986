"""
Ripplefind main module
"""
from os import path

here = path.abspath(path.dirname(__file__))
with open(path.join(here, 'VERSION')) as f:
    __version__ = f.read().strip()

from .dataset import Dataset
from .datatype import Data, ChanTime
from .graphoelement import Ripple, Ripples
from .attr import Session, load_session
from .source import SeriesSource, ChannelSource, SessionSource
from .detect import DetectRipple
