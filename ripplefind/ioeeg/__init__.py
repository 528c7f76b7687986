"""Package to import and export common formats.

"""
from .lfp import Lfp, write_lfp
