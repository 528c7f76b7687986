"""Package to transform the recordings and to compute measures on the
detected events.

"""
from .filter import band_pass, moving_average
from .emg import Emg, emg_from_lfp, read_emg, write_emg
from .rank import rank_units, rank_order, intersect_intervals
