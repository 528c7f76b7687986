from datetime import datetime
from logging import getLogger

from numpy import arange, asarray, pi, random, sin, zeros

from ..datatype import ChanTime


lg = getLogger(__name__)


def create_data(n_chan=1, chan_name=None, s_freq=1250, time=None,
                start_time=None, bursts=(), sine_freq=160, amplitude=10,
                noise=0, seed=None):
    """Create recordings with ripple-like bursts from scratch.

    Parameters
    ----------
    n_chan : int
        if chan_name is not specified, this defines the number of channels
    chan_name : list of str
        names of the channels
    s_freq : float
        sampling frequency
    time : numpy.ndarray or tuple of two numbers
        if tuple, the first and second numbers indicate beginning and end (s).
        Default is one second.
    start_time : datetime.datetime, optional
        starting time of the recordings
    bursts : list of tuple of int
        begin and end sample (python convention, end excluded) of each burst.
        Bursts are added to every channel.
    sine_freq : float
        frequency of the oscillation in each burst, in Hz
    amplitude : float
        amplitude (half peak-to-peak) of the oscillation
    noise : float
        standard deviation of the gaussian noise added to the whole signal
    seed : int, optional
        seed for the noise generator, so that the data can be reproduced

    Returns
    -------
    instance of ChanTime
        with one trial

    Notes
    -----
    Without noise, the signal is exactly zero outside the bursts.
    """
    if time is not None:
        if isinstance(time, tuple) and len(time) == 2:
            time = arange(time[0], time[1], 1. / s_freq)
    else:
        time = arange(0, 1, 1. / s_freq)

    if chan_name is None:
        chan_name = _make_chan_name(n_chan)
    else:
        n_chan = len(chan_name)

    if start_time is None:
        start_time = datetime.now()

    values = zeros((n_chan, len(time)))
    for begsam, endsam in bursts:
        if begsam < 0 or endsam > len(time) or begsam >= endsam:
            raise ValueError('Burst ({}, {}) is outside the recordings'
                             ''.format(begsam, endsam))
        t = arange(endsam - begsam) / s_freq
        values[:, begsam:endsam] += amplitude * sin(2 * pi * sine_freq * t)

    if noise:
        rng = random.default_rng(seed)
        values += rng.normal(scale=noise, size=values.shape)

    data = ChanTime(values, s_freq,
                    chan=asarray(chan_name, dtype='U'),
                    time=time)
    data.start_time = start_time
    lg.debug('Created {} channels with {} bursts'.format(n_chan, len(bursts)))

    return data


def _make_chan_name(n_chan):
    return ['chan{0:02}'.format(i) for i in range(n_chan)]
