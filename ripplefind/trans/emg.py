"""Estimate muscle activity (EMG) from the high frequencies of the LFP.

Muscle artifacts are broadband and shared by all the electrodes, while
neural activity at high frequencies is local. So the correlation between
channels after high-pass filtering is a good proxy for EMG.
"""
from collections import namedtuple
from itertools import combinations
from logging import getLogger

from numpy import arange, asarray, load, savez, sqrt, sum, vstack, where, zeros

from .filter import band_pass
from ..utils.exceptions import MissingCollaboratorData

lg = getLogger(__name__)

Emg = namedtuple('Emg', ['time', 'values'])
Emg.__doc__ = """EMG estimate, one value (between -1 and 1) per time point."""


def emg_from_lfp(data, s_freq_emg=10, passband=(300, 625), window=0.5):
    """Compute the EMG from the correlation between channels.

    Parameters
    ----------
    data : instance of ChanTime
        recordings with at least two channels, ideally far from each other
    s_freq_emg : float
        sampling frequency of the EMG estimate, in Hz
    passband : tuple of float
        frequency band used for the correlation, in Hz. The high cutoff is
        reduced when it's too close to the Nyquist frequency.
    window : float
        duration of the window where the correlation is computed, in s

    Returns
    -------
    instance of Emg
        time points (s) and values of the EMG

    Raises
    ------
    MissingCollaboratorData
        if there are fewer than two channels
    """
    chans = data.axis['chan'][0]
    if len(chans) < 2:
        raise MissingCollaboratorData('EMG needs at least two channels, got '
                                      + str(len(chans)))

    s_freq = data.s_freq
    nyquist = s_freq / 2
    high_cut = min(passband[1], nyquist - 25)
    if passband[0] >= high_cut:
        raise ValueError('Sampling frequency of ' + str(s_freq) + ' Hz is '
                         'too low to estimate EMG in ' + str(passband))

    sig = []
    for chan in chans:
        dat, time = data.series(chan)
        sig.append(band_pass(dat, s_freq, (passband[0], high_cut)))
    sig = vstack(sig)

    step = max(1, int(round(s_freq / s_freq_emg)))
    half_window = max(1, int(round(window * s_freq / 2)))
    centers = arange(half_window, sig.shape[1] - half_window, step)
    if len(centers) == 0:
        lg.warning('Recordings are shorter than one EMG window')
        return Emg(time=time[:0], values=zeros(0))

    sample_index = centers[:, None] + arange(-half_window, half_window + 1)

    emg = zeros(len(centers))
    n_pairs = 0
    for chan0, chan1 in combinations(range(sig.shape[0]), 2):
        x = sig[chan0, sample_index]
        y = sig[chan1, sample_index]
        x = x - x.mean(axis=1, keepdims=True)
        y = y - y.mean(axis=1, keepdims=True)
        den = sqrt(sum(x * x, axis=1) * sum(y * y, axis=1))
        num = sum(x * y, axis=1)
        emg += where(den > 0, num / where(den > 0, den, 1), 0)
        n_pairs += 1

    emg /= n_pairs
    lg.debug('EMG computed on {} pairs of channels'.format(n_pairs))

    return Emg(time=time[centers], values=emg)


def read_emg(filename):
    """Read EMG estimate saved with write_emg.

    Raises
    ------
    MissingCollaboratorData
        if the file does not exist
    """
    try:
        with load(str(filename)) as f:
            return Emg(time=asarray(f['time']), values=asarray(f['values']))
    except FileNotFoundError:
        raise MissingCollaboratorData('Could not find ' + str(filename))


def write_emg(emg, filename):
    """Save EMG estimate, as numpy .npz file."""
    with open(str(filename), 'wb') as f:
        savez(f, time=emg.time, values=emg.values)
