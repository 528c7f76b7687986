"""Module to filter the data.
"""
from logging import getLogger

from numpy import asarray, concatenate, ones, zeros
from scipy.signal import filtfilt, iirfilter, lfilter

from ..utils.exceptions import InvalidParameter

lg = getLogger(__name__)


def band_pass(dat, s_freq, passband, order=3, ftype='butter', Rs=None):
    """Filter one vector in a frequency band, without phase shift.

    Parameters
    ----------
    dat : ndarray (dtype='float')
        vector with the data for one channel
    s_freq : float
        sampling frequency
    passband : tuple of float
        low and high cutoff, in Hz
    order : int, optional
        filter order (it's applied twice, forward and backward)
    ftype : str
        'butter', 'cheby1', 'cheby2', 'ellip', 'bessel'
    Rs : float, optional
        minimum attenuation in the stop band (dB), for 'cheby2' and 'ellip'

    Returns
    -------
    ndarray (dtype='float')
        filtered vector, same length as dat

    Raises
    ------
    ValueError
        if the cutoff frequency is larger than the Nyquist frequency.
    """
    b, a = _design(s_freq, passband[0], passband[1], order, ftype, Rs)
    return _filtfilt(b, a, asarray(dat, dtype=float))


def moving_average(dat, window):
    """Smooth with a moving average, without delay.

    Parameters
    ----------
    dat : ndarray (dtype='float')
        vector with the data
    window : int
        length of the moving average, in samples. It needs to be odd.

    Returns
    -------
    ndarray (dtype='float')
        smoothed vector, same length as dat

    Raises
    ------
    InvalidParameter
        if window is not a positive odd number

    Notes
    -----
    The data is filtered forward only, then shifted back by half a window.
    The last samples come from the final state of the filter, i.e. as if the
    data continued with zeros. This avoids the padding of a centered filter
    at the beginning of the recordings.
    """
    if window < 1 or window % 2 != 1:
        raise InvalidParameter('window of moving average should be odd, not '
                               + str(window))

    dat = asarray(dat, dtype=float)
    if len(dat) == 0:
        return dat.copy()

    shift = (window - 1) // 2
    y0, zf = lfilter(ones(window) / window, 1, dat, zi=zeros(window - 1))

    return concatenate((y0[shift:], zf[:shift]))[:len(dat)]


def _design(s_freq, low_cut, high_cut, order, ftype, Rs):
    nyquist = s_freq / 2.
    if not 0 < low_cut < high_cut < nyquist:
        raise ValueError('passband ({}, {}) has to be below Nyquist '
                         'frequency ({})'.format(low_cut, high_cut, nyquist))

    if Rs is None:
        Rs = 40

    Wn = (low_cut / nyquist, high_cut / nyquist)
    lg.debug('order {0: 2}, Wn {1}, ftype {2}'.format(order, str(Wn), ftype))
    return iirfilter(order, Wn, btype='bandpass', ftype=ftype, rs=Rs)


def _filtfilt(b, a, dat):
    """filtfilt which also works on recordings shorter than the padding."""
    if len(dat) < 2:
        return dat.copy()

    padlen = min(3 * max(len(a), len(b)), len(dat) - 1)
    return filtfilt(b, a, dat, padlen=padlen)
