"""Module to detect ripples.
"""
from collections import OrderedDict
from datetime import datetime
from logging import getLogger
from numbers import Integral
from pathlib import Path

from numpy import (abs, argmin, asarray, diff, empty, inf, isfinite, isnan,
                   mean, nan, searchsorted, square, std, vstack, where, zeros)

from .. import __version__
from ..attr import basename_from_basepath
from ..datatype import ChanTime
from ..graphoelement import Ripple, Ripples, STAGES, ripples_file
from ..trans.filter import band_pass, moving_average
from ..utils.exceptions import DegenerateSignal, InvalidParameter

lg = getLogger(__name__)

DETECTOR_NAME = 'ripplefind.DetectRipple'


class DetectRipple:
    """Design ripple detection on a single channel.

    Ripples are detected on the normalized squared signal (NSS): the signal
    is filtered in the ripple band, squared, smoothed and z-scored. Periods
    above the low threshold which are close to each other are merged, then
    only the periods whose peak is above the high threshold are kept. Periods
    which are too short or too long are discarded. Finally, ripples which are
    also present on a noise channel or which happen during muscle artifacts
    are rejected.

    Parameters
    ----------
    thresholds : tuple of float
        thresholds for ripple beginning/end and peak, in multiples of the
        standard deviation of the NSS (integers by convention)
    durations : tuple of float
        min inter-ripple interval and max ripple duration, in ms. The max
        duration can be None.
    min_duration : float
        min ripple duration, in ms (it can be None)
    restrict : ndarray, optional
        N x 2 matrix with the intervals (s) used to compute the normalization
        (default: the whole recordings)
    frequency : float
        sampling frequency, used when the source does not know it
    stdev : float, optional
        standard deviation of the squared signal, from a previous detection
    passband : tuple of float
        low and high frequency of the ripple band, in Hz
    emg_thresh : float
        between 0 and 1; ripples during EMG above this value are noise. If 0
        or None, EMG is not used.
    absolute_thresholds : bool
        if True, the squared signal is not normalized and the thresholds are
        in the units of the signal
    above_band : bool, optional
        if True, ripples are kept only if the power in the ripple band is
        larger than in the band just above it. Default is the same as
        absolute_thresholds.
    window : int
        length of the moving average on the squared signal, in samples (odd)
    order : int
        order of the band-pass filter
    ftype : str
        type of the band-pass filter, as in scipy.signal.iirfilter
    Rs : float, optional
        attenuation in the stop band, for 'cheby2' and 'ellip'
    persist : bool
        save the ripples in the directory of the session

    Raises
    ------
    InvalidParameter
        if the parameters are not consistent
    """
    def __init__(self, thresholds=(2, 5), durations=(20, 150),
                 min_duration=20, restrict=None, frequency=1250, stdev=None,
                 passband=(130, 200), emg_thresh=0.9,
                 absolute_thresholds=False, above_band=None, window=11,
                 order=3, ftype='butter', Rs=None, persist=False):

        if len(thresholds) != 2 or thresholds[0] > thresholds[1]:
            raise InvalidParameter('thresholds should be (low, high), not ' +
                                   str(thresholds))
        if len(durations) != 2 or durations[0] < 0:
            raise InvalidParameter('durations should be (min inter-ripple '
                                   'interval, max duration), not ' +
                                   str(durations))
        if durations[1] is not None and durations[1] <= 0:
            raise InvalidParameter('max duration should be positive, not ' +
                                   str(durations[1]))
        if min_duration is not None and min_duration < 0:
            raise InvalidParameter('min duration should not be negative')
        if (min_duration is not None and durations[1] is not None and
                min_duration > durations[1]):
            raise InvalidParameter('min duration ({}) is longer than max '
                                   'duration ({})'.format(min_duration,
                                                          durations[1]))
        if window < 1 or window % 2 != 1:
            raise InvalidParameter('window should be odd, not ' + str(window))
        if len(passband) != 2 or not 0 < passband[0] < passband[1]:
            raise InvalidParameter('passband should be (low, high), not ' +
                                   str(passband))
        if emg_thresh is not None and not 0 <= emg_thresh <= 1:
            raise InvalidParameter('emg_thresh should be between 0 and 1, not '
                                   + str(emg_thresh))
        if stdev is not None and not (isfinite(stdev) and stdev > 0):
            raise InvalidParameter('stdev should be positive, not ' +
                                   str(stdev))

        if restrict is not None:
            restrict = asarray(restrict, dtype=float).reshape(-1, 2)
            if (restrict[:, 0] > restrict[:, 1]).any():
                raise InvalidParameter('restrict intervals should be (start, '
                                       'end)')

        self.thresholds = tuple(thresholds)
        self.durations = tuple(durations)
        self.min_duration = min_duration
        self.restrict = restrict
        self.frequency = frequency
        self.stdev = stdev
        self.passband = tuple(passband)
        self.emg_thresh = emg_thresh
        self.absolute_thresholds = absolute_thresholds
        if above_band is None:
            above_band = absolute_thresholds
        self.above_band = above_band
        self.window = window
        self.order = order
        self.ftype = ftype
        self.Rs = Rs
        self.persist = persist

    def __repr__(self):
        return ('detrip_{0:03}-{1:03}Hz_{2:03.1f}-{3:03.1f}{4}'
                ''.format(self.passband[0], self.passband[1],
                          self.thresholds[0], self.thresholds[1],
                          'abs' if self.absolute_thresholds else 'sd'))

    def __call__(self, source, noise=None, emg=None):
        """Detect ripples on the data.

        Parameters
        ----------
        source : instance of SeriesSource, ChannelSource or SessionSource
            where to read the unfiltered signal
        noise : int or ndarray or instance of ChanTime, optional
            channel without ripples (or its unfiltered signal); events also
            present on this channel are noise
        emg : instance of Emg, optional
            EMG estimate. If not specified, it's read from the source.

        Returns
        -------
        instance of Ripples
            the ripples and the events rejected as noise

        Raises
        ------
        DegenerateSignal
            if the signal has no variance (and stdev was not specified)
        MissingCollaboratorData
            if the noise channel cannot be read
        """
        data = source.read(self.frequency)
        s_freq = data.s_freq
        dat_orig, time = data.series(data.axis['chan'][0][0])

        steps = OrderedDict((x, 0) for x in STAGES)
        info = self._detector_info(source, noise)

        if len(dat_orig) == 0:
            lg.info('No samples in the recordings, no ripple detected')
            stdev = nan if self.stdev is None else self.stdev
            return self._finish(Ripples(stdev=stdev, processing_steps=steps,
                                        detector_info=info), source)

        # filtering a constant leaves rounding errors, which have a variance
        finite = dat_orig[isfinite(dat_orig)]
        if not self.absolute_thresholds and (not len(finite) or
                                             finite.max() == finite.min()):
            raise DegenerateSignal('Signal is constant (' +
                                   str(finite[:1]) + '), it cannot be '
                                   'normalized')

        dat_det = self._filter(dat_orig, s_freq, self.passband)
        power = moving_average(square(dat_det), self.window)

        low_thresh, high_thresh = self.thresholds
        if self.absolute_thresholds:
            dat_nss = power
            stdev = nan
            low_thresh, high_thresh = low_thresh ** 2, high_thresh ** 2
        else:
            keep = None
            if self.restrict is not None:
                keep = in_intervals(time, self.restrict)
            dat_nss, stdev = normalize_power(power, self.stdev, keep)

        events = detect_crossings(dat_nss, low_thresh)
        steps['detection'] = len(events)
        if not len(events):
            lg.info('Detection by thresholding failed')
            return self._finish(Ripples(stdev=stdev, processing_steps=steps,
                                        detector_info=info), source)
        lg.info('After detection by thresholding: {} events.'
                ''.format(len(events)))

        min_interval = self.durations[0] / 1000 * s_freq
        events = merge_close(events, min_interval)
        steps['merging'] = len(events)
        lg.info('After ripple merge: {} events.'.format(len(events)))

        events, peak_power = peak_threshold(dat_nss, events, high_thresh)
        steps['peak_threshold'] = len(events)
        lg.info('After peak thresholding: {} events.'.format(len(events)))

        if self.above_band:
            width = self.passband[1] - self.passband[0]
            above = (self.passband[0] + width, self.passband[1] + width)
            power_above = moving_average(
                square(self._filter(dat_orig, s_freq, above)), self.window)
            events, peak_power = above_band_threshold(power, power_above,
                                                      events, peak_power)
            lg.info('After peak thresholding in {}-{} Hz: {} events.'
                    ''.format(above[0], above[1], len(events)))
        steps['above_band'] = len(events)

        events, peak_power = negative_peaks(dat_det, events, peak_power)
        ripples = [Ripple(float(time[i[0]]), float(time[i[1]]),
                          float(time[i[2]]), float(pw))
                   for i, pw in zip(events, peak_power)]

        min_dur = max_dur = None
        if self.min_duration is not None:
            min_dur = self.min_duration / 1000
        if self.durations[1] is not None:
            max_dur = self.durations[1] / 1000
        ripples, too_long, too_short = within_duration(ripples, min_dur,
                                                       max_dur)
        lg.info('Long ripples removed: {}'.format(len(too_long)))
        lg.info('Short ripples removed: {}'.format(len(too_short)))
        lg.info('After duration test: {} events.'.format(len(ripples)))
        steps['duration'] = len(ripples)

        bad = []
        if noise is not None:
            noise_data = source.read_noise(noise, s_freq)
            noise_orig, noise_time = noise_data.series(
                noise_data.axis['chan'][0][0])
            noise_power = moving_average(
                square(self._filter(noise_orig, s_freq, self.passband)),
                self.window)
            if self.absolute_thresholds:
                noise_nss = noise_power
            else:
                noise_nss = normalize_power(noise_power, stdev)[0]

            ripples, rejected = reject_noise(ripples, noise_nss, noise_time,
                                             high_thresh)
            bad.extend(rejected)
            lg.info('After ripple-band noise removal: {} events.'
                    ''.format(len(ripples)))
        steps['noise'] = len(ripples)

        if self.emg_thresh:
            if emg is None:
                emg = source.read_emg()

            if emg is None:
                lg.warning('EMG is not available, ripples are not checked for '
                           'muscle artifacts')
            else:
                ripples, rejected = reject_emg(ripples, emg, self.emg_thresh)
                bad.extend(rejected)
                lg.info('After EMG noise removal: {} events.'
                        ''.format(len(ripples)))
        steps['emg'] = len(ripples)

        return self._finish(Ripples(events=ripples, noise=bad, stdev=stdev,
                                    processing_steps=steps,
                                    detector_info=info), source)

    def _filter(self, dat, s_freq, passband):
        return band_pass(dat, s_freq, passband, order=self.order,
                         ftype=self.ftype, Rs=self.Rs)

    def _params(self):
        """Parameters as values which can be written to json."""
        return {'thresholds': list(self.thresholds),
                'durations': list(self.durations),
                'min_duration': self.min_duration,
                'frequency': self.frequency,
                'stdev': None if self.stdev is None else float(self.stdev),
                'passband': list(self.passband),
                'emg_thresh': self.emg_thresh,
                'absolute_thresholds': self.absolute_thresholds,
                'above_band': self.above_band,
                'window': self.window,
                'order': self.order,
                'ftype': self.ftype,
                'Rs': self.Rs,
                'persist': self.persist,
                }

    def _detector_info(self, source, noise):
        if noise is None:
            noise_channel = None
        elif isinstance(noise, Integral):
            noise_channel = int(noise)
        elif isinstance(noise, ChanTime):
            noise_channel = str(noise.axis['chan'][0][0])
        else:
            noise_channel = 'series'

        restrict = None
        if self.restrict is not None:
            restrict = self.restrict.tolist()

        return {'detector_name': DETECTOR_NAME,
                'version': __version__,
                'detection_date': datetime.now(),
                'detection_intervals': restrict,
                'detection_params': self._params(),
                'detection_channel': source.channel,
                'noise_channel': noise_channel,
                }

    def _finish(self, ripples, source):
        summary = ', '.join('{}: {}'.format(k, v)
                            for k, v in ripples.processing_steps.items())
        lg.info('Events after each step: ' + summary)

        if self.persist:
            basepath = source.basepath
            if basepath is None:
                basepath = Path.cwd()
            basename = source.basename
            if basename is None:
                basename = basename_from_basepath(basepath)
            ripples.save(ripples_file(basepath, basename))

        return ripples


def normalize_power(power, stdev=None, keep=None):
    """Z-score the smoothed squared signal.

    Parameters
    ----------
    power : ndarray (dtype='float')
        vector with the smoothed squared signal
    stdev : float, optional
        standard deviation to use, instead of computing it. The mean is
        always computed.
    keep : ndarray (dtype='bool'), optional
        samples used to compute mean and standard deviation (default: all)

    Returns
    -------
    ndarray (dtype='float')
        normalized squared signal, same length as power
    float
        standard deviation used for the normalization

    Raises
    ------
    DegenerateSignal
        if there are no samples to compute the statistics, or if the standard
        deviation is zero
    """
    sel = power if keep is None else power[keep]
    if len(sel) == 0:
        raise DegenerateSignal('No samples to compute the normalization')

    mean_power = mean(sel)
    if stdev is None:
        stdev = std(sel, ddof=1) if len(sel) > 1 else 0.
        if not isfinite(stdev) or stdev == 0:
            raise DegenerateSignal('Standard deviation of the squared signal '
                                   'is ' + str(stdev))
    elif not stdev > 0:
        raise DegenerateSignal('Cannot normalize with standard deviation ' +
                               str(stdev))

    return (power - mean_power) / stdev, float(stdev)


def detect_crossings(dat, value):
    """Find the periods above threshold.

    Parameters
    ----------
    dat : ndarray (dtype='float')
        vector with the normalized squared signal
    value : float
        threshold

    Returns
    -------
    ndarray (dtype='int')
        N x 2 matrix with first and last sample above threshold (both
        included). It has zero rows if nothing crosses the threshold.

    Notes
    -----
    Only periods which begin and end within the recordings are returned. If
    the recordings start above threshold, the first period has no beginning
    and it's dropped; if they end above threshold, the last one is dropped.
    NaN values count as below threshold.
    """
    above = dat > value
    if not len(above):
        return empty((0, 2), dtype=int)

    crossing = diff(above.astype(int))
    starts = where(crossing == 1)[0] + 1
    ends = where(crossing == -1)[0]

    if above[0]:
        ends = ends[1:]
    if above[-1]:
        starts = starts[:-1]

    return vstack((starts, ends)).T


def merge_close(events, min_interval):
    """Merge events separated by less than a minimum interval.

    Parameters
    ----------
    events : ndarray (dtype='int')
        N x 2 matrix with first and last sample, sorted in time
    min_interval : float
        minimum distance between the last sample of one event and the first
        sample of the next one, in samples

    Returns
    -------
    ndarray (dtype='int')
        M x 2 matrix with first and last sample, M <= N
    """
    if not len(events):
        return events

    merged = [list(events[0])]
    for start, end in events[1:]:
        if start - merged[-1][1] < min_interval:
            merged[-1][1] = end
        else:
            merged.append([start, end])

    return asarray(merged, dtype=int)


def peak_threshold(dat, events, value):
    """Keep only the events whose peak is above threshold.

    Parameters
    ----------
    dat : ndarray (dtype='float')
        vector with the normalized squared signal
    events : ndarray (dtype='int')
        N x 2 matrix with first and last sample
    value : float
        high threshold

    Returns
    -------
    ndarray (dtype='int')
        M x 2 matrix with first and last sample
    ndarray (dtype='float')
        vector with the peak of the normalized squared signal in each event
    """
    peak_power = empty(len(events))
    for i, (start, end) in enumerate(events):
        peak_power[i] = dat[start:end + 1].max()

    above = peak_power > value
    return events[above], peak_power[above]


def above_band_threshold(power, power_above, events, peak_power):
    """Keep only the events with more power in the ripple band than in the
    band just above it.

    Parameters
    ----------
    power : ndarray (dtype='float')
        smoothed squared signal in the ripple band
    power_above : ndarray (dtype='float')
        smoothed squared signal in the band above the ripple band
    events : ndarray (dtype='int')
        N x 2 matrix with first and last sample
    peak_power : ndarray (dtype='float')
        peak of the normalized squared signal in each event

    Returns
    -------
    ndarray (dtype='int')
        M x 2 matrix with first and last sample
    ndarray (dtype='float')
        peak of the normalized squared signal for the events which are kept

    Notes
    -----
    Broadband artifacts have as much power above the ripple band as in the
    ripple band, while ripples do not.
    """
    keep = zeros(len(events), dtype=bool)
    for i, (start, end) in enumerate(events):
        keep[i] = (power_above[start:end + 1].max() <
                   power[start:end + 1].max())

    return events[keep], peak_power[keep]


def negative_peaks(dat, events, peak_power):
    """Find the trough of the filtered signal in each event.

    Parameters
    ----------
    dat : ndarray (dtype='float')
        vector with the filtered signal
    events : ndarray (dtype='int')
        N x 2 matrix with first and last sample
    peak_power : ndarray (dtype='float')
        peak of the normalized squared signal in each event

    Returns
    -------
    ndarray (dtype='int')
        M x 3 matrix with first sample, trough and last sample
    ndarray (dtype='float')
        peak of the normalized squared signal for the events which are kept

    Notes
    -----
    The trough is searched between the first and the last sample (both
    excluded), so that it's always strictly inside the event. Events shorter
    than three samples do not have any sample inside, so they are dropped.
    """
    long_enough = events[:, 1] - events[:, 0] >= 2
    if not long_enough.all():
        lg.debug('Dropping {} events shorter than three samples'
                 ''.format((~long_enough).sum()))
    events = events[long_enough]

    troughs = asarray([start + 1 + argmin(dat[start + 1:end])
                       for start, end in events], dtype=int)
    if not len(events):
        return empty((0, 3), dtype=int), peak_power[long_enough]

    return (vstack((events[:, 0], troughs, events[:, 1])).T,
            peak_power[long_enough])


def within_duration(ripples, min_dur=None, max_dur=None):
    """Check whether ripples are within time limits.

    Parameters
    ----------
    ripples : list of Ripple
        ripples with start and end time
    min_dur : float, optional
        min duration in s (included); None means no minimum
    max_dur : float, optional
        max duration in s (included); None means no maximum

    Returns
    -------
    list of Ripple
        ripples within the limits
    list of Ripple
        ripples which are too long
    list of Ripple
        ripples which are too short

    Raises
    ------
    ValueError
        if the duration of a ripple is NaN (this should never happen)
    """
    if min_dur is None:
        min_dur = 0
    if max_dur is None:
        max_dur = inf

    kept = []
    too_long = []
    too_short = []
    for one_ripple in ripples:
        dur = one_ripple.end - one_ripple.start
        if isnan(dur):
            raise ValueError('Duration of ripple is NaN: ' + str(one_ripple))

        if dur > max_dur:
            too_long.append(one_ripple)
        elif dur < min_dur:
            too_short.append(one_ripple)
        else:
            kept.append(one_ripple)

    return kept, too_long, too_short


def reject_noise(ripples, dat, time, value):
    """Reject ripples when the noise channel crosses the high threshold.

    Parameters
    ----------
    ripples : list of Ripple
        ripples, sorted in time
    dat : ndarray (dtype='float')
        vector with the normalized squared signal of the noise channel
    time : ndarray (dtype='float')
        vector with the time stamps of the noise channel
    value : float
        high threshold

    Returns
    -------
    list of Ripple
        ripples without noise
    list of Ripple
        ripples which are also on the noise channel
    """
    kept = []
    rejected = []
    previous = 0
    for one_ripple in ripples:
        begsam, endsam = _find_in_interval(time, one_ripple.start,
                                           one_ripple.end, previous)
        previous = max(begsam, endsam - 1)

        if (dat[begsam:endsam] > value).any():
            lg.debug('Ripple at {:.3f}s is also on noise channel'
                     ''.format(one_ripple.start))
            rejected.append(one_ripple)
        else:
            kept.append(one_ripple)

    return kept, rejected


def reject_emg(ripples, emg, value):
    """Reject ripples which start when the EMG is high.

    Parameters
    ----------
    ripples : list of Ripple
        ripples
    emg : instance of Emg
        time stamps and values of the EMG
    value : float
        threshold for the EMG (between 0 and 1)

    Returns
    -------
    list of Ripple
        ripples without muscle artifacts
    list of Ripple
        ripples during muscle artifacts

    Notes
    -----
    For each ripple, it takes the EMG value closest to the start of the
    ripple.
    """
    emg_time = asarray(emg.time, dtype=float).ravel()
    emg_values = asarray(emg.values, dtype=float).ravel()
    if not len(emg_time):
        lg.warning('EMG has no values, ripples are not checked for muscle '
                   'artifacts')
        return list(ripples), []

    kept = []
    rejected = []
    for one_ripple in ripples:
        idx = argmin(abs(emg_time - one_ripple.start))
        if emg_values[idx] > value:
            rejected.append(one_ripple)
        else:
            kept.append(one_ripple)

    return kept, rejected


def in_intervals(time, intervals):
    """Return which time points are within intervals.

    Parameters
    ----------
    time : ndarray (dtype='float')
        vector with time points
    intervals : ndarray
        N x 2 matrix with start and end of each interval (both included)

    Returns
    -------
    ndarray (dtype='bool')
        True for the time points within any of the intervals
    """
    keep = zeros(len(time), dtype=bool)
    for start, end in asarray(intervals, dtype=float).reshape(-1, 2):
        keep |= (time >= start) & (time <= end)
    return keep


def _find_in_interval(time, start, end, previous=0):
    """Samples within an interval, searching from a previous sample.

    Returns
    -------
    int
        first sample at or after start
    int
        first sample after end (python convention, excluded)
    """
    remaining = time[previous:]
    begsam = previous + searchsorted(remaining, start, side='left')
    endsam = previous + searchsorted(remaining, end, side='right')
    return int(begsam), int(endsam)
