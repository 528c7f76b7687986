"""Sources of the recordings used for ripple detection.

There are three ways to give the recordings to the detector, each one is a
class with the same methods:
    - SeriesSource : the signal (and time stamps) are already in memory
    - ChannelSource : one channel of the binary LFP file in a session directory
    - SessionSource : the ripple channel defined in the session information

The methods are:
    - read : return the unfiltered signal as ChanTime with one channel
    - read_noise : return the signal of the noise channel as ChanTime
    - read_emg : return the EMG estimate (or None if it's not available)
"""
from logging import getLogger
from numbers import Integral
from pathlib import Path

from numpy import arange, asarray, median, diff, newaxis

from .attr import Session, load_session, basename_from_basepath
from .dataset import Dataset
from .datatype import ChanTime
from .trans.emg import Emg, emg_from_lfp, read_emg
from .utils.exceptions import MissingCollaboratorData

lg = getLogger(__name__)

EMG_SUFFIX = '.EMGFromLFP.npz'


class SeriesSource:
    """Recordings of one channel, already in memory.

    Parameters
    ----------
    signal : ndarray
        vector with the unfiltered signal
    time : ndarray, optional
        vector with the time stamps (s). If not specified, it's computed from
        the sampling frequency, starting at zero.
    s_freq : float, optional
        sampling frequency. If not specified, it's computed from the time
        stamps or it's given by the detector.
    emg : instance of Emg or tuple of ndarray, optional
        time stamps and values of the EMG estimate
    chan_name : str
        name of the channel
    """
    basepath = None
    basename = None
    channel = None

    def __init__(self, signal, time=None, s_freq=None, emg=None,
                 chan_name='lfp'):
        self.signal = asarray(signal, dtype=float).ravel()
        self.time = None if time is None else asarray(time, dtype=float)
        self.chan_name = chan_name

        if (s_freq is None and self.time is not None and
                len(self.time) > 1):
            s_freq = 1 / median(diff(self.time))
        self.s_freq = s_freq

        if emg is not None:
            emg = Emg(*emg)
        self.emg = emg

        if self.time is not None and len(self.time) != len(self.signal):
            raise ValueError('Signal has ' + str(len(self.signal)) +
                             ' samples but there are ' + str(len(self.time)) +
                             ' time stamps')

    def read(self, s_freq=None):
        """Return the signal.

        Parameters
        ----------
        s_freq : float, optional
            sampling frequency to use if the source does not know it

        Returns
        -------
        instance of ChanTime
            with one channel and one trial
        """
        return self._to_data(self.signal, s_freq)

    def read_noise(self, noise, s_freq=None):
        """Return the signal of the noise channel.

        Parameters
        ----------
        noise : ndarray or instance of ChanTime
            unfiltered signal, with the same time stamps as the signal

        Raises
        ------
        MissingCollaboratorData
            if noise is a channel index (there is no file to read it from)
        """
        if isinstance(noise, ChanTime):
            return noise

        if isinstance(noise, Integral):
            raise MissingCollaboratorData('Cannot read noise channel ' +
                                          str(noise) + ' without a session')

        noise = asarray(noise, dtype=float).ravel()
        if len(noise) != len(self.signal):
            raise ValueError('Noise has ' + str(len(noise)) + ' samples but '
                             'signal has ' + str(len(self.signal)))
        return self._to_data(noise, s_freq, chan_name='noise')

    def read_emg(self):
        """Return the EMG given when creating the source, or None."""
        return self.emg

    def _to_data(self, dat, s_freq, chan_name=None):
        if chan_name is None:
            chan_name = self.chan_name
        if self.s_freq is not None:
            s_freq = self.s_freq

        time = self.time
        if time is None:
            if s_freq is None:
                raise TypeError('You need to specify the time stamps or the '
                                'sampling frequency')
            time = arange(len(dat)) / s_freq

        return ChanTime(dat[newaxis, :], s_freq,
                        chan=asarray([chan_name], dtype='U'),
                        time=time)


class SessionSource:
    """Ripple channel of a recording session.

    Parameters
    ----------
    session : instance of Session
        information about the session
    channel : int, optional
        channel (zero-based) to use, default is the first ripple channel of
        the session
    emg_chan : list of int, optional
        channels used to compute the EMG, when it's not stored in the session
        directory (default: all the channels)
    """
    def __init__(self, session, channel=None, emg_chan=None):
        self.session = session
        if channel is None:
            channel = session.ripple_channel
        self.channel = channel
        self.emg_chan = emg_chan
        self._dataset = None

    @property
    def basepath(self):
        return self.session.basepath

    @property
    def basename(self):
        return self.session.name

    @property
    def s_freq(self):
        return self.session.s_freq

    @property
    def dataset(self):
        if self._dataset is None:
            self._dataset = Dataset(self.session.lfp_file,
                                    n_chan=self.session.n_channels,
                                    s_freq=self.session.s_freq)
        return self._dataset

    def read(self, s_freq=None):
        """Return the signal of the ripple channel.

        Parameters
        ----------
        s_freq : float, optional
            not used, the session knows its sampling frequency

        Returns
        -------
        instance of ChanTime
            with one channel and one trial
        """
        lg.info('Reading channel {} of {}'.format(self.channel,
                                                  self.basename))
        return self._read_chan(self.channel)

    def read_noise(self, noise, s_freq=None):
        """Return the signal of the noise channel.

        Parameters
        ----------
        noise : int or ndarray or instance of ChanTime
            channel (zero-based) in the LFP file, or unfiltered signal with
            the same time stamps as the ripple channel

        Raises
        ------
        MissingCollaboratorData
            if the noise channel cannot be read
        """
        if isinstance(noise, ChanTime):
            return noise

        if isinstance(noise, Integral):
            if not 0 <= noise < self.session.n_channels:
                raise MissingCollaboratorData(
                    'Noise channel ' + str(noise) + ' is not in ' +
                    self.basename + ' (' + str(self.session.n_channels) +
                    ' channels)')
            return self._read_chan(noise)

        hdr = self.dataset.header
        time = arange(hdr['n_samples']) / hdr['s_freq']
        return SeriesSource(noise, time, s_freq=self.s_freq,
                            chan_name='noise').read()

    def read_emg(self):
        """Return the EMG, stored in the session directory or computed from
        the LFP.
        """
        emg_file = Path(self.basepath) / (self.basename + EMG_SUFFIX)
        if emg_file.exists():
            lg.info('Reading EMG from ' + str(emg_file))
            return read_emg(emg_file)

        lg.info('Computing EMG from LFP of ' + self.basename)
        chan_name = self.dataset.header['chan_name']
        if self.emg_chan is not None:
            chan_name = [chan_name[i] for i in self.emg_chan]
        return emg_from_lfp(self.dataset.read_data(chan=chan_name))

    def _read_chan(self, channel):
        chan_name = self.dataset.header['chan_name'][channel]
        data = self.dataset.read_data(chan=[chan_name, ])
        data.attr['session'] = self.session
        return data


class ChannelSource(SessionSource):
    """One channel of the LFP file in a session directory.

    Parameters
    ----------
    basepath : path to directory
        directory of the session, containing <basename>.lfp
    channel : int
        channel (zero-based) to use
    n_chan : int, optional
        number of channels in the file (default: from the session file)
    s_freq : float, optional
        sampling frequency (default: from the session file)
    emg_chan : list of int, optional
        channels used to compute the EMG
    """
    def __init__(self, basepath, channel, n_chan=None, s_freq=None,
                 emg_chan=None):
        if n_chan is None or s_freq is None:
            session = load_session(basepath)
            if n_chan is not None:
                session.n_channels = int(n_chan)
            if s_freq is not None:
                session.s_freq = s_freq

        else:
            session = Session(basename_from_basepath(basepath), basepath,
                              n_chan, s_freq, ripple_channels=[channel, ])

        super().__init__(session, channel=channel, emg_chan=emg_chan)
