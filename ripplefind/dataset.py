"""Module has information about the datasets, not data.

"""
from logging import getLogger
from pathlib import Path

from numpy import arange, asarray, empty

from .ioeeg import Lfp
from .datatype import ChanTime
from .utils import UnrecognizedFormat


lg = getLogger(__name__)


def detect_format(filename):
    """Detect file format.

    Parameters
    ----------
    filename : str or Path
        name of the filename

    Returns
    -------
    class used to read the data.

    Raises
    ------
    UnrecognizedFormat
        if the extension is not known
    """
    filename = Path(filename)

    if filename.suffix.lower() in ('.lfp', '.eeg'):
        return Lfp

    raise UnrecognizedFormat('Unrecognized format for file ' + str(filename))


class Dataset:
    """Contain specific information and methods, associated with a dataset.

    Parameters
    ----------
    filename : str or Path
        name of the file
    n_chan : int
        number of channels (binary files have no header)
    s_freq : float
        sampling frequency (binary files have no header)
    IOClass : class
        one of the classes of ripplefind.ioeeg

    Attributes
    ----------
    filename : Path
        name of the file
    IOClass : class
        format of the file
    header : dict
        - subj_id : str
            name of the session
        - start_time : datetime
            start time of the dataset
        - s_freq : float
            sampling frequency
        - chan_name : list of str
            list of all the channels
        - n_samples : int
            number of samples in the dataset
        - orig : dict
            additional information taken directly from the header
    dataset : instance of a class which depends on format,
        this requires at least three attributes:
          - filename
          - return_hdr
          - return_dat
    """
    def __init__(self, filename, n_chan=None, s_freq=None, IOClass=None):
        self.filename = Path(filename)

        if IOClass is not None:
            self.IOClass = IOClass
        else:
            self.IOClass = detect_format(filename)

        if n_chan is None or s_freq is None:
            raise TypeError('You need to specify the number of channels and '
                            'the sampling frequency for ' + str(filename))
        self.dataset = self.IOClass(self.filename, n_chan, s_freq)

        output = self.dataset.return_hdr()
        hdr = {}
        hdr['subj_id'] = output[0]
        hdr['start_time'] = output[1]
        hdr['s_freq'] = output[2]
        hdr['chan_name'] = output[3]
        hdr['n_samples'] = output[4]
        hdr['orig'] = output[5]
        self.header = hdr

    def read_data(self, chan=None, begsam=None, endsam=None):
        """Read the data and creates a ChanTime instance

        Parameters
        ----------
        chan : list of strings
            names of the channels to read
        begsam : int
            first sample (this sample will be included)
        endsam : int
            last sample (this sample will NOT be included)

        Returns
        -------
        An instance of ChanTime, with one trial

        Notes
        -----
        If begsam is not specified, it starts from the first sample. If endsam
        is not specified, it reads until the end. Samples outside the
        recordings are NaN.
        """
        data = ChanTime()
        data.start_time = self.header['start_time']
        data.s_freq = self.header['s_freq']

        if chan is None:
            chan = self.header['chan_name']
        if not isinstance(chan, (list, tuple)):
            raise TypeError('Parameter "chan" should be a list')
        idx_chan = [self.header['chan_name'].index(x) for x in chan]

        if begsam is None:
            begsam = 0
        if endsam is None:
            endsam = self.header['n_samples']

        data.axis['chan'] = empty(1, dtype='O')
        data.axis['time'] = empty(1, dtype='O')
        data.data = empty(1, dtype='O')

        data.axis['chan'][0] = asarray(chan, dtype='U')
        data.axis['time'][0] = arange(begsam, endsam) / self.header['s_freq']

        lg.debug('begsam {0: 6}, endsam {1: 6}'.format(begsam, endsam))
        data.data[0] = self.dataset.return_dat(idx_chan, begsam, endsam)

        return data
