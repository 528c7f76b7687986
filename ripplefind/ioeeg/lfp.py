"""Module to read and write binary LFP files (.lfp, .eeg), as used by
neuroscope and buzcode.

The file has no header: the values (int16) of all the channels are
interleaved, sample after sample. The number of channels and the sampling
frequency come from the session information.
"""
from datetime import datetime
from logging import getLogger
from pathlib import Path

from numpy import c_, dtype as np_dtype, empty, float64, memmap, nan, rint

lg = getLogger(__name__)


class Lfp:
    """Class to read the data in binary LFP format.

    Parameters
    ----------
    filename : path to file
        the name of the filename with extension .lfp or .eeg
    n_chan : int
        number of channels in the file
    s_freq : float
        sampling frequency
    dtype : str
        numpy dtype of the values in the file
    """
    def __init__(self, filename, n_chan, s_freq, dtype='int16'):
        self.filename = Path(filename)
        self.n_chan = int(n_chan)
        self.s_freq = s_freq
        self.dtype = dtype

    def return_hdr(self):
        """Return the header for further use.

        Returns
        -------
        subj_id : str
            name of the session (file name without extension)
        start_time : datetime
            start time of the dataset (the file has no start time, so this is
            the time of the last modification)
        s_freq : float
            sampling frequency
        chan_name : list of str
            list of all the channels
        n_samples : int
            number of samples in the dataset
        orig : dict
            additional information (dtype and number of bytes)

        Raises
        ------
        FileNotFoundError
            if the file does not exist
        """
        n_bytes = self.filename.stat().st_size
        itemsize = np_dtype(self.dtype).itemsize
        n_samples = n_bytes // (itemsize * self.n_chan)
        if n_bytes % (itemsize * self.n_chan):
            lg.warning('Size of ' + str(self.filename) + ' is not a multiple '
                       'of the number of channels, last sample is ignored')

        start_time = datetime.fromtimestamp(self.filename.stat().st_mtime)
        chan_name = ['chan{0:03}'.format(i) for i in range(self.n_chan)]
        self.memshape = (self.n_chan, n_samples)

        orig = {'dtype': self.dtype,
                'n_bytes': n_bytes,
                }
        return (self.filename.stem, start_time, self.s_freq, chan_name,
                n_samples, orig)

    def return_dat(self, chan, begsam, endsam):
        """Return the data as 2D numpy.ndarray.

        Parameters
        ----------
        chan : int or list
            index (indices) of the channels to read
        begsam : int
            index of the first sample
        endsam : int
            index of the last sample (excluded)

        Returns
        -------
        numpy.ndarray
            A 2d matrix, with dimension chan X samples.

        Notes
        -----
        When asking for an interval outside the data boundaries, it returns NaN
        for those values.
        """
        if not hasattr(self, 'memshape'):
            self.return_hdr()

        n_smp = self.memshape[1]
        if n_smp == 0:  # memmap cannot open empty files
            dat = empty((len(chan), 0))
        else:
            data = memmap(str(self.filename), self.dtype, mode='r',
                          shape=self.memshape, order='F')
            dat = data[chan, max((begsam, 0)):min((endsam, n_smp))]
            dat = dat.astype(float64)

        if begsam < 0:
            pad = empty((dat.shape[0], 0 - begsam))
            pad.fill(nan)
            dat = c_[pad, dat]

        if endsam > n_smp:
            pad = empty((dat.shape[0], endsam - max(begsam, n_smp)))
            pad.fill(nan)
            dat = c_[dat, pad]

        return dat


def write_lfp(data, filename, dtype='int16'):
    """Write recordings in binary LFP format.

    Parameters
    ----------
    data : instance of ChanTime
        data with only one trial
    filename : path to file
        file to export to (.lfp)
    dtype : str
        numpy dtype in which you want to save the data

    Notes
    -----
    Values are rounded to the nearest integer, so data should be in the units
    of the acquisition system. It will happily overwrite any existing file.
    """
    memshape = data.data[0].shape
    if memshape[1] == 0:
        open(str(filename), 'wb').close()
        return

    mem = memmap(str(filename), dtype, mode='w+', shape=memshape, order='F')
    mem[:, :] = rint(data.data[0])
    mem.flush()
    del mem
