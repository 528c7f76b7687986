"""Module contains the data format for the recordings.

Data is the general class, ChanTime is what the readers and the detector
exchange: one or more trials of chan x time recordings. Keep Data.__call__
general, the other classes should not override it.
"""
from collections import OrderedDict
from collections.abc import Iterable
from logging import getLogger

from numpy import arange, array, empty, hstack, ix_, nan, squeeze, where

lg = getLogger(__name__)


class Data:
    """General class containing recordings.

    Parameters
    ----------
    data : ndarray
        one matrix with dimension matching the number of axes. You can pass
        only one trial.
    s_freq : float
        sampling frequency
    **axes
        name of the axis and a numpy vector with its values, in the same order
        as the dimensions of data (for example chan=..., time=...)

    Attributes
    ----------
    data : ndarray (dtype='O')
        the data as trials. Each trial is a ndarray (dtype='d' or 'f')
    axis : OrderedDict
        dictionary with axes (standard names are 'chan' and 'time');
        values are ndarray (dtype='O'), one item per trial
    s_freq : float
        sampling frequency
    start_time : instance of datetime.datetime
        the start time of the recording
    attr : dict
        additional information about the recordings ('session', 'chan')
    """
    def __init__(self, data=None, s_freq=None, **axes):

        self.s_freq = s_freq

        if data is None:
            self.data = array([], dtype='O')
        else:
            self.data = empty(1, dtype='O')
            self.data[0] = data

        self.axis = OrderedDict()
        if data is not None:
            if len(axes) != data.ndim:
                raise ValueError('Number of axes does not match number of '
                                 'dimensions in data')

            for n_dim, (one_axis, values) in zip(data.shape, axes.items()):
                if len(values) != n_dim:
                    raise ValueError('Axis ' + one_axis + ' has ' +
                                     str(len(values)) + ' values but data has '
                                     + str(n_dim))
                self.axis[one_axis] = empty(1, dtype='O')
                self.axis[one_axis][0] = values

        self.start_time = None

        self.attr = {'session': None,
                     'chan': None,
                     }

    def __call__(self, trial=None, **axes):
        """Return the recordings for the selected values of the axes.

        Parameters
        ----------
        trial : list of int or ndarray (dtype='i') or int
            which trials you want (if it's one int, it returns the actual
            matrix).
        **axes
            axis to select from, with the values as list or tuple. If you pass
            one value (not a list), that dimension is squeezed.

        Returns
        -------
        ndarray
            If you specify only one trial (as int), the actual matrix.
            Otherwise, a ndarray (dtype='O') of length equal to the trials.
            Values which are not in the data are NaN.
        """
        if trial is None:
            trial = range(self.number_of('trial'))

        squeeze_trial = False
        try:
            iter(trial)
        except TypeError:  # 'int' object is not iterable
            trial = (trial, )
            squeeze_trial = True

        output = empty(len(trial), dtype='O')

        for cnt, i in enumerate(trial):

            output_shape = []
            idx_data = []
            idx_output = []
            squeeze_axis = []

            for one_axis, values in self.axis.items():
                if one_axis in axes:
                    selected_values = axes[one_axis]
                    if (isinstance(selected_values, Iterable) and
                            not isinstance(selected_values, str)):
                        n_values = len(selected_values)
                    else:
                        n_values = 1
                        selected_values = array([selected_values])
                        squeeze_axis.append(self.index_of(one_axis))

                    idx = _get_indices(values[i], selected_values)
                    if len(idx[0]) == 0:
                        lg.warning('No index was selected for ' + one_axis)

                    idx_data.append(idx[0])
                    idx_output.append(idx[1])
                else:
                    n_values = len(values[i])
                    idx_data.append(arange(n_values))
                    idx_output.append(arange(n_values))

                output_shape.append(n_values)

            output[cnt] = empty(output_shape, dtype=self.data[i].dtype)
            output[cnt].fill(nan)

            if all(len(x) > 0 for x in idx_data):
                output[cnt][ix_(*idx_output)] = self.data[i][ix_(*idx_data)]

            if squeeze_axis:
                output[cnt] = squeeze(output[cnt], axis=tuple(squeeze_axis))

        if squeeze_trial:
            output = output[0]

        return output

    def index_of(self, axis):
        """Return the index of an axis.

        Raises
        ------
        ValueError
            If the requested axis is not in the data.
        """
        return list(self.axis.keys()).index(axis)

    def number_of(self, axis):
        """Return the number of elements in one axis.

        Parameters
        ----------
        axis : str
            Name of the axis (such as 'trial', 'time', etc)

        Returns
        -------
        int or ndarray (dtype='int')
            number of trial (as int) or number of elements in the selected
            axis for each trial, as 1d array.

        Raises
        ------
        KeyError
            If the requested axis is not in the data.
        """
        if axis == 'trial':
            return len(self.data)

        n_trial = self.number_of('trial')
        output = empty(n_trial, dtype='int')
        for i in range(n_trial):
            output[i] = len(self.axis[axis][i])

        return output

    def __getattr__(self, possible_axis):
        """Return the axis with a shorter syntax (data.time).

        Notes
        ------
        The if-statement "startswith" is necessary to avoid recursionerror
        when copying the class.
        """
        if possible_axis.startswith('__') or possible_axis == 'axis':
            raise AttributeError(possible_axis)

        try:
            return self.axis[possible_axis]
        except KeyError:
            raise AttributeError(possible_axis)


class ChanTime(Data):
    """Specific class for chan-time recordings, with axes:

    chan : ndarray (dtype='O')
        for each trial, channels in the data (dtype='U')
    time : ndarray (dtype='O')
        for each trial, 1d matrix with the time stamp (dtype='f')

    """
    def __init__(self, data=None, s_freq=None, chan=None, time=None):
        if data is None:
            super().__init__(s_freq=s_freq)
            self.axis['chan'] = array([], dtype='O')
            self.axis['time'] = array([], dtype='O')
        else:
            super().__init__(data, s_freq, chan=chan, time=time)

    def series(self, chan):
        """Return one channel as a single time series.

        Trials are concatenated in time order, so this is the sample series
        used by the detector.

        Parameters
        ----------
        chan : str
            name of the channel

        Returns
        -------
        ndarray
            vector with the values
        ndarray
            vector with the time stamps, in s
        """
        if self.number_of('trial') == 0:
            return empty(0), empty(0)

        dat = hstack(self(chan=chan))
        time = hstack(self.axis['time'])
        return dat, time


def _get_indices(values, selected):
    """Get indices based on user-selected values.

    Parameters
    ----------
    values : ndarray (any dtype)
        values present in the axis.
    selected : ndarray (any dtype) or tuple or list
        values selected by the user

    Returns
    -------
    idx_data : list of int
        indices of row/column to select the data
    idx_output : list of int
        indices of row/column to copy into output

    Notes
    -----
    It keeps the order of the selected values.
    """
    idx_data = []
    idx_output = []
    for idx_of_selected, one_selected in enumerate(selected):

        idx_of_data = where(values == one_selected)[0]
        if len(idx_of_data) > 0:
            idx_data.append(idx_of_data[0])
            idx_output.append(idx_of_selected)

    return idx_data, idx_output
