"""Module to keep track of the ripples and the information about their
detection.
"""
from collections import namedtuple, OrderedDict
from datetime import datetime
from json import dump, load
from logging import getLogger
from pathlib import Path

from numpy import asarray, empty, nan

lg = getLogger(__name__)

SCHEMA_VERSION = 1
DATE_FORMAT = '%Y-%m-%d %H:%M:%S.%f'
RIPPLES_SUFFIX = '.ripples.events.json'

STAGES = ('detection',
          'merging',
          'peak_threshold',
          'above_band',
          'duration',
          'noise',
          'emg',
          )

Ripple = namedtuple('Ripple', ['start', 'peak', 'end', 'peak_power'])
Ripple.__doc__ = """One ripple, with start, peak (trough of the signal) and
end time in s, and the peak of the normalized squared signal."""


def ripples_file(basepath, basename):
    """Name of the file where the ripples of a session are stored."""
    return Path(basepath) / (basename + RIPPLES_SUFFIX)


class Ripples:
    """Ripples and events rejected as noise, with information about the
    detection.

    Parameters
    ----------
    events : list of Ripple
        accepted ripples
    noise : list of Ripple
        events rejected because they were on the noise channel or during
        muscle artifacts
    stdev : float
        standard deviation of the squared signal, used for the thresholds (NaN
        if the thresholds were absolute)
    processing_steps : dict
        number of events surviving each step of the detection
    detector_info : dict
        name and version of the detector, date, parameters and channels

    Notes
    -----
    'noise_channel' in detector_info is None when no noise channel was used,
    while an empty noise list only means that nothing was rejected.
    """
    def __init__(self, events=(), noise=(), stdev=nan, processing_steps=None,
                 detector_info=None):
        self.events = sorted((Ripple(*x) for x in events),
                             key=lambda x: x.start)
        self.noise = sorted((Ripple(*x) for x in noise),
                            key=lambda x: x.start)
        self.stdev = stdev

        self.processing_steps = OrderedDict((x, 0) for x in STAGES)
        if processing_steps is not None:
            self.processing_steps.update(processing_steps)

        if detector_info is None:
            detector_info = {}
        self.detector_info = detector_info

    def __len__(self):
        return len(self.events)

    def __iter__(self):
        for one_ripple in self.events:
            yield one_ripple

    def __repr__(self):
        return '{} ripples ({} rejected as noise)'.format(len(self.events),
                                                          len(self.noise))

    @property
    def timestamps(self):
        """N x 2 matrix with start and end time of each ripple"""
        return _columns(self.events, ('start', 'end'))

    @property
    def peaks(self):
        """time of the trough of each ripple"""
        return _columns(self.events, ('peak', ))[:, 0]

    @property
    def peak_normed_power(self):
        """maximum of the normalized squared signal in each ripple"""
        return _columns(self.events, ('peak_power', ))[:, 0]

    @property
    def noise_timestamps(self):
        return _columns(self.noise, ('start', 'end'))

    @property
    def noise_peaks(self):
        return _columns(self.noise, ('peak', ))[:, 0]

    @property
    def noise_peak_normed_power(self):
        return _columns(self.noise, ('peak_power', ))[:, 0]

    def to_dict(self):
        """Convert to a dict which can be written as json.

        Returns
        -------
        dict
            with all the information, and the version of the format
        """
        info = dict(self.detector_info)
        if isinstance(info.get('detection_date'), datetime):
            info['detection_date'] = info['detection_date'].strftime(
                DATE_FORMAT)

        return {'schema_version': SCHEMA_VERSION,
                'events': [list(x) for x in self.events],
                'noise': [list(x) for x in self.noise],
                'stdev': self.stdev,
                'processing_steps': dict(self.processing_steps),
                'detector_info': info,
                }

    @classmethod
    def from_dict(cls, ripples):
        """Create Ripples from the output of to_dict.

        Raises
        ------
        ValueError
            if the format has a more recent version
        """
        version = ripples.get('schema_version', 0)
        if version > SCHEMA_VERSION:
            raise ValueError('Ripples were saved with schema version ' +
                             str(version) + ', which is more recent than ' +
                             str(SCHEMA_VERSION))

        info = dict(ripples.get('detector_info', {}))
        if isinstance(info.get('detection_date'), str):
            info['detection_date'] = datetime.strptime(info['detection_date'],
                                                       DATE_FORMAT)

        steps = OrderedDict((x, ripples['processing_steps'][x])
                            for x in STAGES
                            if x in ripples['processing_steps'])

        return cls(events=ripples['events'],
                   noise=ripples['noise'],
                   stdev=ripples['stdev'],
                   processing_steps=steps,
                   detector_info=info)

    def save(self, filename):
        """Write the ripples to a json file.

        Notes
        -----
        It will happily overwrite any existing file with the same name.
        """
        filename = Path(filename)
        with filename.open('w') as f:
            dump(self.to_dict(), f, sort_keys=True, indent=4)
        lg.info('Ripples saved to ' + str(filename))

    @classmethod
    def load(cls, filename):
        """Read the ripples from a json file written by save."""
        with Path(filename).open() as f:
            ripples = load(f)
        return cls.from_dict(ripples)


def _columns(events, fields):
    """Return some fields of the events as N x len(fields) matrix."""
    if not events:
        return empty((0, len(fields)))
    return asarray([[getattr(evt, x) for x in fields] for evt in events],
                   dtype=float)
