"""Module with the information about one recording session.

A session is a directory (basepath) whose name is the basename of all the
files in it: <basename>.lfp with the recordings, <basename>.session.json with
this information, <basename>.ripples.events.json with the detected ripples.
"""
from json import dump, load
from logging import getLogger
from pathlib import Path

from ..utils.exceptions import MissingCollaboratorData

lg = getLogger(__name__)

SESSION_SUFFIX = '.session.json'
LFP_SUFFIXES = ('.lfp', '.eeg')


def basename_from_basepath(basepath):
    """Name of the session, which is the name of the directory."""
    return Path(basepath).resolve().name


class Session:
    """Metadata about one recording session.

    Parameters
    ----------
    name : str
        name of the session (basename of the files)
    basepath : path to directory
        directory containing the files of the session
    n_channels : int
        number of channels in the LFP file
    s_freq : float
        sampling frequency of the LFP file
    ripple_channels : list of int
        channels (zero-based) where to detect ripples; the first one is used
    noise_channel : int, optional
        channel (zero-based) without ripples, used to reject noise
    """
    def __init__(self, name, basepath, n_channels, s_freq, ripple_channels=(),
                 noise_channel=None):
        self.name = name
        self.basepath = Path(basepath)
        self.n_channels = int(n_channels)
        self.s_freq = s_freq
        self.ripple_channels = list(ripple_channels)
        self.noise_channel = noise_channel

    def __repr__(self):
        return 'Session({}, {} channels, {} Hz)'.format(self.name,
                                                        self.n_channels,
                                                        self.s_freq)

    @property
    def lfp_file(self):
        """Return the file with the LFP, .lfp first and then .eeg

        Raises
        ------
        MissingCollaboratorData
            if neither file exists
        """
        for suffix in LFP_SUFFIXES:
            lfp_file = self.basepath / (self.name + suffix)
            if lfp_file.exists():
                return lfp_file

        raise MissingCollaboratorData('Could not find LFP file for ' +
                                      self.name + ' in ' + str(self.basepath))

    @property
    def ripple_channel(self):
        if not self.ripple_channels:
            raise MissingCollaboratorData('No ripple channel defined in '
                                          'session ' + self.name)
        return self.ripple_channels[0]

    def to_json(self, filename=None):
        """Save the session information.

        Parameters
        ----------
        filename : path to file, optional
            default is <basepath>/<name>.session.json
        """
        if filename is None:
            filename = self.basepath / (self.name + SESSION_SUFFIX)

        session = {'name': self.name,
                   'n_channels': self.n_channels,
                   's_freq': self.s_freq,
                   'ripple_channels': self.ripple_channels,
                   'noise_channel': self.noise_channel,
                   }
        with Path(filename).open('w') as f:
            dump(session, f, sort_keys=True, indent=4)

    @classmethod
    def from_json(cls, filename):
        """Read the session information.

        Notes
        -----
        The basepath is the directory containing the json file, so that the
        session can be moved around.
        """
        filename = Path(filename)
        with filename.open() as f:
            orig = load(f)

        return cls(name=orig['name'],
                   basepath=filename.resolve().parent,
                   n_channels=orig['n_channels'],
                   s_freq=orig['s_freq'],
                   ripple_channels=orig.get('ripple_channels', ()),
                   noise_channel=orig.get('noise_channel'))


def load_session(basepath):
    """Load the session in one directory.

    Raises
    ------
    MissingCollaboratorData
        if there is no session file in the directory
    """
    basename = basename_from_basepath(basepath)
    session_file = Path(basepath) / (basename + SESSION_SUFFIX)
    if not session_file.exists():
        raise MissingCollaboratorData('Could not find ' + str(session_file))

    lg.debug('Reading session from ' + str(session_file))
    return Session.from_json(session_file)
