from argparse import ArgumentParser
from logging import getLogger, StreamHandler, Formatter, INFO, DEBUG
from pathlib import Path
from textwrap import dedent

from numpy import asarray

from .. import __version__
from ..attr import load_session
from ..detect import DetectRipple
from ..source import ChannelSource, SessionSource

lg = getLogger('ripplefind')


def main(arguments=None):
    parser = ArgumentParser(prog='ripplefind', description=dedent("""\
    Detect hippocampal ripples in one channel of a recording session

    The session directory (basepath) contains <basename>.lfp (or .eeg) and,
    optionally, <basename>.session.json with the number of channels, the
    sampling frequency and the ripple and noise channels. The ripples are
    saved as <basename>.ripples.events.json in the same directory.

    NOTE
    Channels are zero-based.
    """))
    parser.add_argument('-v', '--version', action='store_true',
                        help='Return version')
    parser.add_argument('-l', '--log', default='info',
                        help='Logging level: info (default), debug')
    parser.add_argument('basepath', nargs='?',
                        help='full path to the session directory')
    parser.add_argument('-c', '--channel', default=None, type=int,
                        help='channel to detect ripples on (default: first '
                        'ripple channel of the session)')
    parser.add_argument('-n', '--noise', default=None, type=int,
                        help='channel without ripples, used to reject noise '
                        '(default: noise channel of the session)')
    parser.add_argument('--session', action='store_true',
                        help='read channels, sampling frequency and noise '
                        'channel only from the session file')
    parser.add_argument('--n_chan', default=None, type=int,
                        help='number of channels in the LFP file (default: '
                        'from the session file)')
    parser.add_argument('-f', '--sampling_freq', default=None, type=float,
                        help='sampling frequency (default: from the session '
                        'file)')
    parser.add_argument('-t', '--thresholds', default=(2, 5), type=float,
                        nargs=2, help='low and high threshold, in standard '
                        'deviations (default: 2 5)')
    parser.add_argument('-d', '--durations', default=(20, 150), type=float,
                        nargs=2, help='min inter-ripple interval and max '
                        'ripple duration in ms (default: 20 150)')
    parser.add_argument('--min_duration', default=20, type=float,
                        help='min ripple duration in ms (default: 20)')
    parser.add_argument('-p', '--passband', default=(130, 200), type=float,
                        nargs=2, help='ripple band in Hz (default: 130 200)')
    parser.add_argument('--stdev', default=None, type=float,
                        help='standard deviation from a previous detection')
    parser.add_argument('--emg_thresh', default=0.9, type=float,
                        help='EMG threshold between 0 and 1, 0 to disable '
                        '(default: 0.9)')
    parser.add_argument('--absolute', action='store_true',
                        help='thresholds are in the units of the signal')
    parser.add_argument('--restrict', default=None, type=float, nargs=2,
                        help='start and end (s) of the period used for '
                        'normalization')
    parser.add_argument('--no_save', action='store_true',
                        help='do not save the ripples in the session '
                        'directory')

    args = parser.parse_args(arguments)

    DATE_FORMAT = '%H:%M:%S'
    if args.log[:1].lower() == 'i':
        lg.setLevel(INFO)
        FORMAT = '{asctime:<10}{message}'

    elif args.log[:1].lower() == 'd':
        lg.setLevel(DEBUG)
        FORMAT = '{asctime:<10}{levelname:<10}{filename:<40}(l. {lineno: 6d})/ {funcName:<40}: {message}'

    else:
        raise ValueError('Unknown logging level: ' + args.log)

    formatter = Formatter(fmt=FORMAT, datefmt=DATE_FORMAT, style='{')
    handler = StreamHandler()
    handler.setFormatter(formatter)

    lg.handlers = []
    lg.addHandler(handler)

    if args.version:
        lg.info('RIPPLEFIND v{}'.format(__version__))
        return

    if args.basepath is None:
        raise ValueError('You need to specify the session directory')
    basepath = Path(args.basepath)

    noise = args.noise
    if args.session:
        session = load_session(basepath)
        source = SessionSource(session, channel=args.channel)
        if noise is None:
            noise = session.noise_channel

    else:
        if args.channel is None:
            raise ValueError('You need to specify the channel (or --session)')
        source = ChannelSource(basepath, args.channel, n_chan=args.n_chan,
                               s_freq=args.sampling_freq)

    restrict = None
    if args.restrict is not None:
        restrict = asarray(args.restrict)

    detrip = DetectRipple(thresholds=tuple(args.thresholds),
                          durations=tuple(args.durations),
                          min_duration=args.min_duration,
                          restrict=restrict,
                          stdev=args.stdev,
                          passband=tuple(args.passband),
                          emg_thresh=args.emg_thresh,
                          absolute_thresholds=args.absolute,
                          persist=not args.no_save)
    lg.info('Detecting ripples with ' + repr(detrip))

    ripples = detrip(source, noise=noise)
    lg.info('Detected ' + repr(ripples))

    return ripples
