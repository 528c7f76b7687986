"""Packages containing the attributes of the recordings, such as
    - information about the session (module "session") with class:
        - Session

These classes are often used in isolation, even without a dataset, so they
should not depend on the datatype.

"""
from .session import Session, load_session, basename_from_basepath
