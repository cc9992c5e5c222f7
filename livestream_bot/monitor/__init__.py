"""monitor: concurrent livestream poll loops."""

from .stream import StreamMonitor  # noqa: F401
