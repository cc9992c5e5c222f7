"""auth: session persistence and the login state machine."""

from .manager import SessionManager  # noqa: F401
from .store import SessionStore  # noqa: F401
from .strategy import LoginMode, LoginStrategy  # noqa: F401
