"""livestream-bot: watch storefront livestreams and reserve products the moment they open.

The session layer (``auth``) reuses or acquires a logged-in browser session,
the ``monitor`` layer polls every configured stream concurrently, and the
``purchase`` layer clicks the reserve control with bounded retries.
"""

__version__ = "1.0.0"
