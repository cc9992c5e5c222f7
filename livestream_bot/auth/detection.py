"""Login-state predicates driven by a LoginDetectionPolicy."""

from __future__ import annotations

from ..browser import scripts
from ..config import LoginDetectionPolicy


def is_login_url(url: str, policy: LoginDetectionPolicy) -> bool:
    """Check if the browser sits on (or was redirected to) the login page."""
    return policy.login_path in url


def logged_in_script(policy: LoginDetectionPolicy) -> str:
    """Script that is truthy when any post-login signal is present."""
    return scripts.any_logged_in_signal(policy.account_menu_selectors, policy.session_cookie_prefix)


def auth_marker_script(policy: LoginDetectionPolicy) -> str:
    """Script that is truthy when the authenticated-user marker renders."""
    return scripts.element_exists(policy.auth_marker_selector)
