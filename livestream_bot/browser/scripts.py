"""JavaScript expressions evaluated through the driver.

Selectors are embedded with json.dumps so quotes inside them stay literal.
"""

from __future__ import annotations

import json


def element_exists(selector: str) -> str:
    return f"!!document.querySelector({json.dumps(selector)})"


def element_enabled(selector: str) -> str:
    """True when the element exists and is not disabled."""
    return (
        "(() => {"
        f" const el = document.querySelector({json.dumps(selector)});"
        " return !!el && !el.disabled && el.getAttribute('aria-disabled') !== 'true';"
        " })()"
    )


def element_text(selector: str) -> str:
    """The trimmed innerText of the first match, or null."""
    return (
        "(() => {"
        f" const el = document.querySelector({json.dumps(selector)});"
        " return el ? el.innerText.trim() : null;"
        " })()"
    )


def element_int(selector: str) -> str:
    """parseInt of the first match's text, 0 when absent or not a number."""
    return (
        "(() => {"
        f" const el = document.querySelector({json.dumps(selector)});"
        " const n = parseInt(el ? el.innerText : '0', 10);"
        " return Number.isNaN(n) ? 0 : n;"
        " })()"
    )


def any_logged_in_signal(selectors: list[str], cookie_prefix: str) -> str:
    """True if any account-menu selector matches or a session cookie is set."""
    checks = [element_exists(s) for s in selectors]
    if cookie_prefix:
        checks.append(f"document.cookie.includes({json.dumps(cookie_prefix)})")
    if not checks:
        return "false"
    return " || ".join(checks)
