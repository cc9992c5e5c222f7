"""The two ways of acquiring a fresh session."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from ..config import Credentials


class LoginMode(str, Enum):
    AUTOMATED = "automated"  # fill the username/password form
    MANUAL = "manual"  # wait for the user to log in by any method (OAuth, OTP, ...)


class LoginStrategy(BaseModel):
    """Tagged login variant, chosen once from whether credentials are configured."""

    mode: LoginMode
    credentials: Credentials = Credentials()

    @classmethod
    def from_credentials(cls, credentials: Credentials) -> LoginStrategy:
        if credentials.present:
            return cls(mode=LoginMode.AUTOMATED, credentials=credentials)
        return cls(mode=LoginMode.MANUAL)
