"""
TrackMyStartup - Password Reset Links

Reset links arrive in several shapes (a session token pair, a signed
recovery token, an auth code, or a bare recovery marker). Each link is
classified once into a ResetCredential; AuthService then verifies it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional
from urllib.parse import parse_qs, urlsplit


class ResetTokenKind(str, Enum):
    """Reset link formats, in precedence order."""
    SESSION_PAIR = "session_pair"
    RECOVERY_TOKEN = "recovery_token"
    AUTH_CODE = "auth_code"
    EXISTING_SESSION = "existing_session"


@dataclass(frozen=True)
class ResetCredential:
    kind: ResetTokenKind
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    token: Optional[str] = None
    code: Optional[str] = None
    link_type: Optional[str] = None


def _first_values(raw: str) -> dict:
    return {key: values[0] for key, values in parse_qs(raw).items() if values and values[0]}


def parse_reset_link(url: str) -> dict:
    """
    Collect parameters from a reset URL.

    Both the query string and the hash fragment are read; a query value
    wins over a fragment value with the same name.
    """
    parts = urlsplit(url)
    params = _first_values(parts.fragment)
    params.update(_first_values(parts.query))
    return params


def classify_reset_params(params: Mapping[str, Optional[str]]) -> ResetCredential:
    """Pick the credential a reset link carries; never fails."""
    link_type = params.get("type") or None

    access_token = params.get("access_token")
    refresh_token = params.get("refresh_token")
    if access_token and refresh_token:
        return ResetCredential(
            kind=ResetTokenKind.SESSION_PAIR,
            access_token=access_token,
            refresh_token=refresh_token,
            link_type=link_type,
        )

    if params.get("token"):
        return ResetCredential(
            kind=ResetTokenKind.RECOVERY_TOKEN,
            token=params["token"],
            link_type=link_type,
        )

    if params.get("code"):
        return ResetCredential(
            kind=ResetTokenKind.AUTH_CODE,
            code=params["code"],
            link_type=link_type,
        )

    return ResetCredential(kind=ResetTokenKind.EXISTING_SESSION, link_type=link_type)
