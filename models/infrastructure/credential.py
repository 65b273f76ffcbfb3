"""
TaxDesk Server - Credential Models

Bearer credentials come in two kinds, distinguished by prefix:
- LocalCredential: "mock-token-<user_id>", issued by login and registration
- ExternalCredential: a token signed by the external identity provider
"""

from dataclasses import dataclass
from typing import Union

LOCAL_TOKEN_PREFIX = "mock-token-"


@dataclass(frozen=True)
class LocalCredential:
    """Credential that embeds a user id"""
    user_id: str

    def Encode(self) -> str:
        return f"{LOCAL_TOKEN_PREFIX}{self.user_id}"


@dataclass(frozen=True)
class ExternalCredential:
    """Credential signed by the identity provider"""
    token: str


Credential = Union[LocalCredential, ExternalCredential]


def ParseCredential(token: str) -> Credential:
    """
    Classify a raw bearer token

    Args:
        token: Token string taken from the Authorization header

    Returns:
        Credential: LocalCredential for prefixed tokens, ExternalCredential otherwise
    """
    if token.startswith(LOCAL_TOKEN_PREFIX):
        return LocalCredential(user_id=token[len(LOCAL_TOKEN_PREFIX):])
    return ExternalCredential(token=token)
