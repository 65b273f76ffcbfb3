"""
TaxDesk Server - Infrastructure Models Package

This package contains dataclass models for infrastructure components
like credentials and the authenticated principal.
"""

from models.infrastructure.principal import Principal
from models.infrastructure.credential import (
    Credential, LocalCredential, ExternalCredential, ParseCredential, LOCAL_TOKEN_PREFIX
)

__all__ = [
    'Principal',
    'Credential',
    'LocalCredential',
    'ExternalCredential',
    'ParseCredential',
    'LOCAL_TOKEN_PREFIX',
]
