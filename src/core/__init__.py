"""
Core library: application master security components.

Modules:
    security  - Kerberos configuration validation, principal resolution, keytab staging
    storage   - Shared filesystem clients (host mount, WebHDFS)
    logging   - Structured console/JSON logging with startup correlation IDs
    errors    - Error classification, exception hierarchy, exit codes

Design Principles:
    - No dependency on the application configuration layer
    - Collaborators (identity lookup, shared filesystem) are injected
    - Every failure is typed and terminal
"""

from .types import ErrorCategory, LoginIdentityProvider, SharedFileSystem

__version__ = "0.1.0"

__all__ = [
    "ErrorCategory",
    "LoginIdentityProvider",
    "SharedFileSystem",
]
