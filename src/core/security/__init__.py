"""
Kerberos security configuration for the application master.

Validates the security settings, resolves the login principal and locates
(or stages) the keytab needed for keytab-based login.

Components:
    - SecurityConfiguration: validated entry point used at startup
    - ConfigValidator: shape checks on principal and keytab settings
    - PrincipalResolver: configured principal or login identity fallback
    - KeytabLocator: dispatch between host and shared keytabs
    - SecureKeytabFetcher: copy a shared keytab into an owner-only directory
"""

from core.security.identity import (
    IDENTITY_SOURCES,
    LoginIdentity,
    ProcessLoginIdentityProvider,
    TicketCacheIdentityProvider,
    create_identity_provider,
)
from core.security.keys import (
    COMPONENT_AM,
    KEY_AM_KEYTAB_LOCAL_PATH,
    KEY_AM_LOGIN_KEYTAB_NAME,
    KEY_KEYTAB_PRINCIPAL,
    KEY_SECURITY_AUTHENTICATION,
    is_set,
    is_unset,
)
from core.security.keytab import (
    STAGED_KEYTAB_MODE,
    STAGING_DIR_MODE,
    KeytabLocator,
    KeytabSource,
    LocalKeytab,
    RemoteKeytab,
    SecureKeytabFetcher,
    resolve_keytab_source,
)
from core.security.security_config import (
    ConfigValidator,
    InstanceDefinition,
    PrincipalResolver,
    SecurityConfiguration,
    is_cluster_secure,
)

__all__ = [
    # Entry point
    "SecurityConfiguration",
    "InstanceDefinition",
    "ConfigValidator",
    "PrincipalResolver",
    "is_cluster_secure",
    # Keytabs
    "KeytabLocator",
    "KeytabSource",
    "LocalKeytab",
    "RemoteKeytab",
    "SecureKeytabFetcher",
    "resolve_keytab_source",
    "STAGED_KEYTAB_MODE",
    "STAGING_DIR_MODE",
    # Identity
    "IDENTITY_SOURCES",
    "LoginIdentity",
    "ProcessLoginIdentityProvider",
    "TicketCacheIdentityProvider",
    "create_identity_provider",
    # Keys
    "COMPONENT_AM",
    "KEY_KEYTAB_PRINCIPAL",
    "KEY_AM_KEYTAB_LOCAL_PATH",
    "KEY_AM_LOGIN_KEYTAB_NAME",
    "KEY_SECURITY_AUTHENTICATION",
    "is_set",
    "is_unset",
]
