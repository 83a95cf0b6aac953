"""Configuration keys read by the security setup."""

from typing import Any, Optional

# Component whose settings hold the application master's security options
COMPONENT_AM = "appmaster"

# Principal to log in as (optional; falls back to the login identity)
KEY_KEYTAB_PRINCIPAL = "am.keytab.principal.name"

# Keytab already provisioned on the host
KEY_AM_KEYTAB_LOCAL_PATH = "am.keytab.local.path"

# Keytab to fetch from the shared store
KEY_AM_LOGIN_KEYTAB_NAME = "am.login.keytab.name"

# Cluster-wide authentication method; "kerberos" means the cluster is secure
KEY_SECURITY_AUTHENTICATION = "hadoop.security.authentication"
AUTHENTICATION_KERBEROS = "kerberos"


def is_set(value: Optional[Any]) -> bool:
    """A setting is set when it is neither None nor the empty string."""
    return value is not None and value != ""


def is_unset(value: Optional[Any]) -> bool:
    return not is_set(value)
