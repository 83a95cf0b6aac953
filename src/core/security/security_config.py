"""
Application master security configuration.

SecurityConfiguration validates the Kerberos setup once, at construction, and
then answers three questions for startup:

    is_security_enabled() - does the cluster require Kerberos?
    get_principal()       - which principal should the master log in as?
    get_keytab_file()     - where is the keytab for that principal, locally?

Construction fails with a typed error if the configuration cannot yield a
usable identity; there is no "invalid but constructed" state.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from core.errors.exceptions import BadConfigurationError, BadStateError
from core.logging.setup import get_logger
from core.security.identity import ProcessLoginIdentityProvider
from core.security.keys import (
    AUTHENTICATION_KERBEROS,
    COMPONENT_AM,
    KEY_AM_KEYTAB_LOCAL_PATH,
    KEY_AM_LOGIN_KEYTAB_NAME,
    KEY_KEYTAB_PRINCIPAL,
    KEY_SECURITY_AUTHENTICATION,
    is_unset,
)
from core.security.keytab import (
    KeytabLocator,
    KeytabSource,
    RemoteKeytab,
    SecureKeytabFetcher,
    resolve_keytab_source,
)
from core.types import LoginIdentityProvider, SharedFileSystem

logger = get_logger(__name__)


@dataclass(frozen=True)
class InstanceDefinition:
    """Per-component key/value configuration of an application instance."""

    components: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def get_component(self, name: str) -> Mapping[str, Any]:
        """Settings for a component; empty if the component is not defined."""
        return self.components.get(name) or {}


def is_cluster_secure(configuration: Mapping[str, Any]) -> bool:
    """True when the cluster's authentication method is Kerberos."""
    method = configuration.get(KEY_SECURITY_AUTHENTICATION)
    return isinstance(method, str) and method.strip().lower() == AUTHENTICATION_KERBEROS


class ConfigValidator:
    """
    Rejects security setups that cannot work before any credential handling.

    Only the shape of the configuration is checked (presence, absence,
    exclusivity). Whether the credentials are valid is found out at login.
    """

    def __init__(self, identity_provider: LoginIdentityProvider):
        self.identity_provider = identity_provider

    def _validate_principal(self, settings: Mapping[str, Any]) -> None:
        if not is_unset(settings.get(KEY_KEYTAB_PRINCIPAL)):
            return

        # if no login identity is available, fail
        try:
            login_identity = self.identity_provider.get_login_identity()
        except OSError as e:
            raise BadStateError(
                "No principal configured for the application and an exception was "
                "raised during retrieval of the login user. Unable to proceed with "
                f"application initialization. Please ensure a value for {KEY_KEYTAB_PRINCIPAL} "
                "exists in the application configuration or the login issue is addressed.",
                cause=e,
                context={"config_key": KEY_KEYTAB_PRINCIPAL},
            ) from e

        if login_identity is None:
            raise BadConfigurationError(
                "No principal configured for the application and no login user found. "
                "Unable to proceed with application initialization. Please ensure a value "
                f"for {KEY_KEYTAB_PRINCIPAL} exists in the application configuration or "
                "the login issue is addressed.",
                context={"config_key": KEY_KEYTAB_PRINCIPAL},
            )

    def validate(self, configuration: "SecurityConfiguration") -> None:
        """
        Validate a security configuration.

        Raises:
            BadStateError: If the login identity lookup fails
            BadConfigurationError: If no principal can be determined, or if
                zero or two keytab retrieval mechanisms are configured
        """
        if not configuration.is_security_enabled():
            logger.debug("Cluster security is disabled; skipping security validation")
            return

        settings = configuration.am_settings
        self._validate_principal(settings)

        # ensure that either local or distributed keytab mechanism is enabled,
        # but not both
        source = resolve_keytab_source(settings)
        logger.debug(
            "Security configuration validated",
            extra={"keytab_source": type(source).__name__, "security_enabled": True},
        )


class PrincipalResolver:
    """Determines the principal to log in as."""

    def __init__(self, identity_provider: LoginIdentityProvider):
        self.identity_provider = identity_provider

    def get_principal(self, settings: Mapping[str, Any]) -> str:
        """
        Return the configured principal or the login identity's short name.

        Raises:
            OSError: If the login identity lookup fails
            BadStateError: If the login identity disappeared since validation
        """
        principal = settings.get(KEY_KEYTAB_PRINCIPAL)
        if not is_unset(principal):
            return str(principal)

        login_identity = self.identity_provider.get_login_identity()
        if login_identity is None:
            raise BadStateError(
                "No principal configured and the login user is no longer available",
                context={"config_key": KEY_KEYTAB_PRINCIPAL},
            )

        principal = login_identity.short_user_name
        logger.info(
            "No principal set in the application configuration. Will use AM login "
            f"identity {principal} to attempt keytab-based login",
            extra={"principal": principal, "login_user": login_identity.user_name},
        )
        return principal


class SecurityConfiguration:
    """
    Validated Kerberos security configuration of the application master.

    Args:
        configuration: Ambient cluster configuration
        instance_definition: Application instance definition
        cluster_name: Application cluster name
        identity_provider: Ambient login identity lookup
            (default: operating system login user)
        fetcher: Keytab staging for shared keytabs (default: system temp dir)

    Raises:
        ValueError: If any of the first three arguments is None
        BadConfigurationError, BadStateError: If validation fails
    """

    def __init__(
        self,
        configuration: Mapping[str, Any],
        instance_definition: InstanceDefinition,
        cluster_name: str,
        identity_provider: Optional[LoginIdentityProvider] = None,
        fetcher: Optional[SecureKeytabFetcher] = None,
    ):
        if configuration is None:
            raise ValueError("configuration is required")
        if instance_definition is None:
            raise ValueError("instance_definition is required")
        if cluster_name is None:
            raise ValueError("cluster_name is required")

        self._configuration = configuration
        self._instance_definition = instance_definition
        self._cluster_name = cluster_name
        self._identity_provider = identity_provider or ProcessLoginIdentityProvider()
        self._principal_resolver = PrincipalResolver(self._identity_provider)
        self._keytab_locator = KeytabLocator(cluster_name, fetcher)

        ConfigValidator(self._identity_provider).validate(self)

    @property
    def cluster_name(self) -> str:
        return self._cluster_name

    @property
    def configuration(self) -> Mapping[str, Any]:
        return self._configuration

    @property
    def instance_definition(self) -> InstanceDefinition:
        return self._instance_definition

    @property
    def am_settings(self) -> Mapping[str, Any]:
        return self._instance_definition.get_component(COMPONENT_AM)

    @property
    def keytab_local_path(self) -> Optional[str]:
        value = self.am_settings.get(KEY_AM_KEYTAB_LOCAL_PATH)
        return None if is_unset(value) else str(value)

    @property
    def keytab_remote_name(self) -> Optional[str]:
        value = self.am_settings.get(KEY_AM_LOGIN_KEYTAB_NAME)
        return None if is_unset(value) else str(value)

    @property
    def keytab_source(self) -> KeytabSource:
        """
        The configured keytab retrieval mechanism.

        Raises:
            BadConfigurationError: If neither or both mechanisms are configured
        """
        return resolve_keytab_source(self.am_settings)

    def is_security_enabled(self) -> bool:
        return is_cluster_secure(self._configuration)

    def get_principal(self) -> str:
        return self._principal_resolver.get_principal(self.am_settings)

    def get_keytab_file(self, fs: Optional[SharedFileSystem], principal: str) -> Path:
        """
        Return the local keytab file, staging it from fs if needed.

        Args:
            fs: Shared filesystem (only used for shared keytabs)
            principal: Principal being logged in, for diagnostics

        Raises:
            BadConfigurationError: If a shared keytab is configured and fs is None
            StagingError: If local staging fails
            OSError: If the copy from the shared filesystem fails
        """
        source = self.keytab_source
        if fs is None and isinstance(source, RemoteKeytab):
            raise BadConfigurationError(
                f"Keytab {self.keytab_remote_name} must be fetched from the shared "
                "filesystem but no shared filesystem is configured",
                context={"config_key": KEY_AM_LOGIN_KEYTAB_NAME},
            )
        return self._keytab_locator.get_keytab_file(fs, source, principal)

    def __repr__(self) -> str:
        return (
            f"SecurityConfiguration(cluster_name={self._cluster_name!r}, "
            f"security_enabled={self.is_security_enabled()})"
        )
