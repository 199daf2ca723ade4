"""
Directory client for resolving and moving objects over LDAP.

This module is responsible for:
- Defining the DirectoryClient interface the batch runner depends on
- Connecting and binding to an LDAP / Active Directory server with ldap3
- Resolving identifiers (DN, sAMAccountName or cn) to a single DN
- Moving objects under a new parent with a ModifyDN request
- Translating LDAP result codes into ClientResult values
"""

import logging
import ssl
from typing import List, Optional, Protocol, Tuple, runtime_checkable

from ldap3 import (
    BASE,
    DSA,
    KERBEROS,
    NO_ATTRIBUTES,
    NTLM,
    SASL,
    SIMPLE,
    SUBTREE,
    Connection,
    Server,
    Tls,
)
from ldap3.core.exceptions import LDAPException
from ldap3.utils.conv import escape_filter_chars
from ldap3.utils.dn import to_dn

from .config import Settings
from .errors import SetupError
from .types import ClientResult, ClientStatus

logger = logging.getLogger(__name__)

# LDAP result codes (RFC 4511)
RESULT_SUCCESS = 0
RESULT_STRONGER_AUTH_REQUIRED = 8
RESULT_NO_SUCH_OBJECT = 32
RESULT_INAPPROPRIATE_AUTHENTICATION = 48
RESULT_INVALID_CREDENTIALS = 49
RESULT_INSUFFICIENT_ACCESS_RIGHTS = 50

UNAUTHORIZED_CODES = {
    RESULT_STRONGER_AUTH_REQUIRED,
    RESULT_INAPPROPRIATE_AUTHENTICATION,
    RESULT_INVALID_CREDENTIALS,
    RESULT_INSUFFICIENT_ACCESS_RIGHTS,
}


@runtime_checkable
class DirectoryClient(Protocol):
    """Capability the batch runner needs from a directory service."""

    def resolve(self, identifier: str) -> ClientResult:
        """Look up an object without changing it."""
        ...

    def move(
        self, identifier: str, destination: str, dn: Optional[str] = None
    ) -> ClientResult:
        """Move an object under the destination container.

        ``dn`` is the object's DN when the caller already resolved it.
        """
        ...


def classify_result_code(code: Optional[int]) -> ClientStatus:
    """Map an LDAP result code onto a ClientStatus; no code at all is OTHER."""
    if code is None:
        return ClientStatus.OTHER
    if code == RESULT_SUCCESS:
        return ClientStatus.OK
    if code == RESULT_NO_SUCH_OBJECT:
        return ClientStatus.NOT_FOUND
    if code in UNAUTHORIZED_CODES:
        return ClientStatus.UNAUTHORIZED
    return ClientStatus.OTHER


def describe_result(result: Optional[dict]) -> str:
    """Render an ldap3 result dict as 'description (code): message'."""
    if not result:
        return "no response from server"
    description = result.get("description") or "unknown"
    code = result.get("result")
    message = (result.get("message") or "").strip()
    text = f"{description} ({code})"
    return f"{text}: {message}" if message else text


def is_distinguished_name(identifier: str) -> bool:
    return "=" in identifier


def _normalize_dn(dn: str) -> str:
    return ",".join(to_dn(dn, remove_space=True)).lower()


def _split_rdn(dn: str) -> Tuple[str, str]:
    """Split a DN into its RDN and parent DN."""
    parts = to_dn(dn)
    return parts[0], ",".join(parts[1:])


class LdapDirectoryClient:
    """
    DirectoryClient backed by a single bound ldap3 connection.

    The connection is held for the lifetime of the batch and is neither
    pooled nor retried.
    """

    def __init__(self, connection, search_base: Optional[str] = None):
        """
        Args:
            connection: A bound ldap3.Connection (raise_exceptions=False)
            search_base: Base DN for name lookups
        """
        self._connection = connection
        self.search_base = search_base

    @classmethod
    def connect(cls, server: str, settings: Optional[Settings] = None) -> "LdapDirectoryClient":
        """
        Connect and bind to ``server``.

        Raises:
            SetupError: If the server is unreachable, the bind fails or no
                        search base can be determined
        """
        settings = settings or Settings()

        if settings.bind_user and "\\" in settings.bind_user:
            auth = {"user": settings.bind_user, "password": settings.password,
                    "authentication": NTLM}
        elif settings.bind_user:
            auth = {"user": settings.bind_user, "password": settings.password,
                    "authentication": SIMPLE}
        else:
            auth = {"authentication": SASL, "sasl_mechanism": KERBEROS}

        logger.info(f"Connecting to {server} ({auth['authentication']} bind)")
        try:
            tls = Tls(validate=ssl.CERT_REQUIRED) if settings.use_ssl else None
            ldap_server = Server(
                server,
                port=settings.port,
                use_ssl=settings.use_ssl,
                tls=tls,
                get_info=DSA,
            )
            connection = Connection(
                ldap_server,
                auto_bind=True,
                raise_exceptions=False,
                **auth
            )
        except LDAPException as e:
            raise SetupError(f"Cannot connect to directory server '{server}': {e}") from e

        search_base = settings.search_base or cls._default_naming_context(ldap_server)
        if not search_base:
            connection.unbind()
            raise SetupError(
                f"Cannot determine the search base of '{server}'; "
                f"set OU_MOVER_SEARCH_BASE"
            )

        logger.debug(f"Search base: {search_base}")
        return cls(connection, search_base)

    @staticmethod
    def _default_naming_context(ldap_server) -> Optional[str]:
        info = getattr(ldap_server, "info", None)
        if info is None or not info.other:
            return None
        contexts = info.other.get("defaultNamingContext") or []
        return str(contexts[0]) if contexts else None

    def _search(self, base: str, search_filter: str, scope) -> Tuple[Optional[int], List[str], str]:
        conn = self._connection
        conn.search(
            search_base=base,
            search_filter=search_filter,
            search_scope=scope,
            attributes=[NO_ATTRIBUTES],
        )
        result = conn.result or {}
        dns = [
            entry["dn"]
            for entry in (conn.response or [])
            if entry.get("type") == "searchResEntry"
        ]
        return result.get("result"), dns, describe_result(result)

    def resolve(self, identifier: str) -> ClientResult:
        """
        Resolve an identifier to exactly one distinguished name.

        Identifiers that look like a DN are read directly; anything else is
        matched against sAMAccountName (with or without the trailing '$' of
        computer accounts) and cn under the search base.
        """
        try:
            if is_distinguished_name(identifier):
                code, dns, detail = self._search(identifier, "(objectClass=*)", BASE)
            else:
                if not self.search_base:
                    return ClientResult.other("no search base configured for name lookups")
                value = escape_filter_chars(identifier)
                search_filter = (
                    f"(|(sAMAccountName={value})(sAMAccountName={value}$)(cn={value}))"
                )
                code, dns, detail = self._search(self.search_base, search_filter, SUBTREE)
        except LDAPException as e:
            return ClientResult.other(f"{type(e).__name__}: {e}")

        status = classify_result_code(code)
        if status is not ClientStatus.OK:
            return ClientResult(status, detail)

        if not dns:
            return ClientResult.not_found(f"no object matches '{identifier}'")

        if len(dns) > 1:
            return ClientResult.other(
                f"ambiguous identifier '{identifier}': {len(dns)} objects match"
            )

        logger.debug(f"Resolved {identifier} -> {dns[0]}")
        return ClientResult.success(dn=dns[0])

    def move(
        self,
        identifier: str,
        destination: str,
        dn: Optional[str] = None,
    ) -> ClientResult:
        """
        Move the object named by ``identifier`` under ``destination``.

        The object keeps its RDN. An object already directly under the
        destination is reported as a success without a ModifyDN request.

        Args:
            identifier: The work item
            destination: DN of the target container
            dn: DN from an earlier resolve(); looked up again when omitted
        """
        if dn is None:
            resolved = self.resolve(identifier)
            if not resolved.ok:
                return resolved
        else:
            resolved = ClientResult.success(dn=dn)

        try:
            rdn, parent = _split_rdn(resolved.dn)
            if _normalize_dn(parent) == _normalize_dn(destination):
                return ClientResult.success(
                    dn=resolved.dn, detail="already in destination"
                )

            self._connection.modify_dn(resolved.dn, rdn, new_superior=destination)
        except LDAPException as e:
            return ClientResult.other(f"{type(e).__name__}: {e}", dn=resolved.dn)

        result = self._connection.result or {}
        status = classify_result_code(result.get("result"))
        if status is ClientStatus.OK:
            return ClientResult.success(dn=f"{rdn},{destination}")
        return ClientResult(status, describe_result(result), resolved.dn)

    def close(self) -> None:
        """Unbind the connection."""
        try:
            self._connection.unbind()
        except LDAPException as e:
            logger.warning(f"Error while unbinding: {e}")

    def __enter__(self) -> "LdapDirectoryClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
