"""NameID format selection and subject identifier resolution.

The NameID catalog maps format keys (``email_address``, ``persistent``...) to
getters. Catalogs come either flat (``{"email_address": "email"}``) or split
by SAML version (``{"1.1": {...}, "2.0": {...}}``); both are normalized to an
ordered list of NameIdFormatEntry before selection.

Selection rule, applied in order:
    1. the configured default format key, when the catalog contains it;
    2. the first entry in catalog order (version-split catalogs list every
       SAML 1.1 format before the SAML 2.0 ones);
    3. ``persistent`` read from a ``persistent`` accessor when the catalog is empty.
"""

import logging
from collections.abc import Mapping
from typing import Any, List, Optional, Sequence, Tuple, Union

from ..models.saml import NameIdFormatEntry, NamedAccessor, ResolvedNameId
from ..utils.exceptions import MissingPrincipalAttributeError
from ..namespaces import NAMEID_FORMAT_TEMPLATE
from .principal import MISSING, as_getter, call_getter, lower_camelize

logger = logging.getLogger(__name__)

VERSION_KEYS = ("1.1", "2.0")

# Canonical spelling and defining SAML version of the standard NameID formats
KNOWN_FORMATS = {
    "unspecified": ("unspecified", "1.1"),
    "emailaddress": ("emailAddress", "1.1"),
    "x509subjectname": ("X509SubjectName", "1.1"),
    "windowsdomainqualifiedname": ("WindowsDomainQualifiedName", "1.1"),
    "persistent": ("persistent", "2.0"),
    "transient": ("transient", "2.0"),
    "entity": ("entity", "2.0"),
    "kerberos": ("kerberos", "2.0"),
    "encrypted": ("encrypted", "2.0"),
}

DEFAULT_FORMAT_KEY = "persistent"

RawCatalog = Union[Mapping[str, Any], Sequence[NameIdFormatEntry], None]


def _canonical_format(key: str) -> Tuple[str, str]:
    camel = lower_camelize(key)
    return KNOWN_FORMATS.get(camel.lower(), (camel, "2.0"))


def name_id_format_uri(key: str, version: Optional[str] = None) -> str:
    """Build the canonical NameID format URI for a catalog key.

    Args:
        key: Catalog key, snake_case or camelCase
        version: SAML version group; inferred from the format when None

    Example:
        >>> name_id_format_uri("email_address")
        'urn:oasis:names:tc:SAML:1.1:nameid-format:emailAddress'
        >>> name_id_format_uri("persistent")
        'urn:oasis:names:tc:SAML:2.0:nameid-format:persistent'
    """
    name, known_version = _canonical_format(key)
    return NAMEID_FORMAT_TEMPLATE.format(version=version or known_version, name=name)


def _build_entry(key: Any, raw: Any, version: Optional[str]) -> NameIdFormatEntry:
    key = str(key)
    uri = None
    getter_raw = raw
    if isinstance(raw, Mapping):
        uri = raw.get("uri")
        getter_raw = raw.get("getter")

    getter = as_getter(getter_raw) or NamedAccessor(key)
    if not uri:
        uri = name_id_format_uri(key, version)

    entry_version = version or _canonical_format(key)[1]
    return NameIdFormatEntry(key=key, uri=uri, getter=getter, version=entry_version)


def build_name_id_catalog(raw: RawCatalog) -> List[NameIdFormatEntry]:
    """Normalize a raw NameID catalog into ordered entries.

    Args:
        raw: Flat or version-split mapping, a sequence of entries, or None

    Returns:
        Entries in selection order (version-split catalogs list 1.1 before 2.0)
    """
    if not raw:
        return []

    if not isinstance(raw, Mapping):
        return list(raw)

    entries: List[NameIdFormatEntry] = []
    if any(version in raw for version in VERSION_KEYS):
        for version in VERSION_KEYS:
            for key, value in (raw.get(version) or {}).items():
                entries.append(_build_entry(key, value, version))
    else:
        for key, value in raw.items():
            entries.append(_build_entry(key, value, None))

    logger.debug(f"Built NameID catalog with {len(entries)} formats")
    return entries


def choose_name_id_format(
    catalog: Sequence[NameIdFormatEntry], default_key: Optional[str] = None
) -> NameIdFormatEntry:
    """Select exactly one NameID format from the catalog.

    Args:
        catalog: Normalized catalog entries
        default_key: Preferred format key, used when present in the catalog

    Returns:
        The chosen entry (deterministic for a given catalog)
    """
    if default_key:
        for entry in catalog:
            if entry.key == default_key:
                return entry
        logger.debug(f"Default NameID format '{default_key}' not in catalog, ignoring")

    if catalog:
        return catalog[0]

    return NameIdFormatEntry(
        key=DEFAULT_FORMAT_KEY,
        uri=name_id_format_uri(DEFAULT_FORMAT_KEY),
        getter=NamedAccessor(DEFAULT_FORMAT_KEY),
    )


def resolve_name_id(
    catalog: Sequence[NameIdFormatEntry],
    principal: Any,
    default_key: Optional[str] = None,
) -> ResolvedNameId:
    """Resolve the subject identifier and its format.

    Args:
        catalog: Normalized catalog entries
        principal: Authenticated principal
        default_key: Preferred format key

    Returns:
        ResolvedNameId with the identifier value and format URI

    Raises:
        MissingPrincipalAttributeError: If the chosen entry uses a named accessor
            the principal does not expose
    """
    entry = choose_name_id_format(catalog, default_key)
    value = call_getter(entry.getter, principal)

    if value is MISSING:
        raise MissingPrincipalAttributeError(entry.getter.name)

    if value is None:
        logger.warning(f"NameID getter for format '{entry.key}' returned None")
        value = ""

    logger.debug(f"Resolved NameID with format {entry.uri}")
    return ResolvedNameId(value=str(value), format_uri=entry.uri, format_key=entry.key)
