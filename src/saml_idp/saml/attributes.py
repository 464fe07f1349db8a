"""Attribute release catalog selection and value resolution.

The release catalog maps friendly names to ``{name, name_format, getter}``
options. Which catalog applies is decided by an ordered fallback chain:

    1. the per-call override, when non-empty;
    2. the principal's own ``asserted_attributes``, when the principal exposes it;
    3. the configured catalog, when non-empty;
    4. nothing, in which case the AttributeStatement is omitted.
"""

import logging
from collections.abc import Mapping
from typing import Any, Callable, List, Optional, Sequence

from ..models.saml import (
    AttributeReleaseEntry,
    CustomExtractor,
    Getter,
    NamedAccessor,
    ResolvedAttribute,
)
from ..namespaces import ATTRNAME_FORMAT_URI
from .principal import MISSING, as_getter, call_getter, read_accessor, underscore

logger = logging.getLogger(__name__)

PRINCIPAL_CATALOG_ACCESSOR = "asserted_attributes"

# Getter given as a blank string: the attribute is released without values
BLANK_GETTER = CustomExtractor(lambda principal: None)


def _attribute_getter(raw: Any) -> Optional[Getter]:
    if isinstance(raw, str) and not raw.strip():
        return BLANK_GETTER
    return as_getter(raw)


def build_attribute_catalog(raw: Optional[Mapping[str, Any]]) -> List[AttributeReleaseEntry]:
    """Normalize a raw release catalog into ordered entries.

    Args:
        raw: Mapping of friendly name to None, a getter, or an options mapping
             with ``name``, ``name_format`` and ``getter`` keys

    Returns:
        Entries in catalog iteration order

    Example:
        >>> catalog = build_attribute_catalog({"GivenName": {"getter": "first_name"}})
        >>> catalog[0].name
        'GivenName'
    """
    if not raw:
        return []

    entries: List[AttributeReleaseEntry] = []
    for friendly_name, options in raw.items():
        friendly_name = str(friendly_name)
        if isinstance(options, Mapping):
            name = options.get("name") or friendly_name
            name_format = options.get("name_format") or ATTRNAME_FORMAT_URI
            getter = _attribute_getter(options.get("getter"))
        else:
            name = friendly_name
            name_format = ATTRNAME_FORMAT_URI
            getter = _attribute_getter(options)
        entries.append(
            AttributeReleaseEntry(
                friendly_name=friendly_name,
                name=str(name),
                name_format=str(name_format),
                getter=getter,
            )
        )
    return entries


def _principal_catalog(principal: Any) -> Any:
    return read_accessor(principal, PRINCIPAL_CATALOG_ACCESSOR)


def select_attribute_catalog(
    override: Optional[Mapping[str, Any]],
    principal: Any,
    configured: Optional[Mapping[str, Any]],
) -> List[AttributeReleaseEntry]:
    """Pick the release catalog that applies to this assertion.

    Args:
        override: Per-call catalog override
        principal: Authenticated principal
        configured: Catalog from configuration

    Returns:
        Normalized entries of the winning catalog (empty when none applies)
    """
    sources: Sequence[tuple[str, Callable[[], Any]]] = (
        ("override", lambda: override or MISSING),
        ("principal", lambda: _principal_catalog(principal)),
        ("configuration", lambda: configured or MISSING),
    )

    for source, load in sources:
        catalog = load()
        if catalog is MISSING:
            continue
        logger.debug(f"Using attribute release catalog from {source}")
        return build_attribute_catalog(catalog)

    logger.debug("No attribute release catalog configured")
    return []


def normalize_values(result: Any) -> List[str]:
    """Wrap a getter result as a list of strings.

    Example:
        >>> normalize_values(None)
        []
        >>> normalize_values("George")
        ['George']
        >>> normalize_values(["admin", None, 7])
        ['admin', '', '7']
    """
    if result is None or result is MISSING:
        return []
    if isinstance(result, (list, tuple, set, frozenset)):
        return ["" if value is None else str(value) for value in result]
    return [str(result)]


def get_values_for(entry: AttributeReleaseEntry, principal: Any) -> List[str]:
    """Resolve the values of one attribute.

    A principal that does not expose the accessor simply has no value for the
    attribute; that is not an error. A blank getter releases no values.
    """
    getter = entry.getter
    if isinstance(getter, NamedAccessor):
        getter = NamedAccessor(underscore(getter.name))
    elif getter is None:
        getter = NamedAccessor(underscore(entry.friendly_name))

    return normalize_values(call_getter(getter, principal))


def resolve_attributes(
    catalog: Sequence[AttributeReleaseEntry], principal: Any
) -> List[ResolvedAttribute]:
    """Resolve every catalog entry against the principal, preserving order.

    Args:
        catalog: Normalized release catalog
        principal: Authenticated principal

    Returns:
        Resolved attributes; empty when the catalog is empty
    """
    resolved = []
    for entry in catalog:
        values = get_values_for(entry, principal)
        resolved.append(
            ResolvedAttribute(
                name=entry.name,
                name_format=entry.name_format,
                friendly_name=entry.friendly_name,
                values=values,
            )
        )
        logger.debug(f"Resolved attribute {entry.name} ({len(values)} values)")
    return resolved
