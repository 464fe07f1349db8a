"""Principal accessor helpers.

The principal is any identity object handed to the builder: a plain object,
a dataclass, a namedtuple or a mapping. Claims are read from it by name, or
through caller-supplied callables.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any, Optional

from ..models.saml import CustomExtractor, Getter, NamedAccessor

logger = logging.getLogger(__name__)


class _Missing:
    """Sentinel type for accessors the principal does not expose."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z\d])([A-Z])")


def underscore(name: str) -> str:
    """Convert a CamelCase or mixedCase name to snake_case.

    Example:
        >>> underscore("GivenName")
        'given_name'
        >>> underscore("emailAddress")
        'email_address'
    """
    result = _ACRONYM_BOUNDARY.sub(r"\1_\2", str(name))
    result = _WORD_BOUNDARY.sub(r"\1_\2", result)
    return result.replace("-", "_").lower()


def lower_camelize(name: str) -> str:
    """Convert a snake_case name to lowerCamelCase.

    Example:
        >>> lower_camelize("email_address")
        'emailAddress'
    """
    head, *rest = str(name).split("_")
    return head[:1].lower() + head[1:] + "".join(part[:1].upper() + part[1:] for part in rest)


def as_getter(raw: Any) -> Optional[Getter]:
    """Normalize a raw catalog getter into a tagged getter.

    Args:
        raw: Property name, callable, existing getter, or None/empty

    Returns:
        NamedAccessor, CustomExtractor, or None when no getter was given

    Raises:
        TypeError: If raw is neither a string nor callable
    """
    if raw is None or isinstance(raw, (NamedAccessor, CustomExtractor)):
        return raw
    if isinstance(raw, str):
        return NamedAccessor(raw) if raw.strip() else None
    if callable(raw):
        return CustomExtractor(raw)
    raise TypeError(
        f"Getter must be an accessor name or a callable, got: {raw!r}"
    )


def read_accessor(principal: Any, name: str) -> Any:
    """Read a named accessor from the principal.

    Mapping principals are read by key; other principals by attribute. Methods
    are invoked without arguments.

    Returns:
        The accessor value, or MISSING when the principal does not expose it
    """
    if isinstance(principal, Mapping):
        return principal[name] if name in principal else MISSING

    if name.startswith("_"):
        return MISSING

    value = getattr(principal, name, MISSING)
    if value is MISSING:
        return MISSING
    if callable(value):
        return value()
    return value


def call_getter(getter: Getter, principal: Any) -> Any:
    """Evaluate a tagged getter against the principal.

    Returns:
        The extracted value, or MISSING when a named accessor is not exposed
    """
    if isinstance(getter, CustomExtractor):
        return getter.func(principal)
    return read_accessor(principal, getter.name)
