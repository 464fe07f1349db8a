"""XML rendering helpers for SAML assertions.

Elements are created with lxml in the SAML 2.0 assertion namespace, declared
as the default namespace on the root element. Serialization uses Canonical XML
so identical inputs always produce byte-identical documents.
"""

import logging
from typing import Dict, Optional

from lxml import etree

from ..namespaces import SAML_NS
from ..utils.exceptions import SAMLError

logger = logging.getLogger(__name__)


def _incompatible_value(name: str, error: ValueError) -> SAMLError:
    return SAMLError(
        f"Cannot render SAML element {name}: {error}. "
        f"Remove control characters from the principal's values."
    )


def saml_tag(name: str) -> str:
    """Return the Clark-notation tag for a SAML assertion element."""
    return f"{{{SAML_NS}}}{name}"


def root_element(name: str, attrib: Dict[str, str]) -> etree._Element:
    """Create a root element declaring SAML as the default namespace.

    Example:
        >>> assertion = root_element("Assertion", {"ID": "_abc", "Version": "2.0"})
        >>> assertion.get("ID")
        '_abc'
    """
    try:
        return etree.Element(saml_tag(name), nsmap={None: SAML_NS}, attrib=attrib)
    except ValueError as e:
        raise _incompatible_value(name, e) from e


def sub_element(
    parent: etree._Element,
    name: str,
    text: Optional[str] = None,
    attrib: Optional[Dict[str, str]] = None,
) -> etree._Element:
    """Append a SAML element to parent, optionally with text content.

    Raises:
        SAMLError: If the text or an attribute value is not XML compatible
    """
    try:
        element = etree.SubElement(parent, saml_tag(name), attrib=attrib or {})
        if text is not None:
            element.text = text
    except ValueError as e:
        raise _incompatible_value(name, e) from e
    return element


def serialize_assertion(element: etree._Element) -> str:
    """Serialize an assertion element with C14N.

    Canonical XML sorts attributes and always writes explicit end tags, which
    keeps the output stable across runs and lxml versions.

    Args:
        element: Root element to serialize

    Returns:
        Canonical XML string
    """
    canonical = etree.tostring(element, method="c14n").decode("utf-8")
    logger.debug(f"Serialized assertion ({len(canonical)} bytes)")
    return canonical


def pretty_print_xml(xml_content: str) -> str:
    """Re-indent an XML document for display.

    Args:
        xml_content: XML text

    Returns:
        Indented XML text (unchanged if it cannot be parsed)
    """
    try:
        parser = etree.XMLParser(remove_blank_text=True)
        root = etree.fromstring(xml_content.encode("utf-8"), parser)
        return etree.tostring(root, pretty_print=True, encoding="unicode")
    except etree.XMLSyntaxError as e:
        logger.warning(f"Failed to pretty-print XML: {e}")
        return xml_content
