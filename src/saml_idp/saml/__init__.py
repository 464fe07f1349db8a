"""SAML assertion assembly, signing and encryption."""

from .assertion_builder import AssertionBuilder
from .attributes import build_attribute_catalog, resolve_attributes, select_attribute_catalog
from .certificate_manager import (
    get_certificate_info,
    load_certificate,
    load_certificate_from_string,
    load_pem_certificate,
    load_pem_private_key,
)
from .encryptor import AssertionEncryptor
from .name_id import (
    build_name_id_catalog,
    choose_name_id_format,
    name_id_format_uri,
    resolve_name_id,
)
from .serializer import pretty_print_xml, serialize_assertion
from .signer import SAMLSigner
from .time_window import compute_time_window, format_timestamp, time_window_strings

__all__ = [
    "AssertionBuilder",
    "AssertionEncryptor",
    "SAMLSigner",
    "build_attribute_catalog",
    "build_name_id_catalog",
    "choose_name_id_format",
    "compute_time_window",
    "format_timestamp",
    "get_certificate_info",
    "load_certificate",
    "load_certificate_from_string",
    "load_pem_certificate",
    "load_pem_private_key",
    "name_id_format_uri",
    "pretty_print_xml",
    "resolve_attributes",
    "resolve_name_id",
    "select_attribute_catalog",
    "serialize_assertion",
    "time_window_strings",
]
