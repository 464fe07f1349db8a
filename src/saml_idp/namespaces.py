"""SAML and XML security namespace and URI constants."""

# SAML 2.0 namespace
SAML_NS = "urn:oasis:names:tc:SAML:2.0:assertion"

# XML Signature / XML Encryption namespaces
DS_NS = "http://www.w3.org/2000/09/xmldsig#"
XENC_NS = "http://www.w3.org/2001/04/xmlenc#"
XENC11_NS = "http://www.w3.org/2009/xmlenc11#"

BEARER_METHOD = "urn:oasis:names:tc:SAML:2.0:cm:bearer"
ENTITY_FORMAT = "urn:oasis:names:tc:SAML:2.0:nameid-format:entity"

ATTRNAME_FORMAT_URI = "urn:oasis:names:tc:SAML:2.0:attrname-format:uri"
ATTRNAME_FORMAT_BASIC = "urn:oasis:names:tc:SAML:2.0:attrname-format:basic"

AUTHN_CONTEXT_PASSWORD = "urn:oasis:names:tc:SAML:2.0:ac:classes:Password"
AUTHN_CONTEXT_PASSWORD_PROTECTED_TRANSPORT = (
    "urn:oasis:names:tc:SAML:2.0:ac:classes:PasswordProtectedTransport"
)

NAMEID_FORMAT_TEMPLATE = "urn:oasis:names:tc:SAML:{version}:nameid-format:{name}"

# Block encryption short names accepted by the encryption collaborator
BLOCK_ENCRYPTION_ALGORITHMS = {
    "aes128-cbc": f"{XENC_NS}aes128-cbc",
    "aes192-cbc": f"{XENC_NS}aes192-cbc",
    "aes256-cbc": f"{XENC_NS}aes256-cbc",
    "aes128-gcm": f"{XENC11_NS}aes128-gcm",
    "aes256-gcm": f"{XENC11_NS}aes256-gcm",
}

# Key transport short names accepted by the encryption collaborator
KEY_TRANSPORT_ALGORITHMS = {
    "rsa-oaep-mgf1p": f"{XENC_NS}rsa-oaep-mgf1p",
    "rsa-1_5": f"{XENC_NS}rsa-1_5",
}

# Signature algorithm identifiers accepted by the signing collaborator
SIGNATURE_ALGORITHMS = ("sha256", "sha384", "sha512", "RSA-SHA256", "RSA-SHA384", "RSA-SHA512")
