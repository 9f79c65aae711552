"""
String-to-sign and Authorization header construction

This module builds the exact three-line text that is signed for every
request and assembles (and parses) the Authorization header that carries
the resulting signature.
"""

import re
from typing import Dict, List

from .types import SignatureAlgorithm, SIGNED_HEADERS

REQUEST_TARGET_PREFIX = '(request-target): '
DATE_PREFIX = 'Date: '
DIGEST_PREFIX = 'Digest: '

AUTHORIZATION_SCHEME = 'Signature'

# Field order of the Authorization header parameters
AUTHORIZATION_FIELDS = ('keyid', 'algorithm', 'headers', 'signature')

_AUTH_PARAM_RE = re.compile(r'([a-zA-Z]+)="([^"]*)"')


class StringToSignBuilder:
    """
    Builder for the string-to-sign
    """

    def __init__(self, request_target: str, date: str, digest: str):
        self.request_target = request_target
        self.date = date
        self.digest = digest

    def build(self) -> str:
        """
        Build the string-to-sign.

        Returns:
            str: Three lines joined by '\\n' with no trailing newline
        """
        lines = [
            f'{REQUEST_TARGET_PREFIX}{self.request_target}',
            f'{DATE_PREFIX}{self.date}',
            f'{DIGEST_PREFIX}{self.digest}',
        ]
        return '\n'.join(lines)


def build_string_to_sign(request_target: str, date: str, digest: str) -> str:
    """
    Build the string-to-sign for a request.

    Args:
        request_target: Value produced by build_request_target
        date: Date header value
        digest: Digest header value

    Returns:
        str: String-to-sign
    """
    return StringToSignBuilder(request_target, date, digest).build()


def build_authorization_header(
    key_id: str,
    signature: str,
    algorithm: SignatureAlgorithm = SignatureAlgorithm.RSA_SHA256
) -> str:
    """
    Build the Authorization header value.

    Args:
        key_id: Key identifier, substituted verbatim
        signature: Base64 signature, substituted verbatim
        algorithm: Signature algorithm name

    Returns:
        str: Authorization header value
    """
    return (
        f'{AUTHORIZATION_SCHEME} '
        f'keyid="{key_id}",'
        f'algorithm="{algorithm.value}",'
        f'headers="{SIGNED_HEADERS}",'
        f'signature="{signature}"'
    )


def parse_authorization_header(value: str) -> Dict[str, str]:
    """
    Parse a Signature Authorization header into its parameters.

    Args:
        value: Authorization header value

    Returns:
        dict: Parameters keyed by name (keyid, algorithm, headers, signature)

    Raises:
        ValueError: If the scheme is wrong or a required parameter is missing
    """
    scheme, _, params = value.strip().partition(' ')
    if scheme != AUTHORIZATION_SCHEME:
        raise ValueError(f"Unsupported authorization scheme: {scheme!r}")

    parsed = {}
    for name, param_value in _AUTH_PARAM_RE.findall(params):
        if name in parsed:
            raise ValueError(f"Duplicate authorization parameter: {name}")
        parsed[name] = param_value

    missing = [name for name in AUTHORIZATION_FIELDS if name not in parsed]
    if missing:
        raise ValueError(f"Missing authorization parameters: {', '.join(missing)}")

    return parsed


def split_string_to_sign(string_to_sign: str) -> List[str]:
    """
    Split a string-to-sign into its request-target, date and digest values.

    Raises:
        ValueError: If the text does not have the three expected lines
    """
    lines = string_to_sign.split('\n')
    prefixes = (REQUEST_TARGET_PREFIX, DATE_PREFIX, DIGEST_PREFIX)

    if len(lines) != len(prefixes):
        raise ValueError(f"Expected {len(prefixes)} lines, got {len(lines)}")

    values = []
    for line, prefix in zip(lines, prefixes):
        if not line.startswith(prefix):
            raise ValueError(f"Line does not start with {prefix!r}: {line!r}")
        values.append(line[len(prefix):])

    return values


def validate_string_to_sign(string_to_sign: str) -> bool:
    """
    Validate string-to-sign layout.

    Returns:
        bool: True if the text has exactly the expected three lines
    """
    if not string_to_sign or not isinstance(string_to_sign, str):
        return False

    try:
        split_string_to_sign(string_to_sign)
    except ValueError:
        return False

    return True
