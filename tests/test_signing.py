"""
Test suite for RSA-SHA256 request signing

This module tests body digests, date formatting, string-to-sign and
Authorization header construction, and the request signer itself.
"""

import base64
import hashlib
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch

import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding

from paysign_sdk.signing import (
    # Core signing
    RequestSigner,
    create_signer,
    sign_request,
    # Types
    SigningRequest,
    SigningKeyMaterial,
    SignatureHeaders,
    SigningError,
    SigningErrorCodes,
    InvalidBodyTypeError,
    SigningPrimitiveError,
    SIGNED_HEADERS,
    # Configuration
    create_signing_config,
    create_key_material,
    # String-to-sign
    build_string_to_sign,
    build_authorization_header,
    parse_authorization_header,
    validate_string_to_sign,
    # Utilities
    select_digest_input,
    calculate_body_digest,
    format_signature_date,
    parse_signature_date,
    build_request_target,
)
from paysign_sdk.crypto.keys import verify_signature

from conftest import TEST_KEY_ID, FIXED_TIME

X_DIGEST = base64.b64encode(hashlib.sha512(b"X").digest()).decode("ascii")


def _verify(public_key, headers: SignatureHeaders) -> bool:
    signature = parse_authorization_header(headers.authorization)["signature"]
    return verify_signature(public_key, headers.string_to_sign, base64.b64decode(signature))


class TestSigningUtilities:
    """Test utility functions"""

    def test_absent_and_empty_body_use_sentinel(self):
        """Absent or empty bodies are digested as the single byte X"""
        assert select_digest_input(None) == b"X"
        assert select_digest_input(b"") == b"X"
        assert select_digest_input("") == b"X"

        assert calculate_body_digest(None) == X_DIGEST
        assert calculate_body_digest(b"") == X_DIGEST

    def test_body_digest(self):
        """Non-empty bodies are digested exactly"""
        body = b'{"amount":100}'
        expected = base64.b64encode(hashlib.sha512(body).digest()).decode("ascii")

        assert calculate_body_digest(body) == expected
        assert calculate_body_digest(body.decode("utf-8")) == expected
        assert calculate_body_digest(bytearray(body)) == expected
        # Single-byte X body is indistinguishable from an empty body
        assert calculate_body_digest(b"X") == X_DIGEST

    def test_digest_is_padded_base64(self):
        """Digest is 88 characters of standard padded base64"""
        digest = calculate_body_digest(b"hello")
        assert len(digest) == 88
        assert digest.endswith("==")

    def test_unserialized_body_rejected(self):
        """Dicts and other objects must be serialized before signing"""
        with pytest.raises(InvalidBodyTypeError) as exc_info:
            select_digest_input({"amount": 100})

        assert exc_info.value.code == SigningErrorCodes.INVALID_BODY_TYPE
        assert exc_info.value.details["body_type"] == "dict"

    def test_format_signature_date(self):
        """Date is second precision UTC with a Z suffix"""
        assert format_signature_date(FIXED_TIME) == "2024-01-01T00:00:00Z"

        with_micros = datetime(2024, 3, 5, 7, 8, 9, 999999, tzinfo=timezone.utc)
        assert format_signature_date(with_micros) == "2024-03-05T07:08:09Z"

    def test_format_signature_date_pads_year(self):
        """Years before 1000 keep four digits"""
        early = datetime(999, 1, 1, tzinfo=timezone.utc)

        assert format_signature_date(early) == "0999-01-01T00:00:00Z"
        assert parse_signature_date("0999-01-01T00:00:00Z") == early

    def test_format_signature_date_converts_to_utc(self):
        """Offsets are normalized and naive values are taken as UTC"""
        plus_two = timezone(timedelta(hours=2))
        assert format_signature_date(datetime(2024, 1, 1, 2, 0, 0, tzinfo=plus_two)) == "2024-01-01T00:00:00Z"
        assert format_signature_date(datetime(2024, 1, 1, 0, 0, 0)) == "2024-01-01T00:00:00Z"

    def test_parse_signature_date(self):
        """Parsing accepts only the exact signing format"""
        assert parse_signature_date("2024-01-01T00:00:00Z") == FIXED_TIME

        with pytest.raises(ValueError):
            parse_signature_date("Mon, 01 Jan 2024 00:00:00 GMT")

    def test_build_request_target(self):
        """Method is lower-cased and the query appended only when present"""
        assert build_request_target("GET", "/api/v1/accounts") == "get /api/v1/accounts"
        assert build_request_target("Post", "/api/v1/payments", "dryRun=true") == \
            "post /api/v1/payments?dryRun=true"
        assert build_request_target("GET", "/api/v1/accounts", "") == "get /api/v1/accounts"


class TestStringToSign:
    """Test string-to-sign and Authorization header construction"""

    def test_string_to_sign_layout(self):
        """Three lines, newline separated, no trailing newline"""
        text = build_string_to_sign("get /api/v1/accounts", "2024-01-01T00:00:00Z", X_DIGEST)

        assert text == (
            "(request-target): get /api/v1/accounts\n"
            "Date: 2024-01-01T00:00:00Z\n"
            f"Digest: {X_DIGEST}"
        )
        assert not text.endswith("\n")
        assert validate_string_to_sign(text)

    def test_validate_string_to_sign(self):
        """Malformed layouts are rejected"""
        assert not validate_string_to_sign("")
        assert not validate_string_to_sign("(request-target): get /\nDate: x")
        assert not validate_string_to_sign("Date: x\n(request-target): get /\nDigest: y")
        assert not validate_string_to_sign("(request-target): get /\nDate: x\nDigest: y\n")

    def test_authorization_header_format(self):
        """Parameters appear in fixed order with literal values"""
        header = build_authorization_header("key-1", "c2ln")

        assert header == (
            'Signature keyid="key-1",algorithm="rsa-sha256",'
            'headers="(request-target) Date Digest",signature="c2ln"'
        )

    def test_parse_authorization_header(self):
        """Parsing recovers every parameter"""
        params = parse_authorization_header(build_authorization_header("key-1", "c2ln"))

        assert params == {
            "keyid": "key-1",
            "algorithm": "rsa-sha256",
            "headers": SIGNED_HEADERS,
            "signature": "c2ln",
        }

    def test_parse_authorization_header_errors(self):
        """Wrong scheme, duplicates and missing parameters are rejected"""
        with pytest.raises(ValueError, match="scheme"):
            parse_authorization_header('Bearer keyid="a"')

        with pytest.raises(ValueError, match="Missing"):
            parse_authorization_header('Signature keyid="a",algorithm="rsa-sha256"')

        with pytest.raises(ValueError, match="Duplicate"):
            parse_authorization_header(
                'Signature keyid="a",keyid="b",algorithm="rsa-sha256",headers="x",signature="y"'
            )


class TestSigningConfiguration:
    """Test key material and the configuration builder"""

    def test_key_material_validation(self, private_key):
        """Key ID and private key are required"""
        with pytest.raises(ValueError, match="Key ID"):
            SigningKeyMaterial(key_id="", private_key=private_key)

        with pytest.raises(ValueError, match="Private key"):
            SigningKeyMaterial(key_id="k", private_key="not a key")

    def test_key_material_repr_hides_key(self, key_material):
        """repr never includes the private key"""
        assert repr(key_material) == f"SigningKeyMaterial(key_id='{TEST_KEY_ID}')"

    def test_create_key_material_errors(self, private_key):
        """ValueErrors are mapped to signing error codes"""
        with pytest.raises(SigningError) as exc_info:
            create_key_material("", private_key)
        assert exc_info.value.code == SigningErrorCodes.INVALID_KEY_ID

        with pytest.raises(SigningError) as exc_info:
            create_key_material("k", 42)
        assert exc_info.value.code == SigningErrorCodes.INVALID_PRIVATE_KEY

    def test_signing_config_builder(self, private_key_pem, fixed_clock, public_key):
        """Builder loads PEM data and produces a working signer"""
        signer = (create_signing_config()
                  .key_id(TEST_KEY_ID)
                  .private_key_pem(private_key_pem)
                  .clock(fixed_clock)
                  .build_signer())

        headers = signer.sign(SigningRequest(method="GET", path="/api/v1/accounts"))

        assert headers.date == "2024-01-01T00:00:00Z"
        assert _verify(public_key, headers)

    def test_builder_from_file(self, private_key_file):
        """Builder loads keys from files"""
        key = create_signing_config().key_id("k").private_key_file(private_key_file).build()
        assert key.key_id == "k"

    def test_builder_validation(self, private_key):
        """Incomplete or invalid configuration is rejected"""
        with pytest.raises(SigningError) as exc_info:
            create_signing_config().private_key(private_key).build()
        assert exc_info.value.code == SigningErrorCodes.INVALID_KEY_ID

        with pytest.raises(SigningError) as exc_info:
            create_signing_config().key_id("k").build()
        assert exc_info.value.code == SigningErrorCodes.INVALID_CONFIG

        with pytest.raises(SigningError) as exc_info:
            create_signing_config().key_id("k").private_key_pem("not pem")
        assert exc_info.value.code == SigningErrorCodes.INVALID_PRIVATE_KEY


class TestRequestSigner:
    """Test the request signer"""

    def setup_method(self):
        """Set up test fixtures"""
        self.get_request = SigningRequest(
            method="GET",
            path="/api/v1/7d0b3a0a-f0f9-4579-b7fa-9c091d243d48",
            timestamp=FIXED_TIME
        )
        self.post_request = SigningRequest(
            method="POST",
            path="/api/v1/payments",
            query="dryRun=true",
            body=b'{"amount":100}',
            timestamp=FIXED_TIME
        )

    def test_get_without_body(self, key_material, public_key):
        """GET with no body uses the X digest and verifies"""
        headers = RequestSigner(key_material).sign(self.get_request)

        assert headers.digest == X_DIGEST
        assert headers.date == "2024-01-01T00:00:00Z"
        assert headers.authorization.startswith(
            f'Signature keyid="{TEST_KEY_ID}",algorithm="rsa-sha256",'
            'headers="(request-target) Date Digest",signature="'
        )
        assert headers.string_to_sign.split("\n")[0] == \
            "(request-target): get /api/v1/7d0b3a0a-f0f9-4579-b7fa-9c091d243d48"
        assert _verify(public_key, headers)

    def test_post_with_query_and_body(self, key_material, public_key):
        """POST signs the query string and digests the exact body bytes"""
        headers = RequestSigner(key_material).sign(self.post_request)

        assert len(b'{"amount":100}') == 14
        assert headers.digest == base64.b64encode(hashlib.sha512(b'{"amount":100}').digest()).decode("ascii")
        assert headers.string_to_sign.split("\n")[0] == "(request-target): post /api/v1/payments?dryRun=true"
        assert _verify(public_key, headers)

    def test_headers_mapping(self, key_material):
        """headers exposes exactly the three wire headers"""
        headers = RequestSigner(key_material).sign(self.get_request)

        assert list(headers.headers) == ["Authorization", "Digest", "Date"]
        assert headers.headers["Digest"] == headers.digest

    def test_date_header_matches_signed_date(self, key_material):
        """The transmitted Date is byte-identical to the signed Date line"""
        headers = RequestSigner(key_material).sign(self.post_request)

        assert headers.string_to_sign.split("\n")[1] == f"Date: {headers.date}"
        assert headers.string_to_sign.split("\n")[2] == f"Digest: {headers.digest}"

    def test_deterministic(self, key_material):
        """Identical inputs produce identical headers"""
        signer = RequestSigner(key_material)

        assert signer.sign(self.post_request) == signer.sign(self.post_request)

    def test_clock_used_when_timestamp_missing(self, key_material, fixed_clock):
        """The signer reads its clock exactly once per request without a timestamp"""
        clock = Mock(side_effect=fixed_clock)
        signer = RequestSigner(key_material, clock=clock)

        headers = signer.sign(SigningRequest(method="GET", path="/"))

        assert headers.date == "2024-01-01T00:00:00Z"
        clock.assert_called_once()

    def test_explicit_timestamp_ignores_clock(self, key_material):
        """Explicit timestamps take precedence over the clock"""
        clock = Mock()
        RequestSigner(key_material, clock=clock).sign(self.get_request)

        clock.assert_not_called()

    def test_body_tampering_detected(self, key_material, public_key):
        """Changing one body byte after signing breaks the digest"""
        headers = RequestSigner(key_material).sign(self.post_request)

        assert calculate_body_digest(b'{"amount":900}') != headers.digest
        tampered = SigningRequest(
            method="POST", path="/api/v1/payments", query="dryRun=true",
            body=b'{"amount":900}', timestamp=FIXED_TIME
        )
        tampered_text = RequestSigner(key_material).sign(tampered).string_to_sign
        signature = base64.b64decode(parse_authorization_header(headers.authorization)["signature"])
        assert not verify_signature(public_key, tampered_text, signature)

    def test_wrong_key_does_not_verify(self, key_material, other_private_key):
        """Signatures only verify under the matching public key"""
        headers = RequestSigner(key_material).sign(self.get_request)

        assert not _verify(other_private_key.public_key(), headers)

    def test_signature_matches_raw_pkcs1v15(self, key_material, public_key):
        """The signature is PKCS#1 v1.5 / SHA-256 over the UTF-8 string-to-sign"""
        headers = RequestSigner(key_material).sign(self.get_request)
        signature = base64.b64decode(parse_authorization_header(headers.authorization)["signature"])

        public_key.verify(signature, headers.string_to_sign.encode("utf-8"), padding.PKCS1v15(), hashes.SHA256())

    def test_custom_key_handle(self):
        """Any object exposing sign(bytes) can be used as a key"""
        handle = Mock()
        handle.sign.return_value = b"\x01\x02\x03"
        key = SigningKeyMaterial(key_id="hsm-key", private_key=handle)

        headers = RequestSigner(key).sign(self.get_request)

        handle.sign.assert_called_once_with(headers.string_to_sign.encode("utf-8"))
        assert headers.authorization.endswith('signature="AQID"')

    def test_primitive_failure(self):
        """Handle failures surface as SigningPrimitiveError"""
        handle = Mock()
        handle.sign.side_effect = RuntimeError("device unavailable")
        key = SigningKeyMaterial(key_id="hsm-key", private_key=handle)

        with pytest.raises(SigningPrimitiveError) as exc_info:
            RequestSigner(key).sign(self.get_request)

        assert exc_info.value.code == SigningErrorCodes.SIGNING_PRIMITIVE_FAILURE
        assert exc_info.value.details["key_id"] == "hsm-key"

    def test_empty_signature_rejected(self):
        """A handle that returns nothing is treated as a failure"""
        handle = Mock()
        handle.sign.return_value = b""
        key = SigningKeyMaterial(key_id="hsm-key", private_key=handle)

        with pytest.raises(SigningPrimitiveError):
            RequestSigner(key).sign(self.get_request)

    def test_error_handling(self, key_material):
        """Configuration and input errors are reported with codes"""
        with pytest.raises(SigningError) as exc_info:
            RequestSigner().sign(self.get_request)
        assert exc_info.value.code == SigningErrorCodes.INVALID_CONFIG

        with pytest.raises(SigningError) as exc_info:
            RequestSigner("not key material")
        assert exc_info.value.code == SigningErrorCodes.INVALID_CONFIG

        with pytest.raises(InvalidBodyTypeError):
            RequestSigner(key_material).sign(
                SigningRequest(method="POST", path="/", body={"amount": 100}, timestamp=FIXED_TIME)
            )

        with pytest.raises(SigningError) as exc_info:
            RequestSigner(key_material).sign(
                SigningRequest(method="GET", path="/", timestamp="2024-01-01T00:00:00Z")
            )
        assert exc_info.value.code == SigningErrorCodes.INVALID_TIMESTAMP

    def test_unexpected_error_wrapped(self, key_material):
        """Unexpected failures are wrapped as SIGNING_FAILED"""
        with patch("paysign_sdk.signing.signer.build_string_to_sign", side_effect=RuntimeError("boom")):
            with pytest.raises(SigningError) as exc_info:
                RequestSigner(key_material).sign(self.get_request)

        assert exc_info.value.code == SigningErrorCodes.SIGNING_FAILED
        assert "boom" in exc_info.value.details["original_error"]

    def test_per_call_key_overrides_default(self, key_material, other_private_key):
        """A key passed to sign() takes precedence over the signer's key"""
        other = SigningKeyMaterial(key_id="other", private_key=other_private_key)

        headers = RequestSigner(key_material).sign(self.get_request, other)

        assert parse_authorization_header(headers.authorization)["keyid"] == "other"
        assert _verify(other_private_key.public_key(), headers)

    def test_convenience_functions(self, key_material, fixed_clock):
        """create_signer and sign_request agree with RequestSigner"""
        request = SigningRequest(method="GET", path="/api/v1/accounts")

        direct = create_signer(key_material, fixed_clock).sign(request)
        convenience = sign_request(request, key_material, clock=fixed_clock)

        assert direct == convenience

    def test_slow_signing_logged(self, key_material, caplog):
        """Slow signing operations are logged as warnings"""
        with patch("paysign_sdk.signing.signer.PerformanceTimer") as timer_cls:
            timer_cls.return_value.elapsed_ms.return_value = 250.0
            with caplog.at_level("WARNING", logger="paysign_sdk.signing.signer"):
                RequestSigner(key_material).sign(self.get_request)

        assert "took 250.00ms" in caplog.text
