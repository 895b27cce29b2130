"""Tests for the certificate parser."""

import pytest

from pushlog.domain import Certificate, RefUpdate, parse_update_line
from pushlog.exit_codes import CertificateError, DATA_ERROR

from conftest import make_cert, ZERO_OID

OLD = "1" * 40
NEW = "2" * 40


class TestCertificateParse:
    """Tests for Certificate.parse."""

    def test_parse_headers(self):
        cert = Certificate.parse(make_cert("refs/heads/main", nonce="abc-123"))
        assert cert.header("certificate") == "version 0.1"
        assert cert.pusher == "Alice <alice@example.com> 1700000000 +0000"
        assert cert.header("nonce") == "abc-123"
        assert cert.header("missing") is None

    def test_parse_updates(self):
        cert = Certificate.parse(make_cert("refs/heads/main", "refs/tags/v1.0"))
        assert [u.ref for u in cert.updates] == ["refs/heads/main", "refs/tags/v1.0"]
        assert all(u.old_oid == ZERO_OID for u in cert.updates)
        assert cert.ref_names == ["refs/heads/main", "refs/tags/v1.0"]

    def test_raw_bytes_kept_verbatim(self):
        raw = make_cert("refs/heads/main", trailing_newline=False)
        assert Certificate.parse(raw).raw == raw

    def test_signature_block(self):
        cert = Certificate.parse(make_cert("refs/heads/main"))
        assert cert.signature.startswith("-----BEGIN PGP SIGNATURE-----")
        assert cert.signature.rstrip().endswith("-----END PGP SIGNATURE-----")

    def test_unsigned_certificate_parses(self):
        cert = Certificate.parse(make_cert("refs/heads/main", signed=False))
        assert cert.signature is None
        assert cert.ref_names == ["refs/heads/main"]

    def test_ssh_signature_block(self):
        raw = (
            "certificate version 0.1\n"
            "pusher SHA256:abc 1700000000 +0000\n"
            "nonce n\n"
            "\n"
            f"{OLD} {NEW} refs/heads/main\n"
            "-----BEGIN SSH SIGNATURE-----\n"
            "U1NIU0lH\n"
            "-----END SSH SIGNATURE-----\n"
        ).encode()
        cert = Certificate.parse(raw)
        assert cert.ref_names == ["refs/heads/main"]
        assert "SSH SIGNATURE" in cert.signature

    def test_repeated_push_options(self):
        raw = (
            "certificate version 0.1\n"
            "pusher Bob 1700000000 +0000\n"
            "nonce n\n"
            "push-option ci.skip\n"
            "push-option merge_request.create\n"
            "\n"
            f"{OLD} {NEW} refs/heads/topic\n"
        ).encode()
        cert = Certificate.parse(raw)
        options = [value for key, value in cert.headers if key == "push-option"]
        assert options == ["ci.skip", "merge_request.create"]

    def test_crlf_line_endings(self):
        raw = make_cert("refs/heads/main").replace(b"\n", b"\r\n")
        assert Certificate.parse(raw).ref_names == ["refs/heads/main"]

    def test_duplicate_refs_listed_once(self):
        raw = (
            "certificate version 0.1\n"
            "pusher Bob 1700000000 +0000\n"
            "\n"
            f"{OLD} {NEW} refs/heads/main\n"
            f"{NEW} {OLD} refs/heads/main\n"
        ).encode()
        cert = Certificate.parse(raw)
        assert len(cert.updates) == 2
        assert cert.ref_names == ["refs/heads/main"]

    def test_sha256_object_names(self):
        raw = (
            "certificate version 0.1\n"
            "\n"
            f"{'0' * 64} {'a' * 64} refs/heads/main\n"
        ).encode()
        assert Certificate.parse(raw).updates[0].new_oid == "a" * 64

    def test_non_utf8_pusher(self):
        raw = make_cert("refs/heads/main").replace(b"Alice", b"Jos\xe9")
        cert = Certificate.parse(raw)
        assert cert.raw == raw
        assert cert.pusher.startswith("Jos\ufffd ")
        assert cert.ref_names == ["refs/heads/main"]


class TestCertificateErrors:
    """Malformed certificates are rejected with CertificateError."""

    def test_empty(self):
        with pytest.raises(CertificateError):
            Certificate.parse(b"")

    def test_no_updates(self):
        with pytest.raises(CertificateError, match="no ref updates"):
            Certificate.parse(b"certificate version 0.1\npusher x\n\n")

    def test_signature_only(self):
        raw = b"certificate version 0.1\n\n-----BEGIN PGP SIGNATURE-----\n-----END PGP SIGNATURE-----\n"
        with pytest.raises(CertificateError):
            Certificate.parse(raw)

    def test_not_utf8(self):
        with pytest.raises(CertificateError, match="UTF-8"):
            Certificate.parse(b"certificate version 0.1\n\n\xff\xfe\n")

    def test_non_utf8_ref_line(self):
        raw = make_cert("refs/heads/main").replace(b"refs/heads/main", b"refs/heads/m\xe9")
        with pytest.raises(CertificateError, match="Ref update line"):
            Certificate.parse(raw)

    def test_error_exit_code(self):
        with pytest.raises(CertificateError) as exc_info:
            Certificate.parse(b"")
        assert exc_info.value.exit_code == DATA_ERROR


class TestParseUpdateLine:
    """Tests for single ref update lines."""

    def test_valid_line(self):
        update = parse_update_line(f"{OLD} {NEW} refs/heads/main")
        assert update == RefUpdate(old_oid=OLD, new_oid=NEW, ref="refs/heads/main")

    @pytest.mark.parametrize("line", [
        f"{OLD} {NEW}",
        f"{OLD[:-1]} {NEW} refs/heads/main",
        f"{OLD} {'A' * 40} refs/heads/main",
        f"{OLD} {NEW} heads/main",
        "not a ref update",
    ])
    def test_malformed_lines(self, line):
        with pytest.raises(CertificateError):
            parse_update_line(line)

