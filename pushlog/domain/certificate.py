"""
Certificate domain object for pushlog.

A push certificate is the signed record git produces for one push
(``git push --signed``). Its layout is line oriented::

    certificate version 0.1
    pusher <signer> <timestamp> <tz>
    pushee <url>
    nonce <nonce>

    <old-oid> <new-oid> <ref-name>
    <old-oid> <new-oid> <ref-name>
    -----BEGIN PGP SIGNATURE-----
    ...
    -----END PGP SIGNATURE-----

The bytes are kept verbatim; parsing only extracts the structure needed to
index the certificate by the refs it covers. The signature is not verified.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple
import re

from ..exit_codes import CertificateError

SIGNATURE_PREFIX = b"-----BEGIN "

# SHA-1 and SHA-256 object names
_OID_RE = re.compile(r'^(?:[0-9a-f]{40}|[0-9a-f]{64})$')


@dataclass(frozen=True)
class RefUpdate:
    """One ``<old-oid> <new-oid> <ref-name>`` line of a certificate."""
    old_oid: str
    new_oid: str
    ref: str


@dataclass(frozen=True)
class Certificate:
    """
    A parsed push certificate.

    Attributes:
        raw: The certificate bytes exactly as received
        headers: Header fields in order of appearance (repeatable keys
            such as ``push-option`` keep every value)
        updates: Ref updates covered by this certificate
        signature: The detached signature block, if present
    """

    raw: bytes
    headers: Tuple[Tuple[str, str], ...] = ()
    updates: Tuple[RefUpdate, ...] = ()
    signature: Optional[str] = None

    @classmethod
    def parse(cls, raw: bytes) -> 'Certificate':
        """
        Parse certificate bytes.

        Header and signature lines may carry any encoding (a Latin-1 pusher
        name, say); undecodable bytes are replaced in the parsed values only.
        Ref update lines must be UTF-8.

        Raises:
            CertificateError: If the bytes are empty, a ref update line is
                not UTF-8, or there are no ref update lines
        """
        if not raw:
            raise CertificateError("Empty certificate")

        lines = raw.split(b'\n')
        headers: List[Tuple[str, str]] = []
        updates: List[RefUpdate] = []
        signature = None

        i = 0
        # Header block ends at the first empty line
        while i < len(lines) and lines[i].strip():
            key, _, value = _lenient(lines[i]).partition(' ')
            headers.append((key, value))
            i += 1

        for j in range(i, len(lines)):
            line = lines[j].rstrip(b'\r')
            if line.startswith(SIGNATURE_PREFIX):
                signature = _lenient(b'\n'.join(lines[j:]))
                break
            if not line.strip():
                continue
            try:
                text = line.decode('utf-8')
            except UnicodeDecodeError as e:
                raise CertificateError(f"Ref update line is not valid UTF-8: {line!r}") from e
            updates.append(parse_update_line(text))

        if not updates:
            raise CertificateError("Certificate covers no ref updates")

        return cls(
            raw=raw,
            headers=tuple(headers),
            updates=tuple(updates),
            signature=signature,
        )

    def header(self, key: str) -> Optional[str]:
        """First value of a header field, or None."""
        for name, value in self.headers:
            if name == key:
                return value
        return None

    @property
    def pusher(self) -> Optional[str]:
        return self.header('pusher')

    @property
    def ref_names(self) -> List[str]:
        """Ref names covered by this certificate, de-duplicated, in order."""
        seen = []
        for update in self.updates:
            if update.ref not in seen:
                seen.append(update.ref)
        return seen


def _lenient(data: bytes) -> str:
    return data.decode('utf-8', errors='replace').rstrip('\r')


def parse_update_line(line: str) -> RefUpdate:
    """Parse a single ``<old-oid> <new-oid> <ref-name>`` line."""
    parts = line.split(' ', 2)
    if len(parts) != 3:
        raise CertificateError(f"Malformed ref update line: {line!r}")
    old_oid, new_oid, ref = parts
    if not _OID_RE.match(old_oid) or not _OID_RE.match(new_oid):
        raise CertificateError(f"Malformed object name in line: {line!r}")
    if not ref or not ref.startswith('refs/') or '\0' in ref:
        raise CertificateError(f"Malformed ref name in line: {line!r}")
    return RefUpdate(old_oid=old_oid, new_oid=new_oid, ref=ref)
