"""
Accept command for pushlog.

Meant to run from a repository's post-receive hook once per signed push.
"""

import os
import sys
import click
from typing import Optional

from ..cli_utils import standard_command, get_service


@click.command('accept')
@click.option('--file', '-f', 'cert_file', type=click.Path(dir_okay=False, allow_dash=True),
              help="Read the certificate from a file ('-' for stdin) instead of GIT_PUSH_CERT")
@click.option('--status', '-s', help='Nonce status (default: from GIT_PUSH_CERT_NONCE_STATUS)')
@click.option('--threshold', '-t', type=int,
              help='Archive once this many certificates are pending (overrides config)')
@click.pass_obj
@standard_command
def accept_handler(obj, cert_file: Optional[str], status: Optional[str], threshold: Optional[int]):
    """
    Accept one push certificate.

    The certificate is stored and queued. When the number of queued
    certificates reaches the threshold, the queue is archived onto the log.
    Certificates whose nonce status is not OK are dropped.

    Without --file, the certificate is the blob git names in GIT_PUSH_CERT;
    an unsigned push (no GIT_PUSH_CERT) does nothing.

    \b
    Examples:
        # In hooks/post-receive
        pushlog accept
        # Batch ten certificates per archival pass
        pushlog accept --threshold 10
        # Replay a saved certificate
        pushlog accept --file cert.txt --status OK
    """
    service = get_service(obj)

    if cert_file is None:
        environ = dict(os.environ)
        if status is not None:
            environ[service.config['ingest']['status_variable']] = status
        return service.ingest_from_env(environ, threshold=threshold)

    if cert_file == '-':
        cert_bytes = sys.stdin.buffer.read()
    else:
        with open(cert_file, 'rb') as f:
            cert_bytes = f.read()

    if status is None:
        status = os.environ.get(service.config['ingest']['status_variable'])

    return service.ingest(cert_bytes, status, threshold=threshold)
