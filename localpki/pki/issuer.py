# Copyright (c) 2025, NVIDIA CORPORATION.  All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Issuing of the root CA and the server certificate.

The CA is a self-signed root whose only job is to sign the server
certificate. The server certificate goes through a local CSR: the request is
signed with the server key to prove possession, then the CA copies subject and
public key from it into a certificate it signs itself.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from cryptography import x509
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.x509.oid import ExtendedKeyUsageOID

from localpki.pki.constants import DEFAULT_PRODUCT_NAME, KeySize, Lifetime
from localpki.pki.errors import CASignFailed, ExtensionBuildFailed, LeafSignFailed, RequestSignFailed
from localpki.pki.san import get_san, parse_san
from localpki.pki.utils import generate_keys, random_serial_number, x509_name

log = logging.getLogger(__name__)


@dataclass
class CertPair:
    """A private key and the certificate issued for it."""

    private_key: Any
    certificate: x509.Certificate


def ca_common_name(product_name: str, issued_at: int) -> str:
    return f"{product_name} CA {issued_at}"


def server_common_name(product_name: str, issued_at: int) -> str:
    return f"{product_name} Server Certificate {issued_at}"


def _ca_extensions():
    try:
        return [
            (x509.BasicConstraints(ca=True, path_length=None), True),
            (
                x509.KeyUsage(
                    digital_signature=False,
                    content_commitment=False,
                    key_encipherment=False,
                    data_encipherment=False,
                    key_agreement=False,
                    key_cert_sign=True,
                    crl_sign=True,
                    encipher_only=False,
                    decipher_only=False,
                ),
                True,
            ),
        ]
    except (ValueError, TypeError) as e:
        raise ExtensionBuildFailed(f"unable to build CA extensions: {e}") from e


def _server_extensions(san: str):
    general_names = parse_san(san)
    try:
        return [
            (x509.BasicConstraints(ca=False, path_length=None), False),
            (
                x509.KeyUsage(
                    digital_signature=True,
                    content_commitment=False,
                    key_encipherment=True,
                    data_encipherment=True,
                    key_agreement=False,
                    key_cert_sign=False,
                    crl_sign=False,
                    encipher_only=False,
                    decipher_only=False,
                ),
                False,
            ),
            (x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), False),
            (x509.SubjectAlternativeName(general_names), False),
        ]
    except (ValueError, TypeError) as e:
        raise ExtensionBuildFailed(f"unable to build server certificate extensions: {e}") from e


def _add_extensions(builder, extensions):
    try:
        for ext, critical in extensions:
            builder = builder.add_extension(ext, critical=critical)
    except (ValueError, TypeError) as e:
        raise ExtensionBuildFailed(f"unable to add extension: {e}") from e
    return builder


def create_ca(
    product_name: str = DEFAULT_PRODUCT_NAME,
    valid_days: int = Lifetime.CA,
    key_size: int = KeySize.CA,
) -> CertPair:
    """Create a new self-signed root CA.

    Args:
        product_name: used as organization and as prefix of the common name
        valid_days: validity period starting now
        key_size: RSA key size in bits

    Returns: CertPair with the CA private key and certificate

    Raises:
        KeyGenerationFailed: the key could not be generated
        ExtensionBuildFailed: the CA extensions could not be built
        CASignFailed: the self-signature failed

    """
    log.info("Creating self signed CA certificate")
    pri_key, pub_key = generate_keys(key_size)

    now = datetime.now(timezone.utc)
    subject = x509_name(ca_common_name(product_name, int(time.time())), product_name)
    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(pub_key)
        .serial_number(random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + timedelta(days=valid_days))
    )
    builder = _add_extensions(builder, _ca_extensions())

    try:
        cert = builder.sign(pri_key, hashes.SHA256(), default_backend())
    except Exception as e:
        raise CASignFailed(f"error signing CA certificate: {e}") from e
    return CertPair(private_key=pri_key, certificate=cert)


def create_server_request(private_key, product_name: str = DEFAULT_PRODUCT_NAME) -> x509.CertificateSigningRequest:
    """Build a CSR for the server identity, signed with its own key."""
    subject = x509_name(server_common_name(product_name, int(time.time())), product_name)
    builder = x509.CertificateSigningRequestBuilder().subject_name(subject)
    try:
        return builder.sign(private_key, hashes.SHA256(), default_backend())
    except Exception as e:
        raise RequestSignFailed(f"error signing certificate request: {e}") from e


def sign_server_request(
    csr: x509.CertificateSigningRequest,
    ca: CertPair,
    san: str,
    valid_days: int = Lifetime.SERVER,
) -> x509.Certificate:
    """Have the CA sign a server CSR.

    Subject and public key are taken from the request as-is: requests are only
    ever generated locally, so they are not checked against a policy.

    Args:
        csr: the signing request
        ca: CA key and certificate
        san: subjectAltName value in "TYPE:value, ..." notation
        valid_days: validity period starting now

    Returns: the signed server certificate

    Raises:
        ExtensionBuildFailed: the extensions (typically the SAN) could not be built
        LeafSignFailed: the CA signature failed

    """
    now = datetime.now(timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(csr.subject)
        .issuer_name(ca.certificate.subject)
        .public_key(csr.public_key())
        .serial_number(random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + timedelta(days=valid_days))
    )
    builder = _add_extensions(builder, _server_extensions(san))

    try:
        return builder.sign(ca.private_key, hashes.SHA256(), default_backend())
    except Exception as e:
        raise LeafSignFailed(f"error signing server certificate: {e}") from e


def create_server(
    ca: CertPair,
    product_name: str = DEFAULT_PRODUCT_NAME,
    custom_san: str = "",
    valid_days: int = Lifetime.SERVER,
    key_size: int = KeySize.SERVER,
) -> CertPair:
    """Create a server key and a certificate for it signed by the given CA."""
    log.info("Creating server certificate")
    pri_key, _ = generate_keys(key_size)
    csr = create_server_request(pri_key, product_name)
    san = get_san(custom_san)
    log.info(f"Set server certificate san to: {san}")
    cert = sign_server_request(csr, ca, san, valid_days)
    return CertPair(private_key=pri_key, certificate=cert)
