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

import os
from datetime import datetime, timezone

from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.x509.oid import NameOID

from localpki.pki.constants import DEFAULT_COUNTRY, RSA_PUBLIC_EXPONENT, SERIAL_NUMBER_BYTES, KeySize
from localpki.pki.errors import ExpirationParseFailed, KeyGenerationFailed


def generate_keys(key_size: int = KeySize.SERVER):
    try:
        pri_key = rsa.generate_private_key(
            public_exponent=RSA_PUBLIC_EXPONENT, key_size=key_size, backend=default_backend()
        )
    except Exception as e:
        raise KeyGenerationFailed(f"unable to generate {key_size}-bit RSA key: {e}") from e
    pub_key = pri_key.public_key()
    return pri_key, pub_key


def random_serial_number() -> int:
    """Generate a positive serial number from 20 random bytes.

    The top bit of the first byte is cleared so the DER INTEGER is positive and
    never needs a leading zero byte, which keeps the encoded serial at 20 bytes
    or less.
    """
    while True:
        serial_bytes = bytearray(os.urandom(SERIAL_NUMBER_BYTES))
        serial_bytes[0] &= 0x7F
        serial = int.from_bytes(bytes(serial_bytes), "big")
        if serial > 0:
            return serial


def x509_name(cn_name, org_name=None, country=DEFAULT_COUNTRY):
    name = []
    if country:
        name.append(x509.NameAttribute(NameOID.COUNTRY_NAME, country))
    if org_name:
        name.append(x509.NameAttribute(NameOID.ORGANIZATION_NAME, org_name))
    name.append(x509.NameAttribute(NameOID.COMMON_NAME, cn_name))
    return x509.Name(name)


def serialize_pri_key(pri_key):
    return pri_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )


def serialize_cert(cert):
    return cert.public_bytes(serialization.Encoding.PEM)


def load_crt(path):
    with open(path, "rb") as f:
        return load_crt_bytes(f.read())


def load_crt_bytes(data: bytes):
    return x509.load_pem_x509_certificate(data, default_backend())


def load_private_key(data: bytes):
    return serialization.load_pem_private_key(data, password=None, backend=default_backend())


def verify_cert(cert_to_be_verified, root_ca_public_key):
    root_ca_public_key.verify(
        cert_to_be_verified.signature,
        cert_to_be_verified.tbs_certificate_bytes,
        padding.PKCS1v15(),
        cert_to_be_verified.signature_hash_algorithm,
    )


def is_signed_by(cert, ca_cert) -> bool:
    if cert.issuer != ca_cert.subject:
        return False
    try:
        verify_cert(cert, ca_cert.public_key())
    except (InvalidSignature, TypeError, ValueError):
        # a non-RSA CA key cannot have produced a PKCS#1 v1.5 signature
        return False
    return True


def is_key_pair_match(cert, pri_key) -> bool:
    # compare the SubjectPublicKeyInfo encodings of both halves
    pub_format = serialization.PublicFormat.SubjectPublicKeyInfo
    cert_pub_bytes = cert.public_key().public_bytes(encoding=serialization.Encoding.PEM, format=pub_format)
    key_pub_bytes = pri_key.public_key().public_bytes(encoding=serialization.Encoding.PEM, format=pub_format)
    return cert_pub_bytes == key_pub_bytes


def get_cert_cn(cert) -> str:
    for attr in cert.subject:
        if attr.oid == NameOID.COMMON_NAME:
            return attr.value
    return "unknown"


def get_not_after(cert) -> datetime:
    try:
        return cert.not_valid_after_utc
    except Exception as e:
        raise ExpirationParseFailed(f"cannot parse notAfter: {e}") from e


def get_days_to_expiry(cert, now: datetime = None) -> int:
    """Whole days from now until the certificate's notAfter.

    Args:
        cert: the certificate to inspect
        now: reference time, defaults to the current UTC time

    Returns: number of days, negative once the certificate has expired

    Raises:
        ExpirationParseFailed: if the notAfter field cannot be read

    """
    if now is None:
        now = datetime.now(timezone.utc)
    return (get_not_after(cert) - now).days


def get_san_entries(cert) -> list:
    try:
        ext = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
    except x509.ExtensionNotFound:
        return []
    entries = []
    for name in ext.value:
        if isinstance(name, x509.DNSName):
            entries.append(f"DNS:{name.value}")
        elif isinstance(name, x509.IPAddress):
            entries.append(f"IP:{name.value}")
        elif isinstance(name, x509.RFC822Name):
            entries.append(f"email:{name.value}")
        elif isinstance(name, x509.UniformResourceIdentifier):
            entries.append(f"URI:{name.value}")
    return entries


def is_ca_cert(cert) -> bool:
    try:
        basic_constraints = cert.extensions.get_extension_for_class(x509.BasicConstraints)
    except x509.ExtensionNotFound:
        return False
    return basic_constraints.value.ca


def describe_cert(cert) -> dict:
    return {
        "subject": cert.subject.rfc4514_string(),
        "issuer": cert.issuer.rfc4514_string(),
        "serial": format(cert.serial_number, "x"),
        "not_before": cert.not_valid_before_utc.isoformat(),
        "not_after": get_not_after(cert).isoformat(),
        "days_left": get_days_to_expiry(cert),
        "is_ca": is_ca_cert(cert),
        "san": get_san_entries(cert),
    }
