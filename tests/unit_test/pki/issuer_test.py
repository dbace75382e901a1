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

import ipaddress
import re
from datetime import timedelta
from unittest.mock import patch

import pytest
from cryptography import x509
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from localpki.pki.errors import (
    CASignFailed,
    ExtensionBuildFailed,
    KeyGenerationFailed,
    LeafSignFailed,
    RequestSignFailed,
)
from localpki.pki.issuer import create_ca, create_server, create_server_request, sign_server_request
from localpki.pki.utils import generate_keys, is_key_pair_match, verify_cert

PRODUCT = "TestProduct"


@pytest.fixture(scope="module")
def ca():
    return create_ca(PRODUCT, key_size=2048)


def _subject_attr(cert, oid):
    return cert.subject.get_attributes_for_oid(oid)[0].value


class TestCreateCA:
    def test_self_signed(self, ca):
        cert = ca.certificate
        assert cert.subject == cert.issuer
        verify_cert(cert, cert.public_key())
        assert is_key_pair_match(cert, ca.private_key)

    def test_subject(self, ca):
        cert = ca.certificate
        assert re.fullmatch(rf"{PRODUCT} CA \d+", _subject_attr(cert, NameOID.COMMON_NAME))
        assert _subject_attr(cert, NameOID.ORGANIZATION_NAME) == PRODUCT
        assert _subject_attr(cert, NameOID.COUNTRY_NAME) == "DE"

    def test_extensions(self, ca):
        basic_constraints = ca.certificate.extensions.get_extension_for_class(x509.BasicConstraints)
        assert basic_constraints.critical
        assert basic_constraints.value.ca

        key_usage = ca.certificate.extensions.get_extension_for_class(x509.KeyUsage)
        assert key_usage.critical
        assert key_usage.value.key_cert_sign
        assert key_usage.value.crl_sign
        assert not key_usage.value.digital_signature

    def test_validity(self, ca):
        cert = ca.certificate
        assert cert.not_valid_after_utc - cert.not_valid_before_utc == timedelta(days=3650)

    def test_custom_validity(self):
        cert = create_ca(PRODUCT, valid_days=400, key_size=2048).certificate
        assert cert.not_valid_after_utc - cert.not_valid_before_utc == timedelta(days=400)

    def test_key_generation_failure(self):
        with patch("localpki.pki.issuer.generate_keys", side_effect=KeyGenerationFailed("no entropy")):
            with pytest.raises(KeyGenerationFailed):
                create_ca(PRODUCT, key_size=2048)

    def test_sign_failure(self):
        with patch("cryptography.x509.CertificateBuilder.sign", side_effect=ValueError("sign failed")):
            with pytest.raises(CASignFailed):
                create_ca(PRODUCT, key_size=2048)


class TestCreateServer:
    def test_signed_by_ca(self, ca):
        server = create_server(ca, PRODUCT, key_size=2048)
        cert = server.certificate
        assert cert.issuer == ca.certificate.subject
        verify_cert(cert, ca.certificate.public_key())
        assert is_key_pair_match(cert, server.private_key)

    def test_subject(self, ca):
        cert = create_server(ca, PRODUCT, key_size=2048).certificate
        assert re.fullmatch(rf"{PRODUCT} Server Certificate \d+", _subject_attr(cert, NameOID.COMMON_NAME))
        assert _subject_attr(cert, NameOID.ORGANIZATION_NAME) == PRODUCT

    def test_extensions(self, ca):
        cert = create_server(ca, PRODUCT, custom_san="DNS:mympd.lan, IP:10.0.0.5", key_size=2048).certificate

        assert not cert.extensions.get_extension_for_class(x509.BasicConstraints).value.ca

        key_usage = cert.extensions.get_extension_for_class(x509.KeyUsage).value
        assert key_usage.digital_signature
        assert key_usage.key_encipherment
        assert key_usage.data_encipherment
        assert not key_usage.key_cert_sign

        eku = cert.extensions.get_extension_for_class(x509.ExtendedKeyUsage).value
        assert list(eku) == [ExtendedKeyUsageOID.SERVER_AUTH]

        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
        assert "localhost" in san.get_values_for_type(x509.DNSName)
        assert "mympd.lan" in san.get_values_for_type(x509.DNSName)
        addresses = san.get_values_for_type(x509.IPAddress)
        assert ipaddress.ip_address("127.0.0.1") in addresses
        assert ipaddress.ip_address("::1") in addresses
        assert ipaddress.ip_address("10.0.0.5") in addresses

    def test_validity(self, ca):
        cert = create_server(ca, PRODUCT, valid_days=90, key_size=2048).certificate
        assert cert.not_valid_after_utc - cert.not_valid_before_utc == timedelta(days=90)

    def test_serials_differ(self, ca):
        first = create_server(ca, PRODUCT, key_size=2048).certificate
        second = create_server(ca, PRODUCT, key_size=2048).certificate
        assert first.serial_number != second.serial_number
        assert first.serial_number != ca.certificate.serial_number

    def test_invalid_custom_san(self, ca):
        with pytest.raises(ExtensionBuildFailed):
            create_server(ca, PRODUCT, custom_san="IP:not-an-address", key_size=2048)

    def test_request_sign_failure(self, ca):
        with patch("cryptography.x509.CertificateSigningRequestBuilder.sign", side_effect=ValueError("sign failed")):
            with pytest.raises(RequestSignFailed):
                create_server(ca, PRODUCT, key_size=2048)

    def test_leaf_sign_failure(self, ca):
        with patch("cryptography.x509.CertificateBuilder.sign", side_effect=ValueError("sign failed")):
            with pytest.raises(LeafSignFailed):
                create_server(ca, PRODUCT, key_size=2048)


class TestServerRequest:
    def test_request_signed_with_own_key(self):
        pri_key, _ = generate_keys(2048)
        csr = create_server_request(pri_key, PRODUCT)
        assert csr.is_signature_valid
        assert csr.public_key().public_numbers() == pri_key.public_key().public_numbers()

    def test_sign_request_copies_subject(self, ca):
        pri_key, _ = generate_keys(2048)
        csr = create_server_request(pri_key, PRODUCT)
        cert = sign_server_request(csr, ca, "DNS:localhost")
        assert cert.subject == csr.subject
        assert cert.public_key().public_numbers() == pri_key.public_key().public_numbers()
