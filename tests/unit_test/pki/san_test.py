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
import socket
from unittest.mock import patch

import pytest
from cryptography import x509

from localpki.pki.constants import DEFAULT_SAN
from localpki.pki.errors import ExtensionBuildFailed
from localpki.pki.san import get_san, parse_san

ADDR_INFOS = [
    (socket.AF_INET, socket.SOCK_STREAM, 6, "pkitest.example.lan", ("192.168.1.10", 0)),
    (socket.AF_INET, socket.SOCK_DGRAM, 17, "", ("192.168.1.10", 0)),
    (socket.AF_INET, socket.SOCK_STREAM, 6, "", ("127.0.0.1", 0)),
    (socket.AF_INET6, socket.SOCK_STREAM, 6, "", ("fe80::1%eth0", 0, 0, 2)),
    (socket.AF_INET6, socket.SOCK_STREAM, 6, "", ("::1", 0, 0, 0)),
]


class TestGetSan:
    def test_starts_with_loopback_entries(self):
        san = get_san()
        assert san.startswith(DEFAULT_SAN)
        assert san.startswith("DNS:localhost, IP:127.0.0.1, IP:::1")

    def test_hostname_added_when_resolution_fails(self):
        assert get_san() == "DNS:localhost, IP:127.0.0.1, IP:::1, DNS:pkitest"

    def test_custom_san_appended(self):
        san = get_san("DNS:mympd.lan, IP:10.0.0.5")
        assert san.endswith(", DNS:mympd.lan, IP:10.0.0.5")

    def test_resolved_names_and_addresses(self):
        with patch("socket.getaddrinfo", return_value=ADDR_INFOS):
            san = get_san()
        assert san == (
            "DNS:localhost, IP:127.0.0.1, IP:::1, DNS:pkitest, DNS:pkitest.example.lan, IP:192.168.1.10, IP:fe80::1"
        )

    def test_no_duplicate_entries(self):
        with patch("socket.getaddrinfo", return_value=ADDR_INFOS):
            entries = get_san().split(", ")
        assert len(entries) == len(set(entries))

    def test_hostname_localhost_not_repeated(self):
        with patch("socket.gethostname", return_value="localhost"):
            assert get_san() == DEFAULT_SAN

    def test_empty_hostname(self):
        with patch("socket.gethostname", return_value=""):
            assert get_san() == DEFAULT_SAN

    def test_hostname_error_is_not_fatal(self):
        with patch("socket.gethostname", side_effect=OSError("no hostname")):
            assert get_san("DNS:extra") == f"{DEFAULT_SAN}, DNS:extra"


class TestParseSan:
    def test_default_san(self):
        names = parse_san(DEFAULT_SAN)
        assert names == [
            x509.DNSName("localhost"),
            x509.IPAddress(ipaddress.ip_address("127.0.0.1")),
            x509.IPAddress(ipaddress.ip_address("::1")),
        ]

    def test_all_types(self):
        names = parse_san("dns:a.lan, ip:10.0.0.1, email:admin@a.lan, URI:https://a.lan/")
        assert names == [
            x509.DNSName("a.lan"),
            x509.IPAddress(ipaddress.ip_address("10.0.0.1")),
            x509.RFC822Name("admin@a.lan"),
            x509.UniformResourceIdentifier("https://a.lan/"),
        ]

    def test_ignores_empty_items(self):
        assert parse_san("DNS:a.lan,, ") == [x509.DNSName("a.lan")]

    @pytest.mark.parametrize(
        "san",
        [
            "",
            "DNS",
            "DNS:",
            "IP:not-an-address",
            "RID:1.2.3.4",
            "DNS:localhost, IP:300.1.1.1",
        ],
    )
    def test_invalid(self, san):
        with pytest.raises(ExtensionBuildFailed):
            parse_san(san)
