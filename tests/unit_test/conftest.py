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

import base64
import socket
import textwrap

import pytest
from cryptography.hazmat.primitives import serialization

from localpki.pki.constants import KeySize
from localpki.pki.utils import load_crt

TEST_HOSTNAME = "pkitest"


@pytest.fixture(autouse=True)
def small_keys(monkeypatch):
    # 4096-bit CA keys make every lifecycle test take seconds
    monkeypatch.setattr(KeySize, "CA", 2048)
    monkeypatch.setattr(KeySize, "SERVER", 2048)


@pytest.fixture(autouse=True)
def no_name_resolution(monkeypatch):
    def _getaddrinfo(*args, **kwargs):
        raise socket.gaierror(socket.EAI_NONAME, "name resolution disabled in tests")

    monkeypatch.setattr(socket, "gethostname", lambda: TEST_HOSTNAME)
    monkeypatch.setattr(socket, "getaddrinfo", _getaddrinfo)


@pytest.fixture
def break_not_after():
    """Rewrite a PEM certificate file so its notAfter holds an impossible date."""

    def _break(cert_file):
        cert = load_crt(cert_file)
        der = cert.public_bytes(serialization.Encoding.DER)
        # dates before 2050 are DER UTCTime: YYMMDDHHMMSSZ
        not_after = cert.not_valid_after_utc.strftime("%y%m%d%H%M%S").encode() + b"Z"
        assert der.count(not_after) == 1
        der = der.replace(not_after, b"991399999999Z")
        body = "\n".join(textwrap.wrap(base64.b64encode(der).decode(), 64))
        with open(cert_file, "w") as f:
            f.write(f"-----BEGIN CERTIFICATE-----\n{body}\n-----END CERTIFICATE-----\n")

    return _break
