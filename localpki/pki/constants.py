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


class CertFileBasename:
    CA = "ca"
    SERVER = "server"


DEFINED_CERT_NAMES = [
    CertFileBasename.CA,
    CertFileBasename.SERVER,
]


class CertFileExt:
    KEY = ".key"
    CERT = ".pem"


class KeySize:
    CA = 4096
    SERVER = 2048


RSA_PUBLIC_EXPONENT = 65537


class Lifetime:
    # days
    CA = 3650
    CA_MIN = 365
    SERVER = 365
    SERVER_MIN = 30


SERIAL_NUMBER_BYTES = 20

DEFAULT_PRODUCT_NAME = "myMPD"
DEFAULT_COUNTRY = "DE"

DEFAULT_SAN = "DNS:localhost, IP:127.0.0.1, IP:::1"
SAN_SEPARATOR = ", "


class SanType:
    DNS = "DNS"
    IP = "IP"
    EMAIL = "email"
    URI = "URI"


class IdentityState:
    VALID = "valid"
    CREATED = "created"
    ROTATED = "rotated"
    FAILED = "failed"


READY_STATES = [IdentityState.VALID, IdentityState.CREATED, IdentityState.ROTATED]
