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

"""Private two-tier PKI for local HTTPS.

Components:
- issuer: CA and server certificate issuing
- san: subjectAltName construction and parsing
- store: atomic on-disk storage of key/certificate pairs
- lifecycle: load, create and rotate both pairs in a directory

Usage:
    from localpki.pki import create_certificates

    if create_certificates("/var/lib/localpki/ssl", custom_san="DNS:mympd.lan"):
        ...
"""

from localpki.pki.errors import (
    CASignFailed,
    CertificateError,
    ExpirationParseFailed,
    ExtensionBuildFailed,
    KeyGenerationFailed,
    LeafSignFailed,
    RequestSignFailed,
    StoreReadFailed,
    StoreWriteFailed,
)
from localpki.pki.issuer import CertPair, create_ca, create_server
from localpki.pki.lifecycle import CertLifecycle, LifecycleReport, cleanup_certificates, create_certificates
from localpki.pki.san import get_san, parse_san
from localpki.pki.store import CertStore

__all__ = [
    "CertPair",
    "CertLifecycle",
    "CertStore",
    "LifecycleReport",
    "create_ca",
    "create_server",
    "create_certificates",
    "cleanup_certificates",
    "get_san",
    "parse_san",
    "CertificateError",
    "KeyGenerationFailed",
    "RequestSignFailed",
    "ExtensionBuildFailed",
    "CASignFailed",
    "LeafSignFailed",
    "StoreReadFailed",
    "StoreWriteFailed",
    "ExpirationParseFailed",
]
