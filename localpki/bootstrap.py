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

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from localpki.pki.constants import CertFileBasename
from localpki.pki.errors import CertificateError
from localpki.pki.lifecycle import create_certificates
from localpki.pki.store import CertStore, read_pair

log = logging.getLogger(__name__)


@dataclass
class TLSMaterial:
    """Files an HTTPS listener needs.

    ca_file is None for operator provided certificates, since their issuer is unknown.
    """

    cert_file: str
    key_file: str
    ca_file: Optional[str] = None


def prepare_tls(config: Dict[str, Any]) -> Optional[TLSMaterial]:
    """Make the TLS key material described by config available.

    Args:
        config: resolved config, see localpki.config.load_config

    Returns: the files to serve TLS with, or None if TLS is disabled or no usable
        certificate is available. TLS must not be enabled on None.

    """
    if not config.get("ssl"):
        log.info("TLS is disabled")
        return None

    if config.get("custom_cert"):
        cert_file = config["ssl_cert"]
        key_file = config["ssl_key"]
        log.info(f"Using custom certificate {cert_file}")
        try:
            read_pair(key_file, cert_file)
        except CertificateError as e:
            log.error(f"Custom certificate is not usable: {e}")
            return None
        return TLSMaterial(cert_file=cert_file, key_file=key_file)

    ssl_dir = config["ssl_dir"]
    if not create_certificates(ssl_dir, config.get("ssl_san") or "", config["product_name"]):
        log.error("Certificate creation failed, TLS can not be enabled")
        return None

    store = CertStore(ssl_dir)
    return TLSMaterial(
        cert_file=store.cert_path(CertFileBasename.SERVER),
        key_file=store.key_path(CertFileBasename.SERVER),
        ca_file=store.cert_path(CertFileBasename.CA),
    )
