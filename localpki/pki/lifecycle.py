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

"""Lifecycle of the CA and server key pairs in a certificate directory.

For each identity the pair is loaded if present, otherwise created. A loaded
pair whose remaining lifetime falls outside the allowed window is deleted and
created again. Replacing the CA always replaces the server pair as well, since
a server certificate signed by a discarded CA can no longer be verified.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from localpki.pki.constants import (
    DEFAULT_PRODUCT_NAME,
    DEFINED_CERT_NAMES,
    READY_STATES,
    CertFileBasename,
    IdentityState,
    KeySize,
    Lifetime,
)
from localpki.pki.errors import CertificateError, ExpirationParseFailed
from localpki.pki.issuer import CertPair, create_ca, create_server
from localpki.pki.store import CertStore
from localpki.pki.utils import get_cert_cn, get_days_to_expiry, is_signed_by
from localpki.utils.log_utils import get_obj_logger

log = logging.getLogger(__name__)


@dataclass
class LifecycleReport:
    """Final state of both identities after a lifecycle run."""

    ca_state: str
    server_state: str

    @property
    def ok(self) -> bool:
        return self.ca_state in READY_STATES and self.server_state in READY_STATES


class CertLifecycle:
    def __init__(
        self,
        cert_dir: str,
        custom_san: str = "",
        product_name: str = DEFAULT_PRODUCT_NAME,
    ):
        """Ensures a valid CA and server key pair exist in cert_dir.

        Args:
            cert_dir: directory holding ca.key/ca.pem and server.key/server.pem
            custom_san: extra subjectAltName entries for the server certificate
            product_name: organization name and common name prefix of new certificates
        """
        self.store = CertStore(cert_dir)
        self.custom_san = custom_san or ""
        self.product_name = product_name
        self.logger = get_obj_logger(self)

    def create_certificates(self) -> LifecycleReport:
        ca, ca_state = self._ensure_ca()
        if ca_state not in READY_STATES:
            self.logger.error("No valid CA available, server certificate is not checked")
            return LifecycleReport(ca_state=ca_state, server_state=IdentityState.FAILED)

        force = ca_state == IdentityState.ROTATED
        server_state = self._ensure_server(ca, force_rotation=force)
        return LifecycleReport(ca_state=ca_state, server_state=server_state)

    def _ensure_ca(self) -> Tuple[Optional[CertPair], str]:
        name = CertFileBasename.CA
        try:
            ca = self.store.load(name)
            if ca is not None:
                self.logger.info(f"CA certificate '{get_cert_cn(ca.certificate)}' and private key found")
                renew = self._must_renew(ca, name, Lifetime.CA_MIN, Lifetime.CA)
        except ExpirationParseFailed as e:
            self._log_parse_failure(name, e)
            return None, IdentityState.FAILED

        if ca is None:
            return self._create(name, self._new_ca, IdentityState.CREATED)

        if not renew:
            return ca, IdentityState.VALID

        # the server certificate was signed by the old CA and goes with it
        self.store.delete(CertFileBasename.CA)
        self.store.delete(CertFileBasename.SERVER)
        return self._create(name, self._new_ca, IdentityState.ROTATED)

    def _ensure_server(self, ca: CertPair, force_rotation: bool = False) -> str:
        name = CertFileBasename.SERVER
        try:
            server = self.store.load(name)
        except ExpirationParseFailed as e:
            self._log_parse_failure(name, e)
            return IdentityState.FAILED

        if server is None:
            new_state = IdentityState.ROTATED if force_rotation else IdentityState.CREATED
            return self._create(name, lambda: self._new_server(ca), new_state)[1]

        self.logger.info(f"Server certificate '{get_cert_cn(server.certificate)}' and private key found")
        if force_rotation:
            renew = True
        elif not is_signed_by(server.certificate, ca.certificate):
            self.logger.warning(f"Certificate {self.store.cert_path(name)} is not signed by the current CA")
            renew = True
        else:
            try:
                renew = self._must_renew(server, name, Lifetime.SERVER_MIN, Lifetime.SERVER)
            except ExpirationParseFailed as e:
                self._log_parse_failure(name, e)
                return IdentityState.FAILED

        if not renew:
            return IdentityState.VALID

        self.store.delete(name)
        return self._create(name, lambda: self._new_server(ca), IdentityState.ROTATED)[1]

    def _must_renew(self, pair: CertPair, name: str, min_days: int, max_days: int) -> bool:
        cert_file = self.store.cert_path(name)
        days = get_days_to_expiry(pair.certificate)
        self.logger.debug(f"Certificate {cert_file} expires in {days} days")
        if days > max_days or days < min_days:
            self.logger.warning(f"Certificate {cert_file} must be renewed, expires in {days} days")
            return True
        return False

    def _log_parse_failure(self, name: str, e: ExpirationParseFailed):
        # fail closed: the files stay in place and nothing is rotated
        self.logger.error(f"Can not parse date from certificate file {self.store.cert_path(name)}: {e}")

    def _create(self, name: str, issue, new_state: str) -> Tuple[Optional[CertPair], str]:
        try:
            pair = issue()
            self.store.write(name, pair)
        except CertificateError as e:
            self.logger.error(f"Unable to create '{name}' certificate: {e}")
            return None, IdentityState.FAILED
        return pair, new_state

    def _new_ca(self) -> CertPair:
        return create_ca(self.product_name, valid_days=Lifetime.CA, key_size=KeySize.CA)

    def _new_server(self, ca: CertPair) -> CertPair:
        return create_server(
            ca,
            product_name=self.product_name,
            custom_san=self.custom_san,
            valid_days=Lifetime.SERVER,
            key_size=KeySize.SERVER,
        )


def create_certificates(cert_dir: str, custom_san: str = "", product_name: str = DEFAULT_PRODUCT_NAME) -> bool:
    """Make sure cert_dir holds a valid CA and server pair.

    Returns: True if both pairs are present and valid afterwards

    """
    return CertLifecycle(cert_dir, custom_san, product_name).create_certificates().ok


def cleanup_certificates(cert_dir: str, name: str) -> bool:
    """Delete the key and certificate files stored under name ("ca" or "server").

    Returns: False if name is not one of the managed identities, True otherwise

    """
    if name not in DEFINED_CERT_NAMES:
        log.error(f"Unknown certificate name '{name}', expected one of {DEFINED_CERT_NAMES}")
        return False
    return CertStore(cert_dir).delete(name)
