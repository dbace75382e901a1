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

"""Subject alternative names for the server certificate.

The SAN value is kept in the OpenSSL configuration notation
(``DNS:localhost, IP:127.0.0.1, ...``) so operators can pass extra names in
the same form through the config file or the command line. ``get_san`` builds
that string from the local host identity; ``parse_san`` turns it into the
general names expected by the x509 builder.
"""

import ipaddress
import logging
import socket
from typing import List

from cryptography import x509

from localpki.pki.constants import DEFAULT_SAN, SAN_SEPARATOR, SanType
from localpki.pki.errors import ExtensionBuildFailed

log = logging.getLogger(__name__)


def _default_entries() -> List[str]:
    return DEFAULT_SAN.split(SAN_SEPARATOR)


def _format_address(sockaddr) -> str:
    # IPv6 link-local addresses come back with a "%scope" suffix
    return sockaddr[0].split("%", 1)[0]


def get_san(custom_san: str = "") -> str:
    """Build the SAN string for the server certificate.

    The list always starts with localhost and both loopback addresses, followed
    by the short hostname, the canonical name (if different) and every address
    the hostname resolves to. Entries already present are skipped. A non-empty
    custom_san is appended verbatim.

    Name resolution problems are not fatal; whatever has been collected so far
    is returned.

    Args:
        custom_san: operator supplied SAN entries, e.g. "DNS:mympd.lan, IP:10.0.0.5"

    Returns: the SAN string

    """
    entries = _default_entries()
    try:
        _add_host_entries(entries)
    except (OSError, UnicodeError) as e:
        log.warning(f"unable to resolve local host names for SAN: {e}")

    san = SAN_SEPARATOR.join(entries)
    if custom_san:
        san = f"{san}{SAN_SEPARATOR}{custom_san}"
    return san


def _add_host_entries(entries: List[str]):
    hostname = socket.gethostname()
    if not hostname:
        return
    _append_unique(entries, f"{SanType.DNS}:{hostname}")

    addr_infos = socket.getaddrinfo(hostname, None, family=socket.AF_UNSPEC, flags=socket.AI_CANONNAME)
    if not addr_infos:
        return

    # only the first entry carries the canonical name
    canon_name = addr_infos[0][3]
    if canon_name and canon_name != hostname:
        _append_unique(entries, f"{SanType.DNS}:{canon_name}")

    for family, _, _, _, sockaddr in addr_infos:
        if family not in (socket.AF_INET, socket.AF_INET6):
            continue
        _append_unique(entries, f"{SanType.IP}:{_format_address(sockaddr)}")


def _append_unique(entries: List[str], entry: str):
    if entry not in entries:
        entries.append(entry)


def parse_san(san: str) -> List[x509.GeneralName]:
    """Convert a SAN string into x509 general names.

    Args:
        san: comma separated "TYPE:value" entries; TYPE is DNS, IP, email or URI

    Returns: list of general names, in the order given

    Raises:
        ExtensionBuildFailed: if an entry is malformed or of an unsupported type

    """
    names = []
    for item in san.split(","):
        item = item.strip()
        if not item:
            continue
        san_type, sep, value = item.partition(":")
        value = value.strip()
        if not sep or not value:
            raise ExtensionBuildFailed(f"malformed subjectAltName entry '{item}'")
        names.append(_to_general_name(san_type.strip(), value, item))
    if not names:
        raise ExtensionBuildFailed("subjectAltName is empty")
    return names


def _to_general_name(san_type: str, value: str, item: str) -> x509.GeneralName:
    kind = san_type.upper()
    try:
        if kind == SanType.DNS:
            return x509.DNSName(value)
        if kind == SanType.IP:
            return x509.IPAddress(ipaddress.ip_address(value))
        if kind == SanType.EMAIL.upper():
            return x509.RFC822Name(value)
        if kind == SanType.URI:
            return x509.UniformResourceIdentifier(value)
    except ValueError as e:
        raise ExtensionBuildFailed(f"invalid subjectAltName entry '{item}': {e}") from e
    raise ExtensionBuildFailed(f"unsupported subjectAltName type '{san_type}' in '{item}'")
