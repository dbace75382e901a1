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

"""CLI for the managed certificate directory.

This module provides the `localpki cert` command:
- create: make sure a valid CA and server certificate exist, rotating them if needed
- cleanup: remove the key and certificate of one identity
- show: print the details of both certificates

Examples:
  localpki cert create -d /var/lib/localpki/ssl --san "DNS:mympd.lan"
  localpki cert cleanup -n server
  localpki cert show
"""

import json

from localpki.config import load_config
from localpki.pki.constants import DEFINED_CERT_NAMES, CertFileBasename
from localpki.pki.errors import CertificateError
from localpki.pki.lifecycle import cleanup_certificates, create_certificates
from localpki.pki.store import CertStore
from localpki.pki.utils import describe_cert

CMD_CREATE = "create"
CMD_CLEANUP = "cleanup"
CMD_SHOW = "show"


def define_cert_parser(parser):
    """Define CLI arguments for the cert command."""
    subparsers = parser.add_subparsers(dest="cert_cmd", help="Certificate commands")

    # localpki cert create
    create_parser = subparsers.add_parser(CMD_CREATE, help="Create or rotate the CA and server certificate")
    _add_dir_arg(create_parser)
    create_parser.add_argument(
        "--san",
        type=str,
        default=None,
        help='Additional subjectAltName entries, e.g. "DNS:mympd.lan, IP:192.168.1.10"',
    )
    create_parser.add_argument(
        "--product", type=str, default=None, help="Product name used in the certificate subjects"
    )

    # localpki cert cleanup
    cleanup_parser = subparsers.add_parser(CMD_CLEANUP, help="Remove the key and certificate of an identity")
    cleanup_parser.add_argument(
        "-n", "--name", type=str, required=True, choices=DEFINED_CERT_NAMES, help="Identity to remove"
    )
    _add_dir_arg(cleanup_parser)

    # localpki cert show
    show_parser = subparsers.add_parser(CMD_SHOW, help="Show the CA and server certificate")
    _add_dir_arg(show_parser)


def _add_dir_arg(parser):
    parser.add_argument(
        "-d", "--ssl_dir", type=str, default=None, help="Certificate directory (default: ssl_dir from config)"
    )


def handle_cert(args):
    """Handle the cert command."""
    if not hasattr(args, "cert_cmd") or args.cert_cmd is None:
        print(f"Error: Please specify a subcommand: {CMD_CREATE}, {CMD_CLEANUP} or {CMD_SHOW}")
        print(f"Usage: localpki cert {{{CMD_CREATE}|{CMD_CLEANUP}|{CMD_SHOW}}} [options]")
        return 1

    config = load_config(getattr(args, "config", None), ssl_dir=args.ssl_dir)

    if args.cert_cmd == CMD_CREATE:
        return _handle_create(args, config)
    elif args.cert_cmd == CMD_CLEANUP:
        return _handle_cleanup(args, config)
    elif args.cert_cmd == CMD_SHOW:
        return _handle_show(config)
    else:
        print(f"Error: Unknown subcommand: {args.cert_cmd}")
        return 1


def _handle_create(args, config):
    ssl_dir = config["ssl_dir"]
    custom_san = args.san if args.san is not None else config["ssl_san"]
    product_name = args.product or config["product_name"]

    if not create_certificates(ssl_dir, custom_san or "", product_name):
        print(f"Error: Unable to create certificates in: {ssl_dir}")
        return 1

    print(f"Certificates are ready in: {ssl_dir}")
    print(f"  - {CertFileBasename.CA}.pem: CA certificate (import into browsers to trust the server)")
    print(f"  - {CertFileBasename.SERVER}.pem: Server certificate")
    return 0


def _handle_cleanup(args, config):
    ssl_dir = config["ssl_dir"]
    if not cleanup_certificates(ssl_dir, args.name):
        print(f"Error: Unable to remove '{args.name}' certificate from: {ssl_dir}")
        return 1
    print(f"Removed '{args.name}' certificate and key from: {ssl_dir}")
    return 0


def _handle_show(config):
    store = CertStore(config["ssl_dir"])
    result = 0
    for name in DEFINED_CERT_NAMES:
        try:
            pair = store.load(name)
            if pair is None:
                print(f"{name}: no valid certificate and key in {config['ssl_dir']}")
                result = 1
                continue
            details = describe_cert(pair.certificate)
        except CertificateError as e:
            print(f"{name}: {e}")
            result = 1
            continue
        print(f"{name}: {store.cert_path(name)}")
        print(json.dumps(details, indent=2))
    return result
