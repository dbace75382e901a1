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

"""On-disk storage of key/certificate pairs.

Each identity is stored as two PEM files in the store directory:
``<name>.key`` (private key, owner read/write only) and ``<name>.pem``
(certificate). Files are replaced atomically through a temporary file in the
same directory, so a reader sees either the old or the new content of each file.
"""

import os
import tempfile
from typing import Optional

from cryptography.exceptions import UnsupportedAlgorithm

from localpki.pki.constants import CertFileExt
from localpki.pki.errors import ExpirationParseFailed, StoreReadFailed, StoreWriteFailed
from localpki.pki.issuer import CertPair
from localpki.pki.utils import is_key_pair_match, load_crt_bytes, load_private_key, serialize_cert, serialize_pri_key
from localpki.utils.log_utils import get_obj_logger

KEY_FILE_MODE = 0o600
CERT_FILE_MODE = 0o644

VALIDITY_FIELD = "validity"


class CertStore:
    def __init__(self, cert_dir: str):
        """Key and certificate files of all identities under one directory.

        Args:
            cert_dir: the directory holding the files; created on first write
        """
        self.cert_dir = cert_dir
        self.logger = get_obj_logger(self)

    def key_path(self, name: str) -> str:
        return os.path.join(self.cert_dir, f"{name}{CertFileExt.KEY}")

    def cert_path(self, name: str) -> str:
        return os.path.join(self.cert_dir, f"{name}{CertFileExt.CERT}")

    def exists(self, name: str) -> bool:
        return os.path.isfile(self.key_path(name)) and os.path.isfile(self.cert_path(name))

    def load(self, name: str) -> Optional[CertPair]:
        """Load the pair stored under name.

        Returns: the CertPair, or None if either file is missing, cannot be parsed,
            or the certificate does not belong to the private key

        Raises:
            ExpirationParseFailed: if the certificate validity dates cannot be parsed; the
                files are then kept as they are

        """
        try:
            return read_pair(self.key_path(name), self.cert_path(name))
        except StoreReadFailed as e:
            self.logger.info(f"No usable '{name}' key pair: {e}")
            return None

    def write(self, name: str, pair: CertPair):
        """Persist the pair under name, key first, then certificate.

        Raises:
            StoreWriteFailed: if a file could not be written; the file it was
                meant to replace is left untouched

        """
        try:
            os.makedirs(self.cert_dir, exist_ok=True)
        except OSError as e:
            raise StoreWriteFailed(f"cannot create directory {self.cert_dir}: {e}") from e

        self._write_atomic(self.key_path(name), serialize_pri_key(pair.private_key), KEY_FILE_MODE)
        self._write_atomic(self.cert_path(name), serialize_cert(pair.certificate), CERT_FILE_MODE)

    def _write_atomic(self, file_path: str, content: bytes, mode: int):
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=os.path.basename(file_path) + ".", dir=self.cert_dir)
        except OSError as e:
            raise StoreWriteFailed(f"cannot open temporary file for {file_path}: {e}") from e

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, mode)
            os.replace(tmp_path, file_path)
        except OSError as e:
            self._remove_quietly(tmp_path)
            raise StoreWriteFailed(f"cannot write {file_path}: {e}") from e
        self.logger.debug(f"wrote {file_path}")

    def _remove_quietly(self, file_path: str):
        try:
            os.remove(file_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.error(f"Error removing temporary file '{file_path}': {e}")

    def delete(self, name: str) -> bool:
        """Remove both files of the pair.

        Each file is removed independently; errors are logged and do not stop
        the removal of the other file.

        Returns: always True

        """
        for file_path in (self.cert_path(name), self.key_path(name)):
            try:
                os.remove(file_path)
                self.logger.info(f"Removed {file_path}")
            except FileNotFoundError:
                self.logger.warning(f"Error removing file '{file_path}': file does not exist")
            except OSError as e:
                self.logger.error(f"Error removing file '{file_path}': {e}")
        return True


def read_pair(key_file: str, cert_file: str) -> CertPair:
    """Load a private key and its certificate from PEM files.

    Raises:
        StoreReadFailed: if a file is missing or unparsable, or the certificate does not match the key
        ExpirationParseFailed: if the certificate validity dates cannot be parsed

    """
    try:
        with open(key_file, "rb") as f:
            pri_key = load_private_key(f.read())
    except (OSError, ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise StoreReadFailed(f"cannot load private key {key_file}: {e}") from e

    try:
        with open(cert_file, "rb") as f:
            cert = load_crt_bytes(f.read())
    except OSError as e:
        raise StoreReadFailed(f"cannot load certificate {cert_file}: {e}") from e
    except ValueError as e:
        # the validity dates are decoded while the certificate is loaded
        if VALIDITY_FIELD in str(e).lower():
            raise ExpirationParseFailed(f"cannot parse validity of certificate {cert_file}: {e}") from e
        raise StoreReadFailed(f"cannot load certificate {cert_file}: {e}") from e

    if not is_key_pair_match(cert, pri_key):
        raise StoreReadFailed(f"certificate {cert_file} does not match private key {key_file}")
    return CertPair(private_key=pri_key, certificate=cert)
