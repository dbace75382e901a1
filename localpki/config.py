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

"""Configuration of the certificate directory and TLS switches.

Values are resolved in this order, later sources winning:

1. built-in defaults
2. the YAML config file (path argument or LOCALPKI_CONFIG)
3. LOCALPKI_* environment variables, e.g. LOCALPKI_SSL_DIR
4. keyword overrides passed to load_config

Example config file:

    ssl: true
    ssl_dir: /var/lib/localpki/ssl
    ssl_san: "DNS:mympd.lan, IP:192.168.1.10"
    product_name: myMPD
    log:
      mode: concise
"""

import copy
import os
from typing import Any, Dict, Optional

import yaml

from localpki.pki.constants import DEFAULT_PRODUCT_NAME, CertFileBasename, CertFileExt
from localpki.utils.log_utils import LogMode

ENV_PREFIX = "LOCALPKI_"
ENV_CONFIG_PATH = "LOCALPKI_CONFIG"

DEFAULT_SSL_DIR = "/var/lib/localpki/ssl"

DEFAULT_CONFIG: Dict[str, Any] = {
    "ssl": True,
    "ssl_dir": DEFAULT_SSL_DIR,
    # extra subjectAltName entries, e.g. "DNS:mympd.lan, IP:10.0.0.5"
    "ssl_san": "",
    "product_name": DEFAULT_PRODUCT_NAME,
    # use operator provided ssl_cert/ssl_key instead of the managed pair
    "custom_cert": False,
    # derived from ssl_dir if not set
    "ssl_cert": None,
    "ssl_key": None,
    "ca_cert": None,
    "log": {
        "mode": LogMode.CONCISE,
    },
}

_BOOL_KEYS = ("ssl", "custom_cert")
_STR_KEYS = ("ssl_dir", "ssl_san", "product_name", "ssl_cert", "ssl_key", "ca_cert")


class ConfigError(Exception):
    pass


def load_config(config_path: Optional[str] = None, **overrides) -> Dict[str, Any]:
    """Load configuration from defaults, file, environment and overrides.

    Args:
        config_path: YAML config file; defaults to $LOCALPKI_CONFIG. A missing file is ignored.
        **overrides: top level keys that take precedence over everything else

    Returns: the resolved config dict

    Raises:
        ConfigError: if the file is not valid YAML, its top level is not a mapping,
            or a boolean environment variable has an unrecognized value

    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    config_path = config_path or os.environ.get(ENV_CONFIG_PATH)
    if config_path and os.path.exists(config_path):
        _merge_config(config, _read_config_file(config_path))

    _merge_config(config, _env_config())

    for key, value in overrides.items():
        if value is not None:
            config[key] = value

    ssl_dir = config["ssl_dir"]
    if not config.get("ssl_cert"):
        config["ssl_cert"] = os.path.join(ssl_dir, f"{CertFileBasename.SERVER}{CertFileExt.CERT}")
    if not config.get("ssl_key"):
        config["ssl_key"] = os.path.join(ssl_dir, f"{CertFileBasename.SERVER}{CertFileExt.KEY}")
    if not config.get("ca_cert"):
        config["ca_cert"] = os.path.join(ssl_dir, f"{CertFileBasename.CA}{CertFileExt.CERT}")
    return config


def _read_config_file(config_path: str) -> Dict[str, Any]:
    try:
        with open(config_path, "r") as f:
            file_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in config file {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"cannot read config file {config_path}: {e}") from e

    if file_config is None:
        return {}
    if not isinstance(file_config, dict):
        raise ConfigError(f"config file {config_path} must contain a mapping, got {type(file_config).__name__}")
    return file_config


def _env_config() -> Dict[str, Any]:
    env_config = {}
    for key in _STR_KEYS:
        value = os.environ.get(f"{ENV_PREFIX}{key.upper()}")
        if value is not None:
            env_config[key] = value
    for key in _BOOL_KEYS:
        value = os.environ.get(f"{ENV_PREFIX}{key.upper()}")
        if value is not None:
            env_config[key] = _to_bool(f"{ENV_PREFIX}{key.upper()}", value)
    log_mode = os.environ.get(f"{ENV_PREFIX}LOG_MODE")
    if log_mode:
        env_config["log"] = {"mode": log_mode}
    return env_config


def _to_bool(name: str, value: str) -> bool:
    v = value.strip().lower()
    if v in ("1", "true", "yes", "on"):
        return True
    if v in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"invalid boolean value '{value}' for {name}")


def _merge_config(base: dict, override: dict):
    """Recursively merge override into base config."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _merge_config(base[key], value)
        else:
            base[key] = value
