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

import json
import logging

import pytest

from localpki.pki.store import CertStore
from localpki.utils.log_utils import (
    ANSIColor,
    ColorFormatter,
    LoggerNameFilter,
    LogMode,
    configure_logging,
    get_obj_logger,
    logmode_config_dict,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    level = root.level
    handlers = list(root.handlers)
    yield
    root.setLevel(level)
    root.handlers = handlers


def _record(name, level=logging.INFO, msg="message"):
    return logging.LogRecord(name, level, __file__, 1, msg, None, None)


class TestConfigureLogging:
    @pytest.mark.parametrize("mode", [LogMode.CONCISE, LogMode.FULL, LogMode.VERBOSE])
    def test_modes(self, mode):
        configure_logging(mode)
        expected = logmode_config_dict[mode]["root"]["level"]
        assert logging.getLogger().level == logging.getLevelName(expected)

    def test_level_name(self):
        configure_logging("warning")
        assert logging.getLogger().level == logging.WARNING

    def test_level_number(self):
        configure_logging("10")
        assert logging.getLogger().level == logging.DEBUG

    def test_json_file(self, tmp_path):
        log_config = {"version": 1, "disable_existing_loggers": False, "root": {"level": "ERROR"}}
        config_file = tmp_path / "log.json"
        config_file.write_text(json.dumps(log_config))
        configure_logging(str(config_file))
        assert logging.getLogger().level == logging.ERROR

    def test_dict(self):
        configure_logging({"version": 1, "disable_existing_loggers": False, "root": {"level": "CRITICAL"}})
        assert logging.getLogger().level == logging.CRITICAL

    @pytest.mark.parametrize("config", ["chatty", "99", 3.5])
    def test_invalid(self, config):
        with pytest.raises(ValueError):
            configure_logging(config)


class TestFormatterAndFilter:
    def test_color_formatter(self):
        formatter = ColorFormatter(fmt="%(name)s - %(fullName)s - %(message)s")
        output = formatter.format(_record("localpki.pki.store", logging.ERROR))
        assert output == ANSIColor.colorize("store - localpki.pki.store - message", ANSIColor.COLORS["red"])

    def test_name_filter(self):
        name_filter = LoggerNameFilter(logger_names=["localpki"])
        assert name_filter.filter(_record("localpki.pki.lifecycle"))
        assert not name_filter.filter(_record("urllib3.connectionpool"))
        assert name_filter.filter(_record("urllib3.connectionpool", logging.WARNING))

    def test_name_filter_exclude(self):
        name_filter = LoggerNameFilter(
            logger_names=["localpki"], exclude_logger_names=["localpki.pki.san"], allow_all_error_logs=False
        )
        assert not name_filter.filter(_record("localpki.pki.san", logging.ERROR))

    def test_filter_defaults_not_shared(self):
        first = LoggerNameFilter()
        second = LoggerNameFilter()
        first.logger_names.append("other")
        first.exclude_logger_names.append("localpki.pki.san")
        assert second.logger_names == ["localpki"]
        assert second.exclude_logger_names == []

    def test_color_formatter_default_colors(self):
        formatter = ColorFormatter(fmt="%(message)s")
        assert formatter.level_colors is ANSIColor.DEFAULT_LEVEL_COLORS
        output = formatter.format(_record("localpki.cli", logging.WARNING))
        assert output == ANSIColor.colorize("message", "yellow")

    def test_obj_logger(self):
        store = CertStore("/tmp")
        assert get_obj_logger(store).name == "localpki.pki.store.CertStore"
        assert get_obj_logger(CertStore).name == "localpki.pki.store.CertStore"
        assert get_obj_logger(None) is None
