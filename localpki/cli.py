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

import argparse
import sys
import traceback

from localpki.config import ConfigError, load_config
from localpki.tool.cert_cli import define_cert_parser, handle_cert
from localpki.utils.log_utils import configure_logging

CMD_CERT = "cert"


def def_cert_parser(sub_cmd):
    cmd = CMD_CERT
    cert_parser = sub_cmd.add_parser(cmd)
    define_cert_parser(cert_parser)
    return {cmd: cert_parser}


def parse_args(prog_name: str, argv=None):
    _parser = argparse.ArgumentParser(description=prog_name)
    _parser.add_argument("--version", "-V", action="store_true", help="print localpki version")
    _parser.add_argument("-c", "--config", type=str, default=None, help="path of the YAML config file")
    _parser.add_argument(
        "-l", "--log_level", type=str, default=None, help="log mode (concise, full, verbose) or log level"
    )
    _parser.add_argument("-debug", "--debug", action="store_true", help="print stack traces on errors")
    sub_cmd = _parser.add_subparsers(description="sub command parser", dest="sub_command")
    sub_cmd_parsers = {}
    sub_cmd_parsers.update(def_cert_parser(sub_cmd))

    return _parser, _parser.parse_args(argv), sub_cmd_parsers


handlers = {
    CMD_CERT: handle_cert,
}


def setup_logging(prog_args):
    log_config = prog_args.log_level
    if not log_config:
        log_config = load_config(prog_args.config)["log"]["mode"]
    configure_logging(log_config)


def run(prog_name, argv=None) -> int:
    prog_parser, prog_args, sub_cmd_parsers = parse_args(prog_name, argv)

    sub_cmd = None
    try:
        sub_cmd = prog_args.sub_command
        if sub_cmd:
            setup_logging(prog_args)
            return handlers[sub_cmd](prog_args)
        elif prog_args.version:
            print_localpki_version()
        else:
            prog_parser.print_help()
        return 0
    except (ConfigError, ValueError) as e:
        print(f"Error: {e}")
        return 1
    except Exception as e:
        print(f"\nUnable to handle command: {sub_cmd} due to: {e} \n")
        if prog_args.debug:
            print(traceback.format_exc())
        else:
            print_help(prog_parser, sub_cmd, sub_cmd_parsers)
        return 1


def print_help(prog_parser, sub_cmd, sub_cmd_parsers):
    sub_parser = sub_cmd_parsers.get(sub_cmd) if sub_cmd else None
    if sub_parser:
        sub_parser.print_help()
    else:
        prog_parser.print_help()


def print_localpki_version():
    import localpki

    print(f"localpki version is {localpki.__version__}")


def main():
    sys.exit(run("localpki"))


if __name__ == "__main__":
    main()
