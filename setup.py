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

import os
import re

from setuptools import find_packages, setup


def read_version():
    init_file = os.path.join(os.path.dirname(os.path.abspath(__file__)), "localpki", "__init__.py")
    with open(init_file, "r") as f:
        match = re.search(r'^__version__ = "([^"]+)"', f.read(), re.MULTILINE)
    if not match:
        raise RuntimeError(f"unable to find __version__ in {init_file}")
    return match.group(1)


setup(
    name="localpki",
    version=read_version(),
    description="Self-managed CA and server certificate for local HTTPS services",
    python_requires=">=3.8",
    package_dir={"localpki": "localpki"},
    packages=find_packages(
        where=".",
        include=[
            "localpki",
            "localpki.*",
        ],
        exclude=["tests", "tests.*"],
    ),
    package_data={
        "": ["*.json"],
    },
    include_package_data=True,
    install_requires=[
        "cryptography>=42.0",
        "pyyaml",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "localpki=localpki.cli:main",
        ],
    },
)
