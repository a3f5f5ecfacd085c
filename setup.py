#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
    Base setup stuff for packaging of swsdeploy. Version numbers, authors,
    dependencies.

    Copyright © 2020-2026 Stanford Web Services and Contributors.

    This file is part of swsdeploy.

    swsdeploy is free software: you can redistribute it and/or modify
    it under the terms of the GNU General Public License as published by
    the Free Software Foundation, version 3.

    This program is distributed in the hope that it will be useful,
    but WITHOUT ANY WARRANTY; without even the implied warranty of
    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
    GNU General Public License for more details.

    You should have received a copy of the GNU General Public License
    along with this program.  If not, see <http://www.gnu.org/licenses/>.
"""
import os.path

from setuptools import setup

# Read version from file shared with the module using technique from
# https://python-packaging-user-guide.readthedocs.io/en/latest/single_source_version/
VERSION = {}
FILENAME = os.path.join(os.path.dirname(__file__), "swsdeploy", "version.py")
# pylint: disable=W0122
exec(compile(open(FILENAME, "rb").read(), FILENAME, "exec"), VERSION)

setup(
    name="swsdeploy",
    version=VERSION["__version__"],
    description="Parallel Drupal site updates and release helpers",
    long_description=open("README.rst", "rb").read().decode("UTF8"),
    long_description_content_type="text/x-rst",
    author="Stanford Web Services",
    author_email="sws-developers@lists.stanford.edu",
    license="GNU GPLv3",
    packages=["swsdeploy", "swsdeploy.plugins"],
    package_dir={"swsdeploy": "swsdeploy"},
    scripts=["bin/swsdeploy"],
    python_requires=">=3.7",
    install_requires=[
        "packaging",
        "prettytable>=2.5",
        "PyYAML",
        "requests",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock",
        ],
    },
    keywords=["deploy", "deployment", "drupal", "drush"],
    classifiers=[
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
    ],
)
