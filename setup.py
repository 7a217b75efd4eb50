#!/usr/bin/env python3
#
# divan: typed documents for a lightweight Couch
# Copyright (C) 2011-2026 Novacut Inc
#
# This file is part of `divan`.
#
# `divan` is free software: you can redistribute it and/or modify it under
# the terms of the GNU Lesser General Public License as published by the Free
# Software Foundation, either version 3 of the License, or (at your option) any
# later version.
#
# `divan` is distributed in the hope that it will be useful, but WITHOUT
# ANY WARRANTY; without even the implied warranty of MERCHANTABILITY or FITNESS
# FOR A PARTICULAR PURPOSE.  See the GNU Lesser General Public License for more
# details.
#
# You should have received a copy of the GNU Lesser General Public License along
# with `divan`.  If not, see <http://www.gnu.org/licenses/>.
#
# Authors:
#   Jason Gerard DeRose <jderose@novacut.com>
#

"""
Install `divan`.
"""

import sys
if sys.version_info < (3, 8):
    sys.exit('Divan requires Python 3.8 or newer')

import re
from os import path

from setuptools import setup, Command


tree = path.dirname(path.abspath(__file__))


def get_version():
    # Don't import divan, its dependencies might not be installed yet:
    with open(path.join(tree, 'divan', '__init__.py'), 'r') as fp:
        match = re.search(r"^__version__ = '([^']+)'$", fp.read(), re.M)
    return match.group(1)


class Test(Command):
    description = 'run unit tests and doc tests'

    user_options = [
        ('skip-all', None, 'skip all tests'),
    ]

    def initialize_options(self):
        self.skip_all = 0

    def finalize_options(self):
        pass

    def run(self):
        if self.skip_all:
            sys.exit(0)
        from divan.tests.run import run_tests
        if not run_tests():
            raise SystemExit('2')


setup(
    name='divan',
    description='typed documents for a lightweight Couch',
    version=get_version(),
    author='Jason Gerard DeRose',
    author_email='jderose@novacut.com',
    license='LGPLv3+',
    packages=['divan', 'divan.tests'],
    python_requires='>=3.8',
    install_requires=[
        'httpx>=0.23',
        'pydantic>=2.0',
        'pydantic-core',
    ],
    extras_require={
        'test': ['pytest'],
    },
    cmdclass={'test': Test},
)
