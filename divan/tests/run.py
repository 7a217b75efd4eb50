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
Run the `divan` unit tests and doctests.
"""

from unittest import TestLoader, TextTestRunner
from doctest import DocTestSuite

import divan


pynames = (
    'divan',
    'divan.attachments',
    'divan.codec',
    'divan.errors',
    'divan.models',
    'divan.params',
    'divan.tests.test_codec',
    'divan.tests.test_divan',
    'divan.tests.test_models',
    'divan.tests.test_params',
)


def run_tests():
    # Add unit-tests:
    loader = TestLoader()
    suite = loader.loadTestsFromNames(pynames)

    # Add doc-tests:
    for name in pynames:
        suite.addTest(DocTestSuite(name))

    # Run the tests:
    runner = TextTestRunner(verbosity=2)
    result = runner.run(suite)
    success = result.wasSuccessful()
    print('divan: {!r}'.format(divan.__file__))
    print('-' * 70)
    return success


if __name__ == '__main__':
    if not run_tests():
        raise SystemExit(2)
