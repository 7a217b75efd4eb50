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
Unit tests for the `divan.params` module.
"""

from unittest import TestCase

from divan.errors import ValidationError
from divan.params import ViewParameters, ChangesParameters


class TestViewParameters(TestCase):
    def test_init(self):
        for (design, view) in [(None, 'v'), ('', 'v'), ('d', None), ('d', '')]:
            with self.assertRaises(ValidationError):
                ViewParameters(design, view)
        params = ViewParameters('doc', 'type')
        self.assertEqual(repr(params), "ViewParameters('doc', 'type')")
        self.assertEqual(params.name, 'doc/type')
        self.assertIs(params.include_docs, True)
        self.assertIs(params.stale, False)
        self.assertEqual(params.extra, {})

    def test_parts(self):
        self.assertEqual(
            ViewParameters('doc', 'type').parts(),
            ('_design', 'doc', '_view', 'type')
        )
        self.assertEqual(
            ViewParameters('doc', 'type', list_name='csv').parts(),
            ('_design', 'doc', '_list', 'csv', 'type')
        )

    def test_options(self):
        self.assertEqual(ViewParameters('d', 'v').options(), {'include_docs': True})
        params = ViewParameters('d', 'v',
            include_docs=None,
            descending=True,
            group_level=2,
            stale=True,
            startkey=['a'],
            endkey=[],
            key=None,
            extra={'update_seq': True},
        )
        self.assertEqual(params.options(), {
            'descending': True,
            'group_level': 2,
            'stale': 'ok',
            'startkey': ['a'],
            'update_seq': True,
        })
        # Falsy but meaningful keys are kept:
        self.assertEqual(
            ViewParameters('d', 'v', include_docs=None, key=0).options(),
            {'key': 0}
        )

    def test_replace(self):
        params = ViewParameters('d', 'v', skip=10, limit=5, extra={'x': 1})
        new = params.replace(reduce=True, skip=None, limit=None)
        self.assertIsNot(new, params)
        self.assertEqual(new.options(), {'include_docs': True, 'reduce': True, 'x': 1})
        self.assertEqual(params.options(), {'include_docs': True, 'skip': 10, 'limit': 5, 'x': 1})
        new.extra['y'] = 2
        self.assertEqual(params.extra, {'x': 1})
        with self.assertRaises(AttributeError):
            params.replace(nope=True)

        # A new extra replaces the old one, without sharing the caller's dict:
        extra = {'b': '2'}
        new = params.replace(extra=extra)
        self.assertEqual(new.extra, {'b': '2'})
        self.assertIsNot(new.extra, extra)
        self.assertEqual(params.extra, {'x': 1})
        self.assertEqual(params.replace(extra=None).extra, {})


class TestChangesParameters(TestCase):
    def test_options(self):
        self.assertEqual(ChangesParameters().options(), {})
        params = ChangesParameters(filter='app/mine', since='now', limit=100,
            descending=False, include_docs=True, extra={'style': 'all_docs'}
        )
        self.assertEqual(params.options(), {
            'filter': 'app/mine',
            'since': 'now',
            'limit': 100,
            'descending': False,
            'include_docs': True,
            'style': 'all_docs',
        })
        self.assertEqual(params.replace(since=5).options()['since'], 5)
        self.assertEqual(params.since, 'now')
