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
Parameters for view, list, and changes feed requests.

These only collect options; the query string itself is built by
`divan.CouchBase.request()`, which JSON encodes "key", "startkey", "endkey",
and anything that isn't a ``str``.
"""

from copy import copy

from .errors import ValidationError


VIEW_OPTIONS = (
    'descending',
    'limit',
    'include_docs',
    'group',
    'group_level',
    'reduce',
    'inclusive_end',
    'skip',
)


def _is_empty(value):
    return value is None or (isinstance(value, (list, tuple)) and len(value) == 0)


class QueryParameters:
    def replace(self, **changes):
        """
        Return a copy of these parameters with *changes* applied.

        The original instance is left untouched.
        """
        new = copy(self)
        new.extra = dict(self.extra)
        for (name, value) in changes.items():
            if not hasattr(new, name):
                raise AttributeError(
                    '{} has no {!r}'.format(self.__class__.__name__, name)
                )
            setattr(new, name, value)
        if 'extra' in changes:
            new.extra = ({} if changes['extra'] is None else dict(changes['extra']))
        return new


class ViewParameters(QueryParameters):
    """
    Describe a request to a view, or to a list function applied to a view.

    For example:

    >>> params = ViewParameters('doc', 'type', key='dmedia/file', limit=10)
    >>> params.parts()
    ('_design', 'doc', '_view', 'type')
    >>> sorted(params.options().items())
    [('include_docs', True), ('key', 'dmedia/file'), ('limit', 10)]

    Note that *include_docs* defaults to ``True``.
    """

    def __init__(self, design, view, list_name=None, include_docs=True,
            descending=None, limit=None, skip=None, group=None,
            group_level=None, stale=False, reduce=None, inclusive_end=None,
            key=None, keys=None, startkey=None, endkey=None, extra=None):
        if not design:
            raise ValidationError('design cannot be empty')
        if not view:
            raise ValidationError('view cannot be empty')
        self.design = design
        self.view = view
        self.list_name = list_name
        self.include_docs = include_docs
        self.descending = descending
        self.limit = limit
        self.skip = skip
        self.group = group
        self.group_level = group_level
        self.stale = stale
        self.reduce = reduce
        self.inclusive_end = inclusive_end
        self.key = key
        self.keys = keys
        self.startkey = startkey
        self.endkey = endkey
        self.extra = ({} if extra is None else dict(extra))

    def __repr__(self):
        return '{}({!r}, {!r})'.format(
            self.__class__.__name__, self.design, self.view
        )

    @property
    def name(self):
        return '/'.join([self.design, self.view])

    def parts(self):
        if self.list_name:
            return ('_design', self.design, '_list', self.list_name, self.view)
        return ('_design', self.design, '_view', self.view)

    def options(self):
        options = {}
        for name in VIEW_OPTIONS:
            value = getattr(self, name)
            if value is not None:
                options[name] = value
        if self.stale:
            options['stale'] = 'ok'
        for name in ('key', 'startkey', 'endkey'):
            value = getattr(self, name)
            if not _is_empty(value):
                options[name] = value
        options.update(self.extra)
        return options


class ChangesParameters(QueryParameters):
    """
    Describe a request to ``GET /db/_changes``.

    >>> ChangesParameters(since=12, include_docs=True).options()
    {'since': 12, 'include_docs': True}

    """

    def __init__(self, filter=None, since=None, limit=None, descending=None,
            include_docs=None, extra=None):
        self.filter = filter
        self.since = since
        self.limit = limit
        self.descending = descending
        self.include_docs = include_docs
        self.extra = ({} if extra is None else dict(extra))

    def options(self):
        options = {}
        for name in ('filter', 'since', 'limit', 'descending', 'include_docs'):
            value = getattr(self, name)
            if value is not None:
                options[name] = value
        options.update(self.extra)
        return options
