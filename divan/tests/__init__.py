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
Unit tests for `divan` package.

The tests never talk to a real CouchDB.  Instead `FakeCouch` plays back canned
responses through an ``httpx.MockTransport`` and records every request so the
tests can check exactly what went over the wire.
"""

import json

import httpx

from divan import Context, Server, Database


BASE_URL = 'http://localhost:5984/'


def json_response(status, obj, headers=None):
    return httpx.Response(status, json=obj, headers=headers)


def etag_response(rev, status=200):
    return httpx.Response(status, headers={'ETag': '"{}"'.format(rev)})


def request_json(request):
    return json.loads(request.content.decode('utf-8'))


class FakeCouch:
    """
    Play back *responses* in order, one per request.

    A response can also be a callable, in which case it is called with the
    ``httpx.Request`` and must return the ``httpx.Response``.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(
                'unexpected request: {} {}'.format(request.method, request.url)
            )
        response = self.responses.pop(0)
        if callable(response):
            return response(request)
        return response

    def context(self, env=BASE_URL):
        return Context(env, transport=httpx.MockTransport(self))

    def server(self, env=BASE_URL, **kw):
        return Server(ctx=self.context(env), **kw)

    def database(self, name='mydb', env=BASE_URL, **kw):
        return Database(name, ctx=self.context(env), **kw)

    @property
    def methods(self):
        return [r.method for r in self.requests]

    @property
    def paths(self):
        return [r.url.path for r in self.requests]
