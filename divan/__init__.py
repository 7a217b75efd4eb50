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
`divan` - typed documents for a lightweight Couch.

Divan is a client for CouchDB that saves and loads typed documents (pydantic
models) while getting the revision handling right.  Every write either carries
the current revision or resolves it first with a HEAD request, and conflicts
are raised rather than swallowed.  Multi-document reads are split into
requests of at most `Database.max_docs_per_request` IDs.

`CouchBase` also makes it easy to call any part of the CouchDB REST API
directly with `CouchBase.get()`, `CouchBase.post()`, and friends when a typed
method doesn't exist.
"""

from io import BufferedReader
import os
from base64 import b32encode, b64encode
import json
import time
from urllib.parse import urlparse, urlencode, quote
import ssl
import platform
from contextlib import contextmanager
import logging

import httpx
from pydantic_core import to_jsonable_python

from .errors import (
    ValidationError,
    SerializationError,
    ConflictError,
    HTTPError,
    CouchTimeout,
    ClientError,
    BadRequest,
    Unauthorized,
    Forbidden,
    NotFound,
    MethodNotAllowed,
    NotAcceptable,
    Conflict,
    Gone,
    LengthRequired,
    PreconditionFailed,
    BadContentType,
    BadRangeRequest,
    ExpectationFailed,
    ServerError,
    BulkConflict,
    BulkError,
    check_response,
)
from .attachments import Attachment, AttachmentMetaData, has_attachment
from .models import (
    Document,
    BulkResult,
    ChangeRevision,
    Change,
    ChangesResult,
    ReplicationTask,
    PagedResult,
    ViewRow,
    ViewResult,
)
from .codec import Codec, Converter, SerializationStrategy, Settings, dumps
from .params import ViewParameters, ChangesParameters


__all__ = (
    'random_id',
    'split_blocks',
    'parse_connection_string',

    'Context',
    'Server',
    'Database',

    'Document',
    'AttachmentMetaData',
    'Codec',
    'Converter',
    'SerializationStrategy',
    'ViewParameters',
    'ChangesParameters',

    'ValidationError',
    'SerializationError',
    'ConflictError',
    'HTTPError',
    'CouchTimeout',
    'NotFound',
    'Conflict',
    'PreconditionFailed',
    'ServerError',
    'BulkConflict',
    'BulkError',
)

__version__ = '26.10.0'
log = logging.getLogger()
USER_AGENT = 'Divan/{} ({} {}; {})'.format(__version__,
    platform.system(), platform.release(), platform.machine()
)

HTTP_IPv4_URL = 'http://127.0.0.1:5984/'
DEFAULT_URL = HTTP_IPv4_URL

DEFAULT_TIMEOUT = 20 * 60
MAX_DOCS_PER_REQUEST = 500

RANDOM_BITS = 120
RANDOM_BYTES = RANDOM_BITS // 8


def random_id(numbytes=RANDOM_BYTES):
    """
    Returns a 120-bit base32-encoded random ID.

    The ID will be 24-characters long, URL and filesystem safe.  For example:

    >>> random_id()  #doctest: +SKIP
    'OVRHK3TUOUQCWIDMNFXGC4TP'

    """
    return b32encode(os.urandom(numbytes)).decode('utf-8')


def _check_str(value, name):
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError('{} cannot be empty; got {!r}'.format(name, value))
    return value


def _check_not_none(value, name):
    if value is None:
        raise ValidationError('{} cannot be None'.format(name))
    return value


def _split_blocks(items, size):
    block = []
    for item in items:
        block.append(item)
        if len(block) == size:
            yield block
            block = []
    if block:
        yield block


def split_blocks(items, size):
    """
    Lazily split *items* into contiguous lists of at most *size* items.

    For example:

    >>> list(split_blocks(['a', 'b', 'c', 'd', 'e'], 2))
    [['a', 'b'], ['c', 'd'], ['e']]
    >>> list(split_blocks([], 2))
    []

    Every block has *size* items except possibly the last.
    """
    if not isinstance(size, int) or size < 1:
        raise ValidationError('size must be an int >= 1; got {!r}'.format(size))
    return _split_blocks(items, size)


@contextmanager
def couch_event(action, details):
    start = time.monotonic()
    try:
        yield
    finally:
        log.debug('couch event: %s, details: %s, duration: %.3f',
            action, details, time.monotonic() - start
        )


def _queryiter(options):
    """
    Return appropriately encoded (key, value) pairs sorted by key.

    We JSON encode the value if the key is "key", "startkey", or "endkey", or
    if the value is not an ``str``.
    """
    for key in sorted(options):
        value = options[key]
        if key in ('key', 'startkey', 'endkey') or not isinstance(value, str):
            value = json.dumps(value,
                sort_keys=True,
                separators=(',',':'),
                default=to_jsonable_python,
            )
        yield (key, value)


def basic_auth_header(basic):
    b = '{username}:{password}'.format(**basic).encode()
    return 'Basic ' + b64encode(b).decode()


def _basic_auth_header(basic):
    return {'authorization': basic_auth_header(basic)}


def parse_connection_string(connection_string):
    """
    Parse an ADO.NET style connection string into an ``(env, name)`` tuple.

    For example:

    >>> (env, name) = parse_connection_string(
    ...     'Server=couch.example.com;Port=5984;User=admin;Password=secret;DatabaseName=Orders'
    ... )
    >>> env['url']
    'http://couch.example.com:5984/'
    >>> env['basic']
    {'username': 'admin', 'password': 'secret'}
    >>> name
    'orders'

    Keys are case-insensitive and the database name is always lower-cased.
    """
    if not connection_string:
        raise ValidationError('connection_string cannot be empty')
    values = {}
    for item in connection_string.split(';'):
        if not item.strip():
            continue
        if '=' not in item:
            raise ValueError('bad connection string item: {!r}'.format(item))
        (key, value) = item.split('=', 1)
        values[key.strip().lower()] = value.strip()
    server = values.get('server')
    if not server:
        raise ValueError('connection string has no Server')
    if not server.startswith(('http://', 'https://')):
        server = 'http://' + server
    server = server.rstrip('/')
    port = values.get('port')
    url = (server if not port else '{}:{}'.format(server, int(port)))
    env = {'url': url.rstrip('/') + '/'}
    if values.get('user'):
        env['basic'] = {
            'username': values['user'],
            'password': values.get('password', ''),
        }
    name = values.get('databasename')
    return (env, (name.lower() if name else None))


def replication_peer(url, authorization=None):
    if authorization is None:
        return url
    return {'url': url, 'headers': {'Authorization': authorization}}


def build_ssl_context(config):
    if 'context' in config:
        ctx = config['context']
        assert isinstance(ctx, ssl.SSLContext)
        assert ctx.verify_mode == ssl.CERT_REQUIRED
        return ctx
    ctx = ssl.create_default_context(cafile=config.get('ca_file'))
    if 'cert_file' in config:
        ctx.load_cert_chain(config['cert_file'], config.get('key_file'))
    return ctx


class Context:
    """
    Share one ``httpx.Client`` between multiple `CouchBase` instances.

    The client does the connection pooling, so `Server` and `Database`
    instances created with the same `Context` reuse the same TCP (and SSL)
    connections:

    >>> ctx = Context('http://localhost:5984/')
    >>> foo = Database('foo', ctx=ctx)
    >>> bar = Database('bar', ctx=ctx)
    >>> foo.ctx is bar.ctx
    True

    *env* is either a URL or a ``dict`` with a "url" and optionally "basic"
    credentials, an "ssl" config, and a "timeout" in seconds.  A *transport*
    can be supplied to replace the default ``httpx.HTTPTransport``.
    """

    __slots__ = ('env', 'basepath', 't', 'url', 'timeout', 'client')

    def __init__(self, env=None, transport=None):
        if env is None:
            env = DEFAULT_URL
        if not isinstance(env, (dict, str)):
            raise TypeError(
                'env must be a `dict` or `str`; got {!r}'.format(env)
            )
        self.env = ({'url': env} if isinstance(env, str) else env)
        url = self.env.get('url', DEFAULT_URL)
        t = urlparse(url)
        if t.scheme not in ('http', 'https'):
            raise ValueError(
                'url scheme must be http or https; got {!r}'.format(url)
            )
        if not t.netloc:
            raise ValueError('bad url: {!r}'.format(url))
        self.basepath = (t.path if t.path.endswith('/') else t.path + '/')
        self.t = t
        self.url = self.full_url(self.basepath)
        self.timeout = self.env.get('timeout', DEFAULT_TIMEOUT)
        kw = {'timeout': self.timeout, 'transport': transport}
        if t.scheme == 'https':
            kw['verify'] = build_ssl_context(self.env.get('ssl', {}))
        self.client = httpx.Client(**kw)

    def full_url(self, path):
        return ''.join([self.t.scheme, '://', self.t.netloc, path])

    def get_auth_headers(self):
        if 'basic' in self.env:
            return _basic_auth_header(self.env['basic'])
        return {}

    def close(self):
        self.client.close()


class CouchBase(object):
    """
    Base class for `Server` and `Database`.

    This class is a simple adapter to make it easy to call a JSON loving REST
    API similar to CouchDB.  Request bodies are empty or JSON (except when you
    PUT an attachment) and response bodies are JSON (except when you GET an
    attachment), both run through this instance's `Codec`.

        * `CouchBase.post()`
        * `CouchBase.put()`
        * `CouchBase.get()`
        * `CouchBase.delete()`
        * `CouchBase.head()`
        * `CouchBase.put_att()`
        * `CouchBase.get_att()`
    """

    def __init__(self, env=None, ctx=None, codec=None):
        self.ctx = (Context(env) if ctx is None else ctx)
        self.env = self.ctx.env
        self.basepath = self.ctx.basepath
        self.url = self.ctx.url
        self.codec = (Codec() if codec is None else codec)

    def custom_settings(self, func):
        """
        Change the codec `Settings` until the returned guard is closed.

        For example, to save a doc without the "$type" field:

        >>> db = Database('foo')
        >>> def no_type_names(settings):
        ...     settings.type_names = False
        ...
        >>> with db.custom_settings(no_type_names):
        ...     db.update(doc)  #doctest: +SKIP

        """
        return self.codec.custom_settings(func)

    def _json_body(self, obj):
        if obj is None:
            return None
        if isinstance(obj, (bytes, BufferedReader)):
            return obj
        return self.codec.encode(obj)

    def request(self, method, parts, options, body=None, headers=None):
        h = {'user-agent': USER_AGENT}
        if headers:
            h.update(headers)
        h.update(self.ctx.get_auth_headers())
        path = (self.basepath + '/'.join(parts) if parts else self.basepath)
        query = (tuple(_queryiter(options)) if options else tuple())
        if query:
            path = '?'.join([path, urlencode(query)])
        response = self.ctx.client.request(method, self.ctx.full_url(path),
            content=body, headers=h
        )
        return check_response(response, method, path)

    def recv_json(self, method, parts, options, body=None, headers=None):
        if headers is None:
            headers = {}
        headers['accept'] = 'application/json'
        response = self.request(method, parts, options, body, headers)
        return self.codec.loads(response.content)

    def post(self, obj, *parts, **options):
        """
        POST *obj*.

        For example, to compact the database "foo":

        >>> cb = CouchBase()
        >>> cb.post(None, 'foo', '_compact')  #doctest: +SKIP
        {'ok': True}

        """
        return self.recv_json('POST', parts, options, self._json_body(obj),
            {'content-type': 'application/json'}
        )

    def put(self, obj, *parts, **options):
        """
        PUT *obj*.

        For example, to create the database "foo":

        >>> cb = CouchBase()
        >>> cb.put(None, 'foo')  #doctest: +SKIP
        {'ok': True}

        """
        return self.recv_json('PUT', parts, options, self._json_body(obj),
            {'content-type': 'application/json'}
        )

    def get(self, *parts, **options):
        """
        Make a GET request.

        >>> cb = CouchBase()
        >>> cb.get()  #doctest: +SKIP
        {'couchdb': 'Welcome', 'version': '3.3.3'}

        """
        return self.recv_json('GET', parts, options)

    def delete(self, *parts, **options):
        """
        Make a DELETE request.

        >>> cb = CouchBase()
        >>> cb.delete('foo', 'bar', rev='1-fae0708c46b4a6c9c497c3a687170ad6')  #doctest: +SKIP
        {'rev': '2-18995243f0ebd1066fcb191a28d1222a', 'ok': True, 'id': 'bar'}

        """
        return self.recv_json('DELETE', parts, options)

    def head(self, *parts, **options):
        """
        Make a HEAD request.

        Returns the (case-insensitive) response headers.
        """
        response = self.request('HEAD', parts, options)
        return response.headers

    def put_att(self, mime, data, *parts, **options):
        """
        PUT an attachment.

        :param mime: The Content-Type, eg ``'image/jpeg'``
        :param data: a ``bytes`` instance or an open file
        :param parts: path components to construct URL relative to base path
        :param options: optional keyword arguments to include in query
        """
        return self.recv_json('PUT', parts, options, data,
            {'content-type': mime}
        )

    def get_att(self, *parts, **options):
        """
        GET an attachment.

        Returns an `Attachment` namedtuple with the Content-Type and data.
        """
        response = self.request('GET', parts, options)
        content_type = response.headers.get('content-type')
        return Attachment(content_type, response.content)


class Server(CouchBase):
    """
    All the `CouchBase` methods plus some server administration niceties.

    For example:

    >>> s = Server('http://localhost:5984/')
    >>> s
    Server('http://localhost:5984/')
    >>> s.basepath
    '/'

    """

    def __repr__(self):
        return '{}({!r})'.format(self.__class__.__name__, self.url)

    def database(self, name):
        """
        Create a `Database` with the same `Context` and `Codec` as this `Server`.
        """
        return Database(name, ctx=self.ctx, codec=self.codec)

    def get_version(self):
        return self.get()['version']

    def database_exists(self, name):
        _check_str(name, 'name')
        try:
            self.head(name)
            return True
        except NotFound:
            return False

    def create_database(self, name):
        _check_str(name, 'name')
        log.info('creating database %r', name)
        return self.put(None, name)

    def user_exists(self, username):
        _check_str(username, 'username')
        try:
            self.head('_users', 'org.couchdb.user:' + quote(username, safe=''))
            return True
        except NotFound:
            return False

    def create_admin_user(self, username, password):
        """
        Create a server admin, then the matching doc in the _users database.
        """
        _check_str(username, 'username')
        _check_str(password, 'password')
        name = quote(username, safe='')
        self.put(password, '_config', 'admins', name)
        user = {
            '_id': 'org.couchdb.user:' + username,
            'type': 'user',
            'name': username,
            'roles': [],
        }
        return self.put(user, '_users', 'org.couchdb.user:' + name)

    def create_database_admin_user(self, username, database):
        """
        Make *username* both an admin and a reader of *database*.
        """
        _check_str(username, 'username')
        _check_str(database, 'database')
        security = {
            'admins': {'names': [username], 'roles': []},
            'readers': {'names': [username], 'roles': []},
        }
        return self.put(security, database, '_security')

    def set_config(self, section, key, value):
        _check_str(section, 'section')
        _check_str(key, 'key')
        return self.put(value, '_config', section, key)

    def trigger_replication(self, source, target, continuous=False,
            source_auth=None, target_auth=None):
        """
        POST to /_replicate.

        *source_auth* and *target_auth* are optional Authorization header
        values for the respective peer, eg from `basic_auth_header()`.
        """
        _check_str(source, 'source')
        _check_str(target, 'target')
        obj = {
            'source': replication_peer(source, source_auth),
            'target': replication_peer(target, target_auth),
            'continuous': continuous,
        }
        return self.post(obj, '_replicate')

    def get_active_replication_tasks(self):
        tasks = self.get('_active_tasks')
        return [
            ReplicationTask.model_validate(task) for task in tasks
            if task.get('type') == ReplicationTask.TASK_TYPE
        ]


class Database(CouchBase):
    """
    All the `CouchBase` methods plus typed, revision-aware document methods.

    For example:

    >>> db = Database('dmedia', 'http://localhost:5984/')
    >>> db
    Database('dmedia', 'http://localhost:5984/')
    >>> db.basepath
    '/dmedia/'
    >>> db.max_docs_per_request
    500

    Niceties:

        * `Database.create(doc)` - save a new doc, update doc.rev in place
        * `Database.update(doc)` - save an existing doc, resolving its rev
        * `Database.bulk_update(docs)` - save many docs in one request
        * `Database.get_documents(ids)` - retrieve many docs at once
        * `Database.get_latest_revisions(ids)` - as above, but only the revs
        * `Database.get_view_documents(params)` - docs from a view
    """

    def __init__(self, name, env=None, ctx=None, codec=None,
            max_docs_per_request=MAX_DOCS_PER_REQUEST):
        super().__init__(env, ctx, codec)
        _check_str(name, 'name')
        self.name = name
        self.basepath += (name + '/')
        self.max_docs_per_request = max_docs_per_request

    def __repr__(self):
        return '{}({!r}, {!r})'.format(
            self.__class__.__name__, self.name, self.url
        )

    def server(self):
        """
        Create a `Server` with the same `Context` and `Codec` as this `Database`.
        """
        return Server(ctx=self.ctx, codec=self.codec)

    def check_connection(self):
        """
        GET /db, raising an `HTTPError` if the database can't be reached.
        """
        return self.get()

    def get_rev(self, doc_id):
        """
        Return the current revision of *doc_id* without downloading it.

        A HEAD request is made and the revision taken from the ETag header.
        There is no None shortcut: a missing doc raises `NotFound`.
        """
        _check_str(doc_id, 'doc_id')
        headers = self.head(doc_id)
        etag = headers.get('etag')
        if etag is None:
            raise SerializationError('no ETag for {!r} in {!r}'.format(doc_id, self))
        return etag.replace('"', ' ').strip()

    def _save(self, doc, resolve):
        if resolve and doc.is_new:
            doc.rev = self.get_rev(doc.id)
        doc.type = type(doc).__name__
        options = ({} if doc.is_new else {'rev': doc.rev})
        try:
            result = self.put(doc, doc.id, **options)
        except Conflict:
            log.warning('Conflict saving %s', doc.id)
            raise
        doc.rev = result['rev']
        return result

    def create(self, doc):
        """
        PUT a new *doc*, update doc.id and doc.rev in place.

        If *doc* has no ID, one is generated with `random_id()`.  No revision
        is resolved first: if a doc with that ID already exists, CouchDB will
        reject the write and `Conflict` is raised.
        """
        _check_not_none(doc, 'doc')
        if doc.id is None or not doc.id.strip():
            doc.id = random_id()
        with couch_event('create', doc.id):
            return self._save(doc, False)

    def update(self, doc):
        """
        PUT an existing *doc*, update doc.rev in place.

        If doc.rev is empty, the current revision is first resolved with
        `Database.get_rev()`.  A write is never sent with an unknown revision
        when one can be resolved, otherwise it would be certain to conflict.

        No retry is attempted on `Conflict`.  The caller can re-resolve and
        try again if that's the right thing to do.
        """
        _check_not_none(doc, 'doc')
        _check_str(doc.id, 'doc.id')
        with couch_event('update', doc.id):
            return self._save(doc, True)

    def bulk_update(self, docs):
        """
        Bulk-save using non-atomic semantics, updates all doc.rev in-place.

        All the docs are sent in a single request; the list is not split by
        `Database.max_docs_per_request`.  If any doc conflicts, `BulkConflict`
        is raised listing every conflicting ID, even though CouchDB has still
        saved the other docs.  If there are other errors, `BulkError` is
        raised.  Only when every doc succeeds are the revisions updated.
        """
        _check_not_none(docs, 'docs')
        docs = list(docs)
        for doc in docs:
            if doc.id is None or not doc.id.strip():
                doc.id = random_id()
            doc.type = type(doc).__name__
        with couch_event('bulk', ', '.join(doc.id for doc in docs)):
            rows = self.post({'docs': docs}, '_bulk_docs')
        results = [self.codec.build(row, BulkResult) for row in rows]
        conflicts = [r.id for r in results if r.error == 'conflict']
        if conflicts:
            log.warning('Conflict saving %d of %d docs', len(conflicts), len(docs))
            raise BulkConflict(conflicts, results)
        failures = [
            r for r in results
            if not r.ok and r.error is not None and r.error.strip()
        ]
        if failures:
            log.warning('Errors saving %d of %d docs', len(failures), len(docs))
            raise BulkError(failures)
        revs = dict((r.id, r.rev) for r in results)
        for doc in docs:
            if doc.id in revs:
                doc.rev = revs[doc.id]
        return results

    def create_empty(self, doc_id):
        """
        PUT an empty doc with the ID *doc_id*.
        """
        _check_str(doc_id, 'doc_id')
        with couch_event('create', doc_id):
            return self.put({}, doc_id)

    def get_document(self, doc_id, cls=None, rev=None):
        """
        GET the doc *doc_id*, decoded into *cls*.

        If *cls* is None, the "$type" field decides the class (and if there
        isn't one, a ``dict`` is returned).
        """
        _check_str(doc_id, 'doc_id')
        options = {}
        if rev is not None:
            options['rev'] = _check_str(rev, 'rev')
        with couch_event('get', doc_id):
            return self.codec.build(self.get(doc_id, **options), cls)

    def try_get_document(self, doc_id, cls=None):
        """
        Like `Database.get_document()`, but return None on a 4xx response.
        """
        try:
            return self.get_document(doc_id, cls)
        except ClientError:
            return None

    def document_exists(self, doc_id):
        _check_str(doc_id, 'doc_id')
        try:
            self.head(doc_id)
            return True
        except HTTPError:
            return False

    def attachment_exists(self, doc_id, name):
        _check_str(doc_id, 'doc_id')
        _check_str(name, 'name')
        try:
            self.head(doc_id, name)
            return True
        except HTTPError:
            return False

    def get_attachment(self, doc_id, name):
        _check_str(doc_id, 'doc_id')
        _check_str(name, 'name')
        return self.get_att(doc_id, name)

    def try_get_attachment(self, doc_id, name):
        """
        Like `Database.get_attachment()`, but return None on a 4xx response.
        """
        try:
            return self.get_attachment(doc_id, name)
        except ClientError:
            return None

    def put_attachment(self, doc_id, name, data,
            content_type='application/octet-stream'):
        """
        Upload attachment *name* to the doc *doc_id*.

        The current revision is always resolved first with `Database.get_rev()`.
        """
        _check_str(doc_id, 'doc_id')
        _check_str(name, 'name')
        _check_not_none(data, 'data')
        rev = self.get_rev(doc_id)
        return self.put_att(content_type, data, doc_id, name, rev=rev)

    def delete_attachment(self, doc_id, name):
        """
        Delete attachment *name* from the doc *doc_id*.

        The current revision is always resolved first with `Database.get_rev()`.
        """
        _check_str(doc_id, 'doc_id')
        _check_str(name, 'name')
        rev = self.get_rev(doc_id)
        return self.delete(doc_id, name, rev=rev)

    def get_documents(self, doc_ids, cls=None):
        """
        Retrieve multiple docs at once, in the order of the response.

        As CouchDB has a rather large per-request overhead, retrieving multiple
        docs at once can greatly improve performance.  When there are more than
        `Database.max_docs_per_request` IDs, one request is made per block of
        IDs, one after another (never in parallel, to bound memory usage).

        A doc that doesn't exist comes back as None.
        """
        _check_not_none(doc_ids, 'doc_ids')
        doc_ids = list(doc_ids)
        if not doc_ids:
            return []
        if len(doc_ids) <= self.max_docs_per_request:
            with couch_event('get', ', '.join(doc_ids)):
                result = self.post({'keys': doc_ids}, '_all_docs',
                    include_docs=True
                )
            return [self.codec.build(row.get('doc'), cls) for row in result['rows']]
        docs = []
        for block in split_blocks(doc_ids, self.max_docs_per_request):
            docs.extend(self.get_documents(block, cls))
        return docs

    def get_latest_revisions(self, doc_ids):
        """
        Return a ``dict`` mapping each distinct ID to its `ChangeRevision`.

        Duplicate IDs are only requested once.  The ``dict`` is ordered by
        first occurrence in *doc_ids*, and an ID that doesn't exist maps to
        None.  Blocks of IDs are requested one after another, like
        `Database.get_documents()`.
        """
        _check_not_none(doc_ids, 'doc_ids')
        distinct = list(dict.fromkeys(doc_ids))
        if not distinct:
            return {}
        if len(distinct) <= self.max_docs_per_request:
            with couch_event('get', ', '.join(distinct)):
                result = self.post({'keys': distinct}, '_all_docs')
            revs = {}
            for row in result['rows']:
                if row.get('id') is not None and row.get('value') is not None:
                    revs[row['id']] = self.codec.build(row['value'], ChangeRevision)
            return dict((_id, revs.get(_id)) for _id in distinct)
        results = {}
        for block in split_blocks(distinct, self.max_docs_per_request):
            results.update(self.get_latest_revisions(block))
        return results

    def get_latest_revision(self, doc_id):
        """
        Return the `ChangeRevision` of *doc_id*, or None if it doesn't exist.
        """
        _check_str(doc_id, 'doc_id')
        with couch_event('get', doc_id):
            result = self.get('_all_docs', keys=[doc_id])
        for row in result['rows']:
            if row.get('value') is not None:
                return self.codec.build(row['value'], ChangeRevision)

    def get_list_result(self, params, cls=None):
        """
        Execute the view (or list) described by *params*.

        The decoded response is returned as is, or decoded into *cls* if
        supplied.  If *params.keys* is set, the keys are POSTed.
        """
        _check_not_none(params, 'params')
        options = params.options()
        with couch_event(params.name, urlencode(tuple(_queryiter(options)))):
            if params.keys is not None:
                result = self.post({'keys': list(params.keys)}, *params.parts(),
                    **options
                )
            else:
                result = self.get(*params.parts(), **options)
        return self.codec.build(result, cls)

    def get_view_rows(self, params, cls=None):
        """
        Return the value of each row, decoded into *cls* if supplied.

        Only the values are used, so the view is always requested without
        include_docs.
        """
        _check_not_none(params, 'params')
        result = self.get_list_result(params.replace(include_docs=False))
        return [self.codec.build(row.get('value'), cls) for row in result['rows']]

    def get_view_documents(self, params, cls=None):
        """
        Return the doc of each row, decoded into *cls* if supplied.
        """
        _check_not_none(params, 'params')
        result = self.get_list_result(params)
        return [self.codec.build(row.get('doc'), cls) for row in result['rows']]

    def get_view_document_ids(self, params):
        _check_not_none(params, 'params')
        result = self.get_list_result(params)
        return [row.get('id') for row in result['rows']]

    def get_paged_view_documents(self, params, cls=None):
        """
        Return a `PagedResult` with one page of docs and the total count.

        The view is requested twice: once with reduce=false for the page, then
        with reduce=true (and no skip, limit, or docs) for the count, which
        is the value of the first row.
        """
        _check_not_none(params, 'params')
        result = self.get_list_result(params.replace(reduce=False))
        counted = self.get_list_result(
            params.replace(reduce=True, skip=None, limit=None, include_docs=False)
        )
        rows = counted['rows']
        total = ((rows[0].get('value') if rows else None) or 0)
        docs = [self.codec.build(row.get('doc'), cls) for row in result['rows']]
        return PagedResult(docs, total)

    def get_changes(self, params=None, cls=None):
        """
        GET /db/_changes, return a `ChangesResult`.

        When the feed includes docs, each doc is decoded into *cls* (or by its
        "$type" when *cls* is None).
        """
        if params is None:
            params = ChangesParameters()
        options = params.options()
        with couch_event('changes', urlencode(tuple(_queryiter(options)))):
            result = self.get('_changes', **options)
        for change in result.get('results', []):
            if change.get('doc') is not None:
                change['doc'] = self.codec.build(change['doc'], cls)
        return self.codec.build(result, ChangesResult)

    def get_active_replication_tasks(self):
        return self.server().get_active_replication_tasks()
