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
Exceptions raised by `divan`.

None of these are retried internally.  `Conflict`, `BulkConflict` and
`CouchTimeout` exist so the caller can decide whether to re-resolve the
revision and try again.
"""


class ValidationError(ValueError):
    """
    Raised when a required argument is missing or empty.

    This is always raised before any request is made.
    """


class SerializationError(ValueError):
    """
    Raised when JSON can't be encoded or decoded into the requested type.
    """


class ConflictError(Exception):
    """
    Base class for `Conflict` and `BulkConflict`.
    """


class HTTPError(Exception):
    """
    Base class for exceptions raised based on HTTP response status.
    """

    def __init__(self, response, method, url):
        self.response = response
        self.data = response.content
        self.method = method
        self.url = url
        super().__init__()

    @property
    def status(self):
        return self.response.status_code

    @property
    def reason(self):
        return self.response.reason_phrase

    def __str__(self):
        return '{} {} {}'.format(
            self.status, self.reason, self.data.decode('utf-8', 'replace')
        )


class CouchTimeout(HTTPError):
    """
    Raised when the body of an error response mentions a timeout.

    CouchDB reports view and request timeouts as ordinary error responses, so
    the only way to tell them apart is by sniffing the body for "timeout".
    """


class ClientError(HTTPError):
    """
    Base class for all 4xx Client Error exceptions.
    """


class BadRequest(ClientError):
    '400 Bad Request'

class Unauthorized(ClientError):
    '401 Unauthorized'

class Forbidden(ClientError):
    '403 Forbidden'

class NotFound(ClientError):
    '404 Not Found'

class MethodNotAllowed(ClientError):
    '405 Method Not Allowed'

class NotAcceptable(ClientError):
    '406 Not Acceptable'

class Conflict(ClientError, ConflictError):
    '409 Conflict'

class Gone(ClientError):
    '410 Gone'

class LengthRequired(ClientError):
    '411 Length Required'

class PreconditionFailed(ClientError):
    '412 Precondition Failed'

class BadContentType(ClientError):
    '415 Unsupported Media Type'

class BadRangeRequest(ClientError):
    '416 Requested Range Not Satisfiable'

class ExpectationFailed(ClientError):
    '417 Expectation Failed'


class ServerError(HTTPError):
    """
    Used to raise exceptions for any 5xx Server Errors.
    """


errors = {
    400: BadRequest,
    401: Unauthorized,
    403: Forbidden,
    404: NotFound,
    405: MethodNotAllowed,
    406: NotAcceptable,
    409: Conflict,
    410: Gone,
    411: LengthRequired,
    412: PreconditionFailed,
    415: BadContentType,
    416: BadRangeRequest,
    417: ExpectationFailed,
}


def check_response(response, method, url):
    """
    Raise the appropriate `HTTPError` if *response* is not a success.

    A 409 always raises `Conflict`.  Otherwise a body containing "timeout"
    (in any case) raises `CouchTimeout`, regardless of the status code.
    """
    if response.is_success:
        return response
    if response.status_code == 409:
        raise Conflict(response, method, url)
    if b'timeout' in response.content.lower():
        raise CouchTimeout(response, method, url)
    status = response.status_code
    if status >= 500:
        raise ServerError(response, method, url)
    if status >= 400:
        raise errors.get(status, ClientError)(response, method, url)
    raise HTTPError(response, method, url)


class BulkConflict(ConflictError):
    """
    Raised by `Database.bulk_update()` when one or more conflicts occur.

    The store has still applied every non-conflicting write in the request.
    """

    def __init__(self, ids, rows):
        self.ids = ids
        self.rows = rows
        super().__init__(', '.join(ids))


class BulkError(Exception):
    """
    Raised by `Database.bulk_update()` for non-conflict per-document errors.
    """

    def __init__(self, rows):
        self.rows = rows
        super().__init__('; '.join(
            'id: {}, error: {}, reason: {}'.format(r.id, r.error, r.reason)
            for r in rows
        ))
