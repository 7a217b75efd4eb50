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
Encode and decode ``doc['_attachments']``.

A document only ever references its attachments by metadata.  The bytes are
uploaded and downloaded separately with `Database.put_attachment()` and
`Database.get_attachment()`, never embedded in the document JSON.
"""

from collections import namedtuple
from typing import Optional

from pydantic import BaseModel


Attachment = namedtuple('Attachment', 'content_type data')


class AttachmentMetaData(BaseModel):
    """
    The metadata CouchDB keeps for one attachment on a document.

    The *filename* is the key in ``doc['_attachments']``, not a value field.
    """

    filename: str
    content_type: Optional[str] = None

    @property
    def stub(self):
        return True


def encode_attachments(attachments):
    """
    Encode a list of `AttachmentMetaData` for use in ``doc['_attachments']``.

    For example:

    >>> encode_attachments([AttachmentMetaData(filename='thumbnail', content_type='image/jpeg')])
    {'thumbnail': {'content_type': 'image/jpeg', 'stub': True}}

    Anything that isn't a list (including ``None``) encodes to an empty object:

    >>> encode_attachments(None)
    {}

    """
    if not isinstance(attachments, (list, tuple)):
        return {}
    return dict(
        (a.filename, {'content_type': a.content_type, 'stub': True})
        for a in attachments if isinstance(a, AttachmentMetaData)
    )


def decode_attachments(obj):
    """
    Decode ``doc['_attachments']`` into a list of `AttachmentMetaData`.

    CouchDB includes extra stub fields like "digest" and "length", which are
    ignored:

    >>> decode_attachments({'thumbnail': {'content_type': 'image/jpeg', 'stub': True, 'length': 12}})
    [AttachmentMetaData(filename='thumbnail', content_type='image/jpeg')]
    >>> decode_attachments(None)
    []

    """
    if not isinstance(obj, dict):
        return []
    return [
        AttachmentMetaData(
            filename=name,
            content_type=(meta.get('content_type') if isinstance(meta, dict) else None),
        )
        for (name, meta) in obj.items()
    ]


def has_attachment(doc, name):
    """
    Return True if *doc* has an attachment named *name*.

    For example:

    >>> doc = {'_attachments': {'thumbnail': {'content_type': 'image/png'}}}
    >>> has_attachment(doc, 'thumbnail')
    True
    >>> has_attachment({}, 'thumbnail')
    False

    *doc* can also be a `Document`:

    >>> from divan.models import Document
    >>> has_attachment(Document(), 'thumbnail')
    False

    """
    if isinstance(doc, dict):
        return name in doc.get('_attachments', {})
    return any(a.filename == name for a in doc.attachments)
