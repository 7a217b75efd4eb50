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
Typed documents and the shapes of CouchDB responses.

Every `Document` subclass is registered under its fully qualified name when
the class is created, which is what lets `divan.codec.Codec` decode a doc back
into its concrete type from the "$type" field alone:

>>> class Note(Document):
...     text: str = ''
...
>>> registry[type_name(Note)] is Note
True

"""

from collections import namedtuple
from typing import Any, ClassVar, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from .attachments import AttachmentMetaData, encode_attachments, decode_attachments


TYPE_KEY = '$type'

registry = {}

PagedResult = namedtuple('PagedResult', 'rows total_rows')


def type_name(cls):
    return '.'.join([cls.__module__, cls.__qualname__])


def register(cls):
    """
    Register *cls* so a "$type" of ``type_name(cls)`` decodes to it.
    """
    registry[type_name(cls)] = cls
    return cls


def is_registered(tag):
    return isinstance(tag, str) and tag in registry


class Document(BaseModel):
    """
    Base class for typed CouchDB documents.

    The CouchDB special fields are available under friendlier names:

    >>> doc = Document.model_validate({'_id': 'foo', '_rev': '1-abc'})
    >>> (doc.id, doc.rev, doc.is_new)
    ('foo', '1-abc', False)

    Fields a subclass doesn't declare are kept, so nothing is lost when a doc
    is decoded and saved again.
    """

    model_config = ConfigDict(populate_by_name=True, extra='allow')

    id: Optional[str] = Field(default=None, alias='_id')
    rev: Optional[str] = Field(default=None, alias='_rev')
    attachments: List[AttachmentMetaData] = Field(
        default_factory=list, alias='_attachments'
    )
    deleted: bool = Field(default=False, alias='_deleted')
    type: Optional[str] = None

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs):
        super().__pydantic_init_subclass__(**kwargs)
        register(cls)

    @model_validator(mode='wrap')
    @classmethod
    def resolve_type(cls, value, handler):
        """
        Validate a tagged JSON object into the class its "$type" names.

        This is what makes ``List[Document]`` (or a `Document` nested in any
        other model) decode into the concrete subclasses.
        """
        if isinstance(value, dict) and TYPE_KEY in value:
            value = dict(value)
            tag = value.pop(TYPE_KEY)
            if is_registered(tag):
                target = registry[tag]
                if not issubclass(target, cls):
                    raise ValueError('{} is not a {}'.format(tag, type_name(cls)))
                if target is not cls:
                    return target.model_validate(value)
        return handler(value)

    @field_validator('attachments', mode='before')
    @classmethod
    def validate_attachments(cls, value):
        if isinstance(value, list):
            return value
        return decode_attachments(value)

    @field_serializer('attachments')
    def serialize_attachments(self, value):
        return encode_attachments(value)

    @property
    def is_new(self):
        return self.rev is None or not self.rev.strip()

    def clone(self):
        """
        Return an unsaved copy of this doc.

        The copy has no ID, no revision, and no attachments: attachment data
        must be uploaded to the new doc separately.
        """
        data = self.model_dump(by_alias=True, exclude={'id', 'rev', 'attachments'})
        return type(self).model_validate(data)


register(Document)


def decode_tagged(value):
    """
    Decode *value* into its `Document` subclass if it carries a registered
    "$type", otherwise return it unchanged.
    """
    if isinstance(value, dict) and is_registered(value.get(TYPE_KEY)):
        return Document.model_validate(value)
    return value


class BulkResult(BaseModel):
    """
    One row of a ``POST /db/_bulk_docs`` response.
    """

    id: Optional[str] = None
    ok: bool = False
    rev: Optional[str] = None
    error: Optional[str] = None
    reason: Optional[str] = None


class ChangeRevision(BaseModel):
    rev: Optional[str] = None
    deleted: bool = False


class Change(BaseModel):
    """
    One entry from the changes feed.

    *doc* is only present when the feed was requested with include_docs.
    """

    model_config = ConfigDict(extra='allow')

    id: Optional[str] = None
    seq: Any = None
    deleted: bool = False
    changes: List[ChangeRevision] = Field(default_factory=list)
    doc: Any = None

    @field_validator('doc', mode='before')
    @classmethod
    def validate_doc(cls, value):
        return decode_tagged(value)

    @property
    def rev(self):
        if self.changes:
            return self.changes[0].rev


class ChangesResult(BaseModel):
    results: List[Change] = Field(default_factory=list)
    last_seq: Any = None


class ReplicationTask(BaseModel):
    """
    An entry from ``GET /_active_tasks`` whose type is "replication".
    """

    model_config = ConfigDict(extra='allow')

    TASK_TYPE: ClassVar[str] = 'replication'

    pid: Optional[str] = None
    replication_id: Optional[str] = None
    doc_id: Optional[str] = None
    source: Any = None
    target: Any = None
    continuous: bool = False
    progress: Optional[int] = None
    source_seq: Any = None
    checkpointed_source_seq: Any = None
    docs_read: int = 0
    docs_written: int = 0
    doc_write_failures: int = 0
    missing_revisions_found: int = 0
    revisions_checked: int = 0
    started_on: Optional[int] = None
    updated_on: Optional[int] = None


class ViewRow(BaseModel):
    model_config = ConfigDict(extra='allow')

    id: Optional[str] = None
    key: Any = None
    value: Any = None
    doc: Any = None

    @field_validator('doc', mode='before')
    @classmethod
    def validate_doc(cls, value):
        return decode_tagged(value)


class ViewResult(BaseModel):
    """
    A view or ``_all_docs`` response.

    Pass it as *cls* to `Database.get_list_result()` to get typed rows.  A
    row doc carrying a registered "$type" is decoded into that class, any
    other doc is left as a ``dict``.
    """

    total_rows: Optional[int] = None
    offset: Optional[int] = None
    rows: List[ViewRow] = Field(default_factory=list)
