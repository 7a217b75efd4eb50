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
JSON encoding and decoding of typed documents.

Every request body and every response body goes through a `Codec`.  When a
`Document` is encoded, a "$type" field with the fully qualified class name is
added so the doc can later be decoded back into the same class without the
caller having to say which:

>>> from divan.models import Document
>>> codec = Codec()
>>> codec.encode(Document(id='foo'))
b'{"$type":"divan.models.Document","_attachments":{},"_deleted":false,"_id":"foo","type":null}'

A `Codec` can be customized three ways:

    1. `Codec.converters` - a list of `Converter` instances used for values
       the json module doesn't know how to handle

    2. `Codec.custom_settings()` - temporarily change the `Settings` used for
       every call, until the returned guard is closed

    3. A `SerializationStrategy` - factories that wrap the raw text streams
       used for every read and every write

None of this state is locked.  If you change the converters or install custom
settings while another thread is using the same `Codec`, that's on you.
"""

import io
import json

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from .errors import ValidationError, SerializationError
from .models import Document, TYPE_KEY, is_registered, registry, type_name


def dumps(obj, pretty=False):
    """
    Safe and opinionated use of ``json.dumps()``.

    This function always calls ``json.dumps()`` with *ensure_ascii=False* and
    *sort_keys=True*.

    For example:

    >>> doc = {
    ...     'hello': 'мир',
    ...     'welcome': 'все',
    ... }
    >>> dumps(doc)
    '{"hello":"мир","welcome":"все"}'

    By default compact encoding is used, but if you supply *pretty=True*,
    4-space indentation will be used:

    >>> print(dumps(doc, pretty=True))
    {
        "hello": "мир",
        "welcome": "все"
    }

    """
    if pretty:
        return json.dumps(obj,
            ensure_ascii=False,
            sort_keys=True,
            separators=(',',': '),
            indent=4,
        )
    return json.dumps(obj,
        ensure_ascii=False,
        sort_keys=True,
        separators=(',',':'),
    )


def default_reader(stream):
    return io.TextIOWrapper(stream, encoding='utf-8')


def default_writer(buf):
    return buf


class Settings:
    """
    Options for a single encode or decode.

    A fresh instance is created for every call and passed to the callback
    installed with `Codec.custom_settings()`, if any.
    """

    __slots__ = ('type_names', 'sort_keys', 'ensure_ascii', 'indent')

    def __init__(self):
        self.type_names = True
        self.sort_keys = True
        self.ensure_ascii = False
        self.indent = None


class SettingsGuard:
    """
    Undo a `Codec.custom_settings()` call when closed.

    Use it as a context manager so the settings are restored on error paths
    too:

    >>> codec = Codec()
    >>> def no_type_names(settings):
    ...     settings.type_names = False
    ...
    >>> with codec.custom_settings(no_type_names):
    ...     codec.settings().type_names
    ...
    False
    >>> codec.settings().type_names
    True

    """

    __slots__ = ('codec', 'func', 'previous', 'closed')

    def __init__(self, codec, func):
        self.codec = codec
        self.func = func
        self.previous = codec.settings_changes
        self.closed = False
        codec.settings_changes = func

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def close(self):
        if not self.closed:
            self.codec.settings_changes = self.previous
            self.closed = True


class SerializationStrategy:
    """
    Factories for the text streams used to read and write JSON.

    *reader_factory* is called with a binary stream of the response body and
    must return a text stream to read from.  *writer_factory* is called with
    an ``io.StringIO`` buffer and must return a text stream whose writes end up
    in that buffer.
    """

    __slots__ = ('reader_factory', 'writer_factory')

    def __init__(self, reader_factory, writer_factory):
        if not callable(reader_factory):
            raise ValidationError(
                'reader_factory must be callable; got {!r}'.format(reader_factory)
            )
        if not callable(writer_factory):
            raise ValidationError(
                'writer_factory must be callable; got {!r}'.format(writer_factory)
            )
        self.reader_factory = reader_factory
        self.writer_factory = writer_factory


class Converter:
    """
    Base class for custom converters.

    On encode, `Converter.encode()` is called for any value the json module
    can't handle when `Converter.can_encode()` returns True.

    On decode, every JSON object is offered to `Converter.decode()` when
    `Converter.can_decode()` returns True for it.
    """

    def can_encode(self, value):
        return False

    def encode(self, value):
        raise NotImplementedError('{}.encode()'.format(self.__class__.__name__))

    def can_decode(self, obj):
        return False

    def decode(self, obj):
        raise NotImplementedError('{}.decode()'.format(self.__class__.__name__))


class Codec:
    def __init__(self, strategy=None, converters=None):
        self.strategy = strategy
        self.converters = ([] if converters is None else list(converters))
        self.settings_changes = None

    def __repr__(self):
        return '{}({!r}, {!r})'.format(
            self.__class__.__name__, self.strategy, self.converters
        )

    def custom_settings(self, func):
        """
        Apply *func* to the `Settings` of every call until the guard is closed.
        """
        if not callable(func):
            raise ValidationError('func must be callable; got {!r}'.format(func))
        return SettingsGuard(self, func)

    def settings(self):
        settings = Settings()
        if self.settings_changes is not None:
            self.settings_changes(settings)
        return settings

    def _reader(self, stream):
        if self.strategy is None:
            return default_reader(stream)
        return self.strategy.reader_factory(stream)

    def _writer(self, buf):
        if self.strategy is None:
            return default_writer(buf)
        return self.strategy.writer_factory(buf)

    def _default(self, value):
        for converter in self.converters:
            if converter.can_encode(value):
                return converter.encode(value)
        if isinstance(value, BaseModel):
            return value.model_dump(mode='json', by_alias=True)
        return to_jsonable_python(value)

    def _object_hook(self, obj):
        for converter in self.converters:
            if converter.can_decode(obj):
                return converter.decode(obj)
        return obj

    def encode_document(self, doc, settings):
        obj = doc.model_dump(by_alias=True)
        for key in ('_id', '_rev'):
            if obj.get(key) is None:
                obj.pop(key, None)
        if settings.type_names:
            obj[TYPE_KEY] = type_name(type(doc))
        return obj

    def prepare(self, obj, settings):
        """
        Replace any `Document` in *obj* with its tagged JSON object.
        """
        if isinstance(obj, Document):
            return self.encode_document(obj, settings)
        if isinstance(obj, (list, tuple)):
            return [self.prepare(item, settings) for item in obj]
        if isinstance(obj, dict):
            return dict(
                (key, self.prepare(value, settings))
                for (key, value) in obj.items()
            )
        return obj

    def encode(self, obj):
        """
        Encode *obj* into UTF-8 JSON ``bytes``.
        """
        settings = self.settings()
        buf = io.StringIO()
        fp = self._writer(buf)
        try:
            json.dump(self.prepare(obj, settings), fp,
                ensure_ascii=settings.ensure_ascii,
                sort_keys=settings.sort_keys,
                indent=settings.indent,
                separators=((',', ':') if settings.indent is None else (',', ': ')),
                default=self._default,
            )
        except (TypeError, ValueError, PydanticSerializationError) as e:
            raise SerializationError('cannot encode {!r}: {}'.format(obj, e)) from e
        fp.flush()
        return buf.getvalue().encode('utf-8')

    def loads(self, data):
        """
        Parse JSON *data* (``bytes`` or ``str``) into plain Python objects.
        """
        if isinstance(data, str):
            data = data.encode('utf-8')
        fp = self._reader(io.BytesIO(data))
        hook = (self._object_hook if self.converters else None)
        try:
            return json.load(fp, object_hook=hook)
        except ValueError as e:
            raise SerializationError('malformed JSON: {}'.format(e)) from e

    def decode(self, data, cls=None):
        """
        Decode JSON *data* into an instance of *cls*.

        *data* can be ``bytes``, a ``str``, or an already parsed JSON value.

        For example:

        >>> from divan.models import Document
        >>> codec = Codec()
        >>> codec.decode(b'{"_id":"foo","_rev":"1-abc"}', Document)
        Document(id='foo', rev='1-abc', attachments=[], deleted=False, type=None)

        """
        if isinstance(data, (bytes, bytearray, str)):
            data = self.loads(data)
        return self.build(data, cls)

    def build(self, obj, cls=None):
        """
        Turn already parsed JSON *obj* into an instance of *cls*.

        If *cls* is None and *obj* carries a registered "$type", it is decoded
        into that class; otherwise *obj* is returned unchanged.
        """
        if obj is None:
            return None
        if cls is None:
            if isinstance(obj, dict) and is_registered(obj.get(TYPE_KEY)):
                return self.decode_document(obj, Document)
            return obj
        if isinstance(cls, type):
            if isinstance(obj, cls):
                return obj
            if issubclass(cls, Document):
                return self.decode_document(obj, cls)
        try:
            if isinstance(cls, type) and issubclass(cls, BaseModel):
                return cls.model_validate(obj)
            return TypeAdapter(cls).validate_python(obj)
        except PydanticValidationError as e:
            raise SerializationError(
                'cannot decode {!r}: {}'.format(cls, e)
            ) from e

    def decode_document(self, obj, cls):
        if not isinstance(obj, dict):
            raise SerializationError(
                'expected a JSON object for {}; got {!r}'.format(type_name(cls), obj)
            )
        obj = dict(obj)
        tag = obj.pop(TYPE_KEY, None)
        target = cls
        if is_registered(tag) and self.settings().type_names:
            target = registry[tag]
            if not issubclass(target, cls):
                raise SerializationError(
                    '{} is not a {}'.format(tag, type_name(cls))
                )
        try:
            return target.model_validate(obj)
        except PydanticValidationError as e:
            raise SerializationError(
                'cannot decode {}: {}'.format(type_name(target), e)
            ) from e
