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
Unit tests for the `divan.models` and `divan.attachments` modules.
"""

from unittest import TestCase

from divan import models, attachments
from divan.models import Document, Change, ChangeRevision
from divan.attachments import AttachmentMetaData


class Photo(Document):
    caption: str = ''


class TestAttachments(TestCase):
    def test_metadata(self):
        a = AttachmentMetaData(filename='thumb', content_type='image/jpeg')
        self.assertIs(a.stub, True)
        self.assertEqual(a.model_dump(), {'filename': 'thumb', 'content_type': 'image/jpeg'})

    def test_encode_attachments(self):
        f = attachments.encode_attachments
        for bad in (None, 'thumb', 17, {'thumb': {}}):
            self.assertEqual(f(bad), {})
        self.assertEqual(f([]), {})
        self.assertEqual(
            f([
                AttachmentMetaData(filename='a', content_type='image/png'),
                AttachmentMetaData(filename='b'),
            ]),
            {
                'a': {'content_type': 'image/png', 'stub': True},
                'b': {'content_type': None, 'stub': True},
            }
        )

    def test_decode_attachments(self):
        f = attachments.decode_attachments
        for bad in (None, [], 'thumb', 17):
            self.assertEqual(f(bad), [])
        self.assertEqual(f({}), [])
        stubs = {
            'a': {'content_type': 'image/png', 'stub': True, 'length': 12, 'digest': 'md5-xyz'},
            'b': {'stub': True},
        }
        self.assertEqual(f(stubs), [
            AttachmentMetaData(filename='a', content_type='image/png'),
            AttachmentMetaData(filename='b'),
        ])

    def test_has_attachment(self):
        f = attachments.has_attachment
        self.assertIs(f({'_attachments': {'a': {}}}, 'a'), True)
        self.assertIs(f({'_attachments': {'a': {}}}, 'b'), False)
        doc = Photo(attachments=[AttachmentMetaData(filename='a')])
        self.assertIs(f(doc, 'a'), True)
        self.assertIs(f(doc, 'b'), False)


class TestDocument(TestCase):
    def test_registry(self):
        self.assertIs(models.registry['divan.models.Document'], Document)
        self.assertIs(models.registry['divan.tests.test_models.Photo'], Photo)
        self.assertEqual(models.type_name(Photo), 'divan.tests.test_models.Photo')

    def test_aliases(self):
        doc = Photo.model_validate({
            '_id': 'p1',
            '_rev': '1-a',
            '_deleted': True,
            '_attachments': {'full.jpg': {'content_type': 'image/jpeg', 'stub': True}},
            'caption': 'Sunset',
        })
        self.assertEqual(doc.id, 'p1')
        self.assertEqual(doc.rev, '1-a')
        self.assertIs(doc.deleted, True)
        self.assertEqual(
            doc.attachments,
            [AttachmentMetaData(filename='full.jpg', content_type='image/jpeg')]
        )
        self.assertEqual(doc.caption, 'Sunset')

        doc = Photo(id='p2', caption='Dawn')
        self.assertEqual(doc.id, 'p2')
        self.assertEqual(doc.attachments, [])
        self.assertIs(doc.deleted, False)
        self.assertIsNone(doc.type)

    def test_extra_fields(self):
        doc = Document.model_validate({'_id': 'x', 'color': 'red'})
        self.assertEqual(doc.model_dump(by_alias=True)['color'], 'red')

    def test_is_new(self):
        for rev in (None, '', '   '):
            self.assertIs(Document(rev=rev).is_new, True)
        self.assertIs(Document(rev='1-a').is_new, False)

    def test_clone(self):
        doc = Photo(id='p1', rev='3-c', type='Photo', caption='Sunset',
            attachments=[AttachmentMetaData(filename='full.jpg')]
        )
        copy = doc.clone()
        self.assertIsInstance(copy, Photo)
        self.assertIsNot(copy, doc)
        self.assertIsNone(copy.id)
        self.assertIsNone(copy.rev)
        self.assertIs(copy.is_new, True)
        self.assertEqual(copy.attachments, [])
        self.assertEqual(copy.caption, 'Sunset')
        self.assertEqual(copy.type, 'Photo')
        # The original is untouched:
        self.assertEqual((doc.id, doc.rev, len(doc.attachments)), ('p1', '3-c', 1))


class TestChange(TestCase):
    def test_rev(self):
        change = Change.model_validate({
            'seq': 7,
            'id': 'p1',
            'changes': [{'rev': '2-b'}, {'rev': '2-a'}],
        })
        self.assertEqual(change.rev, '2-b')
        self.assertEqual(change.changes[1], ChangeRevision(rev='2-a'))
        self.assertIsNone(Change().rev)
