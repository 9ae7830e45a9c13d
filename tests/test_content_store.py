"""Tests for ContentStore — section key/value upserts."""
from datetime import datetime

import pytest

from sitesync.extensions import db
from sitesync.exceptions import NotFound, ValidationError
from sitesync.models.content import ContentRecord
from sitesync.services.content_store import ContentStore

OLD = datetime(2020, 1, 1, 12, 0, 0)


def _age(record):
    """把 updated_at 拨回过去，便于判断是否被刷新"""
    ContentRecord.query.filter_by(id=record.id).update(
        {ContentRecord.updated_at: OLD}, synchronize_session=False)
    db.session.commit()
    db.session.expire_all()


class TestGet:
    def test_missing_section_is_empty(self, app):
        assert ContentStore.get('homepage_hero') == {}

    def test_returns_records_by_key(self, app):
        ContentStore.upsert('homepage_hero', 'title', 'Hello')
        ContentStore.upsert('homepage_hero', 'subtitle', 'World', order=2)
        ContentStore.upsert('footer', 'title', 'Other')

        records = ContentStore.get('homepage_hero')
        assert set(records) == {'title', 'subtitle'}
        assert records['subtitle'].order == 2

    def test_section_map_shape(self, app):
        ContentStore.upsert('homepage_hero', 'title', 'Hello')
        data = ContentStore.get_section_map('homepage_hero')
        assert data['title']['value'] == 'Hello'
        assert data['title']['type'] == 'text'
        assert data['title']['updatedAt']


class TestUpsert:
    def test_creates_then_updates_single_record(self, app):
        ContentStore.upsert('homepage_hero', 'title', 'A')
        ContentStore.upsert('homepage_hero', 'title', 'B')

        assert ContentRecord.query.count() == 1
        assert ContentStore.get('homepage_hero')['title'].value == 'B'

    def test_change_refreshes_updated_at(self, app):
        record = ContentStore.upsert('homepage_hero', 'title', 'A')
        _age(record)

        record = ContentStore.upsert('homepage_hero', 'title', 'B')
        assert record.updated_at > OLD

    def test_identical_value_is_noop(self, app):
        record = ContentStore.upsert('homepage_hero', 'title', 'A', metadata={'x': 1}, order=3)
        _age(record)

        again = ContentStore.upsert('homepage_hero', 'title', 'A', metadata={'x': 1}, order=3)
        assert again.value == 'A'
        assert again.updated_at == OLD
        assert ContentRecord.query.count() == 1

    def test_none_metadata_and_order_keep_existing(self, app):
        ContentStore.upsert('homepage_hero', 'image', 'https://cdn/x.png', value_type='image',
                            metadata={'width': 800, 'height': 600}, order=4)
        record = ContentStore.upsert('homepage_hero', 'image', 'https://cdn/y.png', value_type='image')
        assert record.meta == {'width': 800, 'height': 600}
        assert record.order == 4

    def test_invalid_type_rejected_before_write(self, app):
        with pytest.raises(ValidationError):
            ContentStore.upsert('homepage_hero', 'title', 'A', value_type='html')
        assert ContentRecord.query.count() == 0

    def test_invalid_type_does_not_touch_existing(self, app):
        ContentStore.upsert('homepage_hero', 'title', 'A')
        with pytest.raises(ValidationError):
            ContentStore.upsert('homepage_hero', 'title', 'B', value_type='bogus')
        assert ContentStore.get('homepage_hero')['title'].value == 'A'

    def test_oversized_image_rejected(self, app):
        with pytest.raises(ValidationError):
            ContentStore.upsert('homepage_hero', 'bg', 'x.png', value_type='image',
                                metadata={'width': 4000, 'height': 1000})

    def test_oversized_video_rejected(self, app):
        with pytest.raises(ValidationError):
            ContentStore.upsert('homepage_hero', 'clip', 'x.mp4', value_type='video',
                                metadata={'maxSize': 60 * 1024 * 1024})

    def test_non_numeric_video_size_rejected(self, app):
        with pytest.raises(ValidationError):
            ContentStore.upsert('homepage_hero', 'clip', 'x.mp4', value_type='video',
                                metadata={'maxSize': 'huge'})
        assert ContentRecord.query.count() == 0

    def test_json_value_must_parse(self, app):
        with pytest.raises(ValidationError):
            ContentStore.upsert('settings', 'nav', '{not json', value_type='json')

    def test_json_objects_are_serialized(self, app):
        record = ContentStore.upsert('settings', 'nav', {'links': ['/a']}, value_type='json')
        assert record.value == '{"links": ["/a"]}'

    def test_missing_value_rejected(self, app):
        with pytest.raises(ValidationError):
            ContentStore.upsert('homepage_hero', 'title', None)

    def test_metadata_must_be_object(self, app):
        with pytest.raises(ValidationError):
            ContentStore.upsert('homepage_hero', 'title', 'A', metadata=['nope'])


class TestBulkUpdate:
    def test_reports_per_item_results(self, app):
        results = ContentStore.bulk_update([
            {'section': 'hero', 'key': 'title', 'value': 'New title'},
            {'section': 'hero', 'key': 'subtitle', 'value': 'x', 'type': 'html'},
            {'section': 'hero', 'key': 'cta', 'value': 'Go'},
        ], prefix='homepage_')

        assert [r['success'] for r in results] == [True, False, True]
        assert 'Invalid content type' in results[1]['error']
        assert set(ContentStore.get('homepage_hero')) == {'title', 'cta'}

    def test_non_numeric_dimensions_fail_only_that_item(self, app):
        results = ContentStore.bulk_update([
            {'section': 'hero', 'key': 'title', 'value': 'New title'},
            {'section': 'hero', 'key': 'image', 'value': 'x.png', 'type': 'image',
             'metadata': {'width': '3000', 'height': '10'}},
            {'section': 'hero', 'key': 'cta', 'value': 'Go'},
        ], prefix='homepage_')

        assert [r['success'] for r in results] == [True, False, True]
        assert 'must be a number' in results[1]['error']
        assert set(ContentStore.get('homepage_hero')) == {'title', 'cta'}

    def test_missing_key_is_item_error(self, app):
        results = ContentStore.bulk_update([{'section': 'hero', 'value': 'x'}])
        assert results[0]['success'] is False


class TestDelete:
    def test_delete_existing(self, app):
        ContentStore.upsert('homepage_hero', 'title', 'A')
        ContentStore.delete('homepage_hero', 'title')
        assert ContentStore.get('homepage_hero') == {}

    def test_delete_missing(self, app):
        with pytest.raises(NotFound):
            ContentStore.delete('homepage_hero', 'title')


def test_list_sections_counts(app):
    ContentStore.upsert('a', 'k1', 'v')
    ContentStore.upsert('a', 'k2', 'v')
    ContentStore.upsert('b', 'k1', 'v')
    assert ContentStore.list_sections() == [{'section': 'a', 'count': 2}, {'section': 'b', 'count': 1}]
