"""Tests for the DiffEngine — minimal change sets for bulk-edit screens."""
from sitesync.services.diff_engine import (
    COLLECTION, CONTENT, diff, diff_collection, diff_content, diff_sections
)


class TestDiffContent:
    def test_hero_title_change(self):
        changes = diff_content({'title': 'A'}, {'title': 'B'}, section='hero')

        assert changes.changed
        assert changes.to_payload() == {'updates': [{'section': 'hero', 'key': 'title', 'value': 'B'}]}

    def test_equal_maps_yield_nothing(self):
        snapshot = {'title': {'value': 'A', 'type': 'text'}, 'subtitle': {'value': 'S', 'type': 'text'}}
        changes = diff_content(snapshot, {k: dict(v) for k, v in snapshot.items()})

        assert not changes
        assert len(changes) == 0

    def test_only_changed_fields_of_many(self):
        original = {f'field_{i}': f'value {i}' for i in range(40)}
        current = dict(original, field_17='edited')

        changes = diff_content(original, current, section='services')
        assert [c.key for c in changes.changes] == ['field_17']

    def test_new_keys_always_included(self):
        changes = diff_content({'title': 'A'}, {'title': 'A', 'cta': 'Go'})
        assert [c.key for c in changes.changes] == ['cta']

    def test_removed_keys_are_not_changes(self):
        assert not diff_content({'title': 'A', 'old': 'x'}, {'title': 'A'})

    def test_missing_original_marks_everything(self):
        changes = diff_content(None, {'title': 'A', 'subtitle': 'B'})
        assert [c.key for c in changes.changes] == ['title', 'subtitle']

    def test_metadata_compared_by_deep_equality(self):
        original = {'logo': {'value': 'x.png', 'type': 'image', 'metadata': {'size': {'w': 10, 'h': 10}}}}
        same = {'logo': {'value': 'x.png', 'type': 'image', 'metadata': {'size': {'h': 10, 'w': 10}}}}
        moved = {'logo': {'value': 'x.png', 'type': 'image', 'metadata': {'size': {'w': 20, 'h': 10}}}}

        assert not diff_content(original, same)
        changes = diff_content(original, moved, section='header')
        assert changes.to_payload() == {'updates': [{
            'section': 'header', 'key': 'logo', 'value': 'x.png',
            'type': 'image', 'metadata': {'size': {'w': 20, 'h': 10}},
        }]}

    def test_values_compared_as_strings(self):
        assert not diff_content({'count': '3'}, {'count': 3})

    def test_updated_at_is_ignored(self):
        original = {'title': {'value': 'A', 'type': 'text', 'updatedAt': '2024-01-01T00:00:00'}}
        current = {'title': {'value': 'A', 'type': 'text', 'updatedAt': '2025-01-01T00:00:00'}}
        assert not diff_content(original, current)


class TestDiffSections:
    def test_changes_across_sections_are_merged(self):
        original = {'hero': {'title': 'A'}, 'final_cta': {'button': 'Go'}}
        current = {'hero': {'title': 'B'}, 'final_cta': {'button': 'Go'}}

        changes = diff_sections(original, current)
        assert changes.to_payload() == {'updates': [{'section': 'hero', 'key': 'title', 'value': 'B'}]}

    def test_section_missing_from_snapshot(self):
        changes = diff_sections({'hero': {'title': 'A'}}, {'hero': {'title': 'A'}, 'faq': {'q1': 'Why?'}})
        assert [(c.section, c.key) for c in changes.changes] == [('faq', 'q1')]


class TestDiffCollection:
    ITEMS = [
        {'title': 'Programmatic', 'description': 'RTB'},
        {'title': 'Header Bidding', 'description': 'Prebid'},
    ]

    def test_unchanged_collection(self):
        changes = diff_collection(self.ITEMS, [dict(i) for i in self.ITEMS])
        assert not changes
        assert changes.kind == COLLECTION

    def test_reorder_resubmits_whole_collection(self):
        current = list(reversed(self.ITEMS))
        changes = diff_collection(self.ITEMS, current)
        assert changes.changed
        assert changes.to_payload() == {'items': current}

    def test_single_field_edit_resubmits_all(self):
        current = [dict(self.ITEMS[0]), dict(self.ITEMS[1], description='Prebid.js')]
        assert len(diff_collection(self.ITEMS, current)) == 2

    def test_count_change(self):
        assert diff_collection(self.ITEMS, self.ITEMS[:1]).changed

    def test_emptied_collection_is_a_change(self):
        changes = diff_collection(self.ITEMS, [])
        assert changes.changed
        assert changes.to_payload() == {'items': []}

    def test_missing_original(self):
        assert diff_collection(None, self.ITEMS).changed


def test_dispatch_by_shape():
    assert diff({'a': '1'}, {'a': '2'}).kind == CONTENT
    assert diff([], [{'title': 't'}]).kind == COLLECTION
