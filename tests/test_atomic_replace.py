"""Tests for AtomicReplace — transactional replace of ordered collections."""
import pytest
from sqlalchemy import event

from sitesync.exceptions import TransactionFailure, ValidationError
from sitesync.models.collection import ExpertiseItem, Testimonial
from sitesync.services.atomic_replace import AtomicReplace

TESTIMONIALS = [
    {'text': 'Revenue up 40%.', 'clientName': 'Dana', 'companyName': 'Northwind'},
    {'text': '', 'clientName': 'Sam'},
    {'text': 'Fill rates finally make sense.', 'clientName': 'Lee'},
]


def _titles(collection):
    return [item.title for item in AtomicReplace.list_items(collection)]


class TestReplace:
    def test_invalid_item_is_filtered(self, app):
        count = AtomicReplace.replace('testimonials', TESTIMONIALS)

        assert count == 2
        assert Testimonial.query.count() == 2
        names = [t.client_name for t in AtomicReplace.list_items('testimonials')]
        assert names == ['Dana', 'Lee']

    def test_camel_case_fields_are_accepted(self, app):
        AtomicReplace.replace('testimonials', TESTIMONIALS[:1])
        item = Testimonial.query.one()
        assert item.company_name == 'Northwind'

    def test_orders_are_dense_by_position(self, app):
        AtomicReplace.replace('testimonials', TESTIMONIALS)
        assert [t.order for t in AtomicReplace.list_items('testimonials')] == [1, 2]

    def test_explicit_order_sorts_items(self, app):
        AtomicReplace.replace('expertise', [
            {'title': 'C', 'description': 'c', 'order': 30},
            {'title': 'A', 'description': 'a', 'order': 10},
            {'title': 'B', 'description': 'b', 'order': 20},
        ])
        items = AtomicReplace.list_items('expertise')
        assert [i.title for i in items] == ['A', 'B', 'C']
        assert [i.order for i in items] == [1, 2, 3]

    def test_replace_removes_previous_items(self, app):
        AtomicReplace.replace('expertise', [{'title': 'Old', 'description': 'x'}])
        AtomicReplace.replace('expertise', [
            {'title': 'New 1', 'description': 'x'},
            {'title': 'New 2', 'description': 'y'},
        ])
        assert _titles('expertise') == ['New 1', 'New 2']

    def test_empty_submission_empties_collection(self, app):
        AtomicReplace.replace('expertise', [{'title': 'Old', 'description': 'x'}])
        assert AtomicReplace.replace('expertise', []) == 0
        assert ExpertiseItem.query.count() == 0

    def test_unknown_collection(self, app):
        with pytest.raises(ValidationError):
            AtomicReplace.replace('faq', [])

    def test_items_must_be_list(self, app):
        with pytest.raises(ValidationError):
            AtomicReplace.replace('expertise', {'title': 'x'})

    def test_collections_are_independent(self, app):
        AtomicReplace.replace('expertise', [{'title': 'Keep', 'description': 'x'}])
        AtomicReplace.replace('packages', [{'name': 'Starter', 'price': '$1'}])
        AtomicReplace.replace('packages', [])
        assert _titles('expertise') == ['Keep']


class TestAtomicity:
    def test_failure_mid_transaction_rolls_back(self, app):
        AtomicReplace.replace('expertise', [
            {'title': 'One', 'description': '1'},
            {'title': 'Two', 'description': '2'},
            {'title': 'Three', 'description': '3'},
        ])

        def boom(mapper, connection, target):
            raise RuntimeError('disk full')

        event.listen(ExpertiseItem, 'before_insert', boom)
        try:
            with pytest.raises(TransactionFailure) as exc_info:
                AtomicReplace.replace('expertise', [{'title': 'Replacement', 'description': 'r'}])
        finally:
            event.remove(ExpertiseItem, 'before_insert', boom)

        assert exc_info.value.count == 3
        assert exc_info.value.to_dict()['count'] == 3
        assert ExpertiseItem.query.count() == 3
        assert _titles('expertise') == ['One', 'Two', 'Three']

    def test_failure_does_not_notify(self, app, hook_listeners):
        calls = []
        hook_listeners(lambda collection, keys: calls.append(collection))

        def boom(mapper, connection, target):
            raise RuntimeError('constraint')

        event.listen(Testimonial, 'before_insert', boom)
        try:
            with pytest.raises(TransactionFailure):
                AtomicReplace.replace('testimonials', TESTIMONIALS)
        finally:
            event.remove(Testimonial, 'before_insert', boom)
        assert calls == []

    def test_success_notifies_once(self, app, hook_listeners):
        calls = []
        hook_listeners(lambda collection, keys: calls.append((collection, keys)))
        AtomicReplace.replace('testimonials', TESTIMONIALS)
        assert calls == [('testimonials', None)]
