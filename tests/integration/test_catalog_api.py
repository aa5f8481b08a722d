"""
Integration tests for the catalog endpoints and the public catalog cache.
"""

from unittest.mock import patch

from app.models import CatalogItem, CustomerSubmission, CustomerSubmissionItem


def _create_item(api, headers, **payload):
    data = {'item_name': 'Widget', 'unit_price': 9.99, 'category': 'Parts'}
    data.update(payload)
    response = api.post('/catalog', json=data, headers=headers)
    assert response.status_code == 201, response.get_json()
    return response.get_json()['data']


class TestCatalogManagement:

    def test_create(self, api, headers1, business1_id):
        item = _create_item(api, headers1, currency='eur', sku='W-1')

        assert item['business_id'] == business1_id
        assert item['unit_price'] == 9.99
        assert item['currency'] == 'EUR'
        assert item['is_active'] is True

    def test_create_requires_name_and_price(self, api, headers1):
        no_name = api.post('/catalog', json={'unit_price': 1}, headers=headers1)
        no_price = api.post('/catalog', json={'item_name': 'X'}, headers=headers1)
        negative = api.post('/catalog', json={'item_name': 'X', 'unit_price': -1}, headers=headers1)

        assert no_name.status_code == 400
        assert no_price.status_code == 400
        assert negative.status_code == 400

    def test_update_toggles_active(self, api, headers1):
        item = _create_item(api, headers1)

        response = api.put(f"/catalog/{item['id']}", json={'is_active': False}, headers=headers1)

        assert response.status_code == 200
        data = response.get_json()['data']
        assert data['is_active'] is False
        assert data['item_name'] == 'Widget'

    def test_delete(self, api, session, headers1):
        item = _create_item(api, headers1)

        response = api.delete(f"/catalog/{item['id']}", headers=headers1)

        assert response.status_code == 200
        assert session.get(CatalogItem, item['id']) is None

    def test_delete_ordered_item_keeps_submission(self, api, session, headers1, business1):
        # SQLite only enforces foreign keys when asked to
        session.connection().exec_driver_sql('PRAGMA foreign_keys=ON')
        item = _create_item(api, headers1)
        submission = CustomerSubmission(
            business_id=business1.id, customer_name='Ana', customer_email='ana@test.com',
            items=[CustomerSubmissionItem(catalog_item_id=item['id'], item_name='Widget', quantity=2)]
        )
        session.add(submission)
        session.commit()

        response = api.delete(f"/catalog/{item['id']}", headers=headers1)

        assert response.status_code == 200
        session.expire_all()
        ordered = session.query(CustomerSubmissionItem).one()
        assert ordered.catalog_item_id is None
        assert ordered.item_name == 'Widget'

    def test_owner_list_includes_inactive(self, api, headers1):
        _create_item(api, headers1, item_name='Active')
        _create_item(api, headers1, item_name='Hidden', is_active=False)

        names = [row['item_name'] for row in api.get('/catalog', headers=headers1).get_json()['data']]

        assert names == ['Active', 'Hidden']

    def test_edit_catalog_permission(self, api, business1, make_headers):
        headers = make_headers(business1.user_id, ['view_invoices'])

        response = api.post('/catalog', json={'item_name': 'X', 'unit_price': 1}, headers=headers)

        assert response.status_code == 403

    def test_owner_list_requires_edit_catalog(self, api, business1, make_headers):
        headers = make_headers(business1.user_id, ['view_invoices'])

        assert api.get('/catalog', headers=headers).status_code == 403


class TestPublicCatalog:

    def test_only_active_items_without_key(self, api, headers1, business1_id):
        _create_item(api, headers1, item_name='Active')
        _create_item(api, headers1, item_name='Hidden', is_active=False)

        response = api.get(f'/business/{business1_id}/catalog')

        assert response.status_code == 200
        assert [row['item_name'] for row in response.get_json()['data']] == ['Active']

    def test_unknown_business(self, api):
        response = api.get('/business/999/catalog')

        assert response.status_code == 404

    def test_writes_invalidate_cache(self, api, headers1, business1_id):
        with patch('app.services.catalog_service.get_cache') as get_cache:
            _create_item(api, headers1)

        get_cache.return_value.invalidate_module.assert_called_once_with(business1_id, 'catalog')

    def test_cached_payload_is_served(self, api, business1_id):
        cached = [{'id': 1, 'item_name': 'From cache'}]
        with patch('app.services.catalog_service.get_cache') as get_cache:
            get_cache.return_value.memoize.return_value = cached
            response = api.get(f'/business/{business1_id}/catalog')

        assert response.get_json()['data'] == cached
