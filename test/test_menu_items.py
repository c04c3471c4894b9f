from regression_test_data import menu_item_a, menu_item_b
from request_utils import make_request, body_of, create_menu_item


def test_create_menu_item(chalice_gateway, vendor):
    token, vendor_id = vendor
    response = make_request(chalice_gateway, endpoint='/menu', method='POST', json_body=menu_item_a, token=token)
    assert response['statusCode'] == 201
    body = body_of(response)
    assert body['message'] == 'Menu item added successfully'
    item = body['menu_item']
    assert item['vendor_id'] == vendor_id
    assert item['price'] == 100
    assert item['is_available'] is True
    assert item['preparation_time'] == 20
    assert item['tags'] == ['halal']
    assert item['is_spicy'] is True
    assert item['is_veg'] is False


def test_create_menu_item_defaults(chalice_gateway, vendor):
    token, _ = vendor
    item = create_menu_item(chalice_gateway, token, menu_item_b)
    assert item['preparation_time'] == 15
    assert item['tags'] == []
    assert item['image'].startswith('https://')


def test_create_menu_item_validation(chalice_gateway, vendor):
    token, _ = vendor
    for bad_item in [
        {**menu_item_a, 'price': -1},
        {**menu_item_a, 'price': 10.999},
        {key: value for key, value in menu_item_a.items() if key != 'name'},
        {**menu_item_a, 'preparation_time': -5},
    ]:
        response = make_request(chalice_gateway, endpoint='/menu', method='POST', json_body=bad_item, token=token)
        assert response['statusCode'] == 400, bad_item
        assert body_of(response)['error'] == 'InvalidInput'


def test_vendor_menu_lists_available_items_sorted(chalice_gateway, vendor, other_vendor):
    token, vendor_id = vendor
    other_token, _ = other_vendor
    create_menu_item(chalice_gateway, token, {**menu_item_b, 'name': 'Singara'})
    create_menu_item(chalice_gateway, token, menu_item_b)
    create_menu_item(chalice_gateway, token, menu_item_a)
    create_menu_item(chalice_gateway, token, {**menu_item_a, 'name': 'Beef Tehari', 'is_available': False})
    create_menu_item(chalice_gateway, other_token, {**menu_item_a, 'name': 'Khichuri'})

    response = make_request(chalice_gateway, endpoint=f'/menu/vendor/{vendor_id}')
    assert response['statusCode'] == 200
    assert [(item['category'], item['name']) for item in body_of(response)] == [
        ('Rice', 'Chicken Biryani'),
        ('Snacks', 'Singara'),
        ('Snacks', 'Vegetable Samosa'),
    ]

    my_menu = body_of(make_request(chalice_gateway, endpoint='/menu/my-menu', token=token))
    assert [item['name'] for item in my_menu] == ['Beef Tehari', 'Chicken Biryani', 'Singara', 'Vegetable Samosa']


def test_update_menu_item(chalice_gateway, vendor):
    token, vendor_id = vendor
    item = create_menu_item(chalice_gateway, token, menu_item_a)
    response = make_request(chalice_gateway, endpoint=f"/menu/{item['id']}", method='PUT',
                            json_body={'price': 120.5, 'description': 'Now with extra egg'}, token=token)
    assert response['statusCode'] == 200
    updated = body_of(response)['menu_item']
    assert updated['price'] == 120.5
    assert updated['description'] == 'Now with extra egg'
    assert updated['name'] == 'Chicken Biryani'
    assert updated['vendor_id'] == vendor_id


def test_update_menu_item_not_found(chalice_gateway, vendor):
    token, _ = vendor
    response = make_request(chalice_gateway, endpoint='/menu/missing-item', method='PUT',
                            json_body={'price': 10}, token=token)
    assert response['statusCode'] == 404
    assert body_of(response)['message'] == 'Menu item not found'


def test_menu_item_of_other_vendor(chalice_gateway, vendor, other_vendor):
    token, _ = vendor
    other_token, _ = other_vendor
    item = create_menu_item(chalice_gateway, other_token, menu_item_a)

    response = make_request(chalice_gateway, endpoint=f"/menu/{item['id']}", method='PUT',
                            json_body={'price': 1}, token=token)
    assert response['statusCode'] == 403
    assert body_of(response)['message'] == 'Not authorized to update this menu item'

    response = make_request(chalice_gateway, endpoint=f"/menu/{item['id']}", method='DELETE', token=token)
    assert response['statusCode'] == 403
    assert body_of(response)['message'] == 'Not authorized to delete this menu item'

    response = make_request(chalice_gateway, endpoint=f"/menu/toggle-availability/{item['id']}", method='PATCH',
                            token=token)
    assert response['statusCode'] == 403


def test_delete_menu_item(chalice_gateway, vendor):
    token, _ = vendor
    item = create_menu_item(chalice_gateway, token, menu_item_a)
    response = make_request(chalice_gateway, endpoint=f"/menu/{item['id']}", method='DELETE', token=token)
    assert response['statusCode'] == 200
    assert body_of(response)['message'] == 'Menu item deleted successfully'
    assert body_of(make_request(chalice_gateway, endpoint='/menu/my-menu', token=token)) == []

    response = make_request(chalice_gateway, endpoint=f"/menu/{item['id']}", method='DELETE', token=token)
    assert response['statusCode'] == 404


def test_toggle_menu_item_availability(chalice_gateway, vendor):
    token, vendor_id = vendor
    item = create_menu_item(chalice_gateway, token, menu_item_a)
    response = make_request(chalice_gateway, endpoint=f"/menu/toggle-availability/{item['id']}", method='PATCH',
                            token=token)
    assert response['statusCode'] == 200
    assert body_of(response) == {'message': 'Menu item is now unavailable', 'is_available': False}
    assert body_of(make_request(chalice_gateway, endpoint=f'/menu/vendor/{vendor_id}')) == []

    response = make_request(chalice_gateway, endpoint=f"/menu/toggle-availability/{item['id']}", method='PATCH',
                            token=token)
    assert body_of(response)['is_available'] is True
