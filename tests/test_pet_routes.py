from tests.conftest import auth, book, register


def test_owner_manages_pets(client, owner, pet):
    listed = client.get('/pets', headers=auth(owner['token'])).get_json()
    assert [p['name'] for p in listed] == ['Bruno']

    response = client.put(f"/pets/{pet['id']}", headers=auth(owner['token']), json={'weight': 12.5})
    assert response.get_json()['weight'] == 12.5

    assert client.delete(f"/pets/{pet['id']}", headers=auth(owner['token'])).status_code == 200
    assert client.get(f"/pets/{pet['id']}", headers=auth(owner['token'])).status_code == 404


def test_pet_requires_name_and_type(client, owner):
    response = client.post('/pets', headers=auth(owner['token']), json={'name': 'Nameless'})
    assert response.status_code == 400


def test_other_owner_cannot_see_pet(client, pet):
    token, _ = register(client, 'other@furrchum.test')
    assert client.get(f"/pets/{pet['id']}", headers=auth(token)).status_code == 403


def test_vet_sees_booked_patients_only(client, owner, vet, pet):
    assert client.get(f"/pets/{pet['id']}", headers=auth(vet['token'])).status_code == 403
    book(client, owner, vet, pet)
    assert client.get(f"/pets/{pet['id']}", headers=auth(vet['token'])).status_code == 200


def test_pet_with_booking_cannot_be_deleted(client, owner, vet, pet):
    book(client, owner, vet, pet)
    assert client.delete(f"/pets/{pet['id']}", headers=auth(owner['token'])).status_code == 400
