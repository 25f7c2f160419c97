"""
Tests for the address book endpoints.
"""
from user.models import Address


def address_payload(**overrides):
    data = {
        "name": "Asha Menon",
        "phone": "9876543210",
        "address": "12 MG Road, Near Metro Station",
        "city": "Kochi",
        "state": "Kerala",
        "pincode": "682001",
    }
    data.update(overrides)
    return data


class TestAddresses:
    def test_first_address_becomes_default(self, user_client, user):
        resp = user_client.post_json("/user/addresses/", address_payload())
        assert resp.status_code == 201
        assert resp.json()["address"]["isDefault"] is True

    def test_new_default_demotes_others(self, user_client, user, address):
        resp = user_client.post_json("/user/addresses/", address_payload(city="Mumbai", isDefault=True))
        new_id = resp.json()["address"]["id"]

        address.refresh_from_db()
        assert address.is_default is False
        assert Address.objects.get(pk=new_id).is_default is True

    def test_second_address_not_default_unless_asked(self, user_client, address):
        resp = user_client.post_json("/user/addresses/", address_payload(city="Mumbai"))
        assert resp.json()["address"]["isDefault"] is False

    def test_validation(self, user_client, user):
        assert user_client.post_json("/user/addresses/", address_payload(phone="12345")).status_code == 400
        assert user_client.post_json("/user/addresses/", address_payload(pincode="012345")).status_code == 400
        assert user_client.post_json("/user/addresses/", address_payload(address="short")).status_code == 400

    def test_list_default_first(self, user_client, user, address):
        user_client.post_json("/user/addresses/", address_payload(city="Mumbai"))
        ids = [a["id"] for a in user_client.get("/user/addresses/").json()["addresses"]]
        assert ids[0] == address.id

    def test_update(self, user_client, address):
        resp = user_client.put_json(f"/user/addresses/{address.id}/", {"landmark": "Opp. Park"})
        assert resp.status_code == 200
        address.refresh_from_db()
        assert address.landmark == "Opp. Park"
        assert address.city == "Kochi"

    def test_delete_default_promotes_latest(self, user_client, user, address):
        older = user_client.post_json("/user/addresses/", address_payload(city="Mumbai")).json()["address"]["id"]
        newer = user_client.post_json("/user/addresses/", address_payload(city="Pune")).json()["address"]["id"]

        resp = user_client.delete(f"/user/addresses/{address.id}/")

        assert resp.json()["message"] == "Address deleted successfully"
        assert Address.objects.get(pk=newer).is_default is True
        assert Address.objects.get(pk=older).is_default is False

    def test_other_users_address(self, other_user, address):
        from tests.conftest import JSONClient
        client = JSONClient()
        client.force_login(other_user)
        assert client.get(f"/user/addresses/{address.id}/").status_code == 404
        assert client.delete(f"/user/addresses/{address.id}/").status_code == 404

    def test_requires_login(self, anon_client, db):
        assert anon_client.get("/user/addresses/").status_code == 401
