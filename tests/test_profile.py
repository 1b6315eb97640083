"""
Tests for the seller shop profile endpoints.
"""
from fastapi import status


class TestGetProfile:
    def test_get_profile(self, client, seller, seller_headers):
        response = client.get("/sellers/profile", headers=seller_headers)
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["email"] == seller.email
        assert data["shop_name"] == "Test Shop"
        assert data["open_time"] == "09:00"
        assert data["images"] == []

    def test_requires_auth(self, client):
        assert client.get("/sellers/profile").status_code == status.HTTP_401_UNAUTHORIZED


class TestUpdateProfile:
    def test_partial_update(self, client, seller_headers):
        response = client.put(
            "/sellers/profile",
            json={"shop_name": "  Renamed Shop ", "ifsc_code": "hdfc0001234", "account_type": "current"},
            headers=seller_headers,
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["shop_name"] == "Renamed Shop"
        assert data["ifsc_code"] == "HDFC0001234"
        assert data["account_type"] == "current"
        assert data["shop_category"] == "Women"

    def test_hours_and_images(self, client, seller_headers):
        images = [f"https://cdn.example.com/shop/{i}.jpg" for i in range(3)]
        response = client.put(
            "/sellers/profile",
            json={"open_time": "10:30", "close_time": "21:00", "images": images},
            headers=seller_headers,
        )
        data = response.json()
        assert data["open_time"] == "10:30"
        assert data["close_time"] == "21:00"
        assert data["images"] == images

    def test_bad_time_format(self, client, seller_headers):
        response = client.put("/sellers/profile", json={"open_time": "25:00"}, headers=seller_headers)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_too_many_images(self, client, seller_headers):
        images = [f"https://cdn.example.com/{i}.jpg" for i in range(11)]
        response = client.put("/sellers/profile", json={"images": images}, headers=seller_headers)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_unknown_category(self, client, seller_headers):
        response = client.put("/sellers/profile", json={"shop_category": "Toys"}, headers=seller_headers)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_sellers_do_not_see_each_other(self, client, seller_headers, other_seller_headers):
        client.put("/sellers/profile", json={"description": "Handwoven cotton"}, headers=seller_headers)
        other = client.get("/sellers/profile", headers=other_seller_headers).json()
        assert other["description"] == ""
        assert other["shop_name"] == "Other Shop"
