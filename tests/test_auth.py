"""
Tests for seller and customer authentication endpoints.
Uses in-memory SQLite database for fast, isolated tests.
"""
import re

import pytest
from fastapi import status

from models.seller import Seller
from security import jwt as jwt_utils
from security.password import verify_password
from services import otp as otp_service

SELLER_PAYLOAD = {
    "first_name": "Meera",
    "email": "Meera@Example.com",
    "password": "SecurePass123",
    "mobile_number": "9123456780",
    "shop_name": "Meera Handlooms",
    "shop_address": "4 Temple Road, Mysuru",
    "shop_category": "Women",
    "gst_number": "29abcde1234f1z5",
}


def last_code(sent):
    return re.search(r"\b(\d{6})\b", sent[-1]["body"]).group(1)


class TestSellerRegister:
    """Seller sign-up and email verification."""

    def test_register_sends_code(self, client, db, mock_email_send):
        response = client.post("/auth/register", json=SELLER_PAYLOAD)
        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["email"] == "meera@example.com"
        assert data["is_verified"] is False

        seller = db.query(Seller).filter_by(email="meera@example.com").one()
        assert seller.gst_number == "29ABCDE1234F1Z5"
        assert mock_email_send[-1]["to"] == "meera@example.com"
        assert last_code(mock_email_send)

    def test_duplicate_email_case_insensitive(self, client, seller):
        payload = {**SELLER_PAYLOAD, "email": "SELLER@example.com"}
        response = client.post("/auth/register", json=payload)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "already registered" in response.json()["detail"]

    def test_duplicate_mobile(self, client, seller):
        payload = {**SELLER_PAYLOAD, "mobile_number": seller.mobile_number}
        response = client.post("/auth/register", json=payload)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_invalid_category(self, client):
        response = client.post("/auth/register", json={**SELLER_PAYLOAD, "shop_category": "Pets"})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_verify_then_login(self, client, mock_email_send):
        client.post("/auth/register", json=SELLER_PAYLOAD)
        code = last_code(mock_email_send)

        blocked = client.post("/auth/login", json={"email": "meera@example.com", "password": "SecurePass123"})
        assert blocked.status_code == status.HTTP_403_FORBIDDEN

        verified = client.post("/auth/verify-otp", json={"code": code})
        assert verified.status_code == status.HTTP_200_OK
        assert mock_email_send[-1]["subject"] == "Email verified"

        response = client.post("/auth/login", json={"email": "MEERA@example.com", "password": "SecurePass123"})
        assert response.status_code == status.HTTP_200_OK
        tokens = response.json()
        assert tokens["token_type"] == "bearer"
        payload = jwt_utils.decode_access(tokens["access_token"])
        assert payload["role"] == jwt_utils.SELLER_ROLE

    def test_code_is_single_use(self, client, mock_email_send):
        client.post("/auth/register", json=SELLER_PAYLOAD)
        code = last_code(mock_email_send)
        assert client.post("/auth/verify-otp", json={"code": code}).status_code == 200
        assert client.post("/auth/verify-otp", json={"code": code}).status_code == 400

    def test_wrong_code(self, client, monkeypatch):
        monkeypatch.setattr(otp_service, "_generate_code", lambda: "123456")
        client.post("/auth/register", json=SELLER_PAYLOAD)
        response = client.post("/auth/verify-otp", json={"code": "654321"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_resend_for_verified_seller(self, client, seller):
        response = client.post("/auth/resend-otp", json={"email": seller.email})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_resend_issues_new_code(self, client, seller_factory, mock_email_send):
        pending = seller_factory(email="new@example.com", mobile="9000000009", verified=False)
        response = client.post("/auth/resend-otp", json={"email": pending.email})
        assert response.status_code == status.HTTP_200_OK
        assert mock_email_send[-1]["to"] == pending.email


class TestSellerLogin:
    def test_wrong_password(self, client, seller):
        response = client.post("/auth/login", json={"email": seller.email, "password": "nope-nope"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_email(self, client):
        response = client.post("/auth/login", json={"email": "ghost@example.com", "password": "whatever"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_inactive_seller(self, client, db, seller):
        seller.is_active = False
        db.commit()
        response = client.post("/auth/login", json={"email": seller.email, "password": "testpass123"})
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_inactive_seller_token_rejected(self, client, db, seller, seller_headers):
        seller.is_active = False
        db.commit()
        response = client.get("/orders/", headers=seller_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_check_email(self, client, seller):
        assert client.post("/auth/check-email", json={"email": "SELLER@example.com"}).json() == {"exists": True}
        assert client.post("/auth/check-email", json={"email": "none@example.com"}).json() == {"exists": False}


class TestPasswords:
    def test_change_password(self, client, db, seller, seller_headers):
        response = client.post(
            "/auth/change-password",
            json={"old_password": "testpass123", "new_password": "brandnew456"},
            headers=seller_headers,
        )
        assert response.status_code == status.HTTP_200_OK
        db.refresh(seller)
        assert verify_password("brandnew456", seller.password_hash)

    def test_change_password_wrong_old(self, client, seller_headers):
        response = client.post(
            "/auth/change-password",
            json={"old_password": "wrong-one", "new_password": "brandnew456"},
            headers=seller_headers,
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_reset_flow(self, client, db, seller, mock_email_send):
        response = client.post("/auth/reset-password/request", json={"email": seller.email})
        assert response.status_code == status.HTTP_200_OK
        assert mock_email_send[-1]["subject"] == "Your password reset code"
        code = last_code(mock_email_send)

        response = client.post(
            "/auth/reset-password/confirm",
            json={"email": seller.email, "code": code, "new_password": "resetpass789"},
        )
        assert response.status_code == status.HTTP_200_OK
        db.refresh(seller)
        assert verify_password("resetpass789", seller.password_hash)
        assert mock_email_send[-1]["subject"] == "Password reset successful"

    def test_reset_code_cannot_verify_email(self, client, seller_factory, mock_email_send):
        pending = seller_factory(email="pending@example.com", mobile="9000000010", verified=False)
        client.post("/auth/reset-password/request", json={"email": pending.email})
        code = last_code(mock_email_send)
        assert client.post("/auth/verify-otp", json={"code": code}).status_code == status.HTTP_400_BAD_REQUEST

    def test_reset_request_for_unknown_email_is_silent(self, client, mock_email_send):
        response = client.post("/auth/reset-password/request", json={"email": "ghost@example.com"})
        assert response.status_code == status.HTTP_200_OK
        assert mock_email_send == []


class TestRefreshToken:
    def test_refresh(self, client, seller):
        refresh = jwt_utils.create_refresh_token(str(seller.id), jwt_utils.SELLER_ROLE)
        response = client.post("/auth/refresh-token", json={"refresh_token": refresh})
        assert response.status_code == status.HTTP_200_OK
        assert jwt_utils.decode_access(response.json()["access_token"])["sub"] == str(seller.id)

    def test_access_token_is_not_a_refresh_token(self, client, seller):
        access = jwt_utils.create_access_token(str(seller.id), jwt_utils.SELLER_ROLE)
        response = client.post("/auth/refresh-token", json={"refresh_token": access})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_customer_refresh_rejected(self, client, customer):
        refresh = jwt_utils.create_refresh_token(str(customer.id), jwt_utils.CUSTOMER_ROLE)
        response = client.post("/auth/refresh-token", json={"refresh_token": refresh})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestCustomers:
    def test_register_and_login(self, client):
        response = client.post(
            "/customers/register",
            json={"first_name": "Ravi", "last_name": "K", "email": "Ravi@Example.com", "password": "customer123"},
        )
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["address"] is None

        response = client.post("/customers/login", json={"email": "ravi@example.com", "password": "customer123"})
        assert response.status_code == status.HTTP_200_OK
        payload = jwt_utils.decode_access(response.json()["access_token"])
        assert payload["role"] == jwt_utils.CUSTOMER_ROLE

    def test_address_roundtrip(self, client, customer_headers):
        address = {
            "full_name": "Asha Rao",
            "line1": "7 Lake View",
            "city": "Mysuru",
            "state": "Karnataka",
            "postal_code": "570001",
            "country": "India",
            "phone": "9876543210",
        }
        response = client.put("/customers/me/address", json=address, headers=customer_headers)
        assert response.status_code == status.HTTP_200_OK
        assert client.get("/customers/me/address", headers=customer_headers).json()["city"] == "Mysuru"

    def test_my_orders(self, client, pending_order, customer_headers):
        response = client.get("/customers/me/orders", headers=customer_headers)
        assert response.status_code == status.HTTP_200_OK
        assert [o["id"] for o in response.json()] == [pending_order.id]

    @pytest.mark.parametrize("path", ["/customers/me/address", "/customers/me/orders"])
    def test_seller_token_rejected(self, client, seller_headers, path):
        assert client.get(path, headers=seller_headers).status_code == status.HTTP_403_FORBIDDEN
