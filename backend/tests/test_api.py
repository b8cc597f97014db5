"""
FundFlow Backend — API Integration Tests
==========================================

What:  Full HTTP round trips through FastAPI: routing, auth dependencies,
       camelCase envelopes, error mapping and the per-request commit.
How:   HTTPX AsyncClient over ASGITransport with the in-memory database.
       Outbound integrations (LINE, OCR, SMTP) are patched.
"""

from unittest.mock import AsyncMock, patch

import httpx
import jwt
import pytest

from fundflow.config import settings
from fundflow.exceptions import DatabaseError
from fundflow.models.user import UserRole
from fundflow.services.approval_service import approval_service
from fundflow.services.ledger_service import ledger_service


def _transaction_body(title: str = "Office snacks", quantity: int = 2, price: int = 100) -> dict:
    return {"title": title, "items": [{"name": "Chips", "quantity": quantity, "price": price}]}


def _approve_list_body(**overrides) -> dict:
    body = {
        "apiKey": "test-api-key",
        "url": "https://erp.example.com/po/42",
        "title": "Purchase order #42",
        "detail": "Printer paper",
        "idFrom": "42",
    }
    body.update(overrides)
    return body


class TestAuthGuards:
    @pytest.mark.asyncio
    async def test_missing_token(self, test_client):
        response = await test_client.get("/api/transactions")

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "unauthorized"
        assert body["message"] == "No token provided"
        assert body["request_id"]
        assert response.headers["X-Request-ID"] == body["request_id"]

    @pytest.mark.asyncio
    async def test_invalid_token(self, test_client):
        response = await test_client.get("/api/net-amount", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"

    @pytest.mark.asyncio
    async def test_client_request_id_is_echoed(self, test_client):
        response = await test_client.get("/api/transactions", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"
        assert response.json()["request_id"] == "abc-123"


class TestTransactionsApi:
    @pytest.mark.asyncio
    async def test_create_moves_balance_and_writes_history(self, test_client, make_user, seed_balance, auth_headers):
        user = await make_user()
        await seed_balance("1000")
        headers = auth_headers(user)

        response = await test_client.post("/api/transactions", json=_transaction_body(), headers=headers)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["amount"] == 200.0
        assert data["ownerId"] == user.id
        assert data["statusApproveId"] == 1
        assert data["items"][0]["total"] == 200.0
        assert data["historyNetAmount"]["amount"] == 800.0

        net = await test_client.get("/api/net-amount", headers=headers)
        assert net.json()["data"]["amount"] == 800.0

        history = await test_client.get("/api/history", headers=headers)
        assert history.json()["pagination"]["total"] == 1
        assert history.json()["data"][0]["action"] == "CREATE"
        assert history.json()["data"][0]["transactionId"] == data["id"]

    @pytest.mark.asyncio
    async def test_edit_and_delete_restore_balance(self, test_client, make_user, seed_balance, auth_headers):
        user = await make_user()
        await seed_balance("1000")
        headers = auth_headers(user)
        created = (await test_client.post("/api/transactions", json=_transaction_body(), headers=headers)).json()
        transaction_id = created["data"]["id"]

        updated = await test_client.put(
            f"/api/transactions/{transaction_id}",
            json={"items": [{"name": "Chips", "quantity": 1, "price": 150}]},
            headers=headers,
        )
        assert updated.status_code == 200
        assert updated.json()["data"]["amount"] == 150.0
        assert (await test_client.get("/api/net-amount", headers=headers)).json()["data"]["amount"] == 850.0

        deleted = await test_client.delete(f"/api/transactions/{transaction_id}", headers=headers)
        assert deleted.status_code == 200
        assert deleted.json()["message"] == "Transaction deleted"
        assert (await test_client.get("/api/net-amount", headers=headers)).json()["data"]["amount"] == 1000.0

        history = await test_client.get(f"/api/history?transactionId={transaction_id}", headers=headers)
        assert [h["action"] for h in history.json()["data"]] == ["DELETE", "UPDATE", "CREATE"]

        missing = await test_client.get(f"/api/transactions/{transaction_id}", headers=headers)
        assert missing.status_code == 404
        assert missing.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_empty_items_rejected(self, test_client, make_user, auth_headers):
        user = await make_user()

        response = await test_client.post(
            "/api/transactions",
            json={"title": "Nothing", "items": []},
            headers=auth_headers(user),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert response.json()["message"].startswith("items")

    @pytest.mark.asyncio
    async def test_sub_cent_quantity_rejected(self, test_client, make_user, seed_balance, auth_headers):
        user = await make_user()
        await seed_balance("1000")
        headers = auth_headers(user)

        response = await test_client.post(
            "/api/transactions",
            json={"title": "Rice", "items": [{"name": "Rice", "quantity": "0.333", "price": "10"}]},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert (await test_client.get("/api/net-amount", headers=headers)).json()["data"]["amount"] == 1000.0

    @pytest.mark.asyncio
    async def test_failure_after_ledger_write_rolls_everything_back(
        self, test_client, make_user, seed_balance, auth_headers
    ):
        user = await make_user()
        await seed_balance("1000")
        headers = auth_headers(user)
        real_apply_change = ledger_service.apply_change

        async def apply_then_fail(*args, **kwargs):
            await real_apply_change(*args, **kwargs)
            raise DatabaseError(context={"error_type": "OperationalError"})

        with patch.object(ledger_service, "apply_change", new=apply_then_fail):
            response = await test_client.post("/api/transactions", json=_transaction_body(), headers=headers)

        assert response.status_code == 500
        assert (await test_client.get("/api/net-amount", headers=headers)).json()["data"]["amount"] == 1000.0
        assert (await test_client.get("/api/history", headers=headers)).json()["pagination"]["total"] == 0
        assert (await test_client.get("/api/transactions", headers=headers)).json()["pagination"]["total"] == 0

    @pytest.mark.asyncio
    async def test_failed_edit_keeps_previous_items_and_balance(
        self, test_client, make_user, seed_balance, auth_headers
    ):
        user = await make_user()
        await seed_balance("1000")
        headers = auth_headers(user)
        created = (await test_client.post("/api/transactions", json=_transaction_body(), headers=headers)).json()
        transaction_id = created["data"]["id"]
        real_apply_change = ledger_service.apply_change

        async def apply_then_fail(*args, **kwargs):
            await real_apply_change(*args, **kwargs)
            raise DatabaseError(context={"error_type": "OperationalError"})

        with patch.object(ledger_service, "apply_change", new=apply_then_fail):
            response = await test_client.put(
                f"/api/transactions/{transaction_id}",
                json={"items": [{"name": "Chips", "quantity": 1, "price": 150}]},
                headers=headers,
            )

        assert response.status_code == 500
        stored = (await test_client.get(f"/api/transactions/{transaction_id}", headers=headers)).json()["data"]
        assert stored["amount"] == 200.0
        assert [(i["quantity"], i["price"]) for i in stored["items"]] == [(2.0, 100.0)]
        assert (await test_client.get("/api/net-amount", headers=headers)).json()["data"]["amount"] == 800.0
        assert (await test_client.get("/api/history", headers=headers)).json()["pagination"]["total"] == 1

    @pytest.mark.asyncio
    async def test_stranger_cannot_edit(self, test_client, make_user, seed_balance, auth_headers):
        owner = await make_user()
        stranger = await make_user()
        await seed_balance("0")
        created = (
            await test_client.post("/api/transactions", json=_transaction_body(), headers=auth_headers(owner))
        ).json()

        response = await test_client.put(
            f"/api/transactions/{created['data']['id']}",
            json={"title": "Mine now"},
            headers=auth_headers(stranger),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    @pytest.mark.asyncio
    async def test_approve_is_admin_only(self, test_client, make_user, seed_balance, auth_headers):
        owner = await make_user()
        admin = await make_user(role=UserRole.ADMIN)
        await seed_balance("0")
        created = (
            await test_client.post("/api/transactions", json=_transaction_body(), headers=auth_headers(owner))
        ).json()
        url = f"/api/transactions/{created['data']['id']}/approve"

        denied = await test_client.patch(url, json={"statusApproveId": 2}, headers=auth_headers(owner))
        assert denied.status_code == 403

        approved = await test_client.patch(url, json={"statusApproveId": 2}, headers=auth_headers(admin))
        assert approved.status_code == 200
        data = approved.json()["data"]
        assert data["statusApprove"]["name"] == "APPROVED"
        assert data["approverId"] == admin.id

    @pytest.mark.asyncio
    async def test_admin_sets_balance(self, test_client, make_user, seed_balance, auth_headers):
        admin = await make_user(role=UserRole.ADMIN)
        await seed_balance("1000")

        response = await test_client.put(
            "/api/net-amount",
            json={"amount": 2572, "note": "Cash count"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["action"] == "ADJUST"
        assert data["change"] == 1572.0
        assert data["amount"] == 2572.0

    @pytest.mark.asyncio
    async def test_list_filters_and_pagination(self, test_client, make_user, seed_balance, auth_headers):
        alice = await make_user()
        bob = await make_user()
        await seed_balance("0")
        for title in ("Lunch", "Taxi", "Ink"):
            await test_client.post("/api/transactions", json=_transaction_body(title), headers=auth_headers(alice))
        await test_client.post("/api/transactions", json=_transaction_body("Hotel"), headers=auth_headers(bob))

        response = await test_client.get(
            f"/api/transactions?ownerId={alice.id}&page=2&size=2",
            headers=auth_headers(bob),
        )

        body = response.json()
        assert len(body["data"]) == 1
        assert body["pagination"] == {
            "page": 2,
            "size": 2,
            "total": 3,
            "totalPages": 2,
            "hasNext": False,
            "hasPrev": True,
        }

    @pytest.mark.asyncio
    async def test_page_size_is_capped(self, test_client, make_user, auth_headers):
        user = await make_user()

        response = await test_client.get("/api/transactions?size=500", headers=auth_headers(user))

        assert response.status_code == 400


class TestApproveListsApi:
    @pytest.mark.asyncio
    async def test_push_requires_api_key(self, test_client):
        response = await test_client.post("/api/approve-lists", json=_approve_list_body(apiKey="wrong"))

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid API key"

    @pytest.mark.asyncio
    async def test_push_requires_fields(self, test_client):
        response = await test_client.post("/api/approve-lists", json={"apiKey": "test-api-key"})

        assert response.status_code == 400
        assert response.json()["message"] == "Please provide url, title and detail"

    @pytest.mark.asyncio
    async def test_push_then_list(self, test_client, make_user, auth_headers):
        user = await make_user()
        for i in range(3):
            created = await test_client.post("/api/approve-lists", json=_approve_list_body(title=f"PO {i}"))
            assert created.status_code == 201
            assert created.json()["data"]["statusApprove"]["name"] == "PENDING"

        unauthenticated = await test_client.get("/api/approve-lists")
        assert unauthenticated.status_code == 401

        response = await test_client.get("/api/approve-lists?page=2&size=1", headers=auth_headers(user))
        body = response.json()
        assert len(body["data"]) == 1
        assert body["pagination"]["total"] == 3
        assert body["pagination"]["totalPages"] == 3
        assert body["pagination"]["hasNext"] is True

    @pytest.mark.asyncio
    async def test_decision_without_callback_target(self, test_client, make_user, auth_headers):
        user = await make_user()
        created = (await test_client.post("/api/approve-lists", json=_approve_list_body())).json()

        response = await test_client.put(
            f"/api/approve-lists/{created['data']['id']}",
            json={"statusApproveId": 3, "comment": "Over budget"},
            headers=auth_headers(user),
        )

        assert response.status_code == 200
        assert response.json()["data"]["statusApprove"]["name"] == "REJECTED"
        assert response.json()["data"]["comment"] == "Over budget"

    @pytest.mark.asyncio
    async def test_decision_with_unknown_status(self, test_client, make_user, auth_headers):
        user = await make_user()
        created = (await test_client.post("/api/approve-lists", json=_approve_list_body())).json()

        response = await test_client.put(
            f"/api/approve-lists/{created['data']['id']}",
            json={"statusApproveId": 99},
            headers=auth_headers(user),
        )

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["userId", "configId", "statusApproveId"])
    async def test_push_with_unknown_reference(self, test_client, field):
        value = "no-such-user" if field == "userId" else 99

        response = await test_client.post("/api/approve-lists", json=_approve_list_body(**{field: value}))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_failed_callback_keeps_previous_decision(self, test_client, make_user, auth_headers, monkeypatch):
        headers = auth_headers(await make_user())
        created = (
            await test_client.post(
                "/api/approve-lists",
                json=_approve_list_body(apiPath="https://erp.example.com/api/po/", comment="Awaiting review"),
            )
        ).json()
        approve_list_id = created["data"]["id"]
        monkeypatch.setattr(
            approval_service, "_transport", httpx.MockTransport(lambda request: httpx.Response(500))
        )

        response = await test_client.put(
            f"/api/approve-lists/{approve_list_id}",
            json={"statusApproveId": 2, "comment": "Approved"},
            headers=headers,
        )

        assert response.status_code == 500
        assert response.json()["error"] == "integration_error"
        stored = (await test_client.get(f"/api/approve-lists/{approve_list_id}", headers=headers)).json()["data"]
        assert stored["statusApproveId"] == 1
        assert stored["comment"] == "Awaiting review"

    @pytest.mark.asyncio
    async def test_status_lookup(self, test_client, make_user, auth_headers):
        headers = auth_headers(await make_user())

        listed = await test_client.get("/api/status-approves", headers=headers)
        assert [s["name"] for s in listed.json()["data"]] == ["PENDING", "APPROVED", "REJECTED"]

        duplicate = await test_client.post("/api/status-approves", json={"name": "PENDING"}, headers=headers)
        assert duplicate.status_code == 409


class TestConfigApi:
    @pytest.mark.asyncio
    async def test_type_conflict_and_unknown_type(self, test_client, make_user, auth_headers):
        headers = auth_headers(await make_user())

        first = await test_client.post("/api/config/type/create", json={"name": "LINE"}, headers=headers)
        assert first.status_code == 201
        second = await test_client.post("/api/config/type/create", json={"name": "LINE"}, headers=headers)
        assert second.status_code == 409
        assert second.json()["error"] == "conflict"

        orphan = await test_client.post(
            "/api/config/create",
            json={"name": "group_id", "configTypeId": 99},
            headers=headers,
        )
        assert orphan.status_code == 404

    @pytest.mark.asyncio
    async def test_config_crud(self, test_client, make_user, auth_headers):
        headers = auth_headers(await make_user())
        config_type = (
            await test_client.post("/api/config/type/create", json={"name": "Mail"}, headers=headers)
        ).json()["data"]

        created = await test_client.post(
            "/api/config/create",
            json={"name": "sender", "value": "noreply@example.com", "configTypeId": config_type["id"]},
            headers=headers,
        )
        config_id = created.json()["data"]["id"]
        assert created.json()["data"]["configType"]["name"] == "Mail"

        updated = await test_client.put(
            f"/api/config/update/{config_id}", json={"value": "ops@example.com"}, headers=headers
        )
        assert updated.json()["data"]["value"] == "ops@example.com"

        listed = await test_client.get(f"/api/config?configTypeId={config_type['id']}", headers=headers)
        assert listed.json()["pagination"]["total"] == 1

        deleted = await test_client.delete(f"/api/config/delete/{config_id}", headers=headers)
        assert deleted.status_code == 200
        assert (await test_client.get(f"/api/config/{config_id}", headers=headers)).status_code == 404


class TestCronApi:
    @pytest.mark.asyncio
    async def test_requires_api_key(self, test_client):
        response = await test_client.post("/api/cron/notify-pending")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_nothing_pending(self, test_client):
        response = await test_client.post("/api/cron/notify-pending", headers={"X-API-Key": "test-api-key"})

        assert response.status_code == 200
        assert response.json()["message"] == "No pending items"

    @pytest.mark.asyncio
    async def test_pending_reminder_sent(self, test_client):
        await test_client.post("/api/approve-lists", json=_approve_list_body())

        with patch(
            "fundflow.services.reminder_service.notification_service.send_message",
            new_callable=AsyncMock,
        ) as send:
            response = await test_client.post("/api/cron/notify-pending", headers={"X-API-Key": "test-api-key"})

        assert response.json()["message"] == "Pending reminder sent for 1 items"
        assert "Purchase order #42" in send.await_args.args[0]

    @pytest.mark.asyncio
    async def test_chat_failure_surfaces_as_integration_error(self, test_client, seed_balance, monkeypatch):
        await seed_balance("0")
        monkeypatch.setattr(settings, "line_channel_access_token", "")

        response = await test_client.post("/api/cron/daily-summary", headers={"X-API-Key": "test-api-key"})

        assert response.status_code == 500
        assert response.json()["error"] == "integration_error"
        assert response.json()["details"] == {"service": "line"}


class TestUploadAndOcrApi:
    @pytest.mark.asyncio
    async def test_upload_rejects_non_image(self, test_client):
        response = await test_client.post(
            "/api/upload/single",
            files={"image": ("notes.txt", b"hello", "text/plain")},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Only image files are allowed"

    @pytest.mark.asyncio
    async def test_upload_requires_file(self, test_client):
        response = await test_client.post("/api/upload/single")

        assert response.status_code == 400
        assert response.json()["message"] == "Please select an image"

    @pytest.mark.asyncio
    async def test_oversized_upload_rejected_before_read(self, test_client, monkeypatch):
        monkeypatch.setattr(settings, "max_upload_size", 1024)

        with patch("starlette.datastructures.UploadFile.read", new_callable=AsyncMock) as read:
            response = await test_client.post(
                "/api/upload/single",
                files={"image": ("big.jpg", b"x" * 2048, "image/jpeg")},
            )

        assert response.status_code == 400
        assert "exceeds the maximum size" in response.json()["message"]
        read.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_too_many_files_rejected_before_read(self, test_client, sample_image_bytes):
        files = [("images", (f"r{i}.jpg", sample_image_bytes, "image/jpeg")) for i in range(11)]

        with patch("starlette.datastructures.UploadFile.read", new_callable=AsyncMock) as read:
            response = await test_client.post("/api/upload/multiple", files=files)

        assert response.status_code == 400
        assert response.json()["message"] == "At most 10 images can be uploaded at once"
        read.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ocr_requires_token(self, test_client, sample_image_bytes):
        response = await test_client.post(
            "/api/ocr",
            files={"receiptImage": ("r.jpg", sample_image_bytes, "image/jpeg")},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_ocr_requires_image(self, test_client, make_user, auth_headers):
        response = await test_client.post("/api/ocr", headers=auth_headers(await make_user()))

        assert response.status_code == 400
        assert response.json()["message"] == "Please upload a receipt image"

    @pytest.mark.asyncio
    async def test_ocr_relays_provider_json(self, test_client, make_user, auth_headers, sample_image_bytes):
        scan = AsyncMock(return_value={"Successful": True, "ReceiptTotal": 99.5})

        with patch("fundflow.routes.ocr.ocr_service.scan_receipt", scan):
            response = await test_client.post(
                "/api/ocr",
                files={"receiptImage": ("r.jpg", sample_image_bytes, "image/jpeg")},
                headers=auth_headers(await make_user()),
            )

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": {"Successful": True, "ReceiptTotal": 99.5}}
        assert scan.await_args.kwargs["filename"] == "r.jpg"


class TestAuthApi:
    @pytest.mark.asyncio
    async def test_register_and_sign_in(self, test_client):
        body = {"email": "malee@example.com", "firstName": "Malee", "lastName": "Suk", "password": "secret123"}

        registered = await test_client.post("/api/auth/register", json=body)
        assert registered.status_code == 200
        assert registered.json()["user"]["email"] == "malee@example.com"
        assert "password" not in registered.json()["user"]

        duplicate = await test_client.post("/api/auth/register", json=body)
        assert duplicate.status_code == 409

        signed_in = await test_client.post(
            "/api/auth/signin", json={"email": "malee@example.com", "password": "secret123"}
        )
        assert signed_in.status_code == 200
        token = signed_in.json()["token"]

        verified = await test_client.post("/api/auth/verify", headers={"Authorization": f"Bearer {token}"})
        assert verified.json()["email"] == "malee@example.com"

    @pytest.mark.asyncio
    async def test_wrong_password(self, test_client, make_user):
        await make_user(email="known@example.com", password="right-pass")

        response = await test_client.post(
            "/api/auth/signin", json={"email": "known@example.com", "password": "wrong-pass"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_login_provisions_sso_user(self, test_client):
        token = jwt.encode(
            {"id": "sso-99", "email": "sso@example.com", "firstName": "Sso", "lastName": "User"},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )
        headers = {"Authorization": f"Bearer {token}"}

        response = await test_client.post("/api/auth/login", headers=headers)

        assert response.status_code == 200
        body = response.json()
        assert body["userId"] == "sso-99"
        assert body["dbUser"]["firstName"] == "Sso"

        # The provisioned row now satisfies get_current_user
        net = await test_client.get("/api/net-amount", headers=headers)
        assert net.status_code == 200

    @pytest.mark.asyncio
    async def test_otp_flow(self, test_client, make_user):
        await make_user(email="verify@example.com")

        with patch("fundflow.services.auth_service.generate_otp", return_value="482913"), \
             patch("fundflow.services.auth_service.email_service.send_otp_email", new_callable=AsyncMock):
            requested = await test_client.post("/api/auth/otp/request", json={"email": "verify@example.com"})
        assert requested.json()["message"] == "OTP sent to your email"

        wrong = await test_client.post(
            "/api/auth/otp/verify", json={"email": "verify@example.com", "otp": "000000"}
        )
        assert wrong.status_code == 400

        verified = await test_client.post(
            "/api/auth/otp/verify", json={"email": "verify@example.com", "otp": "482913"}
        )
        assert verified.status_code == 200
        assert verified.json()["data"]["isVerified"] is True


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["version"] == "1.0.0"
