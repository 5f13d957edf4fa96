"""
EmailService delivery and log-only fallbacks (httpx.MockTransport).
"""

import json
import logging

import httpx
import pytest

from daily_tracker.exceptions import EmailDeliveryError
from daily_tracker.services.email_service import EmailService, OtpPurpose, render_otp_html


def make_service(handler, api_key: str = "re_test_key") -> EmailService:
    return EmailService(
        api_key=api_key,
        sender="Daily Tracker <test@example.com>",
        api_url="https://api.resend.test/emails",
        transport=httpx.MockTransport(handler),
    )


class TestSendOtp:
    @pytest.mark.asyncio
    async def test_successful_delivery(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"id": "email_1"})

        service = make_service(handler)
        assert await service.send_otp("a@example.com", "123456", OtpPurpose.PASSWORD_RESET)

        assert len(requests) == 1
        request = requests[0]
        assert request.headers["Authorization"] == "Bearer re_test_key"
        body = json.loads(request.content)
        assert body["to"] == ["a@example.com"]
        assert body["from"] == "Daily Tracker <test@example.com>"
        assert body["subject"] == "Password Reset OTP - Daily Tracker"
        assert "123456" in body["html"]

    @pytest.mark.asyncio
    async def test_mobile_login_mentions_phone(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"id": "email_2"})

        service = make_service(handler)
        assert await service.send_otp("a@example.com", "654321", "mobile_login", phone="5550100")
        assert bodies[0]["subject"] == "Mobile Login OTP - Daily Tracker"
        assert "5550100" in bodies[0]["html"]

    @pytest.mark.asyncio
    async def test_no_api_key_logs_code(self, caplog):
        def handler(request):
            raise AssertionError("no request expected without an API key")

        service = make_service(handler, api_key="")
        with caplog.at_level(logging.WARNING, logger="daily_tracker.services.email_service"):
            assert not await service.send_otp("a@example.com", "123456", OtpPurpose.PASSWORD_RESET)
        assert "123456" in caplog.text

    @pytest.mark.asyncio
    async def test_provider_error_is_swallowed(self, caplog):
        service = make_service(lambda request: httpx.Response(422, json={"message": "bad from"}))
        with caplog.at_level(logging.WARNING, logger="daily_tracker.services.email_service"):
            assert not await service.send_otp("a@example.com", "123456", OtpPurpose.PASSWORD_RESET)
        assert "Email failed, OTP for a@example.com: 123456" in caplog.text

    @pytest.mark.asyncio
    async def test_transport_error_is_swallowed(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        service = make_service(handler)
        assert not await service.send_otp("a@example.com", "123456", OtpPurpose.PASSWORD_RESET)


class TestSend:
    @pytest.mark.asyncio
    async def test_send_raises_with_status(self):
        service = make_service(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(EmailDeliveryError) as exc_info:
            await service.send("a@example.com", "subject", "<p>hi</p>")
        assert exc_info.value.status_code == 500


def test_render_includes_expiry():
    html = render_otp_html("123456", OtpPurpose.PASSWORD_RESET, 5)
    assert "Password Reset Request" in html
    assert "expire in 5 minutes" in html
    assert "Phone number" not in html
