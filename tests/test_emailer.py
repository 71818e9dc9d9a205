from unittest.mock import MagicMock, patch

import pytest

from backend.auth.emailer import EmailService


def test_reset_link_points_at_change_password_page():
    service = EmailService(base_url="http://localhost:3000/", sender="a@x.com", api_key=None)

    assert service.reset_link("tok") == "http://localhost:3000/change-password/tok"


@pytest.mark.asyncio
async def test_without_api_key_message_is_only_logged():
    service = EmailService(base_url="http://board", sender="a@x.com", api_key=None)

    with patch("backend.auth.emailer.SendGridAPIClient") as client_cls:
        assert await service.send_password_reset("alice@x.com", "tok") is True

    client_cls.assert_not_called()


@pytest.mark.asyncio
async def test_sends_html_through_sendgrid():
    service = EmailService(base_url="http://board", sender="a@x.com", api_key="key")

    with patch("backend.auth.emailer.SendGridAPIClient") as client_cls:
        client_cls.return_value.send.return_value = MagicMock(status_code=202)
        assert await service.send_password_reset("alice@x.com", "tok") is True

    client_cls.assert_called_once_with("key")
    message = client_cls.return_value.send.call_args.args[0]
    assert "http://board/change-password/tok" in message.get()["content"][0]["value"]


@pytest.mark.asyncio
async def test_sendgrid_error_status_reports_failure():
    service = EmailService(base_url="http://board", sender="a@x.com", api_key="key")

    with patch("backend.auth.emailer.SendGridAPIClient") as client_cls:
        client_cls.return_value.send.return_value = MagicMock(status_code=500, body=b"boom")
        assert await service.send_password_reset("alice@x.com", "tok") is False
