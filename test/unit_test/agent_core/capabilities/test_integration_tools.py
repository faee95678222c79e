"""Email and Home Assistant executors against mocked HTTP services."""

from __future__ import annotations

import json
from typing import List

import httpx
import pytest

from actuator_ai.agent_core.capabilities.builtin.email import EmailExecutor
from actuator_ai.agent_core.capabilities.builtin.home_assistant import HomeAssistantExecutor, service_domain
from actuator_ai.agent_core.schemas.domain import SideEffectSeverity, SideEffectType

MAIL_URL = "http://mock-mail/api"
HA_URL = "http://mock-ha:8123"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestEmailExecutor:
    @pytest.mark.asyncio
    async def test_send_email_posts_message_and_reports_major_effect(self):
        seen: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "msg_1"})

        executor = EmailExecutor(base_url=MAIL_URL, api_token="tok", sender="me@example.com", client=_client(handler))
        result = await executor.execute(
            "sendEmail", {"to": "alice@example.com", "subject": "Late", "body": "Running 10 minutes late."}
        )

        assert result.success is True
        assert result.output["message_id"] == "msg_1"
        (request,) = seen
        assert request.method == "POST"
        assert request.url.path == "/api/messages"
        assert request.headers["Authorization"] == "Bearer tok"
        assert json.loads(request.content) == {
            "to": "alice@example.com",
            "subject": "Late",
            "body": "Running 10 minutes late.",
            "from": "me@example.com",
        }
        (effect,) = result.side_effects
        assert effect.type == SideEffectType.email_sent
        assert effect.severity == SideEffectSeverity.major
        assert effect.reversible is False
        assert effect.details is not None and effect.details.metadata == {"message_id": "msg_1"}

    @pytest.mark.asyncio
    async def test_unconfigured_email_is_not_recoverable(self):
        result = await EmailExecutor().execute("sendEmail", {"to": "a@b.co", "subject": "s", "body": "b"})

        assert result.success is False
        assert result.error is not None
        assert result.error.code == "NOT_CONFIGURED"
        assert result.error.recoverable is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("status", "recoverable"), [(503, True), (400, False)])
    async def test_mail_service_errors(self, status: int, recoverable: bool):
        executor = EmailExecutor(
            base_url=MAIL_URL, api_token="tok", client=_client(lambda r: httpx.Response(status, json={}))
        )
        result = await executor.execute("sendEmail", {"to": "a@b.co", "subject": "s", "body": "b"})

        assert result.success is False
        assert result.error is not None
        assert result.error.code == "EMAIL_ERROR"
        assert result.error.recoverable is recoverable

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(202, text="queued"),
            httpx.Response(200, json=["msg_1"]),
            httpx.Response(204),
        ],
    )
    async def test_accepted_send_counts_as_sent_whatever_the_body(self, response: httpx.Response):
        calls: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return response

        executor = EmailExecutor(base_url=MAIL_URL, api_token="tok", client=_client(handler))
        result = await executor.execute("sendEmail", {"to": "a@b.co", "subject": "s", "body": "b"})

        assert len(calls) == 1
        assert result.success is True
        assert result.output["sent"] is True
        assert result.output["message_id"] is None
        assert result.side_effects[0].type == SideEffectType.email_sent

    @pytest.mark.asyncio
    async def test_get_emails_rejects_unexpected_body(self):
        executor = EmailExecutor(
            base_url=MAIL_URL, api_token="tok", client=_client(lambda r: httpx.Response(200, json=["x"]))
        )
        result = await executor.execute("getEmails", {"count": 5, "unread_only": False})

        assert result.success is False
        assert result.error is not None
        assert result.error.code == "EMAIL_ERROR"

    @pytest.mark.asyncio
    async def test_get_emails_passes_query(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["limit"] == "3"
            assert request.url.params["unread"] == "true"
            return httpx.Response(200, json={"messages": [{"id": "1", "subject": "Hi"}]})

        executor = EmailExecutor(base_url=MAIL_URL, api_token="tok", client=_client(handler))
        result = await executor.execute("getEmails", {"count": 3, "unread_only": True})

        assert result.success is True
        assert result.message == "1 email(s)"

    def test_send_email_validates_recipient(self):
        outcome = EmailExecutor().validate("sendEmail", {"to": "not-an-address", "subject": "s", "body": "b"})
        assert outcome.valid is False
        assert outcome.errors[0].startswith("to:")

    @pytest.mark.asyncio
    async def test_simulation_predicts_send_without_calling_service(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("simulation must not reach the mail service")

        executor = EmailExecutor(base_url=MAIL_URL, api_token="tok", client=_client(handler))
        sim = await executor.simulate("sendEmail", {"to": "a@b.co", "subject": "Hello", "body": "b"})

        assert sim.would_succeed is True
        assert sim.predicted_side_effects[0].type == SideEffectType.email_sent


class TestHomeAssistantExecutor:
    def test_service_domain(self):
        assert service_domain("light.kitchen") == "light"
        assert service_domain("kitchen") == "homeassistant"

    @pytest.mark.asyncio
    async def test_control_device_records_before_and_after(self):
        states = iter(["off", "on"])
        posted: List[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Bearer ha-token"
            if request.method == "GET":
                assert request.url.path == "/api/states/light.kitchen"
                return httpx.Response(200, json={"state": next(states), "attributes": {"brightness": 128}})
            assert request.url.path == "/api/services/light/turn_on"
            posted.append(json.loads(request.content))
            return httpx.Response(200, json=[])

        executor = HomeAssistantExecutor(base_url=HA_URL, token="ha-token", client=_client(handler))
        result = await executor.execute("controlDevice", {"device": "light.kitchen", "action": "set", "brightness": 50})

        assert result.success is True
        assert posted == [{"entity_id": "light.kitchen", "brightness_pct": 50}]
        assert result.output["previous_state"] == "off"
        assert result.output["new_state"] == "on"
        (effect,) = result.side_effects
        assert effect.type == SideEffectType.device_control
        assert effect.severity == SideEffectSeverity.major
        assert effect.rollback_action == "turn_off"
        assert effect.details is not None
        assert (effect.details.before, effect.details.after) == ("off", "on")

    @pytest.mark.asyncio
    async def test_missing_device_fails(self):
        executor = HomeAssistantExecutor(
            base_url=HA_URL, token="t", client=_client(lambda r: httpx.Response(404, json={"message": "nope"}))
        )
        result = await executor.execute("getDeviceState", {"device": "light.attic"})

        assert result.success is False
        assert result.error is not None
        assert result.error.code == "DEVICE_CONTROL_ERROR"
        assert result.message == "Device not found"

    @pytest.mark.asyncio
    async def test_unreachable_home_assistant(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        executor = HomeAssistantExecutor(base_url=HA_URL, token="t", client=_client(handler))
        result = await executor.execute("getDeviceState", {"device": "switch.fan"})

        assert result.success is False
        assert result.message.startswith("Home Assistant unreachable")

    @pytest.mark.asyncio
    async def test_unconfigured_simulation_warns(self):
        sim = await HomeAssistantExecutor().simulate("controlDevice", {"device": "light.x", "action": "toggle"})
        assert sim.would_succeed is False
        assert sim.warnings == ["Home Assistant is not configured"]
