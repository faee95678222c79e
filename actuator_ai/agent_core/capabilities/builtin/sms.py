"""Text messages over a Twilio-compatible REST API.

- ``POST {base_url}/Accounts/{sid}/Messages.json`` (form ``To``, ``From``,
  ``Body``; basic auth ``sid:token``) sends a message and answers
  ``{"sid", "status"}``.
- ``GET {base_url}/Accounts/{sid}/Messages/{message_sid}.json`` answers the
  delivery status.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

import httpx
from pydantic import Field

from ...errors import NotConfiguredError, ToolExecutionError
from ...schemas.domain import (
    BlastRadius,
    ErrorCode,
    RiskLevel,
    SideEffectSeverity,
    SideEffectType,
    SimulationResult,
    ToolCapability,
)
from ..base import BaseToolExecutor, ToolHandler, ToolOutcome
from ..side_effects import create_side_effect
from ..validation import ToolParams

logger = logging.getLogger(__name__)

DEFAULT_SMS_API_URL = "https://api.twilio.com/2010-04-01"

STATUS_MESSAGES = {
    "queued": "Message is queued for delivery",
    "sending": "Message is being sent",
    "sent": "Message was sent successfully",
    "delivered": "Message was delivered",
    "undelivered": "Message could not be delivered",
    "failed": "Message failed to send",
}


class SendSmsParams(ToolParams):
    to: str = Field(pattern=r"^\+?[\d\-() .]{7,24}$", description="Recipient phone number")
    message: str = Field(min_length=1, max_length=1600, description="Message text")


class GetMessageStatusParams(ToolParams):
    message_id: str = Field(pattern=r"^[A-Za-z0-9]{2,64}$", description="Message id returned by sendSms")


def normalize_phone(number: str) -> str:
    """Strip formatting; bare 10-digit and ``1``-prefixed 11-digit numbers are treated as North American."""
    digits = re.sub(r"[^\d+]", "", number)
    if digits.startswith("+"):
        return digits
    if len(digits) == 10:
        return f"+1{digits}"
    if len(digits) == 11 and digits.startswith("1"):
        return f"+{digits}"
    return digits


def _preview(text: str, limit: int = 50) -> str:
    return text if len(text) <= limit else f"{text[:limit]}..."


class SmsExecutor(BaseToolExecutor):
    id = "sms"
    name = "SMS Messaging"
    category = "communication"

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        from_number: Optional[str] = None,
        timeout_seconds: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = (base_url or DEFAULT_SMS_API_URL).rstrip("/")
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._timeout = timeout_seconds
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self._account_sid and self._auth_token and self._from_number)

    def get_capabilities(self) -> List[ToolCapability]:
        return [
            ToolCapability(
                name="sendSms",
                description="Send an SMS text message to a phone number",
                params_schema=SendSmsParams,
                risk_level=RiskLevel.high,
                reversible=False,
                external_impact=True,
                blast_radius=BlastRadius.external,
                required_permissions=frozenset({"sms.send"}),
                supports_simulation=True,
            ),
            ToolCapability(
                name="getMessageStatus",
                description="Check the delivery status of a sent text message",
                params_schema=GetMessageStatusParams,
                risk_level=RiskLevel.none,
                reversible=True,
                blast_radius=BlastRadius.local,
                supports_simulation=False,
            ),
        ]

    def handlers(self) -> Dict[str, ToolHandler]:
        return {"sendSms": self._send_sms, "getMessageStatus": self._get_message_status}

    async def predict(self, tool_name: str, params: Dict[str, Any]) -> SimulationResult:
        if tool_name != "sendSms":
            return await super().predict(tool_name, params)
        to = normalize_phone(params["to"])
        warnings = ["This will send a real SMS that cannot be unsent", "Standard messaging rates may apply"]
        if not self.configured:
            warnings.insert(0, "SMS is not configured")
        return SimulationResult(
            would_succeed=self.configured,
            predicted_output={"simulated": True, "to": to},
            predicted_side_effects=[
                create_side_effect(
                    SideEffectType.message_sent,
                    to,
                    f'Would send SMS: "{_preview(params["message"], 30)}"',
                    reversible=False,
                    severity=SideEffectSeverity.major,
                )
            ],
            warnings=warnings,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        if not self.configured:
            raise NotConfiguredError("SMS")
        url = f"{self._base_url}/Accounts/{self._account_sid}{path}"
        auth = (self._account_sid or "", self._auth_token or "")
        try:
            if self._client is not None:
                response = await self._client.request(method, url, auth=auth, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.request(method, url, auth=auth, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status == 404:
                raise ToolExecutionError(ErrorCode.SMS_ERROR, "Message not found", recoverable=False) from exc
            raise ToolExecutionError(
                ErrorCode.SMS_ERROR, f"SMS service answered {status}", recoverable=status >= 500
            ) from exc
        except httpx.HTTPError as exc:
            raise ToolExecutionError(ErrorCode.SMS_ERROR, f"SMS service unreachable: {exc}") from exc
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            logger.warning("SMS service answered %d with a non-JSON body", response.status_code)
            return None

    async def _send_sms(self, params: Dict[str, Any]) -> ToolOutcome:
        to = normalize_phone(params["to"])
        body = params["message"]
        data = await self._request(
            "POST", "/Messages.json", data={"To": to, "From": self._from_number or "", "Body": body}
        )
        # accepted by the provider: report as sent even if the body is unusable
        data = data if isinstance(data, dict) else {}
        message_sid = data.get("sid")
        logger.info("SMS sent to %s (sid %s, %d chars)", to, message_sid, len(body))
        return ToolOutcome(
            output={"sent": True, "message_id": message_sid, "to": to, "status": data.get("status")},
            message=f"Message sent to {to}",
            side_effects=[
                create_side_effect(
                    SideEffectType.message_sent,
                    to,
                    f'Sent SMS: "{_preview(body)}"',
                    reversible=False,
                    severity=SideEffectSeverity.major,
                    metadata={"message_id": message_sid},
                )
            ],
        )

    async def _get_message_status(self, params: Dict[str, Any]) -> ToolOutcome:
        message_id = params["message_id"]
        data = await self._request("GET", f"/Messages/{message_id}.json")
        if not isinstance(data, dict):
            raise ToolExecutionError(ErrorCode.SMS_ERROR, "SMS service returned an unexpected response")
        status = data.get("status")
        return ToolOutcome(
            output={
                "message_id": message_id,
                "status": status,
                "to": data.get("to"),
                "date_sent": data.get("date_sent"),
                "error_code": data.get("error_code"),
                "error_message": data.get("error_message"),
            },
            message=STATUS_MESSAGES.get(status or "", f"Status: {status}"),
        )
