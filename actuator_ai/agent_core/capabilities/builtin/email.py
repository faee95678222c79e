"""Email over a minimal REST mail API.

The executor talks to a configured mail service with bearer-token auth:

- ``POST {base_url}/messages`` with ``{"from", "to", "subject", "body"}``
  sends a message and answers ``{"id": ...}``.
- ``GET {base_url}/messages?limit=N&unread=true|false`` answers
  ``{"messages": [{"id", "from", "subject", "snippet"}, ...]}``.
"""

from __future__ import annotations

import logging
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

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class SendEmailParams(ToolParams):
    to: str = Field(pattern=_EMAIL_PATTERN, max_length=254, description="Recipient email address")
    subject: str = Field(min_length=1, max_length=200)
    body: str = Field(min_length=1, max_length=20_000)


class GetEmailsParams(ToolParams):
    count: int = Field(default=5, ge=1, le=20)
    unread_only: bool = False


class EmailExecutor(BaseToolExecutor):
    id = "email"
    name = "Email"
    category = "communication"

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        api_token: Optional[str] = None,
        sender: Optional[str] = None,
        timeout_seconds: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/") if base_url else None
        self._api_token = api_token
        self._sender = sender
        self._timeout = timeout_seconds
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self._base_url and self._api_token)

    def get_capabilities(self) -> List[ToolCapability]:
        return [
            ToolCapability(
                name="sendEmail",
                description="Send a new email",
                params_schema=SendEmailParams,
                risk_level=RiskLevel.high,
                reversible=False,
                external_impact=True,
                blast_radius=BlastRadius.external,
                required_permissions=frozenset({"email.send"}),
                supports_simulation=True,
            ),
            ToolCapability(
                name="getEmails",
                description="List recent emails from the inbox",
                params_schema=GetEmailsParams,
                risk_level=RiskLevel.none,
                reversible=True,
                blast_radius=BlastRadius.local,
                required_permissions=frozenset({"email.read"}),
                supports_simulation=False,
            ),
        ]

    def handlers(self) -> Dict[str, ToolHandler]:
        return {"sendEmail": self._send_email, "getEmails": self._get_emails}

    async def predict(self, tool_name: str, params: Dict[str, Any]) -> SimulationResult:
        warnings = [] if self.configured else ["Email is not configured"]
        effects = []
        if tool_name == "sendEmail":
            effects.append(
                create_side_effect(
                    SideEffectType.email_sent,
                    params["to"],
                    f'Would send email: "{params["subject"]}"',
                    reversible=False,
                    severity=SideEffectSeverity.major,
                )
            )
        return SimulationResult(
            would_succeed=self.configured,
            predicted_output={"simulated": True},
            predicted_side_effects=effects,
            warnings=warnings,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        if not self.configured:
            raise NotConfiguredError("Email")
        headers = {"Authorization": f"Bearer {self._api_token}"}
        url = f"{self._base_url}{path}"
        try:
            if self._client is not None:
                response = await self._client.request(method, url, headers=headers, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.request(method, url, headers=headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise ToolExecutionError(
                ErrorCode.EMAIL_ERROR, f"Mail service answered {status}", recoverable=status >= 500
            ) from exc
        except httpx.HTTPError as exc:
            raise ToolExecutionError(ErrorCode.EMAIL_ERROR, f"Mail service unreachable: {exc}") from exc
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            logger.warning("Mail service answered %d with a non-JSON body", response.status_code)
            return None

    async def _send_email(self, params: Dict[str, Any]) -> ToolOutcome:
        payload = {"to": params["to"], "subject": params["subject"], "body": params["body"]}
        if self._sender:
            payload["from"] = self._sender
        data = await self._request("POST", "/messages", json=payload)
        # a 2xx means the message left; never fail after that point
        message_id = data.get("id") if isinstance(data, dict) else None
        logger.info("Email sent to %s (message id %s)", params["to"], message_id)
        return ToolOutcome(
            output={"sent": True, "message_id": message_id, "to": params["to"], "subject": params["subject"]},
            message=f"Email sent to {params['to']}",
            side_effects=[
                create_side_effect(
                    SideEffectType.email_sent,
                    params["to"],
                    f'Sent email: "{params["subject"]}"',
                    reversible=False,
                    severity=SideEffectSeverity.major,
                    metadata={"message_id": message_id},
                )
            ],
        )

    async def _get_emails(self, params: Dict[str, Any]) -> ToolOutcome:
        data = await self._request(
            "GET",
            "/messages",
            params={"limit": params["count"], "unread": str(params["unread_only"]).lower()},
        )
        if data is None:
            data = {}
        emails = data.get("messages", []) if isinstance(data, dict) else None
        if not isinstance(emails, list):
            raise ToolExecutionError(ErrorCode.EMAIL_ERROR, "Mail service returned an unexpected response")
        message = "No emails found" if not emails else f"{len(emails)} email(s)"
        return ToolOutcome(output={"emails": emails}, message=message)
