"""Smart-home control through the Home Assistant REST API."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Optional

import httpx
from pydantic import Field

from ...errors import NotConfiguredError, ToolExecutionError
from ...schemas.domain import BlastRadius, ErrorCode, RiskLevel, SideEffectType, SimulationResult, ToolCapability
from ..base import BaseToolExecutor, ToolHandler, ToolOutcome
from ..side_effects import create_side_effect
from ..validation import ToolParams

logger = logging.getLogger(__name__)


class ControlDeviceParams(ToolParams):
    device: str = Field(min_length=1, max_length=100, description="Entity id, e.g. light.kitchen")
    action: Literal["turn_on", "turn_off", "toggle", "set"]
    brightness: Optional[int] = Field(default=None, ge=0, le=100)
    color: Optional[str] = Field(default=None, max_length=32)
    temperature: Optional[float] = None


class GetDeviceStateParams(ToolParams):
    device: str = Field(min_length=1, max_length=100)


def service_domain(entity_id: str) -> str:
    """``light.kitchen`` -> ``light``; bare names use the generic domain."""
    if "." in entity_id:
        return entity_id.split(".", 1)[0]
    return "homeassistant"


class HomeAssistantExecutor(BaseToolExecutor):
    id = "homeAssistant"
    name = "Home Assistant"
    category = "smart_home"

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout_seconds: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/") if base_url else None
        self._token = token
        self._timeout = timeout_seconds
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self._base_url and self._token)

    def get_capabilities(self) -> List[ToolCapability]:
        return [
            ToolCapability(
                name="controlDevice",
                description="Control a smart home device (lights, switches, climate)",
                params_schema=ControlDeviceParams,
                risk_level=RiskLevel.medium,
                reversible=True,
                external_impact=True,
                blast_radius=BlastRadius.network,
                required_permissions=frozenset({"home_assistant"}),
                supports_simulation=True,
            ),
            ToolCapability(
                name="getDeviceState",
                description="Get the current state of a device",
                params_schema=GetDeviceStateParams,
                risk_level=RiskLevel.none,
                reversible=True,
                blast_radius=BlastRadius.local,
                required_permissions=frozenset({"home_assistant"}),
                supports_simulation=True,
            ),
        ]

    def handlers(self) -> Dict[str, ToolHandler]:
        return {"controlDevice": self._control_device, "getDeviceState": self._get_device_state}

    async def predict(self, tool_name: str, params: Dict[str, Any]) -> SimulationResult:
        effects = []
        if tool_name == "controlDevice":
            effects.append(
                create_side_effect(
                    SideEffectType.device_control,
                    params["device"],
                    f"Would {params['action'].replace('_', ' ')} {params['device']}",
                )
            )
        return SimulationResult(
            would_succeed=self.configured,
            predicted_output={"simulated": True},
            predicted_side_effects=effects,
            warnings=[] if self.configured else ["Home Assistant is not configured"],
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        if not self.configured:
            raise NotConfiguredError("Home Assistant")
        headers = {"Authorization": f"Bearer {self._token}", "Content-Type": "application/json"}
        url = f"{self._base_url}{path}"
        try:
            if self._client is not None:
                response = await self._client.request(method, url, headers=headers, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.request(method, url, headers=headers, **kwargs)
            response.raise_for_status()
            return response.json() if response.content else None
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                raise ToolExecutionError(ErrorCode.DEVICE_CONTROL_ERROR, "Device not found") from exc
            raise ToolExecutionError(
                ErrorCode.DEVICE_CONTROL_ERROR, f"Home Assistant answered {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ToolExecutionError(ErrorCode.DEVICE_CONTROL_ERROR, f"Home Assistant unreachable: {exc}") from exc

    async def _state(self, entity_id: str) -> Dict[str, Any]:
        state = await self._request("GET", f"/api/states/{entity_id}")
        return state or {}

    async def _control_device(self, params: Dict[str, Any]) -> ToolOutcome:
        entity_id = params["device"]
        action = params["action"]
        before = (await self._state(entity_id)).get("state")

        service = "turn_on" if action == "set" else action
        payload: Dict[str, Any] = {"entity_id": entity_id}
        if params.get("brightness") is not None:
            payload["brightness_pct"] = params["brightness"]
        if params.get("color"):
            payload["color_name"] = params["color"]
        if params.get("temperature") is not None:
            payload["temperature"] = params["temperature"]
        await self._request("POST", f"/api/services/{service_domain(entity_id)}/{service}", json=payload)

        after_state = await self._state(entity_id)
        after = after_state.get("state")
        logger.info("Device %s changed from %s to %s", entity_id, before, after)
        return ToolOutcome(
            output={
                "device": entity_id,
                "previous_state": before,
                "new_state": after,
                "attributes": after_state.get("attributes", {}),
            },
            message=f"{entity_id} is now {after}",
            side_effects=[
                create_side_effect(
                    SideEffectType.device_control,
                    entity_id,
                    f"Changed from {before} to {after}",
                    reversible=True,
                    rollback_action="turn_on" if before == "on" else "turn_off",
                    before=before,
                    after=after,
                )
            ],
        )

    async def _get_device_state(self, params: Dict[str, Any]) -> ToolOutcome:
        entity_id = params["device"]
        state = await self._state(entity_id)
        if not state:
            raise ToolExecutionError(ErrorCode.DEVICE_CONTROL_ERROR, f'Device "{entity_id}" not found')
        return ToolOutcome(
            output={
                "device": entity_id,
                "state": state.get("state"),
                "attributes": state.get("attributes", {}),
                "last_changed": state.get("last_changed"),
            },
            message=f"{entity_id} is {state.get('state')}",
        )
