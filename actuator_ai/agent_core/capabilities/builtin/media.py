"""Music playback through a Spotify-compatible Web API.

Uses bearer-token auth against ``{base_url}``:

- ``GET /search?q=...&type=...&limit=1`` finds something to play,
- ``PUT /me/player/play`` / ``PUT /me/player/pause`` start and stop playback,
- ``POST /me/player/next`` / ``POST /me/player/previous`` skip,
- ``PUT /me/player/volume?volume_percent=N`` sets the volume,
- ``GET /me/player/currently-playing`` reports the current track
  (``204`` when nothing plays).
"""

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

DEFAULT_MEDIA_API_URL = "https://api.spotify.com/v1"


class PlayMusicParams(ToolParams):
    query: Optional[str] = Field(default=None, min_length=1, max_length=200, description="What to play")
    type: Literal["track", "artist", "album", "playlist"] = "track"
    shuffle: bool = False


class PauseMusicParams(ToolParams):
    pass


class SkipTrackParams(ToolParams):
    direction: Literal["next", "previous"] = "next"


class SetVolumeParams(ToolParams):
    volume: int = Field(ge=0, le=100)


class GetCurrentTrackParams(ToolParams):
    pass


class MediaExecutor(BaseToolExecutor):
    id = "media"
    name = "Music Control"
    category = "media"

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        access_token: Optional[str] = None,
        timeout_seconds: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = (base_url or DEFAULT_MEDIA_API_URL).rstrip("/")
        self._token = access_token
        self._timeout = timeout_seconds
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self._token)

    def get_capabilities(self) -> List[ToolCapability]:
        def playback(name: str, description: str, schema: type[ToolParams]) -> ToolCapability:
            return ToolCapability(
                name=name,
                description=description,
                params_schema=schema,
                risk_level=RiskLevel.low,
                reversible=True,
                external_impact=True,
                blast_radius=BlastRadius.device,
                supports_simulation=True,
            )

        return [
            playback("playMusic", "Play music, or resume playback when no query is given", PlayMusicParams),
            playback("pauseMusic", "Pause music playback", PauseMusicParams),
            playback("skipTrack", "Skip to the next or previous track", SkipTrackParams),
            playback("setVolume", "Set the playback volume (0-100)", SetVolumeParams),
            ToolCapability(
                name="getCurrentTrack",
                description="Get the currently playing track",
                params_schema=GetCurrentTrackParams,
                risk_level=RiskLevel.none,
                reversible=True,
                blast_radius=BlastRadius.local,
                supports_simulation=False,
            ),
        ]

    def handlers(self) -> Dict[str, ToolHandler]:
        return {
            "playMusic": self._play_music,
            "pauseMusic": self._pause_music,
            "skipTrack": self._skip_track,
            "setVolume": self._set_volume,
            "getCurrentTrack": self._get_current_track,
        }

    async def predict(self, tool_name: str, params: Dict[str, Any]) -> SimulationResult:
        warnings = ["Requires an active media player"]
        if not self.configured:
            warnings.insert(0, "Media playback is not configured")
        return SimulationResult(
            would_succeed=self.configured,
            predicted_output={"simulated": True, "tool": tool_name},
            warnings=warnings,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        if not self.configured:
            raise NotConfiguredError("Media playback")
        headers = {"Authorization": f"Bearer {self._token}"}
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
            if status == 404:
                raise ToolExecutionError(ErrorCode.MEDIA_ERROR, "No active media player found") from exc
            if status == 401:
                raise ToolExecutionError(
                    ErrorCode.MEDIA_ERROR, "Media service rejected the access token", recoverable=False
                ) from exc
            raise ToolExecutionError(
                ErrorCode.MEDIA_ERROR, f"Media service answered {status}", recoverable=status >= 500
            ) from exc
        except httpx.HTTPError as exc:
            raise ToolExecutionError(ErrorCode.MEDIA_ERROR, f"Media service unreachable: {exc}") from exc
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    @staticmethod
    def _playback_effect(description: str) -> Any:
        return create_side_effect(SideEffectType.audio_played, "media_player", description, reversible=True)

    async def _play_music(self, params: Dict[str, Any]) -> ToolOutcome:
        query = params.get("query")
        if not query:
            await self._request("PUT", "/me/player/play")
            return ToolOutcome(
                output={"resumed": True},
                message="Resumed playback",
                side_effects=[self._playback_effect("Resumed playback")],
            )

        kind = params.get("type") or "track"
        found = await self._request("GET", "/search", params={"q": query, "type": kind, "limit": 1})
        items = ((found or {}).get(f"{kind}s") or {}).get("items") or []
        if not items:
            raise ToolExecutionError(ErrorCode.MEDIA_ERROR, f'Couldn\'t find "{query}"', recoverable=False)
        item = items[0]
        if params.get("shuffle"):
            await self._request("PUT", "/me/player/shuffle", params={"state": "true"})
        body = {"uris": [item["uri"]]} if kind == "track" else {"context_uri": item["uri"]}
        await self._request("PUT", "/me/player/play", json=body)
        message = f"Now playing: {item.get('name', query)}"
        logger.info("Started playback of %s %s", kind, item.get("uri"))
        return ToolOutcome(
            output={"item": {"name": item.get("name"), "uri": item["uri"], "type": kind}},
            message=message,
            side_effects=[self._playback_effect(message)],
        )

    async def _pause_music(self, params: Dict[str, Any]) -> ToolOutcome:
        await self._request("PUT", "/me/player/pause")
        return ToolOutcome(
            output={"paused": True},
            message="Paused playback",
            side_effects=[
                create_side_effect(
                    SideEffectType.state_change, "media_player", "Paused playback", rollback_action="playMusic"
                )
            ],
        )

    async def _skip_track(self, params: Dict[str, Any]) -> ToolOutcome:
        direction = params.get("direction") or "next"
        await self._request("POST", f"/me/player/{direction}")
        message = "Previous track" if direction == "previous" else "Next track"
        return ToolOutcome(
            output={"skipped": True, "direction": direction},
            message=message,
            side_effects=[self._playback_effect(message)],
        )

    async def _set_volume(self, params: Dict[str, Any]) -> ToolOutcome:
        volume = params["volume"]
        await self._request("PUT", "/me/player/volume", params={"volume_percent": volume})
        message = f"Volume set to {volume}%"
        return ToolOutcome(
            output={"volume": volume},
            message=message,
            side_effects=[create_side_effect(SideEffectType.state_change, "media_player", message, after=volume)],
        )

    async def _get_current_track(self, params: Dict[str, Any]) -> ToolOutcome:
        current = await self._request("GET", "/me/player/currently-playing")
        item = current.get("item") if isinstance(current, dict) else None
        if not item:
            return ToolOutcome(output={"playing": False}, message="Nothing playing")
        artist = ", ".join(a.get("name", "") for a in item.get("artists") or [])
        return ToolOutcome(
            output={"playing": bool(current.get("is_playing", True)), "track": item.get("name"), "artist": artist},
            message=f'Now playing: "{item.get("name")}" by {artist}',
        )
