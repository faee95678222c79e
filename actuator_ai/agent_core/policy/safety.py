"""Safety guardrails applied around model output and tool parameters.

``SafetyGuard`` is used by the pipeline to:

- detect prompt-injection attempts in raw model output,
- strip shell metacharacters and path traversal from parameters,
- reject oversized parameter payloads,
- redact known secret formats from text that is logged or audited.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional

from .models import SafetyPolicy

_SECRET_PATTERNS = (
    re.compile(r"sk-[A-Za-z0-9]{10,}"),
    re.compile(r"ghp_[A-Za-z0-9]{10,}"),
    re.compile(r"xoxb-[A-Za-z0-9-]{10,}"),
    re.compile(r"(?i)bearer\s+[A-Za-z0-9._~+/-]{16,}=*"),
)

_INJECTION_PATTERNS = (
    re.compile(r"ignore\s+(?:all\s+)?previous\s+instructions", re.IGNORECASE),
    re.compile(r"\b(?:execute|run|call|invoke)\s+(?:this\s+|the\s+|a\s+)?(?:function|shell|command)\b", re.IGNORECASE),
    re.compile(r'"type"\s*:\s*"(?!(?:response|action|clarify|plan|observe)")[^"]*"', re.IGNORECASE),
    re.compile(r"\$\([^)]*\)"),
    re.compile(r";\s*(?:rm|curl|wget|bash|sh|python3?|nc)\b"),
    re.compile(r"\.\./"),
    re.compile(r"\\x[0-9a-f]{2}", re.IGNORECASE),
)

_UNSAFE_PARAM_CHARS = re.compile(r"[;|&$`]")


class SafetyGuard:
    """Heuristic guardrails configured by ``SafetyPolicy``."""

    def __init__(self, policy: Optional[SafetyPolicy] = None) -> None:
        self._policy = policy or SafetyPolicy()

    @property
    def policy(self) -> SafetyPolicy:
        return self._policy

    def detect_prompt_injection(self, text: str) -> bool:
        """
        Heuristic detection of prompt injection in model output.

        Args:
            text: The raw text to analyze.

        Returns:
            True if any known injection pattern is present.
        """
        if not self._policy.block_prompt_injection:
            return False
        return any(pattern.search(text) for pattern in _INJECTION_PATTERNS)

    def sanitize_params(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively strip path traversal and shell metacharacters from strings."""
        if not self._policy.sanitize_params:
            return dict(params)

        def _clean(value: Any) -> Any:
            if isinstance(value, str):
                return _UNSAFE_PARAM_CHARS.sub("", value.replace("../", "")).strip()
            if isinstance(value, dict):
                return {k: _clean(v) for k, v in value.items()}
            if isinstance(value, list):
                return [_clean(v) for v in value]
            return value

        exempt = self._policy.sanitize_exempt_keys
        return {key: value if key in exempt else _clean(value) for key, value in params.items()}

    def validate_tool_args(self, args: Dict[str, Any]) -> Optional[str]:
        """
        Validate tool arguments against basic size constraints.

        Returns:
            An error string if validation fails, otherwise None.
        """
        raw = json.dumps(args, default=str).encode("utf-8")
        if len(raw) > self._policy.max_tool_args_bytes:
            return "tool args too large"
        return None

    def redact(self, text: str) -> str:
        """
        Redact known secrets from text.

        Returns:
            The text with secrets replaced by '<redacted>'.
        """
        if not self._policy.redact_secrets:
            return text
        out = text
        for pat in _SECRET_PATTERNS:
            out = pat.sub("<redacted>", out)
        return out
