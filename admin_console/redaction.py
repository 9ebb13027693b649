"""Credential masking for request debug logs."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

MASK = "[REDACTED]"

# Request fields that carry credentials: login password, API tokens,
# upstream model-source keys and the log-purge system token.
SENSITIVE_FIELDS = frozenset({"password", "token", "api_key", "system_auth_token"})


class LogRedactor:
    """Mask the bearer header and credential fields of an outgoing request.

    Operator patterns (``||``-separated regexes) are applied to every remaining
    string value; invalid patterns are ignored.
    """

    def __init__(self, extra_patterns: str = ""):
        self._patterns: list[re.Pattern[str]] = []
        for raw in (extra_patterns or "").split("||"):
            pattern = raw.strip()
            if not pattern:
                continue
            try:
                self._patterns.append(re.compile(pattern))
            except re.error:
                continue

    def _mask_text(self, value: str) -> str:
        for regex in self._patterns:
            value = regex.sub(MASK, value)
        return value

    def redact_headers(self, headers: Mapping[str, str]) -> dict[str, str]:
        out: dict[str, str] = {}
        for name, value in headers.items():
            if name.lower() == "authorization":
                scheme = value.split(" ", 1)[0] if " " in value else ""
                out[name] = f"{scheme} {MASK}".strip()
            else:
                out[name] = self._mask_text(value)
        return out

    def redact_fields(self, data: Any) -> Any:
        """Return a copy of a query or JSON body with credential fields masked."""
        if isinstance(data, Mapping):
            return {
                key: MASK if str(key).lower() in SENSITIVE_FIELDS and value is not None
                else self.redact_fields(value)
                for key, value in data.items()
            }
        if isinstance(data, (list, tuple)):
            return [self.redact_fields(item) for item in data]
        if isinstance(data, str):
            return self._mask_text(data)
        return data
