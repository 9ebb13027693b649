"""Bearer-token session state and its storage backends."""

from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol


class TokenStore(Protocol):
    def get(self) -> str | None: ...

    def set(self, token: str) -> None: ...

    def clear(self) -> None: ...


class MemoryTokenStore:
    """Process-local token storage."""

    def __init__(self, token: str | None = None):
        self._token = token

    def get(self) -> str | None:
        return self._token

    def set(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class FileTokenStore:
    """Thread-safe JSON-backed token storage that survives restarts."""

    def __init__(self, path: str):
        self._path = Path(path).expanduser()
        self._lock = threading.Lock()
        self._loaded = False
        self._token: str | None = None

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        if self._path.exists():
            try:
                raw = json.loads(self._path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError):
                raw = {}
            token = raw.get("token") if isinstance(raw, dict) else None
            if isinstance(token, str) and token:
                self._token = token
        self._loaded = True

    def _persist(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._path.with_suffix(f"{self._path.suffix}.tmp")
        data = {"version": 1, "token": self._token}
        if self._token is not None:
            data["updated_at"] = datetime.now(timezone.utc).isoformat()
        temp_path.write_text(json.dumps(data, ensure_ascii=True, indent=2, sort_keys=True), encoding="utf-8")
        temp_path.replace(self._path)

    def get(self) -> str | None:
        with self._lock:
            self._ensure_loaded()
            return self._token

    def set(self, token: str) -> None:
        with self._lock:
            self._ensure_loaded()
            self._token = token
            self._persist()

    def clear(self) -> None:
        with self._lock:
            self._ensure_loaded()
            if self._token is None and not self._path.exists():
                return
            self._token = None
            self._persist()


class AuthSession:
    """Holds at most one bearer token; written only by the request pipeline."""

    def __init__(self, store: TokenStore | None = None):
        self._store: TokenStore = store if store is not None else MemoryTokenStore()

    @property
    def token(self) -> str | None:
        return self._store.get()

    @property
    def is_authenticated(self) -> bool:
        return bool(self._store.get())

    def begin(self, token: str) -> None:
        if not token:
            raise ValueError("Session token must be a non-empty string")
        self._store.set(token)

    def clear(self) -> bool:
        """Drop the token. Returns True when one was present."""
        had_token = self._store.get() is not None
        self._store.clear()
        return had_token
