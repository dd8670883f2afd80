"""Dataclasses persisted in, or applied to, the key-value memory layer."""

from dataclasses import dataclass, field
from typing import Any, Literal

from src.shared import safe_dict, safe_list, utc_now_iso

MEMORY_SCHEMA_VERSION = 1

MemoryUpdateType = Literal["preference", "anti-pattern"]


@dataclass
class WorkspaceMemory:
    """Per-workspace style preferences and anti-patterns."""

    style_preferences: dict[str, Any] = field(default_factory=dict)
    anti_patterns: list[str] = field(default_factory=list)
    last_updated: str = field(default_factory=utc_now_iso)
    version: int = MEMORY_SCHEMA_VERSION

    @property
    def voice_notes(self) -> list[str]:
        return [str(note) for note in safe_list(self.style_preferences.get("voiceNotes"))]

    def is_empty(self) -> bool:
        return not self.style_preferences and not self.anti_patterns

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "stylePreferences": self.style_preferences,
            "antiPatterns": self.anti_patterns,
            "lastUpdated": self.last_updated,
            "version": self.version,
        }

    @classmethod
    def from_json_dict(cls, data: dict[str, Any]) -> "WorkspaceMemory":
        version = data.get("version", MEMORY_SCHEMA_VERSION)
        return cls(
            style_preferences=dict(safe_dict(data.get("stylePreferences"))),
            anti_patterns=[str(item) for item in safe_list(data.get("antiPatterns"))],
            last_updated=str(data.get("lastUpdated") or utc_now_iso()),
            version=version if isinstance(version, int) else MEMORY_SCHEMA_VERSION,
        )


@dataclass
class MemoryUpdate:
    """A single preference or anti-pattern signal extracted from feedback."""

    type: MemoryUpdateType
    value: str
    avoid: str | None = None


@dataclass
class OAuthToken:
    """Workspace-level app-actor token issued by the Linear OAuth flow."""

    access_token: str
    token_type: str
    scope: str
    created_at: int
    expires_at: int | None = None

    def is_expired(self, now_ms: int) -> bool:
        return self.expires_at is not None and now_ms > self.expires_at

    def to_json_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "accessToken": self.access_token,
            "tokenType": self.token_type,
            "scope": self.scope,
            "createdAt": self.created_at,
        }
        if self.expires_at is not None:
            data["expiresAt"] = self.expires_at
        return data

    @classmethod
    def from_json_dict(cls, data: dict[str, Any]) -> "OAuthToken":
        expires_at = data.get("expiresAt")
        return cls(
            access_token=str(data.get("accessToken", "")),
            token_type=str(data.get("tokenType", "Bearer")),
            scope=str(data.get("scope", "")),
            created_at=int(data.get("createdAt") or 0),
            expires_at=int(expires_at) if expires_at is not None else None,
        )
