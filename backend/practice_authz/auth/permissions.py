"""
Permission keys and the PermissionSet value type.

A permission key is an opaque string of the form `domain.action`. Keys are
only ever compared for equality; the catalog below documents the keys the
dashboard routes check, but a group may hold any key.

A PermissionSet is what a group grants and what a user effectively holds.
It is immutable, compares as a set, and serializes to a sorted JSON array
for storage.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Iterable, Iterator


class Permission(str, Enum):
    # ── Workspace ──
    WORKSPACE_MODELS = "workspace.models"
    WORKSPACE_KNOWLEDGE = "workspace.knowledge"
    WORKSPACE_PROMPTS = "workspace.prompts"
    WORKSPACE_TOOLS = "workspace.tools"

    # ── Chat history ──
    CHAT_FILE_UPLOAD = "chat.file_upload"
    CHAT_DELETE = "chat.delete"
    CHAT_EDIT = "chat.edit"
    CHAT_TEMPORARY = "chat.temporary"

    # ── Vaults ──
    VAULTS_CREATE = "vaults.create"
    VAULTS_READ = "vaults.read"
    VAULTS_UPDATE = "vaults.update"
    VAULTS_DELETE = "vaults.delete"
    VAULTS_UPLOAD = "vaults.upload"
    VAULTS_DOWNLOAD = "vaults.download"
    VAULTS_SEARCH = "vaults.search"

    # ── OCR ──
    OCR_CREATE = "ocr.create"
    OCR_READ = "ocr.read"
    OCR_EVALUATE = "ocr.evaluate"
    OCR_DOWNLOAD = "ocr.download"

    # ── Transcription ──
    TRANSCRIPTION_CREATE = "transcription.create"
    TRANSCRIPTION_READ = "transcription.read"
    TRANSCRIPTION_STREAMING = "transcription.streaming"
    TRANSCRIPTION_DOWNLOAD = "transcription.download"

    # ── AI chat / search ──
    CHAT_AI_USE = "chat_ai.use"
    CHAT_AI_CHANGE_MODEL = "chat_ai.change_model"
    CHAT_AI_CHANGE_SETTINGS = "chat_ai.change_settings"

    # ── Text-to-speech ──
    TTS_USE = "tts.use"
    TTS_DOWNLOAD = "tts.download"


PERMISSION_DESCRIPTIONS: dict[Permission, str] = {
    Permission.VAULTS_CREATE: "Create new vaults",
    Permission.VAULTS_READ: "View vaults and files",
    Permission.VAULTS_UPLOAD: "Upload files to vaults",
    Permission.VAULTS_DOWNLOAD: "Download files from vaults",
    Permission.VAULTS_SEARCH: "Use semantic search",
    Permission.OCR_CREATE: "Submit OCR jobs",
    Permission.OCR_READ: "View OCR results",
    Permission.OCR_EVALUATE: "Use visual evaluation tools",
    Permission.TRANSCRIPTION_CREATE: "Submit transcription jobs",
    Permission.TRANSCRIPTION_STREAMING: "Use live transcription",
    Permission.CHAT_AI_USE: "Use AI chat",
    Permission.CHAT_AI_CHANGE_MODEL: "Select different AI models",
    Permission.TTS_USE: "Generate text-to-speech",
}


def _key(value: str | Permission) -> str:
    return value.value if isinstance(value, Permission) else str(value)


class PermissionSet:
    """Immutable set of permission keys with containment and union."""

    __slots__ = ("_keys", "_universal")

    def __init__(self, keys: Iterable[str | Permission] = (), *, _universal: bool = False):
        self._keys: frozenset[str] = frozenset(_key(k) for k in keys)
        self._universal = _universal

    @classmethod
    def of(cls, *keys: str | Permission) -> PermissionSet:
        return cls(keys)

    @classmethod
    def empty(cls) -> PermissionSet:
        return cls()

    @classmethod
    def universal(cls) -> PermissionSet:
        """The set an administrator holds: every key is contained."""
        return cls(_universal=True)

    @property
    def is_universal(self) -> bool:
        return self._universal

    def contains(self, key: str | Permission) -> bool:
        return self._universal or _key(key) in self._keys

    def union(self, other: PermissionSet) -> PermissionSet:
        if self._universal or other._universal:
            return PermissionSet.universal()
        return PermissionSet(self._keys | other._keys)

    def keys(self) -> list[str]:
        """Concrete keys, sorted. Empty for the universal set."""
        return sorted(self._keys)

    # ── Serialization boundary ──

    def serialize(self) -> str:
        if self._universal:
            raise ValueError("The universal permission set is never persisted")
        return json.dumps(self.keys())

    @classmethod
    def deserialize(cls, text: str | None) -> PermissionSet:
        if not text:
            return cls()
        data = json.loads(text)
        if not isinstance(data, list) or not all(isinstance(k, str) for k in data):
            raise ValueError("Stored permissions must be a JSON array of strings")
        return cls(data)

    # ── Python protocol ──

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.contains(key)

    def __or__(self, other: PermissionSet) -> PermissionSet:
        return self.union(other)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        # The universal set has no finite size; truthiness still works
        if self._universal:
            raise TypeError("The universal permission set has no length")
        return len(self._keys)

    def __bool__(self) -> bool:
        return self._universal or bool(self._keys)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PermissionSet):
            return NotImplemented
        return self._universal == other._universal and self._keys == other._keys

    def __hash__(self) -> int:
        return hash((self._universal, self._keys))

    def __repr__(self) -> str:
        if self._universal:
            return "PermissionSet(<all>)"
        return f"PermissionSet({self.keys()!r})"
