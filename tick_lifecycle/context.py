"""EventContext - per-call context handed to hooks and action payloads."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class EventContext:
    """Who is driving a settlement, and with what options.

    ``scope`` is a free-form mapping that hooks and payloads may read and
    write; the engine never inspects it.
    """

    speaker: str
    target: str | None = None
    skip_dialog: bool = False
    no_chat: bool = False
    type: str = ""
    title: str = ""
    scope: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.speaker:
            raise ValueError("EventContext requires a speaker")

    def to_json(self) -> dict[str, Any]:
        return {
            "speaker": self.speaker,
            "target": self.target,
            "skip_dialog": self.skip_dialog,
            "no_chat": self.no_chat,
            "type": self.type,
            "title": self.title,
            "scope": dict(self.scope),
        }

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> EventContext:
        return cls(
            speaker=data.get("speaker", ""),
            target=data.get("target"),
            skip_dialog=bool(data.get("skip_dialog", False)),
            no_chat=bool(data.get("no_chat", False)),
            type=data.get("type", ""),
            title=data.get("title", ""),
            scope=dict(data.get("scope") or {}),
        )

    @classmethod
    def system(cls) -> EventContext:
        """Default context for settlements nobody in particular asked for."""
        return cls(speaker="system", skip_dialog=True, no_chat=True)
