"""Domain models for provider pricing."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional

SessionType = Literal["chat", "audio", "video"]
SESSION_TYPES: tuple[str, ...] = ("chat", "audio", "video")

RATE_LABELS = {
    "chat": "Chat",
    "audio": "Audio Call",
    "video": "Video Call",
}


@dataclass(slots=True)
class PricingConfig:
    provider_id: str
    chat_rate_per_minute_cents: Optional[int] = None
    audio_rate_per_minute_cents: Optional[int] = None
    video_rate_per_minute_cents: Optional[int] = None
    updated_at: Optional[datetime] = None

    def rate_for(self, session_type: str) -> Optional[int]:
        if session_type == "chat":
            return self.chat_rate_per_minute_cents
        if session_type == "audio":
            return self.audio_rate_per_minute_cents
        if session_type == "video":
            return self.video_rate_per_minute_cents
        raise ValueError(f"Unknown session type: {session_type}")
