"""Queue domain types."""

from __future__ import annotations

import time
import uuid

from pydantic import BaseModel, ConfigDict, Field


def _now_ms() -> int:
    return int(time.time() * 1000)


class QueuedMessage(BaseModel):
    """A message waiting for delivery to the webhook."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    content: str = Field(min_length=1)
    timestamp: int = Field(default_factory=_now_ms)  # ms since epoch, when queued


class EndpointConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.url.strip())
