"""Delivery outcome types and the MessageSender protocol."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, Union, runtime_checkable


class FailureCategory(str, Enum):
    CONNECTION = "connection"
    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"
    INVALID_ENDPOINT = "invalid_endpoint"
    TRANSPORT = "transport"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class Delivered:
    status_code: int = 200


@dataclass(frozen=True)
class Failed:
    category: FailureCategory
    detail: str


SendOutcome = Union[Delivered, Failed]


@runtime_checkable
class MessageSender(Protocol):
    async def send(self, endpoint: str, content: str) -> SendOutcome: ...
