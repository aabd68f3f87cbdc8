# AI INSTRUCTION:
# Define simple, typed dataclasses shared across generator modules.

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


@dataclass
class Message:
    """Single chat turn: system, user, or assistant."""
    role: str
    content: str


@dataclass
class ModelParams:
    """LLM parameters per request."""
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


class Backend(str, Enum):
    LOCAL = "local"
    ON_DEVICE = "on_device"
    CLOUD = "cloud"


class BackendError(str, Enum):
    UNREACHABLE = "unreachable"
    TIMEOUT = "timeout"
    MALFORMED_RESPONSE = "malformed_response"
    DISABLED = "disabled"
    RATE_LIMITED = "rate_limited"
    UNAUTHORIZED = "unauthorized"


class BackendUnavailable(Exception):
    """Raised by a client when one attempt against its backend fails."""

    def __init__(self, kind: BackendError, message: str = ""):
        super().__init__(message or kind.value)
        self.kind = kind
        self.message = message or kind.value


class FailureReason(str, Enum):
    UNAUTHORIZED = "unauthorized"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class Success:
    text: str
    backend: Backend


@dataclass(frozen=True)
class Failure:
    reason: FailureReason
    last_error: str = ""


DispatchResult = Union[Success, Failure]
