# Generator package

# Makes generate/ importable and exposes key interfaces.

from .config import BackendConfig, ConfigStore, DispatchConfig
from .dispatcher import ERROR_MARKER, Dispatcher, is_error
from .generator import ChatGenerator
from .prompts import build_prompt
from .types import Backend, BackendError, Failure, Message, ModelParams, Success

__all__ = [
    "Backend",
    "BackendConfig",
    "BackendError",
    "ChatGenerator",
    "ConfigStore",
    "DispatchConfig",
    "Dispatcher",
    "ERROR_MARKER",
    "Failure",
    "Message",
    "ModelParams",
    "Success",
    "build_prompt",
    "is_error",
]
