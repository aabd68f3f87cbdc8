# AI INSTRUCTION:
# Provide a ChatGenerator class that:
# - wraps a Dispatcher (local -> on-device -> cloud)
# - builds task prompts (translate, summarize, proofread, rewrite, chat)
# - returns plain text (generated, or an [ERROR] sentinel)
# - notifies the page about translations best-effort, never failing the result

from __future__ import annotations
import copy
import logging
import yaml
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from .dispatcher import Dispatcher
from .prompts import DEFAULT_TASKS, language_name
from .types import Message, ModelParams

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).with_name("config.yaml")

Notifier = Callable[[Any, Dict[str, Any]], None]


class ChatGenerator:
    def __init__(
        self,
        dispatcher: Dispatcher,
        config_path: Optional[Union[str, Path]] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.dispatcher = dispatcher
        self.config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self.notifier = notifier
        self.cfg = self._load_config()
        self.tasks = self._merge_tasks(self.cfg.get("tasks") or {})

    def _load_config(self) -> dict:
        if not self.config_path.exists():
            return {}
        with open(self.config_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    @staticmethod
    def _merge_tasks(overrides: dict) -> Dict[str, dict]:
        tasks = copy.deepcopy(DEFAULT_TASKS)
        for name, values in overrides.items():
            tasks.setdefault(name, {}).update(values or {})
        return tasks

    def _run_task(self, task: str, **fields) -> str:
        task_cfg = self.tasks[task]
        content = task_cfg["template"].format(**fields)
        params = ModelParams(max_tokens=task_cfg.get("max_tokens"))
        return self.dispatcher.complete([Message(role="user", content=content)], params)

    def _notify(self, target: Any, payload: Dict[str, Any]) -> None:
        """Fire-and-forget; a failed notification never affects the result."""
        if self.notifier is None or target is None:
            return
        try:
            self.notifier(target, payload)
        except Exception as e:
            logger.warning("Could not notify %s: %s", target, e)

    def translate(self, text: str, target_lang: str = "es", tab_id: Any = None) -> str:
        result = self._run_task("translate", language=language_name(target_lang), text=text)
        self._notify(
            tab_id,
            {"action": "showTranslationResult", "originalText": text, "translatedText": result},
        )
        return result

    def summarize(self, content: str, title: Optional[str] = None) -> str:
        return self._run_task("summarize", content=content, title=title or "")

    def proofread(self, text: str) -> str:
        return self._run_task("proofread", text=text)

    def rewrite(self, text: str) -> str:
        return self._run_task("rewrite", text=text)

    def chat(self, messages: List[Message]) -> str:
        """Main entry point for free-form conversation."""
        params = ModelParams(max_tokens=self.tasks["chat"].get("max_tokens"))
        return self.dispatcher.complete(messages, params)
