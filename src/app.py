# ============================================================
# ChromeMind FastAPI App
# ------------------------------------------------------------
# This app wires everything together:
#   - Assistant actions (translate, summarize, proofread, rewrite, chat)
#   - One Dispatcher: local GPT4All -> on-device -> cloud (HuggingFace)
#   - Settings updates (API key, tier flags) applied between requests
# ============================================================

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, ValidationError

# --- Local imports ---
from src.settings import settings
from src.generate import ChatGenerator, ConfigStore, DispatchConfig, Dispatcher, Message
from src.generate.clients.on_device_client import OnDeviceClient


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# ------------------------------------------------------------
# 🔧 Backend wiring
# ------------------------------------------------------------
def make_on_device_runtime(name: str):
    if name == "echo":
        from src.generate.clients.echo_dev_client import EchoDevRuntime
        return EchoDevRuntime()
    return None


config_store = ConfigStore(DispatchConfig.from_settings(settings))
dispatcher = Dispatcher(
    config_store,
    on_device=OnDeviceClient(runtime=make_on_device_runtime(settings.ON_DEVICE_RUNTIME)),
)
chat_gen = ChatGenerator(dispatcher=dispatcher)

# ------------------------------------------------------------
# 🚀 FastAPI init
# ------------------------------------------------------------
app = FastAPI(title="ChromeMind API", version="0.2")

# ------------------------------------------------------------
# 📦 Pydantic models
# ------------------------------------------------------------
class ChatTurn(BaseModel):
    role: str
    content: str

class ChatRequest(BaseModel):
    messages: List[ChatTurn]

class TranslateRequest(BaseModel):
    text: str
    target_lang: str = "es"
    tab_id: Optional[int] = None

class SummarizeRequest(BaseModel):
    content: str
    title: Optional[str] = None

class TextRequest(BaseModel):
    text: str

class ActionResponse(BaseModel):
    success: bool
    result: Optional[str] = None
    error: Optional[str] = None

class SettingsUpdate(BaseModel):
    api_key: Optional[str] = None
    prefer_local_first: Optional[bool] = None
    use_on_device_model: Optional[bool] = None
    max_retries: Optional[int] = None
    timeout_ms: Optional[int] = None
    backoff_ms: Optional[int] = None

# ------------------------------------------------------------
# 💬 Assistant action routes
# ------------------------------------------------------------
def _run(action: str, fn, *args) -> ActionResponse:
    try:
        return ActionResponse(success=True, result=fn(*args))
    except Exception as e:
        logger.exception("%s failed", action)
        raise HTTPException(status_code=500, detail=str(e))

@app.post("/chat", response_model=ActionResponse)
def chat(req: ChatRequest):
    history = [Message(**t.model_dump()) for t in req.messages]
    return _run("chat", chat_gen.chat, history)

@app.post("/translate", response_model=ActionResponse)
def translate(req: TranslateRequest):
    return _run("translate", chat_gen.translate, req.text, req.target_lang, req.tab_id)

@app.post("/summarize", response_model=ActionResponse)
def summarize(req: SummarizeRequest):
    return _run("summarize", chat_gen.summarize, req.content, req.title)

@app.post("/proofread", response_model=ActionResponse)
def proofread(req: TextRequest):
    return _run("proofread", chat_gen.proofread, req.text)

@app.post("/rewrite", response_model=ActionResponse)
def rewrite(req: TextRequest):
    return _run("rewrite", chat_gen.rewrite, req.text)

# ------------------------------------------------------------
# ⚙️ Settings
# ------------------------------------------------------------
def _settings_view() -> Dict[str, Any]:
    cfg = config_store.snapshot()
    return {
        "prefer_local_first": cfg.local.enabled,
        "use_on_device_model": cfg.on_device.enabled,
        "on_device_available": dispatcher.on_device.is_available(),
        "has_api_key": bool(cfg.cloud.api_key),
        "max_retries": cfg.max_retries,
        "timeout_ms": cfg.cloud.timeout_ms,
        "backoff_ms": cfg.backoff_ms,
    }

@app.get("/settings")
def get_settings():
    return _settings_view()

@app.post("/settings")
def update_settings(req: SettingsUpdate):
    try:
        config_store.update(**req.model_dump())
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    logger.info("Settings updated")
    return _settings_view()

# ------------------------------------------------------------
# 🧭 Health checks
# ------------------------------------------------------------
@app.get("/healthz")
def healthz():
    return {
        "ok": True,
        "env": settings.ENV,
        "debug": settings.DEBUG,
        "app": settings.app_name,
    }

@app.get("/health")
def health():
    return {"status": "ok", "env": settings.ENV}

@app.get("/")
def hello():
    return {"message": "ChromeMind service running."}
