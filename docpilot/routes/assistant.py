from __future__ import annotations

from functools import lru_cache

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from docpilot.config import get_settings
from docpilot.models.types import ChatRequest, ChatResponse
from docpilot.services.assistant import Assistant
from docpilot.services.templating import render_template

router = APIRouter()


@lru_cache(maxsize=1)
def get_assistant() -> Assistant:
    return Assistant.from_settings(get_settings())


@router.get("/", response_class=HTMLResponse)
def chat_page():
    return HTMLResponse(render_template("chat.html", title="Writing Assistant", chat_url="/api/chat"))


@router.post("/", response_model=ChatResponse, response_model_by_alias=True, response_model_exclude_none=True)
@router.post("/api/chat", response_model=ChatResponse, response_model_by_alias=True, response_model_exclude_none=True)
def chat(req: ChatRequest, assistant: Assistant = Depends(get_assistant)) -> ChatResponse:
    # Plain def: the handler blocks on Docs/Drive/LLM calls, FastAPI runs it in a worker thread
    return assistant.handle(req)
