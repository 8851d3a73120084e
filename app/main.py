from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from chat_session.commands import Command
from chat_session.controller import SessionController
from chat_session.gateway import build_gateway
from chat_session.models import SpeechResult
from chat_session.speech import PostedSpeechRecognizer
from config.settings import get_settings


logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s - %(message)s")
logger = logging.getLogger("chat_session")


class DraftRequest(BaseModel):
    text: str = ""


class MessageRequest(BaseModel):
    text: Optional[str] = Field(None, description="Prompt to send; defaults to the current draft")


class VoiceRequest(BaseModel):
    supported: bool = Field(True, description="False when the browser lacks speech recognition")
    results: List[SpeechResult] = Field(default_factory=list)
    error: Optional[str] = Field(None, description="Recognition error reported by the browser")


class ChatResponse(BaseModel):
    accepted: bool
    state: Dict[str, Any]


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info(
        "Config: model=%s gateway=%s key_set=%s",
        settings.gemini_model,
        settings.gateway_backend,
        bool(settings.google_api_key),
    )
    if getattr(app.state, "controller", None) is None:
        app.state.controller = SessionController(
            build_gateway(settings), notice_seconds=settings.notice_seconds
        )
    yield


def create_app(controller: Optional[SessionController] = None) -> FastAPI:
    app = FastAPI(title="Gemini Chat Session", version="1.0.0", lifespan=lifespan)
    app.state.controller = controller

    # CORS: allow local frontend during development
    settings = get_settings()
    if settings.app_env.lower() in {"dev", "development", "local"}:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    def _controller(request: Request) -> SessionController:
        return request.app.state.controller

    def _respond(controller: SessionController, accepted: bool) -> ChatResponse:
        return ChatResponse(accepted=accepted, state=controller.snapshot())

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/chat")
    def get_chat(request: Request) -> Dict[str, Any]:
        return _controller(request).snapshot()

    @app.put("/chat/draft", response_model=ChatResponse)
    def put_draft(request: Request, req: DraftRequest) -> ChatResponse:
        controller = _controller(request)
        controller.state.draft = req.text
        return _respond(controller, True)

    @app.post("/chat/messages", response_model=ChatResponse)
    async def post_message(request: Request, req: MessageRequest) -> ChatResponse:
        controller = _controller(request)
        accepted = await controller.submit_text(req.text)
        return _respond(controller, accepted)

    @app.post("/chat/suggestions/{index}", response_model=ChatResponse)
    async def post_suggestion(request: Request, index: int) -> ChatResponse:
        controller = _controller(request)
        try:
            accepted = await controller.submit_suggestion(index)
        except IndexError as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        return _respond(controller, accepted)

    @app.post("/chat/images", response_model=ChatResponse)
    async def post_image(request: Request, file: Optional[UploadFile] = File(None)) -> ChatResponse:
        controller = _controller(request)
        if file is None:
            return _respond(controller, False)
        data = await file.read()
        logger.info("Image received: name=%s type=%s bytes=%s", file.filename, file.content_type, len(data))
        accepted = await controller.submit_image(file.filename, data, file.content_type)
        return _respond(controller, accepted)

    @app.post("/chat/voice", response_model=ChatResponse)
    async def post_voice(request: Request, req: VoiceRequest) -> ChatResponse:
        controller = _controller(request)
        recognizer = PostedSpeechRecognizer(req.results, req.error) if req.supported else None
        accepted = await controller.listen(recognizer)
        return _respond(controller, accepted)

    @app.post("/chat/signals", response_model=ChatResponse)
    async def post_signal(request: Request, command: Command) -> ChatResponse:
        controller = _controller(request)
        accepted = await controller.dispatch(command)
        return _respond(controller, accepted)

    return app


app = create_app()
