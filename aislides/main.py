from __future__ import annotations
import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List, Optional, Union

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse, Response
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field

from aislides.artifacts import ArtifactRegistry
from aislides.config import Settings, get_settings, settings
from aislides.deck import PPTX_MEDIA_TYPE, deck_filename, render_deck
from aislides.editor import Editor, editor_to_dict
from aislides.errors import AppError, ValidationError
from aislides.generation import SlideGenerator
from aislides.history import JsonFileHistoryStore
from aislides.live import LiveSessions
from aislides.models import (
    ErrorResponse, ExportRequest,
    GenerateRequest, GenerateResponse,
    HistoryListResponse, HistoryUpsertRequest, HistoryUpsertResponse,
    Slide, UploadResponse,
)
from aislides.session import SessionController, state_to_dict

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"

history_store = JsonFileHistoryStore(settings.history_file)
slide_generator = SlideGenerator(settings)
artifact_registry = ArtifactRegistry()

# live sessions, keyed by an opaque session key (not the history id)
live_sessions = LiveSessions(max_sessions=settings.max_live_sessions)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    live_sessions.close_all()
    artifact_registry.clear()


app = FastAPI(
    title="AI Slides API",
    version=APP_VERSION,
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

UPLOAD_DIR = Path(settings.upload_dir)
UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
app.mount(settings.upload_url_prefix, StaticFiles(directory=str(UPLOAD_DIR), check_dir=False), name="uploads")


# ---------------- Dependencies ----------------

def get_history_store() -> JsonFileHistoryStore:
    return history_store


def get_generator() -> SlideGenerator:
    return slide_generator


def get_artifacts() -> ArtifactRegistry:
    return artifact_registry


def get_sessions() -> LiveSessions:
    return live_sessions


# ---------------- Error handlers (every failure is {"error": ...}) ----------------

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return ORJSONResponse(status_code=exc.status_code, content=ErrorResponse(error=exc.message).model_dump())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    where = ".".join(str(p) for p in first.get("loc", ()))
    return ORJSONResponse(status_code=422, content={"error": f"Invalid request: {where} {first.get('msg', '')}".strip()})


@app.exception_handler(Exception)
async def all_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return ORJSONResponse(
        status_code=500,
        content={"error": "internal_error", "message": str(exc)[:2000]},
    )


# ---------------- Routes ----------------

@app.get("/health")
async def health():
    return {"ok": True, "env": settings.app_env}


@app.get("/v1/meta")
async def meta(cfg: Settings = Depends(get_settings)):
    return {
        "version": APP_VERSION,
        "models": {"gemini": cfg.gemini_model},
        "credential_configured": bool(cfg.google_api_key),
    }


@app.post("/generate", response_model=GenerateResponse)
async def generate_slides(req: GenerateRequest, generator: SlideGenerator = Depends(get_generator)):
    slides = await generator.generate(req.prompt)
    return GenerateResponse(slides=slides)


@app.get("/history", response_model=HistoryListResponse, response_model_by_alias=True)
async def list_history(store: JsonFileHistoryStore = Depends(get_history_store)):
    items = await asyncio.to_thread(store.list)
    return HistoryListResponse(items=items)


@app.post("/history", response_model=HistoryUpsertResponse, response_model_by_alias=True)
async def save_history(req: HistoryUpsertRequest, store: JsonFileHistoryStore = Depends(get_history_store)):
    item = await asyncio.to_thread(
        store.upsert,
        session_id=req.session_id,
        prompt=req.prompt,
        slides=req.slides,
        messages=req.messages,
    )
    return HistoryUpsertResponse(item=item, session_id=item.id)


@app.post("/upload", response_model=UploadResponse)
async def upload_pptx(file: Optional[UploadFile] = File(None), cfg: Settings = Depends(get_settings)):
    if file is None:
        raise ValidationError("No file uploaded.")
    data = await file.read()
    if not data:
        raise ValidationError("Uploaded file is empty.")

    upload_dir = Path(cfg.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    filename = f"{uuid.uuid4()}.pptx"
    await asyncio.to_thread((upload_dir / filename).write_bytes, data)
    logger.info("Stored upload %s (%d bytes)", filename, len(data))
    return UploadResponse(url=f"{cfg.upload_url_prefix.rstrip('/')}/{filename}")


@app.post("/export")
async def export_deck(req: ExportRequest):
    data = await asyncio.to_thread(render_deck, req.slides, req.styles)
    filename = deck_filename(req.filename)
    return Response(
        content=data,
        media_type=PPTX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/artifacts/{artifact_id}")
async def download_artifact(artifact_id: str, artifacts: ArtifactRegistry = Depends(get_artifacts)):
    artifact = artifacts.get(artifact_id)
    return Response(
        content=artifact.data,
        media_type=PPTX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
    )


# --------------------------------------------------
# Live sessions (server-held session controller + editor)
# --------------------------------------------------

class PromptBody(BaseModel):
    prompt: str


class LoadBody(BaseModel):
    history_id: str = Field(alias="historyId")


class SlidesBody(BaseModel):
    slides: List[Slide]


class KeyBody(BaseModel):
    key: str


class GoToBody(BaseModel):
    index: int


class StyleBody(BaseModel):
    field: str
    value: Union[int, str]


class DraftBody(BaseModel):
    title: Optional[str] = None
    content: Optional[List[str]] = None


def _session_view(key: str, editor: Editor, changed: Optional[bool] = None) -> dict:
    editor.refresh()
    body = {
        "key": key,
        "state": state_to_dict(editor.controller.state),
        "editor": editor_to_dict(editor.state),
    }
    if changed is not None:
        body["changed"] = changed
    return body


@app.post("/sessions")
async def create_session(
    sessions: LiveSessions = Depends(get_sessions),
    generator: SlideGenerator = Depends(get_generator),
    store: JsonFileHistoryStore = Depends(get_history_store),
    artifacts: ArtifactRegistry = Depends(get_artifacts),
):
    key = sessions.open(SessionController(generator, store, artifacts))
    return _session_view(key, sessions.get(key))


@app.get("/sessions/{key}")
async def get_session(key: str, sessions: LiveSessions = Depends(get_sessions)):
    return _session_view(key, sessions.get(key))


@app.post("/sessions/{key}/prompt")
async def submit_prompt(key: str, body: PromptBody, sessions: LiveSessions = Depends(get_sessions)):
    if not body.prompt.strip():
        raise ValidationError("prompt is required")
    editor = sessions.get(key)
    await editor.controller.submit(body.prompt)
    return _session_view(key, editor)


@app.post("/sessions/{key}/load")
async def load_session(
    key: str,
    body: LoadBody,
    sessions: LiveSessions = Depends(get_sessions),
    store: JsonFileHistoryStore = Depends(get_history_store),
):
    editor = sessions.get(key)
    item = await asyncio.to_thread(store.get, body.history_id)
    await editor.controller.load(item)
    return _session_view(key, editor)


@app.put("/sessions/{key}/slides")
async def update_session_slides(key: str, body: SlidesBody, sessions: LiveSessions = Depends(get_sessions)):
    editor = sessions.get(key)
    changed = await editor.replace_slides(body.slides)
    return _session_view(key, editor, changed)


@app.delete("/sessions/{key}")
async def close_session(key: str, sessions: LiveSessions = Depends(get_sessions)):
    sessions.close(key)
    return {"ok": True}


# ---------------- Editor ----------------

@app.post("/sessions/{key}/editor/key")
async def editor_key(key: str, body: KeyBody, sessions: LiveSessions = Depends(get_sessions)):
    editor = sessions.get(key)
    editor.handle_key(body.key)
    return _session_view(key, editor)


@app.post("/sessions/{key}/editor/go")
async def editor_go_to(key: str, body: GoToBody, sessions: LiveSessions = Depends(get_sessions)):
    editor = sessions.get(key)
    editor.go_to(body.index)
    return _session_view(key, editor)


@app.post("/sessions/{key}/editor/add")
async def editor_add_slide(key: str, sessions: LiveSessions = Depends(get_sessions)):
    editor = sessions.get(key)
    changed = await editor.add_slide()
    return _session_view(key, editor, changed)


@app.post("/sessions/{key}/editor/duplicate")
async def editor_duplicate_slide(key: str, sessions: LiveSessions = Depends(get_sessions)):
    editor = sessions.get(key)
    changed = await editor.duplicate_slide()
    return _session_view(key, editor, changed)


@app.post("/sessions/{key}/editor/delete")
async def editor_delete_slide(key: str, sessions: LiveSessions = Depends(get_sessions)):
    editor = sessions.get(key)
    changed = await editor.delete_slide()
    return _session_view(key, editor, changed)


@app.post("/sessions/{key}/editor/style")
async def editor_set_style(key: str, body: StyleBody, sessions: LiveSessions = Depends(get_sessions)):
    editor = sessions.get(key)
    changed = await editor.set_style(body.field, body.value)
    return _session_view(key, editor, changed)


@app.post("/sessions/{key}/editor/edit")
async def editor_open_edit(key: str, sessions: LiveSessions = Depends(get_sessions)):
    editor = sessions.get(key)
    editor.open_edit()
    return _session_view(key, editor)


@app.put("/sessions/{key}/editor/draft")
async def editor_set_draft(key: str, body: DraftBody, sessions: LiveSessions = Depends(get_sessions)):
    editor = sessions.get(key)
    if not editor.state.is_editing:
        raise ValidationError("No slide is being edited")
    editor.set_draft(body.title, body.content)
    return _session_view(key, editor)


@app.post("/sessions/{key}/editor/save")
async def editor_save(key: str, sessions: LiveSessions = Depends(get_sessions)):
    editor = sessions.get(key)
    changed = await editor.save_edit()
    return _session_view(key, editor, changed)


@app.post("/sessions/{key}/editor/cancel")
async def editor_cancel(key: str, sessions: LiveSessions = Depends(get_sessions)):
    editor = sessions.get(key)
    editor.cancel_edit()
    return _session_view(key, editor)
