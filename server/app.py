"""FastAPI application -- routes for the Studymate study companion."""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager, contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Optional

_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from fastapi import Cookie, Depends, FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session as DBSession

from server.__version__ import __version__
from server.auth import SESSION_COOKIE, get_current_user, get_db_session
from server.config import Settings
from server.db.models import User
from server.dependencies import get_content_provider, get_settings
from server.schemas import (
    ChatRequest,
    ChatResponse,
    DueCardsResponse,
    FileUploadRequest,
    FlashcardsRequest,
    GenerateRequest,
    LoginRequest,
    MaterialRequest,
    NewSubjectRequest,
    OnboardingRequest,
    PreviewResponse,
    ProfileRequest,
    QuizFeedbackRequest,
    QuizFeedbackResponse,
    QuizSubmitRequest,
    QuizSubmitResponse,
    QuizzesRequest,
    RegisterRequest,
    ReviewRequest,
    SessionCompleteRequest,
    StatsResponse,
    SubjectProgressResponse,
    SummaryRequest,
    UserProfileSchema,
    UserResponse,
)
from server.services import auth_service, state_service, study_service
from server.services.content import (
    ContentProvider,
    GenerationError,
    build_chat_payload,
    build_payload,
    generate_chat_reply,
    generate_flashcards,
    generate_quiz_feedback,
    generate_quizzes,
    generate_summary,
)
from study.errors import CardNotFound, InvalidInput, SubjectNotFound
from study.events import (
    AddSubject,
    ClearContent,
    CompleteOnboarding,
    NewSubject,
    RemoveFile,
    ResetApp,
    SetFlashcards,
    SetQuizzes,
    SetSummary,
    UpdateMaterial,
    UpdateProfile,
)
from study.models import AppState, QuizQuestion, UserProfile

logger = logging.getLogger("studymate")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan: configure logging and create tables."""
    from server.db.session import init_db
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    init_db(settings)
    logger.info("Startup: studymate %s, database ready", __version__)
    yield
    logger.info("Shutdown: complete")


app = FastAPI(title="Studymate", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _today() -> date:
    return datetime.now(timezone.utc).date()


@contextmanager
def _study_errors():
    """Translate study engine errors into HTTP errors."""
    try:
        yield
    except (SubjectNotFound, CardNotFound) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))


def _subject_response(state: AppState, subject_id: str):
    with _study_errors():
        return study_service.require_subject(state, subject_id).to_dict()


def _profile(schema: UserProfileSchema) -> UserProfile:
    return UserProfile(full_name=schema.full_name, grade_level=schema.grade_level, school_name=schema.school_name)


# ---- Auth ----

def _set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        max_age=settings.session_ttl_hours * 3600,
        httponly=True,
        secure=False,
        samesite="lax",
    )


@app.post("/auth/register", response_model=UserResponse)
def auth_register(
    body: RegisterRequest,
    response: Response,
    db: DBSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    try:
        user = auth_service.register_user(db, body.email, body.password)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    token = auth_service.create_session(db, user.id, settings.session_ttl_hours)
    _set_session_cookie(response, token, settings)
    logger.info("Registered user %s", user.id)
    return {"id": user.id, "email": user.email}


@app.post("/auth/login", response_model=UserResponse)
def auth_login(
    body: LoginRequest,
    response: Response,
    db: DBSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    user = auth_service.authenticate(db, body.email, body.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    purged = auth_service.purge_expired_sessions(db)
    if purged:
        logger.debug("Purged %d expired session(s)", purged)
    token = auth_service.create_session(db, user.id, settings.session_ttl_hours)
    _set_session_cookie(response, token, settings)
    return {"id": user.id, "email": user.email}


@app.post("/auth/logout")
def auth_logout(
    response: Response,
    studymate_session: Optional[str] = Cookie(None, alias=SESSION_COOKIE),
    db: DBSession = Depends(get_db_session),
):
    if studymate_session:
        auth_service.logout_session(db, studymate_session)
    response.delete_cookie(SESSION_COOKIE)
    return {"ok": True}


@app.get("/auth/me", response_model=UserResponse)
def auth_me(user: User = Depends(get_current_user)):
    return {"id": user.id, "email": user.email}


# ---- Health (no dependencies, always fast) ----

@app.get("/health")
def health():
    return {"ok": True, "version": __version__}


# ---- App state ----

@app.get("/state")
def get_state(user: User = Depends(get_current_user), db: DBSession = Depends(get_db_session)):
    return state_service.load_state(db, user.id).to_dict()


@app.post("/onboarding")
def onboarding(
    body: OnboardingRequest,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    event = CompleteOnboarding(
        user=_profile(body.user),
        subjects=[NewSubject(s.name, s.difficulty, s.exam_date) for s in body.subjects],
        intensity=body.study_intensity,
    )
    with _study_errors():
        return state_service.dispatch(db, user.id, event).to_dict()


@app.put("/profile")
def update_profile(
    body: ProfileRequest,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    event = UpdateProfile(
        user=_profile(body.user),
        intensity=body.study_intensity,
        notifications_enabled=body.notifications_enabled,
    )
    with _study_errors():
        return state_service.dispatch(db, user.id, event).to_dict()


@app.post("/reset")
def reset(user: User = Depends(get_current_user), db: DBSession = Depends(get_db_session)):
    logger.info("Resetting study state for user %s", user.id)
    return state_service.dispatch(db, user.id, ResetApp()).to_dict()


# ---- Subjects ----

@app.get("/subjects")
def list_subjects(user: User = Depends(get_current_user), db: DBSession = Depends(get_db_session)):
    state = state_service.load_state(db, user.id)
    return {"subjects": [s.to_dict() for s in state.subjects]}


@app.post("/subjects")
def add_subject(
    body: NewSubjectRequest,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    with _study_errors():
        state = state_service.dispatch(db, user.id, AddSubject(body.name, body.difficulty, body.exam_date))
    return state.subjects[-1].to_dict()


@app.get("/subjects/{subject_id}")
def get_subject(subject_id: str, user: User = Depends(get_current_user), db: DBSession = Depends(get_db_session)):
    return _subject_response(state_service.load_state(db, user.id), subject_id)


@app.put("/subjects/{subject_id}/material")
def update_material(
    subject_id: str,
    body: MaterialRequest,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    with _study_errors():
        state = state_service.dispatch(db, user.id, UpdateMaterial(subject_id, body.material))
    return _subject_response(state, subject_id)


@app.put("/subjects/{subject_id}/summary")
def set_summary(
    subject_id: str,
    body: SummaryRequest,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    with _study_errors():
        state = state_service.dispatch(db, user.id, SetSummary(subject_id, body.summary))
    return _subject_response(state, subject_id)


@app.post("/subjects/{subject_id}/files")
def upload_file(
    subject_id: str,
    body: FileUploadRequest,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    with _study_errors():
        state = study_service.add_file(db, user.id, subject_id, body.name, body.mime_type, body.data)
    return _subject_response(state, subject_id)


@app.delete("/subjects/{subject_id}/files/{file_id}")
def remove_file(
    subject_id: str,
    file_id: str,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    with _study_errors():
        state = state_service.dispatch(db, user.id, RemoveFile(subject_id, file_id))
    return _subject_response(state, subject_id)


@app.post("/subjects/{subject_id}/clear")
def clear_content(subject_id: str, user: User = Depends(get_current_user), db: DBSession = Depends(get_db_session)):
    with _study_errors():
        state = state_service.dispatch(db, user.id, ClearContent(subject_id))
    return _subject_response(state, subject_id)


# ---- Flashcards ----

@app.put("/subjects/{subject_id}/flashcards")
def set_flashcards(
    subject_id: str,
    body: FlashcardsRequest,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    cards = [(c.term, c.definition) for c in body.flashcards]
    with _study_errors():
        state = state_service.dispatch(db, user.id, SetFlashcards(subject_id, cards))
    return _subject_response(state, subject_id)


@app.get("/subjects/{subject_id}/flashcards/due", response_model=DueCardsResponse)
def due_flashcards(subject_id: str, user: User = Depends(get_current_user), db: DBSession = Depends(get_db_session)):
    state = state_service.load_state(db, user.id)
    with _study_errors():
        return study_service.get_due_cards(state, subject_id, _today())


@app.get("/subjects/{subject_id}/flashcards/{card_id}/preview", response_model=PreviewResponse)
def preview_flashcard(
    subject_id: str,
    card_id: str,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    state = state_service.load_state(db, user.id)
    with _study_errors():
        return study_service.preview_card(state, subject_id, card_id)


@app.post("/subjects/{subject_id}/flashcards/{card_id}/review")
def review_flashcard(
    subject_id: str,
    card_id: str,
    body: ReviewRequest,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    with _study_errors():
        return study_service.review(db, user.id, subject_id, card_id, body.quality)


@app.post("/subjects/{subject_id}/flashcards/session")
def complete_flashcard_session(
    subject_id: str,
    body: SessionCompleteRequest,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    with _study_errors():
        return study_service.complete_session(db, user.id, subject_id, body.cards_reviewed)


# ---- Quizzes ----

@app.put("/subjects/{subject_id}/quizzes")
def set_quizzes(
    subject_id: str,
    body: QuizzesRequest,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    quizzes = {
        quiz_type: [QuizQuestion(q.question, list(q.options), list(q.correct_answer), q.explanation) for q in questions]
        for quiz_type, questions in body.quizzes.items()
    }
    with _study_errors():
        state = state_service.dispatch(db, user.id, SetQuizzes(subject_id, quizzes))
    return _subject_response(state, subject_id)


@app.post("/subjects/{subject_id}/quizzes/submit", response_model=QuizSubmitResponse)
def submit_quiz(
    subject_id: str,
    body: QuizSubmitRequest,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
):
    state = state_service.load_state(db, user.id)
    with _study_errors():
        return study_service.submit_quiz(db, user.id, state, subject_id, body.quiz_type, body.answers)


# ---- Progress ----

@app.get("/subjects/{subject_id}/progress", response_model=SubjectProgressResponse)
def subject_progress(subject_id: str, user: User = Depends(get_current_user), db: DBSession = Depends(get_db_session)):
    state = state_service.load_state(db, user.id)
    with _study_errors():
        return study_service.get_subject_progress(state, subject_id, _today())


@app.get("/stats", response_model=StatsResponse)
def stats(user: User = Depends(get_current_user), db: DBSession = Depends(get_db_session)):
    return study_service.get_stats(state_service.load_state(db, user.id), _today())


# ---- Generation (content service) ----
# Generation routes are async; database work runs in a worker thread.

def _require_provider(provider: Optional[ContentProvider]) -> ContentProvider:
    if provider is None:
        raise HTTPException(status_code=503, detail="Content generation is disabled")
    return provider


def _generation_http_error(e: GenerationError) -> HTTPException:
    logger.warning("Content generation failed: %s (%s)", e.kind, e.message)
    status = 504 if e.kind == "timeout" else 502
    return HTTPException(status_code=status, detail={"kind": e.kind, "message": e.message})


def _payload(db: DBSession, user_id: str, subject_id: str, body: GenerateRequest, settings: Settings):
    state = state_service.load_state(db, user_id)
    with _study_errors():
        subject = study_service.require_subject(state, subject_id)
        return build_payload(
            subject,
            focus=body.focus,
            language=body.language,
            amount=body.amount,
            max_input_chars=settings.content_max_input_chars,
        )


def _dispatch(db: DBSession, user_id: str, event) -> AppState:
    with _study_errors():
        return state_service.dispatch(db, user_id, event)


@app.post("/subjects/{subject_id}/generate/summary")
async def generate_subject_summary(
    subject_id: str,
    body: GenerateRequest,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
    provider: Optional[ContentProvider] = Depends(get_content_provider),
):
    provider = _require_provider(provider)
    payload = await asyncio.to_thread(_payload, db, user.id, subject_id, body, settings)
    try:
        summary = await generate_summary(provider, payload)
    except GenerationError as e:
        raise _generation_http_error(e)
    state = await asyncio.to_thread(_dispatch, db, user.id, SetSummary(subject_id, summary))
    return _subject_response(state, subject_id)


@app.post("/subjects/{subject_id}/generate/flashcards")
async def generate_subject_flashcards(
    subject_id: str,
    body: GenerateRequest,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
    provider: Optional[ContentProvider] = Depends(get_content_provider),
):
    provider = _require_provider(provider)
    payload = await asyncio.to_thread(_payload, db, user.id, subject_id, body, settings)
    try:
        cards = await generate_flashcards(provider, payload)
    except GenerationError as e:
        raise _generation_http_error(e)
    state = await asyncio.to_thread(_dispatch, db, user.id, SetFlashcards(subject_id, cards))
    return _subject_response(state, subject_id)


@app.post("/subjects/{subject_id}/generate/quizzes")
async def generate_subject_quizzes(
    subject_id: str,
    body: GenerateRequest,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
    provider: Optional[ContentProvider] = Depends(get_content_provider),
):
    provider = _require_provider(provider)
    payload = await asyncio.to_thread(_payload, db, user.id, subject_id, body, settings)
    try:
        quizzes = await generate_quizzes(provider, payload)
    except GenerationError as e:
        raise _generation_http_error(e)
    state = await asyncio.to_thread(_dispatch, db, user.id, SetQuizzes(subject_id, quizzes))
    return _subject_response(state, subject_id)


def _chat_payload(db: DBSession, user_id: str, subject_id: str, body: ChatRequest, settings: Settings):
    state = state_service.load_state(db, user_id)
    with _study_errors():
        subject = study_service.require_subject(state, subject_id)
        return build_chat_payload(
            subject,
            [m.model_dump() for m in body.messages],
            language=body.language,
            max_input_chars=settings.content_max_input_chars,
        )


@app.post("/subjects/{subject_id}/chat", response_model=ChatResponse)
async def chat(
    subject_id: str,
    body: ChatRequest,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
    provider: Optional[ContentProvider] = Depends(get_content_provider),
):
    """Answer a question about the subject. The conversation is not stored."""
    provider = _require_provider(provider)
    payload = await asyncio.to_thread(_chat_payload, db, user.id, subject_id, body, settings)
    try:
        reply = await generate_chat_reply(provider, payload)
    except GenerationError as e:
        raise _generation_http_error(e)
    return {"reply": reply}


def _require_subject(db: DBSession, user_id: str, subject_id: str) -> None:
    state = state_service.load_state(db, user_id)
    with _study_errors():
        study_service.require_subject(state, subject_id)


@app.post("/subjects/{subject_id}/quizzes/feedback", response_model=QuizFeedbackResponse)
async def quiz_feedback(
    subject_id: str,
    body: QuizFeedbackRequest,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
    provider: Optional[ContentProvider] = Depends(get_content_provider),
):
    """Study tips for the questions missed in a submitted quiz."""
    provider = _require_provider(provider)
    await asyncio.to_thread(_require_subject, db, user.id, subject_id)
    incorrect = [QuizQuestion(q.question, list(q.options), list(q.correct_answer), q.explanation) for q in body.questions]
    try:
        feedback = await generate_quiz_feedback(provider, incorrect, body.language)
    except GenerationError as e:
        raise _generation_http_error(e)
    return {"feedback": feedback}
