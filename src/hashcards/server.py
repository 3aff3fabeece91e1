import logging
import threading
import time
from contextlib import asynccontextmanager
from typing import Literal

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from hashcards.application.session import DrillSession
from hashcards.consts import VERSION
from hashcards.domain.errors import SessionError, StoreError
from hashcards.domain.models import BasicContent, ClozeContent

logger = logging.getLogger(__name__)

GRADE_ACTIONS = {
    "full": ("Forgot", "Hard", "Good", "Easy"),
    "binary": ("Forgot", "Good"),
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    session: DrillSession = app.state.session
    logger.info(f"hashcards drill server v{VERSION} starting with {session.total_cards} cards...")
    yield
    # Shutdown
    logger.info(
        f"hashcards drill server shutting down after {session.reviews_done} reviews..."
    )


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class ActionRequest(BaseModel):
    action: Literal["Reveal", "Forgot", "Hard", "Good", "Easy", "Undo", "End"]


class SessionView(BaseModel):
    finished: bool
    revealed: bool
    deck_name: str | None = None
    card_kind: str | None = None
    prompt: str | None = None
    answer: str | None = None  # None until revealed
    grades: list[str]
    reviewed: int
    total: int
    remaining: int


def session_view(session: DrillSession, answer_controls: str = "full") -> SessionView:
    reviewed, total = session.progress
    view = SessionView(
        finished=session.is_finished,
        revealed=session.revealed,
        grades=list(GRADE_ACTIONS[answer_controls]),
        reviewed=reviewed,
        total=total,
        remaining=session.remaining,
    )
    card = session.current_card
    if card is None:
        return view

    view.deck_name = card.deck_name
    view.card_kind = card.kind
    content = card.content
    if isinstance(content, BasicContent):
        view.prompt = content.question
        answer = content.answer
    elif isinstance(content, ClozeContent):
        view.prompt = content.with_blank()
        answer = content.text
    else:
        raise TypeError(f"unknown card content: {content!r}")
    if session.revealed:
        view.answer = answer
    return view


def create_app(session: DrillSession, answer_controls: str = "full") -> FastAPI:
    """Build the drill server around a session. One lock serialises all session access."""
    app = FastAPI(
        title="hashcards",
        description="Local drill server for hashcards review sessions.",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.session = session
    app.state.lock = threading.Lock()
    start_time = time.time()

    @app.get("/health", response_model=HealthResponse)
    def health_check():
        """
        Simple health check to verify server is reachable.
        """
        return HealthResponse(
            status="ok", version=VERSION, uptime_seconds=time.time() - start_time
        )

    @app.get("/version")
    def get_version():
        return {"version": VERSION}

    @app.get("/session", response_model=SessionView)
    def get_session():
        with app.state.lock:
            return session_view(session, answer_controls)

    @app.post("/session", response_model=SessionView)
    def post_action(req: ActionRequest):
        """
        Apply one drill action to the session.
        """
        with app.state.lock:
            if req.action in GRADE_ACTIONS["full"]:
                if req.action not in GRADE_ACTIONS[answer_controls]:
                    raise HTTPException(
                        status_code=409,
                        detail=f"{req.action} is not available with {answer_controls} answer controls.",
                    )
                if not session.is_finished and not session.revealed:
                    raise HTTPException(
                        status_code=409, detail="Reveal the answer before grading."
                    )
            try:
                session.apply(req.action)
            except SessionError as e:
                raise HTTPException(status_code=409, detail=str(e)) from e
            except StoreError as e:
                logger.error(f"Action {req.action} failed: {e}")
                raise HTTPException(status_code=500, detail=str(e)) from e
            return session_view(session, answer_controls)

    return app
