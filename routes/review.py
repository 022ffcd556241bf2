from fastapi import APIRouter, Depends, Form, Request, HTTPException, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from pathlib import Path
from typing import Optional
import logging
import sqlite3

from db.database import get_db
from models.review import GradeSubmit
from utils.chunks import learning_state
from utils.due import due_lines, time_until_next_review
from utils.ledger import get_script, last_graded_order, load_lines, save_grade
from utils.session import build_review_view
from utils.sm2 import grade_line

router = APIRouter()
base_dir = Path(__file__).resolve().parent.parent
templates = Jinja2Templates(directory=str(base_dir / "templates"))
logger = logging.getLogger(__name__)

def load_review_view(conn, script):
    """Read the ledger fresh and derive the card to present next."""
    lines = load_lines(conn, script.id)
    state = learning_state(lines, script.chunk_size)
    last_order = last_graded_order(conn, script.id, [line.id for line in state.lines_to_review])
    return lines, build_review_view(lines, script.chunk_size, last_order)

def render_view(request: Request, script, lines, view, status_code: int = 200, error: Optional[str] = None):
    if view.complete:
        return templates.TemplateResponse(
            "partials/session_complete.html",
            {
                "request": request,
                "script": script,
                "total_lines": view.total_lines,
                "due_count": len(due_lines(lines)),
                "next_review": time_until_next_review(lines),
            },
            status_code=status_code,
        )
    return templates.TemplateResponse(
        "partials/line_card.html",
        {"request": request, "script": script, "view": view, "error": error},
        status_code=status_code,
    )

@router.get("/{script_id}", response_class=HTMLResponse)
async def start_review(script_id: str, request: Request, conn = Depends(get_db)):
    """Review page for a script."""
    script = get_script(conn, script_id)
    if not script:
        raise HTTPException(status_code=404, detail="Script not found")
    lines, view = load_review_view(conn, script)
    return templates.TemplateResponse(
        "review.html",
        {
            "request": request,
            "script": script,
            "view": view,
            "total_lines": view.total_lines,
            "due_count": len(due_lines(lines)),
            "next_review": time_until_next_review(lines),
            "error": None,
        },
    )

@router.get("/{script_id}/next", response_class=HTMLResponse)
async def next_card(script_id: str, request: Request, conn = Depends(get_db)):
    """HTMX endpoint for the next card partial."""
    script = get_script(conn, script_id)
    if not script:
        raise HTTPException(status_code=404, detail="Script not found")
    lines, view = load_review_view(conn, script)
    return render_view(request, script, lines, view)

@router.post("/{script_id}/grade", response_class=HTMLResponse)
async def grade(
    script_id: str,
    request: Request,
    line_id: str = Form(...),
    correct: bool = Form(...),
    conn = Depends(get_db),
):
    """HTMX endpoint to grade the presented line, persist it and return the next card."""
    script = get_script(conn, script_id)
    if not script:
        raise HTTPException(status_code=404, detail="Script not found")
    submission = GradeSubmit(line_id=line_id, correct=correct)
    lines, view = load_review_view(conn, script)
    if view.complete or view.line is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="All chunks are already mastered")
    if view.line.id != submission.line_id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="That line is no longer the one being reviewed",
        )

    graded = grade_line(view.line, submission.correct)
    try:
        save_grade(conn, graded, submission.correct, view.chunk_index)
    except sqlite3.Error:
        # Stored state is unchanged; present the same line again for a retry.
        return render_view(
            request,
            script,
            lines,
            view,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error="Could not save your answer. Please try again.",
        )
    logger.info(
        "Graded line %s (order %d) %s: streak %d, interval %d",
        graded.id,
        graded.order,
        "correct" if submission.correct else "incorrect",
        graded.consecutive_correct,
        graded.interval,
    )

    lines, next_view = load_review_view(conn, script)
    if next_view.complete:
        logger.info("Script %s complete: all %d chunks mastered", script.id, next_view.total_chunks)
    elif next_view.chunk_index != view.chunk_index:
        logger.info("Script %s advanced to %s", script.id, next_view.chunk_label)
    return render_view(request, script, lines, next_view)
