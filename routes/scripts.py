from fastapi import APIRouter, Depends, Form, Request, HTTPException, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pathlib import Path
from pydantic import ValidationError
from typing import Optional
import sqlite3

from config import load_config
from db.database import get_db
from models.script import ScriptCreate
from utils.chunks import chunks_of, chunk_summary, is_chunk_mastered, is_line_mastered, learning_state
from utils.ledger import (
    delete_script,
    get_scenes,
    get_script,
    insert_script_records,
    load_lines,
    reset_progress,
    review_counts,
)
from utils.parser import build_script_records, count_lines_for, parse_markdown

router = APIRouter()
base_dir = Path(__file__).resolve().parent.parent
templates = Jinja2Templates(directory=str(base_dir / "templates"))

def get_script_or_404(conn, script_id: str):
    script = get_script(conn, script_id)
    if not script:
        raise HTTPException(status_code=404, detail="Script not found")
    return script

@router.get("/new", response_class=HTMLResponse)
async def new_script_form(request: Request):
    """Form to paste a script."""
    return templates.TemplateResponse("scripts/new.html", {"request": request})

@router.post("/parse", response_class=HTMLResponse)
async def parse_script(request: Request, raw_markdown: str = Form(...)):
    """Parse pasted text and offer the characters found in it."""
    if not raw_markdown.strip():
        raise HTTPException(status_code=400, detail="Paste a script first")
    parsed = parse_markdown(raw_markdown)
    if not parsed.characters:
        raise HTTPException(
            status_code=400,
            detail="No characters found. Use the format **Character**: Dialogue",
        )
    review_cfg = load_config()["review"]
    characters = [
        {"name": name, "line_count": count_lines_for(parsed, name)}
        for name in parsed.characters
    ]
    return templates.TemplateResponse(
        "scripts/select_character.html",
        {
            "request": request,
            "title": parsed.title,
            "scene_count": len(parsed.scenes),
            "characters": characters,
            "raw_markdown": raw_markdown,
            "chunk_size_choices": review_cfg["chunk_size_choices"],
            "default_chunk_size": review_cfg["default_chunk_size"],
        },
    )

@router.post("/new")
async def create_script(
    raw_markdown: str = Form(..., description="Script text"),
    my_character: str = Form(..., description="Character whose lines are memorized"),
    chunk_size: Optional[int] = Form(None, description="Lines per learning chunk"),
    conn = Depends(get_db),
):
    """Parse the script and store it with its scenes and lines."""
    if chunk_size is None:
        chunk_size = load_config()["review"]["default_chunk_size"]
    try:
        payload = ScriptCreate(raw_markdown=raw_markdown, my_character=my_character, chunk_size=chunk_size)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid script: {e.errors()[0]['msg']}")
    parsed = parse_markdown(payload.raw_markdown)
    if payload.my_character not in parsed.characters:
        raise HTTPException(status_code=400, detail=f"Character {payload.my_character!r} not found in script")
    script, scenes, lines = build_script_records(payload.raw_markdown, payload.my_character, payload.chunk_size)
    if not lines:
        raise HTTPException(status_code=400, detail="The selected character has no lines")
    try:
        insert_script_records(conn, script, scenes, lines)
    except sqlite3.Error as e:
        raise HTTPException(status_code=500, detail=f"Failed to save script: {str(e)}")
    return RedirectResponse(url=f"/scripts/{script.id}", status_code=status.HTTP_303_SEE_OTHER)

@router.get("/{script_id}", response_class=HTMLResponse)
async def script_detail(script_id: str, request: Request, conn = Depends(get_db)):
    """Script overview: scenes and per-chunk progress."""
    script = get_script_or_404(conn, script_id)
    scenes = get_scenes(conn, script_id)
    lines = load_lines(conn, script_id)
    state = learning_state(lines, script.chunk_size)
    chunks = []
    for index, chunk in enumerate(chunks_of(lines, script.chunk_size)):
        label, line_range = chunk_summary(index, state.total_chunks, script.chunk_size, len(lines))
        chunks.append({
            "label": label,
            "line_range": line_range,
            "mastered": is_chunk_mastered(chunk),
            "active": not state.is_complete and index == state.active_chunk_index,
            "mastered_lines": sum(1 for line in chunk if is_line_mastered(line)),
            "size": len(chunk),
        })
    scene_names = {scene.id: scene.name for scene in scenes}
    return templates.TemplateResponse(
        "scripts/detail.html",
        {
            "request": request,
            "script": script,
            "scenes": scenes,
            "lines": lines,
            "scene_names": scene_names,
            "chunks": chunks,
            "complete": state.is_complete,
            "counts": review_counts(conn, script_id),
        },
    )

@router.get("/{script_id}/progress")
async def script_progress(script_id: str, conn = Depends(get_db)):
    """JSON view of the derived learning state."""
    script = get_script_or_404(conn, script_id)
    lines = load_lines(conn, script_id)
    state = learning_state(lines, script.chunk_size)
    return {
        "script_id": script.id,
        "chunk_size": script.chunk_size,
        "phase": state.phase,
        "active_chunk_index": state.active_chunk_index,
        "total_chunks": state.total_chunks,
        "total_lines": len(lines),
        "mastered_lines": sum(1 for line in lines if is_line_mastered(line)),
        "lines_to_review": [line.id for line in state.lines_to_review],
        "chunk_progress": [
            {"line_id": line_id, "consecutive_correct": streak}
            for line_id, streak in state.chunk_progress
        ],
        "reviews": review_counts(conn, script_id),
    }

@router.post("/{script_id}/reset")
async def reset_script(script_id: str, conn = Depends(get_db)):
    """Start the script over from the first chunk."""
    get_script_or_404(conn, script_id)
    try:
        reset_progress(conn, script_id)
    except sqlite3.Error as e:
        raise HTTPException(status_code=500, detail=f"Failed to reset progress: {str(e)}")
    return RedirectResponse(url=f"/scripts/{script_id}", status_code=status.HTTP_303_SEE_OTHER)

@router.post("/{script_id}/delete")
async def remove_script(script_id: str, conn = Depends(get_db)):
    get_script_or_404(conn, script_id)
    try:
        delete_script(conn, script_id)
    except sqlite3.Error as e:
        raise HTTPException(status_code=500, detail=f"Failed to delete script: {str(e)}")
    return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
