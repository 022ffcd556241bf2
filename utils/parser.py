import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from config import DEFAULT_CHUNK_SIZE
from models.line import Line, SCENE_OPENS_CUE
from models.script import Scene, Script

DEFAULT_TITLE = "Untitled Script"
DEFAULT_SCENE_NAME = "Scene 1"
MAX_CHARACTER_NAME_LENGTH = 40

# Character names are 1-3 words; tried in order of preference.
LINE_PATTERNS = [
    re.compile(r"^\*\*([^*]+)\*\*:\s*(.+)$"),
    re.compile(r"^\*\*([^*]+)\*\*\s*-\s*(.+)$"),
    re.compile(r"^([A-Z][A-Z.']*(?:\s+[A-Z][A-Z.']*){0,2}):\s*(.+)$"),
    re.compile(r"^([A-Z][A-Z.']*(?:\s+[A-Z][A-Z.']*){0,2})\s+-\s+(.+)$"),
    re.compile(r"^([A-Z][a-z.']*(?:\s+[A-Z][a-z.']*){0,2}):\s*(.+)$"),
    re.compile(r"^([A-Z][a-z.']*(?:\s+[A-Z][a-z.']*){0,2})\s+-\s+(.+)$"),
]

STAGE_NOTE_PATTERNS = [
    re.compile(r"^\*[^*]+\*$"),
    re.compile(r"^_[^_]+_$"),
    re.compile(r"^\([^)]+\)$"),
    re.compile(r"^\[[^\]]+\]$"),
]


@dataclass
class Dialogue:
    character: str
    text: str


@dataclass
class ParsedScene:
    name: str
    dialogues: List[Dialogue] = field(default_factory=list)


@dataclass
class ParsedScript:
    title: str
    scenes: List[ParsedScene]
    characters: List[str]


def is_stage_note(line: str) -> bool:
    return any(pattern.match(line) for pattern in STAGE_NOTE_PATTERNS)


def parse_character_line(line: str) -> Optional[Tuple[str, str]]:
    for pattern in LINE_PATTERNS:
        match = pattern.match(line)
        if not match:
            continue
        character = match.group(1).strip()
        text = match.group(2).strip()
        if 0 < len(character) < MAX_CHARACTER_NAME_LENGTH and "," not in character:
            return character, text
    return None


def parse_markdown(markdown: str) -> ParsedScript:
    """Parse a markdown or stage-play formatted script into scenes of dialogue."""
    title = DEFAULT_TITLE
    scenes: List[ParsedScene] = []
    current: Optional[ParsedScene] = None
    characters: List[str] = []

    for raw in markdown.splitlines():
        stripped = raw.strip()
        if not stripped or is_stage_note(stripped):
            continue
        if stripped.startswith("# ") and title == DEFAULT_TITLE:
            title = stripped[2:].strip()
            continue
        if stripped.startswith("## "):
            if current:
                scenes.append(current)
            current = ParsedScene(name=stripped[3:].strip())
            continue
        parsed = parse_character_line(stripped)
        if not parsed:
            continue
        character, text = parsed
        if character not in characters:
            characters.append(character)
        if current is None:
            current = ParsedScene(name=DEFAULT_SCENE_NAME)
        current.dialogues.append(Dialogue(character=character, text=text))

    if current:
        scenes.append(current)
    return ParsedScript(title=title, scenes=scenes, characters=characters)


def count_lines_for(parsed: ParsedScript, character: str) -> int:
    return sum(
        1
        for scene in parsed.scenes
        for dialogue in scene.dialogues
        if dialogue.character == character
    )


def _new_id() -> str:
    return uuid.uuid4().hex


def build_script_records(
    markdown: str,
    my_character: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    now: Optional[datetime] = None,
) -> Tuple[Script, List[Scene], List[Line]]:
    """Build the script, its scenes and one Line per utterance of my_character."""
    parsed = parse_markdown(markdown)
    created = now or datetime.now(timezone.utc)
    script = Script(
        id=_new_id(),
        title=parsed.title,
        raw_markdown=markdown,
        my_character=my_character,
        chunk_size=chunk_size,
        created_at=created,
        updated_at=created,
    )
    scenes: List[Scene] = []
    lines: List[Line] = []
    for scene_index, parsed_scene in enumerate(parsed.scenes):
        scene = Scene(id=_new_id(), script_id=script.id, name=parsed_scene.name, order=scene_index)
        scenes.append(scene)
        dialogues = parsed_scene.dialogues
        for i, dialogue in enumerate(dialogues):
            if dialogue.character != my_character:
                continue
            previous = dialogues[i - 1] if i > 0 else None
            lines.append(
                Line(
                    id=_new_id(),
                    script_id=script.id,
                    scene_id=scene.id,
                    cue=previous.text if previous else SCENE_OPENS_CUE,
                    cue_character=previous.character if previous else "",
                    response=dialogue.text,
                    response_character=dialogue.character,
                    order=len(lines),
                    due_date=created,
                )
            )
    return script, scenes, lines
