from datetime import datetime, timezone

from utils.parser import build_script_records, count_lines_for, parse_markdown

HAMLET = """# Hamlet

## Act 1, Scene 1

*A platform before the castle.*

**Barnardo**: Who's there?
**Francisco**: Nay, answer me. Stand and unfold yourself.
**Barnardo**: Long live the king!
**Francisco**: Barnardo?

## Act 1, Scene 2

**Francisco**: For this relief much thanks.
(Exit Barnardo)
**Horatio**: Friends to this ground.
"""


def test_parse_markdown_title_scenes_and_characters():
    parsed = parse_markdown(HAMLET)
    assert parsed.title == "Hamlet"
    assert [scene.name for scene in parsed.scenes] == ["Act 1, Scene 1", "Act 1, Scene 2"]
    assert parsed.characters == ["Barnardo", "Francisco", "Horatio"]
    assert len(parsed.scenes[0].dialogues) == 4
    assert count_lines_for(parsed, "Francisco") == 3


def test_parse_markdown_supports_stage_play_formats():
    parsed = parse_markdown(
        "\n".join(
            [
                "ROMEO: But soft, what light?",
                "JULIET - Ay me.",
                "Nurse: Madam!",
                "Friar Laurence - Holy Saint Francis!",
                "[Enter Tybalt]",
                "_Aside_",
            ]
        )
    )
    assert parsed.title == "Untitled Script"
    assert [scene.name for scene in parsed.scenes] == ["Scene 1"]
    assert parsed.characters == ["ROMEO", "JULIET", "Nurse", "Friar Laurence"]


def test_parse_markdown_ignores_prose():
    parsed = parse_markdown("this is just a sentence: with a colon\nAnd another, unrelated line")
    assert parsed.characters == []
    assert parsed.scenes == []


def test_build_script_records_pairs_cues_with_responses():
    now = datetime(2024, 5, 1, tzinfo=timezone.utc)
    script, scenes, lines = build_script_records(HAMLET, "Francisco", chunk_size=2, now=now)
    assert script.title == "Hamlet"
    assert script.chunk_size == 2
    assert script.raw_markdown == HAMLET
    assert [scene.order for scene in scenes] == [0, 1]
    assert [line.order for line in lines] == [0, 1, 2]
    assert lines[0].cue == "Who's there?"
    assert lines[0].cue_character == "Barnardo"
    assert lines[0].response == "Nay, answer me. Stand and unfold yourself."
    assert lines[2].cue == "(Scene opens)"
    assert lines[2].cue_character == ""
    assert lines[2].scene_id == scenes[1].id
    for line in lines:
        assert line.script_id == script.id
        assert (line.interval, line.repetition, line.easiness_factor, line.consecutive_correct) == (0, 0, 2.5, 0)
        assert line.due_date == now
    assert len({line.id for line in lines}) == 3


def test_build_script_records_for_character_without_lines():
    _, scenes, lines = build_script_records(HAMLET, "Hamlet")
    assert len(scenes) == 2
    assert lines == []
