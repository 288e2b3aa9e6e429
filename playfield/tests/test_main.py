import json
from pathlib import Path

import pytest

from playfield.main import load_activity, main, run_preview

ACTIVITY_YAML = """
slug: handout
slides:
  - id: slide-1
    title: Collect
  - id: slide-2
    title: Review
shared_state:
  slide-1:
    responses:
      preview-participant-1-a: Idea A
      preview-participant-2-b: Idea B
      preview-participant-3-c: Idea C
"""


def _write_activity(path: Path, content: str = ACTIVITY_YAML) -> Path:
    path.write_text(content, encoding="utf-8")
    return path


def test_load_activity_reads_yaml(tmp_path):
    activity = load_activity(_write_activity(tmp_path / "activity.yaml"))

    assert activity.slug == "handout"
    assert [slide.id for slide in activity.slides] == ["slide-1", "slide-2"]
    assert len(activity.shared_state["slide-1"]["responses"]) == 3


def test_run_preview_without_source_only_starts(tmp_path):
    result = run_preview(load_activity(_write_activity(tmp_path / "activity.yaml")))

    assert result["success"] is True
    assert result["state"]["phase"] == "slide-1"
    assert [event["type"] for event in result["events"]] == ["handout:start"]


def test_main_hands_out_to_the_last_slide(tmp_path, capsys, restore_logging):
    activity_path = _write_activity(tmp_path / "activity.yaml")

    exit_code = main(
        [
            str(activity_path),
            "--source",
            "slide-1.responses",
            "--mode",
            "exclude-own",
            "--seed",
            "5",
            "--log-dir",
            str(tmp_path / "logs"),
        ]
    )

    output = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assignments = output["state"]["slide-2"]["assignments"]
    assert sorted(assignments) == [
        "preview-participant-1",
        "preview-participant-2",
        "preview-participant-3",
    ]
    assert all(len(item_ids) == 1 for item_ids in assignments.values())
    assert (tmp_path / "logs" / "app.log").exists()


def test_main_reports_rejected_handout(tmp_path, capsys, restore_logging):
    activity_path = _write_activity(tmp_path / "activity.yaml")

    exit_code = main(
        [str(activity_path), "--source", "slide-9.responses", "--log-dir", str(tmp_path / "logs")]
    )

    output = json.loads(capsys.readouterr().out)
    assert exit_code == 1
    assert output["success"] is False
    assert output["errors"] == ["No items available for distribution"]


def test_main_exits_on_unreadable_activity(tmp_path, restore_logging):
    bad = _write_activity(tmp_path / "activity.yaml", "- not\n- a mapping\n")

    with pytest.raises(SystemExit) as excinfo:
        main([str(bad), "--log-dir", str(tmp_path / "logs")])

    assert excinfo.value.code == 1
