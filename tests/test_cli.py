import io
import json
from pathlib import Path

import pytest

from sentinel_cli.cli import (
    CONTROL_COMMANDS,
    build_parser,
    classify,
    format_zone_table,
    iter_replay_lines,
    main,
    replay,
)
from sentinel_processor import ProcessorConfig

RECORDING = Path(__file__).resolve().parent.parent / "recordings" / "medication.jsonl"


@pytest.fixture
def config():
    return ProcessorConfig(service_id="test")


class TestReplay:
    def test_shipped_recording(self, config):
        out = io.StringIO()
        with open(RECORDING) as f:
            fired = replay(f, config, out=out)

        assert [activity.name for activity in fired] == ["MedicationTaken"]
        lines = out.getvalue().splitlines()
        assert lines[0] == "2026-03-02T07:41:00  MedicationTaken"
        assert lines[-1] == "Replayed 3 frames, 1 activities"

    def test_tracking_lost_lines(self, config):
        frame = {
            "timestamp": "2026-03-02T07:40:00",
            "frame_id": 1,
            "bodies": [{
                "body_id": 0,
                "tracking_id": 42,
                "spine_mid": {"x": 0.0, "y": 1.0, "z": 0.0},
                "gestures": [],
            }],
        }
        lost = {"type": "tracking_lost", "timestamp": "2026-03-02T07:40:01", "tracking_id": 42}
        stream = io.StringIO("\n".join(json.dumps(line) for line in (frame, lost)))

        fired = replay(stream, config, out=io.StringIO())

        assert fired == []

    def test_mixed_offset_timestamps(self, config):
        def frame(frame_id, timestamp):
            return {
                "timestamp": timestamp,
                "frame_id": frame_id,
                "bodies": [{
                    "body_id": 2,
                    "tracking_id": 42,
                    "hand_right": {"x": 1.12, "y": 0.87, "z": 1.69},
                    "gestures": [{"kind": "PickUp", "confidence": 0.8, "detected": True}],
                }],
            }

        lines = [frame(1, "2026-03-02T07:40:00"), frame(2, "2026-03-02T07:40:05+00:00")]
        stream = io.StringIO("\n".join(json.dumps(line) for line in lines))
        out = io.StringIO()

        assert replay(stream, config, out=out) == []
        assert out.getvalue().splitlines()[-1] == "Replayed 2 frames, 0 activities"

    def test_bad_line_reports_line_number(self):
        stream = io.StringIO("# header\n\n{not json}\n")
        with pytest.raises(ValueError, match="Line 3"):
            list(iter_replay_lines(stream))

    def test_non_object_line(self):
        with pytest.raises(ValueError, match="Line 1"):
            list(iter_replay_lines(io.StringIO("[1, 2]\n")))


class TestClassify:
    def test_hand_at_medication_shelf(self, config):
        assert classify(config, "PickUp", [[1.12, 0.87, 1.69]]) == "Medication"

    def test_floor_plane_applied(self, config):
        zone = classify(config, "PickUp", [[1.12, 0.37, 1.69]], floor=[0.0, 1.0, 0.0, 0.5])
        assert zone == "Medication"

    def test_body_probe(self, config):
        assert classify(config, "HandToMouth", [], body=[-0.31, 0.78, 1.98]) == "Dining"

    def test_no_zone(self, config):
        assert classify(config, "Pour", [[9.0, 9.0, 9.0]]) == "None"

    def test_unknown_kind(self, config):
        with pytest.raises(ValueError):
            classify(config, "Jump", [[0.0, 0.0, 0.0]])


class TestZoneTable:
    def test_lists_every_zone_and_kind(self, config):
        table = format_zone_table(config)
        for name in ("Medication", "Pantry", "Fridge", "BowlCupboard", "FoodPrep", "Dining"):
            assert name in table
        assert "PickUp" in table
        assert "Medication[hands]" in table


class TestParser:
    def test_repeated_hands(self):
        args = build_parser().parse_args(
            ["classify", "PickUp", "--hand", "1", "2", "3", "--hand", "4", "5", "6"]
        )
        assert args.hand == [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]]

    def test_control_commands_map_to_registry_names(self):
        assert CONTROL_COMMANDS["list-zones"] == "list_zones"
        assert CONTROL_COMMANDS["clear-history"] == "clear_history"
        for command in CONTROL_COMMANDS:
            args = build_parser().parse_args(["--service-id", "kitchen-2", command])
            assert args.command == command
            assert args.service_id == "kitchen-2"


class TestMain:
    def test_zones(self, capsys):
        main(["zones"])
        assert "FoodPrep" in capsys.readouterr().out

    def test_classify(self, capsys):
        main(["classify", "PickUp", "--hand", "1.12", "0.87", "1.69"])
        assert capsys.readouterr().out.strip() == "Medication"

    def test_replay(self, capsys):
        main(["replay", str(RECORDING)])
        assert "MedicationTaken" in capsys.readouterr().out

    def test_missing_config_exits(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["zones", "--config", "does/not/exist.yaml"])
        assert exc.value.code == 1
        assert "not found" in capsys.readouterr().err

    def test_no_command(self):
        with pytest.raises(SystemExit):
            main([])
