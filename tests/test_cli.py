from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from cleansing.cli import app

CONFIG = {
    "linkage": {
        "blocking": {"left": [["first name"], ["last name"]]},
        "metrics": [
            {"metric": "levenshtein", "left": "first name"},
            {"metric": "jaccard", "left": "last name"},
            {"metric": "numeric_difference", "left": "age", "tolerance": 10},
        ],
        "threshold": 0.5,
        "id_projection": ["id", "id"],
    },
    "fusion": {
        "rules": {"first name": "merge_distinct", "age": "weighted_average"},
        "default_rule": "most_weighted",
    },
}


def _write(path: Path, data) -> Path:
    path.write_text(json.dumps(data))
    return path


def test_cli_link_writes_matches(tmp_path: Path, persons) -> None:
    runner = CliRunner()
    records = _write(tmp_path / "persons.json", persons)
    config = _write(tmp_path / "pipeline.json", CONFIG)
    output = tmp_path / "matches.json"

    result = runner.invoke(
        app,
        ["link", str(records), "--config", str(config), "--output", str(output)],
        env={},
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    assert "Matches" in result.stdout

    data = json.loads(output.read_text())
    assert [m["value"] for m in data["matches"]] == [[0, 5], [1, 6], [2, 7], [4, 8]]
    assert data["provenance"]["candidates_generated"] == 4


def test_cli_link_inter_source(tmp_path: Path, persons) -> None:
    runner = CliRunner()
    left = _write(tmp_path / "left.json", persons[:5])
    right = _write(tmp_path / "right.json", persons[5:])
    config = _write(tmp_path / "pipeline.json", CONFIG)
    output = tmp_path / "matches.json"

    result = runner.invoke(
        app,
        ["link", str(left), "--right", str(right), "-c", str(config), "-o", str(output)],
        env={},
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    data = json.loads(output.read_text())
    assert data["provenance"]["mode"] == "inter_source"
    assert [m["value"] for m in data["matches"]] == [[0, 5], [1, 6], [2, 7], [4, 8]]


def test_cli_link_threshold_from_environment(tmp_path: Path, persons) -> None:
    runner = CliRunner()
    linkage = {key: value for key, value in CONFIG["linkage"].items() if key != "threshold"}
    records = _write(tmp_path / "persons.json", persons)
    config = _write(tmp_path / "pipeline.json", {"linkage": linkage})
    output = tmp_path / "matches.json"

    result = runner.invoke(
        app,
        ["link", str(records), "--config", str(config), "--output", str(output)],
        env={"CLEANSING_DEFAULT_THRESHOLD": "0.8"},
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    data = json.loads(output.read_text())
    assert data["provenance"]["threshold"] == 0.8
    assert len(data["matches"]) == 3


def test_cli_link_bad_config_exits_1(tmp_path: Path, persons) -> None:
    runner = CliRunner()
    records = _write(tmp_path / "persons.json", persons)
    bad = {"linkage": {**CONFIG["linkage"], "aggregator": "median"}}
    config = _write(tmp_path / "pipeline.json", bad)

    result = runner.invoke(app, ["link", str(records), "--config", str(config)], env={})
    assert result.exit_code == 1
    assert "Error" in result.output
    assert "median" in result.output


def test_cli_link_missing_section_exits_1(tmp_path: Path, persons) -> None:
    runner = CliRunner()
    records = _write(tmp_path / "persons.json", persons)
    config = _write(tmp_path / "pipeline.json", {"fusion": CONFIG["fusion"]})

    result = runner.invoke(app, ["link", str(records), "--config", str(config)], env={})
    assert result.exit_code == 1


def test_cli_link_records_must_be_array(tmp_path: Path) -> None:
    runner = CliRunner()
    records = _write(tmp_path / "persons.json", {"id": 1})
    config = _write(tmp_path / "pipeline.json", CONFIG)

    result = runner.invoke(app, ["link", str(records), "--config", str(config)], env={})
    assert result.exit_code == 1


def test_cli_fuse_clusters(tmp_path: Path) -> None:
    runner = CliRunner()
    clusters = _write(
        tmp_path / "clusters.json",
        [
            {
                "values": [
                    {"id": 4, "first name": "elma", "age": 60},
                    {"id": 8, "first name": "elmar", "age": 61},
                ],
                "weights": [0.25, 0.75],
            },
            ["b", None, "a"],
        ],
    )
    config = _write(tmp_path / "pipeline.json", CONFIG)
    output = tmp_path / "fused.json"

    result = runner.invoke(
        app,
        ["fuse", str(clusters), "--config", str(config), "--output", str(output)],
        env={},
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    fused = json.loads(output.read_text())
    assert fused[0] == {"id": 8, "first name": ["elma", "elmar"], "age": 60.75}
    assert fused[1] == "a"


def test_cli_fuse_rule_failure_exits_1(tmp_path: Path) -> None:
    runner = CliRunner()
    clusters = _write(tmp_path / "clusters.json", [{"values": [{"age": 60}, {"age": "sixty"}]}])
    config = _write(tmp_path / "pipeline.json", CONFIG)

    result = runner.invoke(app, ["fuse", str(clusters), "--config", str(config)], env={})
    assert result.exit_code == 1
    assert "weighted_average" in result.output


def test_cli_lists_metrics_and_rules() -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["metrics"], env={}, catch_exceptions=False)
    assert result.exit_code == 0
    assert "levenshtein" in result.stdout
    assert "weighted_mean" in result.stdout

    result = runner.invoke(app, ["--log-level", "DEBUG", "rules"], env={}, catch_exceptions=False)
    assert result.exit_code == 0
    assert "merge_distinct" in result.stdout
