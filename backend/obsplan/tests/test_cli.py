import json

from typer.testing import CliRunner

from obsplan.cli.sequence import app
from obsplan.gcal import SmartGcalType
from obsplan.location import middle
from obsplan.services import step_store
from obsplan.steps import BiasStep, SmartGcalStep
from obsplan.tests.conftest import F2_CONFIG, OBS_ID

runner = CliRunner()


def _seed(db):
    step_store.insert(db, OBS_ID, middle(1), BiasStep(config=F2_CONFIG))
    step_store.insert(
        db,
        OBS_ID,
        middle(2),
        SmartGcalStep(config=F2_CONFIG, smart_gcal_type=SmartGcalType.NIGHT_BASELINE),
    )
    db.commit()


def test_show_lists_steps_in_order(db, observation):
    _seed(db)

    result = runner.invoke(app, ["show", OBS_ID])

    assert result.exit_code == 0, result.output
    rows = json.loads(result.output)
    assert [row["location"] for row in rows] == ["1", "2"]
    assert rows[1]["smart_gcal_type"] == "NightBaseline"


def test_preview_and_expand_commands(db, observation, f2_mapping):
    _seed(db)

    preview = runner.invoke(app, ["preview", OBS_ID, "2"])
    assert preview.exit_code == 0, preview.output
    assert len(json.loads(preview.output)["steps"]) == 2

    expanded = runner.invoke(app, ["expand", OBS_ID, "2"])
    assert expanded.exit_code == 0, expanded.output
    assert [step["type"] for step in json.loads(expanded.output)["steps"]] == ["gcal", "gcal"]

    again = runner.invoke(app, ["expand", OBS_ID, "2"])
    assert again.exit_code == 1
    assert json.loads(again.output)["error"] == "step_not_found"

    db.expire_all()
    kinds = [step.step_type for step in step_store.select_all(db, OBS_ID).values()]
    assert kinds == ["bias", "gcal", "gcal"]


def test_expand_all_reports_each_location(db, observation):
    _seed(db)

    result = runner.invoke(app, ["expand-all", OBS_ID])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {
        "2": {"error": "no_mapping_defined", "detail": "no smart gcal mapping defined for the step configuration"}
    }


def test_invalid_location_is_a_usage_error(db, observation):
    result = runner.invoke(app, ["preview", OBS_ID, "-4"])

    assert result.exit_code != 0


def test_init_db_is_idempotent(db):
    first = runner.invoke(app, ["init-db"])
    second = runner.invoke(app, ["init-db"])

    assert first.exit_code == 0, first.output
    assert second.exit_code == 0, second.output
    assert json.loads(second.output) == {"initialized": True}
