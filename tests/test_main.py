import json

import pytest

from skyforge.errors import OperationTimeoutError, ValidationError
from skyforge.main import build_parser, main
from skyforge.patch import PatchRequest
from skyforge.resource import Action, Plan

SPEC_YAML = """
name: c1
project: p1
region: us-central1
cluster_config:
  gce_cluster_config:
    zone: us-central1-a
"""


@pytest.fixture
def spec_file(tmp_path):
    path = tmp_path / "cluster.yaml"
    path.write_text(SPEC_YAML)
    return str(path)


@pytest.fixture
def resource(mocker):
    mock_build = mocker.patch("skyforge.modes.reconcile.build_resource")
    return mock_build.return_value


def test_parser_requires_file():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["plan"])


def test_plan_json(resource, spec_file, capsys):
    resource.plan.return_value = Plan(
        Action.UPDATE,
        "p1/us-central1/c1",
        patch=PatchRequest(update_mask=["labels"], cluster={"labels": {}}),
    )

    assert main(["plan", "-f", spec_file, "--json"]) == 0

    output = json.loads(capsys.readouterr().out)
    assert output == {
        "action": "update",
        "cluster": "p1/us-central1/c1",
        "replace": [],
        "update_mask": ["labels"],
    }


def test_apply_with_yes(resource, spec_file, mocker):
    plan = Plan(Action.CREATE, "p1/us-central1/c1")
    resource.plan.return_value = plan
    resource.apply.return_value = None
    mock_confirm = mocker.patch("skyforge.modes.reconcile.Confirm.ask")

    assert main(["apply", "-f", spec_file, "--yes", "--timeout", "20"]) == 0

    mock_confirm.assert_not_called()
    _, kwargs = resource.apply.call_args
    assert kwargs["timeout_minutes"] == 20
    assert kwargs["plan"] is plan


def test_apply_declined(resource, spec_file, mocker):
    resource.plan.return_value = Plan(Action.REPLACE, "k", replace_paths=["name"])
    mocker.patch("skyforge.modes.reconcile.Confirm.ask", return_value=False)

    assert main(["apply", "-f", spec_file]) == 0

    resource.apply.assert_not_called()


def test_destroy(resource, spec_file, mocker):
    resource.resolve.side_effect = lambda spec: spec
    mocker.patch("skyforge.modes.reconcile.Confirm.ask", return_value=True)

    assert main(["destroy", "-f", spec_file]) == 0

    resource.delete.assert_called_once()


def test_failure_exit_code(resource, spec_file):
    resource.resolve.side_effect = lambda spec: spec
    resource.delete.side_effect = OperationTimeoutError("deleting Dataproc cluster", 5)

    assert main(["destroy", "-f", spec_file, "--yes"]) == 1


def test_invalid_spec_exit_code(resource, tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("name: Bad_Name\n")

    assert main(["show", "-f", str(path)]) == 1
    resource.read.assert_not_called()


def test_project_flag_overrides_env(mocker, spec_file, monkeypatch):
    monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "from-env")
    mock_build = mocker.patch("skyforge.modes.reconcile.build_resource")
    mock_build.return_value.read.side_effect = ValidationError("stop")

    main(["show", "-f", spec_file, "--project", "from-flag"])

    settings = mock_build.call_args[0][1]
    assert settings.project == "from-flag"


def test_interrupt_exit_code(resource, spec_file):
    resource.plan.side_effect = KeyboardInterrupt

    assert main(["plan", "-f", spec_file]) == 130


def test_invalid_log_level_exit_code(resource, spec_file, monkeypatch):
    monkeypatch.setenv("SKYFORGE_LOG_LEVEL", "FOO")

    assert main(["plan", "-f", spec_file]) == 1
    resource.plan.assert_not_called()
