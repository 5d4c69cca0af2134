"""Command line behaviour through `main(argv)`."""

import json

import pytest

from casegen.__main__ import main
from casegen.pipeline.quota import get_process_quota

SCENARIO_SCHEMA = {
    "type": "object",
    "properties": {
        "company_name": {"type": "string"},
        "assumptions": {"type": "object"},
    },
}


@pytest.fixture
def schema_file(tmp_path):
    path = tmp_path / "schema.json"
    path.write_text(json.dumps(SCENARIO_SCHEMA), encoding="utf-8")
    return path


@pytest.fixture
def fast_mock(monkeypatch):
    monkeypatch.setenv("CASEGEN_MIN_DELAY_MS", "0")
    monkeypatch.setenv("CASEGEN_MOCK_DELAY_MS", "0")
    get_process_quota().reset()
    yield
    get_process_quota().reset()


@pytest.mark.unit
@pytest.mark.parametrize(
    ("prompt", "expected"),
    [
        ("Write a SaaS scenario", "scenario"),
        ("Build a 3-statement model for a retailer", "full-model"),
        ("Design an Excel template for a DCF", "template"),
    ],
)
def test_classify_prints_profile(capsys, schema_file, prompt, expected):
    code = main(["classify", "--prompt", prompt, "--schema-file", str(schema_file)])

    assert code == 0
    assert capsys.readouterr().out.strip() == expected


@pytest.mark.unit
def test_classify_reads_prompt_file(capsys, tmp_path, schema_file):
    prompt_file = tmp_path / "prompt.txt"
    prompt_file.write_text("An integrated model please", encoding="utf-8")

    code = main(
        ["classify", "--prompt-file", str(prompt_file), "--schema-file", str(schema_file)]
    )

    assert code == 0
    assert capsys.readouterr().out.strip() == "full-model"


@pytest.mark.unit
def test_config_json_reports_origins(capsys, monkeypatch):
    monkeypatch.setenv("CASEGEN_DAILY_CAP", "25")
    monkeypatch.setenv("TOGETHER_API_KEY", "tk-secret")

    code = main(["config", "--json"])

    assert code == 0
    out = capsys.readouterr().out
    report = json.loads(out)
    assert report["daily_cap"] == {"value": 25, "origin": "env"}
    assert report["api_key"] == {"value": "<redacted>", "origin": "env"}
    assert report["model"]["origin"] == "default"
    assert "tk-secret" not in out


@pytest.mark.unit
def test_config_text_output(capsys):
    assert main(["config"]) == 0

    out = capsys.readouterr().out
    assert "daily_cap: default:200" in out
    assert "api_key: default:None" in out


@pytest.mark.unit
def test_generate_mock_prints_value(capsys, schema_file, fast_mock):
    code = main(
        [
            "generate",
            "--prompt",
            "Write a SaaS scenario",
            "--schema-file",
            str(schema_file),
            "--mock",
            "--correlation-id",
            "cli-test",
        ]
    )

    assert code == 0
    value = json.loads(capsys.readouterr().out)
    assert value["company_name"] == "TechFlow Solutions"
    assert set(value) == {"company_name", "assumptions"}


@pytest.mark.unit
def test_invalid_profile_exits_with_error(capsys, schema_file, fast_mock):
    code = main(
        [
            "generate",
            "--prompt",
            "x",
            "--schema-file",
            str(schema_file),
            "--profile",
            "quarterly",
            "--mock",
        ]
    )

    assert code == 1
    assert "task_profile" in capsys.readouterr().err


@pytest.mark.unit
def test_missing_schema_file_exits_with_error(capsys, tmp_path):
    code = main(
        ["classify", "--prompt", "x", "--schema-file", str(tmp_path / "nope.json")]
    )

    assert code == 1
    assert capsys.readouterr().err.startswith("error: could not read input")


@pytest.mark.unit
def test_unknown_config_profile_exits_with_error(capsys):
    assert main(["config", "--profile", "missing"]) == 1
    assert "Profile 'missing' not found" in capsys.readouterr().err


@pytest.mark.unit
def test_verbose_flag_is_accepted_after_subcommand(capsys, schema_file):
    code = main(["classify", "-vv", "--prompt", "x", "--schema-file", str(schema_file)])

    assert code == 0
    assert capsys.readouterr().out.strip() == "scenario"


@pytest.mark.unit
def test_config_lists_profiles_from_both_files(capsys, config_files, monkeypatch):
    config_files(
        pyproject="[tool.casegen.profiles.classroom]\ndaily_cap = 20\n",
        home="[profiles.personal]\nmin_delay_ms = 0\n",
    )
    monkeypatch.setenv("CASEGEN_PROFILE", "classroom")

    assert main(["config", "--profiles", "--json"]) == 0

    report = json.loads(capsys.readouterr().out)
    assert report == {
        "active": "classroom",
        "project": ["classroom"],
        "home": ["personal"],
    }


@pytest.mark.unit
def test_config_text_output_names_active_profile(capsys, config_files):
    config_files(pyproject="[tool.casegen.profiles.classroom]\ndaily_cap = 20\n")

    assert main(["config", "--profile", "classroom"]) == 0

    out = capsys.readouterr().out
    assert out.startswith("profile: classroom\n")
    assert "daily_cap: file:20" in out


@pytest.mark.unit
def test_config_env_redacts_credentials(capsys, monkeypatch):
    monkeypatch.setenv("TOGETHER_API_KEY", "tk-secret")
    monkeypatch.setenv("CASEGEN_DAILY_CAP", "25")

    assert main(["config", "--env"]) == 0

    out = capsys.readouterr().out
    assert "TOGETHER_API_KEY: <redacted>" in out
    assert "CASEGEN_DAILY_CAP: 25" in out
    assert "tk-secret" not in out
