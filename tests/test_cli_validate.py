from typer.testing import CliRunner

from space_expansion.cli import app


runner = CliRunner()


def test_cli_validate_success():
    r = runner.invoke(app, ["validate", "examples/space-expansion.yaml"])
    assert r.exit_code == 0
    assert "OK:" in r.stdout
    assert "mode=lcdm" in r.stdout
    assert "samples=2600" in r.stdout


def test_cli_validate_json_config():
    r = runner.invoke(app, ["validate", "examples/space-expansion.json"])
    assert r.exit_code == 0
    assert "mode=desitter" in r.stdout


def test_cli_validate_failure():
    r = runner.invoke(app, ["validate", "examples/invalid-non-finite.yaml"])
    assert r.exit_code == 2
    assert "E_NON_FINITE" in r.output
    assert "physics.parameters.h0_km_s_mpc" in r.output


def test_cli_validate_missing_file():
    r = runner.invoke(app, ["validate", "examples/does-not-exist.yaml"])
    assert r.exit_code == 1
    assert "E_FILE_NOT_FOUND" in r.output


def test_cli_validate_unknown_format():
    r = runner.invoke(app, ["validate", "examples/space-expansion.yaml", "--format", "xml"])
    assert r.exit_code == 2
    assert "E_CLI_UNKNOWN_FORMAT" in r.output


def test_cli_validate_malformed_sections():
    r = runner.invoke(app, ["validate", "examples/invalid-bad-section.yaml"])
    assert r.exit_code == 2
    assert "numeric_safety: E_INVALID_TYPE" in r.output
    assert "physics.parameters: E_INVALID_TYPE" in r.output
