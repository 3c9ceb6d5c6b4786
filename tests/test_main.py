import yaml

from adslogger.main import main


def test_init_config_writes_template(tmp_path):
    path = tmp_path / "config.yaml"

    assert main(["--config", str(path), "--init-config"]) == 0
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert data["plc"]["twincat_version"] == 3
    assert len(data["variables"]) == 5


def test_missing_config_is_created_and_stops(tmp_path):
    path = tmp_path / "config.yaml"

    assert main(["--config", str(path)]) == 1
    assert path.exists()


def test_dry_run(tmp_path, capsys):
    path = tmp_path / "config.yaml"
    main(["--config", str(path), "--init-config"])

    assert main(["--config", str(path), "--dry-run"]) == 0
    out = capsys.readouterr().out
    assert "MAIN.rRealValue (decimals=2, threshold=0.01)" in out
    assert "Dry run mode" in out


def test_no_variables(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"variables": []}), encoding="utf-8")

    assert main(["--config", str(path)]) == 1


def test_invalid_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"plc": {"twincat_version": 7}}), encoding="utf-8")

    assert main(["--config", str(path)]) == 1
