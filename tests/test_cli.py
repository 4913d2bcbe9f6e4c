from pathlib import Path

import pytest

from pwi4_heater import cli


@pytest.fixture(autouse=True)
def _no_logging_setup(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)


def _write_config(path: Path, port: int) -> Path:
    path.write_text(
        f"[pwi4]\nhost = 127.0.0.1\nport = {port}\n\n[logging]\npath = {path.parent / 'heater.log'}\n",
        encoding="utf-8",
    )
    return path


def test_show_config_prints_sections(tmp_path: Path, capsys) -> None:
    config_path = _write_config(tmp_path / "pwi4-heater.cfg", 8220)

    assert cli.main(["-c", str(config_path), "show-config"]) == 0

    output = capsys.readouterr().out
    assert "[pwi4]" in output
    assert "port = 8220" in output


def test_set_requires_power() -> None:
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["set", "--heater", "m1"])


def test_set_rejects_unknown_heater() -> None:
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["set", "--heater", "m4", "--power", "5"])


def test_validate_reports_unreachable_pwi4(
    tmp_path: Path, unused_tcp_port: int, capsys
) -> None:
    config_path = _write_config(tmp_path / "pwi4-heater.cfg", unused_tcp_port)

    assert cli.main(["-c", str(config_path), "validate"]) == 1

    assert "Could not communicate with PWI4" in capsys.readouterr().out


def test_set_fails_when_pwi4_unreachable(tmp_path: Path, unused_tcp_port: int) -> None:
    config_path = _write_config(tmp_path / "pwi4-heater.cfg", unused_tcp_port)

    assert cli.main(["-c", str(config_path), "set", "--power", "50"]) == 1
    assert (
        cli.main(
            ["-c", str(config_path), "set", "--power", "50", "--skip-validation"]
        )
        == 1
    )
