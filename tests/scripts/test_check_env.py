from pathlib import Path

import pytest

from scripts.check_env import check_env_file


def _write(path: Path, content: str) -> str:
    path.write_text(content)
    return str(path)


def test_check_env_passes_when_all_keys_present(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    example = _write(tmp_path / ".env.example", "# JWT\nALGORITHM=HS256\nSENTRY_DSN=\n")
    env = _write(tmp_path / ".env", "ALGORITHM=HS512\nSENTRY_DSN=\nEXTRA=1\n")

    check_env_file(example, env)

    assert "All required keys are present" in capsys.readouterr().out


def test_check_env_reports_missing_keys(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    example = _write(tmp_path / ".env.example", "ALGORITHM=HS256\nREDIS_HOST=localhost\n")
    env = _write(tmp_path / ".env", "ALGORITHM=HS256\n")

    with pytest.raises(SystemExit):
        check_env_file(example, env)

    assert "REDIS_HOST" in capsys.readouterr().out


def test_check_env_fails_on_missing_file(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    example = _write(tmp_path / ".env.example", "ALGORITHM=HS256\n")

    with pytest.raises(SystemExit):
        check_env_file(example, str(tmp_path / ".env"))

    assert "File not found" in capsys.readouterr().out
