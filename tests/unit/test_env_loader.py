from pathlib import Path

from sfdash import env_loader
from sfdash.env_loader import load_env_files


def test_load_env_files_loads_first_existing(tmp_path, monkeypatch):
    """load_env_files should call load_dotenv on the first existing candidate."""
    env1 = tmp_path / ".env"
    env2 = tmp_path / ".dotenv"
    env1.write_text("SF_CLIENT_ID=dummy\n")
    env2.write_text("SHOULD_NOT_BE_USED=1\n")

    calls = []

    def fake_load_dotenv(path, override=False):
        calls.append((Path(path), override))
        return True

    monkeypatch.setattr(env_loader, "load_dotenv", fake_load_dotenv)

    loaded = load_env_files(candidates=[env1, env2], quiet=True)

    assert loaded == env1
    assert calls == [(env1, False)]


def test_load_env_files_no_existing_files(tmp_path, monkeypatch):
    """If no candidate exists, load_dotenv should never be called."""
    calls = []
    monkeypatch.setattr(env_loader, "load_dotenv", lambda path, override=False: calls.append(path))

    assert load_env_files(candidates=[tmp_path / "missing.env"]) is None
    assert calls == []


def test_load_env_files_defaults_to_cwd(tmp_path, monkeypatch):
    (tmp_path / ".dotenv").write_text("SF_HOST=test.salesforce.com\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SF_HOST", raising=False)

    assert load_env_files() == tmp_path / ".dotenv"

    import os

    assert os.environ.pop("SF_HOST") == "test.salesforce.com"
