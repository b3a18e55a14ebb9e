"""Checks on the shipped sources and the sample environment file."""
import warnings
from pathlib import Path

import pytest
from dotenv import dotenv_values

from quickplay.core.config import Settings

PACKAGE_DIR = Path(__file__).resolve().parents[1]
REPO_ROOT = PACKAGE_DIR.parent


@pytest.mark.parametrize(
    "path", sorted(PACKAGE_DIR.rglob("*.py")), ids=lambda p: str(p.relative_to(PACKAGE_DIR))
)
def test_sources_compile_without_warnings(path):
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        compile(path.read_text(encoding="utf-8"), str(path), "exec")


def test_env_example_selects_in_memory_development_setup(monkeypatch):
    env_file = REPO_ROOT / ".env.example"
    values = dotenv_values(env_file)

    assert "DATABASE_URL" not in values
    assert "ALLOW_HEADER_AUTH" not in values

    for key in ("DATABASE_URL", "ALLOW_HEADER_AUTH", "ENV"):
        monkeypatch.delenv(key, raising=False)
    cfg = Settings(_env_file=env_file)
    assert cfg.DATABASE_URL is None
    assert cfg.ALLOW_HEADER_AUTH is True
