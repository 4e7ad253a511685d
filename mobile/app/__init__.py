"""Client core package bootstrap.

Environment variables defined in the repository's `.env` files are loaded
before any module reads configuration, so `config.py` never captures defaults
just because the dotenv files had not been sourced yet (for example when the
smoke script is launched directly).
"""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv


def _load_dotenv_files() -> None:
	repo_root = Path(__file__).resolve().parents[2]
	candidates = (
		repo_root / "mobile" / ".env",
		repo_root / "mobile" / ".env.local",
		repo_root / ".env",
	)

	for candidate in candidates:
		if candidate.exists():
			load_dotenv(dotenv_path=candidate, override=False)


_load_dotenv_files()

__all__ = []
