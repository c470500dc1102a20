# i18n.py
import json
from functools import lru_cache
from pathlib import Path
from typing import Optional, Any
from demo_day.config import Settings

LOCALES_DIR = Path(__file__).parent / "data" / "locales"

def lang_code2language(lang_code: Optional[str]) -> str:
	if lang_code is None:
		return Settings().default_language

	d = {"en": "english"}
	return d.get(lang_code.split("-")[0].lower(), Settings().default_language)


@lru_cache(maxsize=None)
def _load_file(path: Path) -> dict:
	with open(path, encoding="utf-8") as file:
		return json.load(file)


class Localizer:
	"""
	Message templates from ``data/locales/<language>/<file>.json``.

	Keys are dotted: the first part names the file, the rest walks into it,
	e.g. ``judging.lock.done``.
	"""
	def __init__(self, lang: Optional[str] = None):
		self.lang = lang if lang is not None else Settings().default_language
		self.i18n_dir = LOCALES_DIR / self.lang

	def _load_template(self, key: str) -> str:
		file_key, _, rest = key.partition(".")
		path = self.i18n_dir / f"{file_key}.json"
		if not rest or not path.exists():
			raise KeyError(f"Key {key} is not found. File path is {path}")

		ans: Any = _load_file(path)
		for k in rest.split("."):
			if not isinstance(ans, dict) or k not in ans:
				raise KeyError(f"Key {key} is not found")
			ans = ans[k]

		if not isinstance(ans, str):
			raise KeyError(f"Key {key} is not full")
		return ans

	def get(self, key: str, **kwargs: Any) -> str:
		return self._load_template(key).format(**kwargs)

	def __call__(self, key: str, **kwargs: Any) -> str:
		return self.get(key, **kwargs)
