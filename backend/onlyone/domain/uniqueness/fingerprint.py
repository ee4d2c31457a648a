"""Content fingerprints used to group identical actions."""

from __future__ import annotations

import hashlib
import re
import unicodedata

_PUNCTUATION_RE = re.compile(r"[^\w\s]+", re.UNICODE)
_WHITESPACE_RE = re.compile(r"\s+")


def normalize(content: str) -> str:
	text = unicodedata.normalize("NFKC", content).lower()
	text = _PUNCTUATION_RE.sub(" ", text).replace("_", " ")
	return _WHITESPACE_RE.sub(" ", text).strip()


def fingerprint(content: str) -> str:
	"""SHA-256 hex digest of the normalized content."""
	return hashlib.sha256(normalize(content).encode("utf-8")).hexdigest()
