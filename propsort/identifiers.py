# /propsort/identifiers.py

import re

_SEPARATORS_RE = re.compile(r"[_\-.:]+")
_CAMEL_RE = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_RE = re.compile(r"([A-Z]+)([A-Z][a-z])")
_EDGES_RE = re.compile(r"^[_\s]+|[_\s]+$")


def split_identifier(identifier: str) -> str:
    """
    Normalize an identifier into lower-case words separated by single spaces,
    e.g. "onClick" -> "on click", "aria-labelledby" -> "aria labelledby",
    "XMLHttpRequest" -> "xml http request". A trailing '*' is kept so hints can
    be written with raw names.
    """
    s = _SEPARATORS_RE.sub(" ", identifier.strip())
    s = _CAMEL_RE.sub(r"\1 \2", s)
    s = _ACRONYM_RE.sub(r"\1 \2", s)
    s = _EDGES_RE.sub("", s)
    return s.lower()
