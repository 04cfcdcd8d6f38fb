"""Dashboard search box syntax.

    podcast #writ project:"Ep 1"

Bare words match task or project names. ``#ctx`` narrows to tasks whose
context starts with ``ctx``; several are ANDed. ``project:name`` pins one
project. Values may be double-quoted to include spaces.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

_TOKEN_RE = re.compile(r'(?P<key>#|project:)?(?:"(?P<quoted>[^"]*)"|(?P<bare>\S+))')
_SPACES_RE = re.compile(r"\s+")


def normalize_context(name: str) -> str:
    return _SPACES_RE.sub(" ", name.strip().lower())


@dataclass(frozen=True)
class SearchQuery:
    text: str = ""
    contexts: tuple[str, ...] = ()
    project: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.text or self.contexts or self.project)

    def like_pattern(self) -> str | None:
        return f"%{self.text}%" if self.text else None


def parse_search_query(query: str) -> SearchQuery:
    words: list[str] = []
    contexts: list[str] = []
    project: str | None = None

    for m in _TOKEN_RE.finditer(query or ""):
        key = m.group("key")
        value = m.group("quoted") if m.group("quoted") is not None else m.group("bare")
        if key == "#":
            ctx = normalize_context(value)
            if ctx and ctx not in contexts:
                contexts.append(ctx)
        elif key == "project:":
            # last one wins
            project = value.strip() or project
        elif value:
            words.append(value)

    return SearchQuery(text=" ".join(words), contexts=tuple(contexts), project=project)
