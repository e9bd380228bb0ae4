"""Parse and serialize markdown documents with YAML front-matter."""

import re
from datetime import datetime

import yaml

from kanban_md.dates import format_instant

_FRONT_MATTER = re.compile(r"^---[ \t]*\n(.*?)^---[ \t]*(?:\n|$)", re.DOTALL | re.MULTILINE)


class FrontMatterError(ValueError):
    """Raised when a document's front-matter is present but unparseable."""


class _FrontMatterDumper(yaml.SafeDumper):
    """Dumper that writes instants as RFC 3339 and lists inline."""


def _represent_datetime(dumper: yaml.SafeDumper, value: datetime):
    return dumper.represent_scalar("tag:yaml.org,2002:timestamp", format_instant(value))


def _represent_list(dumper: yaml.SafeDumper, value: list):
    return dumper.represent_sequence("tag:yaml.org,2002:seq", value, flow_style=True)


_FrontMatterDumper.add_representer(datetime, _represent_datetime)
_FrontMatterDumper.add_representer(list, _represent_list)


def split_front_matter(text: str) -> tuple[dict, str]:
    """Split text into (meta, body).

    Text without an opening ``---`` line is all body. A single blank line
    after the closing ``---`` is a separator and not part of the body.
    Raises FrontMatterError if the YAML is invalid or not a mapping.
    """
    meta, body, _ = split_document(text)
    return meta, body


def split_document(text: str) -> tuple[dict, str, bool]:
    """Like split_front_matter, also reporting whether the blank separator line was there."""
    if not text.startswith("---"):
        return {}, text, False

    match = _FRONT_MATTER.match(text)
    if not match:
        raise FrontMatterError("unterminated front-matter (missing closing ---)")
    yaml_content = match.group(1)
    remaining = text[match.end() :]

    try:
        meta = yaml.safe_load(yaml_content) or {}
    except yaml.YAMLError as e:
        raise FrontMatterError(f"invalid YAML front-matter: {e}") from e
    if not isinstance(meta, dict):
        raise FrontMatterError("front-matter must be a mapping")

    gap = remaining.startswith("\n")
    if gap:
        remaining = remaining[1:]

    return meta, remaining, gap


def join_front_matter(meta: dict, body: str, gap: bool = True) -> str:
    """Serialize meta and body back to a document.

    Keys keep insertion order. Lists are written inline, instants as RFC 3339.
    ``gap`` puts a blank line between the closing ``---`` and a non-empty body.
    """
    yaml_text = yaml.dump(
        meta,
        Dumper=_FrontMatterDumper,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
        width=4096,
    )
    text = f"---\n{yaml_text}---\n"
    if body:
        text += ("\n" if gap else "") + body
    return text
