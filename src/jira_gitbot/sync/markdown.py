"""Convert GitHub-flavoured markdown to Jira wiki markup.

The conversion is an ordered pipeline of pure stages. Each stage takes a
:class:`_Document` and returns a new one. Fenced code blocks are lifted out
into placeholders by the first stage and put back by the restore stage, so
none of the text rewrites in between can touch code.

Stage order matters: later stages see the output of earlier ones (emphasis
runs after headings, links after inline code, tables after restoration).
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, replace
from functools import reduce

PLACEHOLDER = "J2MBLOCKPLACEHOLDER"

# HTML tag -> Jira wrapper
INLINE_TAGS: dict[str, str] = {
    "cite": "??",
    "del": "-",
    "ins": "+",
    "sup": "^",
    "sub": "~",
}

_FENCED_CODE = re.compile(r"`{3,}(\w+)?((?:\n|.)+?)`{3,}")
_SETEXT_HEADING = re.compile(r"^(.*?)\n([=-])+$", re.MULTILINE)
_ATX_HEADING = re.compile(r"^(#+)(.*?)$", re.MULTILINE)
_EMPHASIS = re.compile(r"([*_]+)(.*?)\1")
_BULLET = re.compile(r"^([ \t]*)- (.*)$", re.MULTILINE)
_INLINE_TAG = re.compile(r"<(" + "|".join(INLINE_TAGS) + r")>(.*?)</\1>")
_STRIKETHROUGH = re.compile(r"~~(.*?)~~")
_INLINE_CODE = re.compile(r"`([^`]+)`")
_LINK = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_AUTOLINK = re.compile(r"<([^>]+)>")
_TABLE_SEPARATOR = re.compile(r"\|---")
_LINE_BREAK = re.compile(r"\r?\n")


@dataclass(frozen=True)
class _Document:
    text: str
    blocks: tuple[str, ...] = ()  # Converted code blocks, indexed by placeholder number


Stage = Callable[[_Document], _Document]


def _placeholder(index: int) -> str:
    return f"{PLACEHOLDER}{index}%%"


def _extract_code_blocks(doc: _Document) -> _Document:
    blocks: list[str] = list(doc.blocks)

    def stash(match: re.Match[str]) -> str:
        lang, content = match.group(1), match.group(2)
        opener = f"{{code:{lang}}}" if lang else "{code}"
        blocks.append(f"{opener}{content}{{code}}")
        return _placeholder(len(blocks) - 1)

    text = _FENCED_CODE.sub(stash, doc.text)
    return _Document(text, tuple(blocks))


def _setext_headings(doc: _Document) -> _Document:
    def heading(match: re.Match[str]) -> str:
        level = 1 if match.group(2) == "=" else 2
        return f"h{level}. {match.group(1)}"

    return replace(doc, text=_SETEXT_HEADING.sub(heading, doc.text))


def _atx_headings(doc: _Document) -> _Document:
    def heading(match: re.Match[str]) -> str:
        return f"h{len(match.group(1))}.{match.group(2)}"

    return replace(doc, text=_ATX_HEADING.sub(heading, doc.text))


def _emphasis(doc: _Document) -> _Document:
    def emphasis(match: re.Match[str]) -> str:
        marker = "_" if len(match.group(1)) == 1 else "*"
        return f"{marker}{match.group(2)}{marker}"

    return replace(doc, text=_EMPHASIS.sub(emphasis, doc.text))


def _bullets(doc: _Document) -> _Document:
    def bullet(match: re.Match[str]) -> str:
        depth = len(match.group(1)) // 4 + 1
        return f"{'-' * depth} {match.group(2)}"

    return replace(doc, text=_BULLET.sub(bullet, doc.text))


def _inline_tags(doc: _Document) -> _Document:
    def tag(match: re.Match[str]) -> str:
        marker = INLINE_TAGS[match.group(1)]
        return f"{marker}{match.group(2)}{marker}"

    return replace(doc, text=_INLINE_TAG.sub(tag, doc.text))


def _strikethrough(doc: _Document) -> _Document:
    return replace(doc, text=_STRIKETHROUGH.sub(r"-\1-", doc.text))


def _inline_code(doc: _Document) -> _Document:
    return replace(doc, text=_INLINE_CODE.sub(r"{{\1}}", doc.text))


def _links(doc: _Document) -> _Document:
    text = _LINK.sub(r"[\1|\2]", doc.text)
    return replace(doc, text=_AUTOLINK.sub(r"[\1]", text))


def _restore_code_blocks(doc: _Document) -> _Document:
    text = doc.text
    for index, block in enumerate(doc.blocks):
        text = text.replace(_placeholder(index), block, 1)
    return _Document(text)


def _table_headers(doc: _Document) -> _Document:
    lines: list[str] = []
    for line in _LINE_BREAK.split(doc.text):
        if lines and _TABLE_SEPARATOR.search(line):
            lines[-1] = lines[-1].replace("|", "||")
            continue
        lines.append(line)
    return replace(doc, text="".join(f"{line}\n" for line in lines))


PIPELINE: tuple[Stage, ...] = (
    _extract_code_blocks,
    _setext_headings,
    _atx_headings,
    _emphasis,
    _bullets,
    _inline_tags,
    _strikethrough,
    _inline_code,
    _links,
    _restore_code_blocks,
    _table_headers,
)


def markdown_to_jira(text: str) -> str:
    """Convert markdown text to Jira wiki markup.

    Args:
        text: GitHub-flavoured markdown

    Returns:
        Jira wiki markup; every line, including the last, ends with a newline
    """
    doc = reduce(lambda current, stage: stage(current), PIPELINE, _Document(text or ""))
    return doc.text
