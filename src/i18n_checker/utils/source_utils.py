# src/i18n_checker/utils/source_utils.py
import logging
import re
from typing import List, Optional, Tuple

from bs4 import Tag

logger = logging.getLogger(__name__)

# A start tag with optionally quoted attribute values; quoted values may contain '>'.
_START_TAG_RE = re.compile(
    r"""<[a-zA-Z][^\s/>]*(?:\s+[^\s=/>]+(?:\s*=\s*(?:"[^"]*"|'[^']*'|[^\s>]+))?)*\s*/?>"""
)
_LOOSE_TAG_RE = re.compile(r"<[^>]*>")


class SourceText:
    """
    Maps elements of a BeautifulSoup tree back to the verbatim source text they came from.

    The html.parser builder records `sourceline` (1-based) and `sourcepos` (0-based column)
    for every start tag; together with the line start offsets of the decoded text
    these give the character offset of the tag.
    """

    def __init__(self, text: str, codec: str = "utf-8", byte_prefix: int = 0, raw_text: Optional[str] = None):
        self.text = text
        # Same characters as `text`, but undecodable bytes kept as surrogate escapes
        self.raw_text = raw_text if raw_text is not None else text
        self.codec = codec
        self.byte_prefix = byte_prefix  # length of a leading BOM that is not part of `text`
        self._line_starts: List[int] = [0] + [m.end() for m in re.finditer("\n", text)]

    def offset_of(self, tag: Tag) -> Optional[int]:
        """Character offset of the tag's '<' in the source, or None if unknown."""
        line = getattr(tag, "sourceline", None)
        column = getattr(tag, "sourcepos", None)
        if line is None or column is None or not 0 < line <= len(self._line_starts):
            return None
        offset = self._line_starts[line - 1] + column
        if self.text[offset:offset + 1] != "<":
            logger.debug("Source position of <%s> does not point at a tag (line %s, col %s)",
                         tag.name, line, column)
            return None
        return offset

    def opening_tag(self, tag: Tag) -> Tuple[str, Optional[int]]:
        """
        Returns the verbatim opening tag and the character offset just past its '>'.
        Falls back to a serialization of the tag (and no offset) when the source
        position is unavailable.
        """
        offset = self.offset_of(tag)
        if offset is not None:
            match = _START_TAG_RE.match(self.text, offset) or _LOOSE_TAG_RE.match(self.text, offset)
            if match:
                return match.group(), match.end()
        return serialize_opening_tag(tag), None

    def byte_offset(self, char_offset: int) -> int:
        """Number of body bytes (leading BOM included) that encode text[:char_offset]."""
        return self.byte_prefix + len(self.raw_text[:char_offset].encode(self.codec, errors="surrogateescape"))


def serialize_opening_tag(tag: Tag) -> str:
    """Rebuilds an opening tag from the parsed attributes (multi-valued attributes re-joined)."""
    parts = [tag.name]
    for name, value in tag.attrs.items():
        if isinstance(value, (list, tuple)):
            value = " ".join(value)
        parts.append(f'{name}="{value}"')
    return "<" + " ".join(parts) + ">"
