# src/i18n_checker/dom/builder.py
import logging
import re
import unicodedata
import warnings
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning, Tag, XMLParsedAsHTMLWarning

from .models import ByteOrderMark, DoctypeClass, MetaCharsetTag, ParsedDocumentFacts
from ..errors import InvalidArgumentError
from ..model import DocumentResource
from ..utils.source_utils import SourceText

logger = logging.getLogger(__name__)

# Doctype and XML declaration must appear within this many leading bytes
DECLARATION_WINDOW = 512
# A BOM pattern found after this many bytes is reported as "BOM in content"
BOM_CONTENT_START = 5
# Known server bug: tolerated, and treated as if no Content-Type had been sent
MALFORMED_CONTENT_TYPE = "text/html;; charset=utf-8"
REQUEST_HEADER_NAMES = ("Accept-Language", "Accept-Charset")

# UTF-32LE must be tested before UTF-16LE, they share the first two bytes.
BYTE_ORDER_MARKS: Tuple[ByteOrderMark, ...] = (
    ByteOrderMark(charset_name="UTF-8", mark_name="UTF-8", codec="utf-8", mark_bytes=b"\xef\xbb\xbf"),
    ByteOrderMark(charset_name="UTF-32", mark_name="UTF-32 (BE)", codec="utf-32-be", mark_bytes=b"\x00\x00\xfe\xff"),
    ByteOrderMark(charset_name="UTF-32", mark_name="UTF-32 (LE)", codec="utf-32-le", mark_bytes=b"\xff\xfe\x00\x00"),
    ByteOrderMark(charset_name="UTF-16", mark_name="UTF-16 (BE)", codec="utf-16-be", mark_bytes=b"\xfe\xff"),
    ByteOrderMark(charset_name="UTF-16", mark_name="UTF-16 (LE)", codec="utf-16-le", mark_bytes=b"\xff\xfe"),
)
UTF8_BOM_BYTES = b"\xef\xbb\xbf"

_DOCTYPE_RE = re.compile(r"<!DOCTYPE[^>]*>", re.IGNORECASE)
_XML_DECLARATION_RE = re.compile(r"<\?xml\b[^>]*>", re.IGNORECASE)
_XML_ENCODING_RE = re.compile(r"""encoding\s*=\s*["']([^"']*)["']""", re.IGNORECASE)
_OPENING_HTML_RE = re.compile(r"<html\b[^>]*>", re.IGNORECASE)
_META_CHARSET_RE = re.compile(r"""charset\s*=\s*["']?\s*([^\s"'>;/]+)""", re.IGNORECASE)
_HTTP_CHARSET_RE = re.compile(r"""charset\s*=\s*["']?([^"';\s]+)""", re.IGNORECASE)
_ESCAPED_BYTE_RE = re.compile("[\udc80-\udcff]")

# First match wins
_DOCTYPE_PATTERNS: Tuple[Tuple[re.Pattern, DoctypeClass], ...] = (
    (re.compile(r"XHTML\+RDFa\s+1\.0", re.IGNORECASE), DoctypeClass.XHTML10_RDFA),
    (re.compile(r"XHTML\+RDFa\s+1\.1", re.IGNORECASE), DoctypeClass.XHTML11_RDFA),
    (re.compile(r"XHTML\s+1\.1", re.IGNORECASE), DoctypeClass.XHTML11),
    (re.compile(r"XHTML\s+1\.0", re.IGNORECASE), DoctypeClass.XHTML10),
    (re.compile(r"""^<!DOCTYPE\s+html(\s+SYSTEM\s+["']about:legacy-compat["'])?\s*>$""", re.IGNORECASE),
     DoctypeClass.HTML5),
)


# --- Byte level ---

def find_byte_order_mark(body: bytes) -> Optional[ByteOrderMark]:
    """Returns the BOM at the very start of the body, if any."""
    for bom in BYTE_ORDER_MARKS:
        if body.startswith(bom.mark_bytes):
            return bom
    return None


def decode_source(body: bytes, bom: Optional[ByteOrderMark]) -> str:
    """
    Decodes with the BOM's charset if there is one, else UTF-8. The BOM itself is dropped.
    For UTF-8 every undecodable byte becomes one surrogate escape, so the text
    encodes back to exactly the body bytes.
    """
    start = len(bom.mark_bytes) if bom else 0
    codec = bom.codec if bom else "utf-8"
    if codec == "utf-8":
        return body[start:].decode(codec, errors="surrogateescape")
    return body[start:].decode(codec, errors="replace")


def decode_body(raw_text: str) -> str:
    """Replaces each surrogate escape by U+FFFD; character positions are unchanged."""
    return _ESCAPED_BYTE_RE.sub("\ufffd", raw_text)


def decode_declaration_window(body: bytes, bom: Optional[ByteOrderMark]) -> str:
    """Decodes only the leading DECLARATION_WINDOW bytes; a character cut in half is dropped."""
    start = len(bom.mark_bytes) if bom else 0
    codec = bom.codec if bom else "utf-8"
    return body[start:DECLARATION_WINDOW].decode(codec, errors="ignore")


def find_bom_in_content(body: bytes, bom: Optional[ByteOrderMark]) -> bool:
    patterns = {UTF8_BOM_BYTES}
    if bom:
        patterns.add(bom.mark_bytes)
    content = body[BOM_CONTENT_START:]
    return any(pattern in content for pattern in patterns)


# --- Declarations in the source text ---

def find_doctype(window: str) -> Optional[str]:
    match = _DOCTYPE_RE.search(window)
    return match.group() if match else None


def classify_doctype(doctype_declaration: Optional[str]) -> DoctypeClass:
    """A missing doctype counts as HTML5; an unrecognised one as HTML (4.x and older)."""
    if doctype_declaration is None:
        return DoctypeClass.HTML5
    for pattern, doctype_class in _DOCTYPE_PATTERNS:
        if pattern.search(doctype_declaration.strip()):
            return doctype_class
    return DoctypeClass.HTML


def find_xml_declaration(window: str) -> Tuple[Optional[str], Optional[str]]:
    """Returns the XML declaration and the value of its encoding pseudo-attribute."""
    match = _XML_DECLARATION_RE.search(window)
    if not match:
        return None, None
    declaration = match.group()
    encoding = _XML_ENCODING_RE.search(declaration)
    return declaration, (encoding.group(1) if encoding else None)


def find_opening_html_tag(text: str) -> Optional[str]:
    match = _OPENING_HTML_RE.search(text)
    return match.group() if match else None


# --- HTTP headers ---

def parse_content_type(resource: DocumentResource) -> Tuple[Optional[str], Optional[str], bool]:
    """Returns (content type, charset parameter, served as XML)."""
    content_type = resource.get_header("Content-Type")
    if content_type is None:
        return None, None, False
    if content_type.strip().lower() == MALFORMED_CONTENT_TYPE:
        logger.debug("Ignoring malformed Content-Type header: %s", content_type)
        return None, None, False
    match = _HTTP_CHARSET_RE.search(content_type)
    charset = match.group(1) if match else None
    return content_type, charset, "application/xhtml+xml" in content_type.lower()


def collect_request_headers(resource: DocumentResource) -> Tuple[str, ...]:
    return tuple(
        f"{name}: {resource.get_header(name)}"
        for name in REQUEST_HEADER_NAMES
        if resource.has_header(name)
    )


# --- Parsed tree ---

def extract_meta_charset_tags(soup: BeautifulSoup, source: SourceText) -> List[MetaCharsetTag]:
    """
    Every <meta> whose source text mentions 'charset' and carries a charset=<value>,
    in document order. Both the <meta charset> and the http-equiv pragma forms match.

    The value is read from the verbatim tag: str(meta) would print the output
    encoding in place of the declared charset.
    """
    tags = []
    for meta in soup.find_all("meta"):
        literal, end = source.opening_tag(meta)
        if "charset" not in literal.lower():
            continue
        match = _META_CHARSET_RE.search(literal)
        if not match:
            continue
        tags.append(MetaCharsetTag(
            charset=match.group(1).strip().lower(),
            literal=literal,
            byte_offset=source.byte_offset(end) if end is not None else None,
            is_pragma=(meta.get("http-equiv") or "").strip().lower() == "content-type",
            has_charset_attr=meta.has_attr("charset"),
        ))
    return tags


def group_meta_charsets(tags: Sequence[MetaCharsetTag]) -> Dict[str, Tuple[str, ...]]:
    groups: Dict[str, List[str]] = {}
    for tag in tags:
        groups.setdefault(tag.charset, []).append(tag.literal)
    return {charset: tuple(literals) for charset, literals in groups.items()}


def find_content_language_meta(soup: BeautifulSoup, source: SourceText) -> Tuple[Optional[str], Optional[str]]:
    """Returns (content, literal tag) of the first http-equiv="Content-Language" meta."""
    for meta in soup.find_all("meta"):
        if (meta.get("http-equiv") or "").strip().lower() == "content-language":
            literal, _ = source.opening_tag(meta)
            return meta.get("content"), literal
    return None, None


def is_plain_name(name: str) -> bool:
    """True for names that are US-ASCII and in Unicode Normalization Form C."""
    return name.isascii() and unicodedata.is_normalized("NFC", name)


class _ElementScan:
    """Accumulates per-element signals during a single pass over the tree."""

    def __init__(self, source: SourceText):
        self.source = source
        self.lang_values: Set[str] = set()
        self.xml_lang_values: Set[str] = set()
        self.dir_values: Set[str] = set()
        self.conflicts: Dict[Tuple[str, str], None] = {}
        self.name_tags: Dict[str, Dict[str, None]] = {}

    def visit(self, tag: Tag) -> None:
        lang = tag.get("lang")
        xml_lang = tag.get("xml:lang")
        if lang is not None:
            self.lang_values.add(lang)
        if xml_lang is not None:
            self.xml_lang_values.add(xml_lang)
        if lang is not None and xml_lang is not None \
                and lang.strip().lower() != xml_lang.strip().lower():
            self.conflicts[(lang, xml_lang)] = None

        direction = tag.get("dir")
        if direction is not None:
            self.dir_values.add(direction)

        names = list(tag.get("class") or [])
        element_id = tag.get("id")
        if element_id:
            names.append(element_id)
        for name in names:
            if not is_plain_name(name):
                literal, _ = self.source.opening_tag(tag)
                self.name_tags.setdefault(name, {})[literal] = None


class FactsBuilder:
    """
    Signal extractor: turns the raw body bytes and HTTP headers of a document into
    an immutable ParsedDocumentFacts snapshot. Pure, performs no I/O.

    Verbatim declarations (doctype, XML declaration, opening <html> tag) are found by
    pattern search over the decoded text; structural facts come from the parsed tree.
    """

    def extract(self, body: bytes, headers: Mapping[str, Sequence[str]]) -> ParsedDocumentFacts:
        if body is None or headers is None:
            raise InvalidArgumentError(f"body and headers are required (body: {body!r}, headers: {headers!r})")
        return self.extract_resource(DocumentResource(body=body, headers=headers))

    def extract_resource(self, resource: DocumentResource) -> ParsedDocumentFacts:
        if resource is None:
            raise InvalidArgumentError("resource is required")

        body = resource.body
        bom = find_byte_order_mark(body)
        raw_text = decode_source(body, bom)
        text = decode_body(raw_text)
        window = decode_declaration_window(body, bom)

        content_type, charset_http, served_as_xml = parse_content_type(resource)
        http_facts = dict(
            content_type=content_type,
            charset_from_http=charset_http,
            served_as_xml=served_as_xml,
            content_language=resource.get_header("Content-Language"),
            request_headers=collect_request_headers(resource),
        )

        if not text:
            logger.info("Document %s has no content.", resource.url or "<unknown>")
            return ParsedDocumentFacts(
                **http_facts,
                **self._aggregate_charsets(charset_http, None, None, []),
            )

        doctype = find_doctype(window)
        xml_declaration, charset_xml = find_xml_declaration(window)

        with warnings.catch_warnings():
            warnings.simplefilter("ignore", XMLParsedAsHTMLWarning)
            warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
            soup = BeautifulSoup(text, "html.parser")
        source = SourceText(text, codec=bom.codec if bom else "utf-8",
                            byte_prefix=len(bom.mark_bytes) if bom else 0, raw_text=raw_text)

        html = soup.find("html")
        meta_tags = extract_meta_charset_tags(soup, source)
        lang_meta, lang_meta_tag = find_content_language_meta(soup, source)

        scan = _ElementScan(source)
        for tag in soup.find_all(True):
            scan.visit(tag)

        facts = ParsedDocumentFacts(
            document_body=text,
            document=soup,
            doctype_declaration=doctype,
            doctype_class=classify_doctype(doctype),
            byte_order_mark=bom,
            bom_found_in_content=find_bom_in_content(body, bom),
            xml_declaration=xml_declaration,
            charset_from_xml_declaration=charset_xml,
            opening_html_tag=find_opening_html_tag(text),
            lang_attr=html.get("lang") if html else None,
            xml_lang_attr=html.get("xml:lang") if html else None,
            dir_attr=html.get("dir") if html else None,
            charset_meta_declarations=group_meta_charsets(meta_tags),
            meta_charset_tags=tuple(meta_tags),
            lang_from_meta_tag=lang_meta,
            content_language_meta_tag=lang_meta_tag,
            all_lang_attributes=frozenset(scan.lang_values),
            all_xml_lang_attributes=frozenset(scan.xml_lang_values),
            conflicting_lang_pairs=tuple(scan.conflicts),
            non_nfc_class_or_id_names=frozenset(scan.name_tags),
            class_id_tags={name: tuple(tags) for name, tags in scan.name_tags.items()},
            all_dir_attribute_values=frozenset(scan.dir_values),
            **http_facts,
            **self._aggregate_charsets(charset_http, bom, charset_xml, [tag.charset for tag in meta_tags]),
        )
        logger.debug(
            "Extracted facts for %s: doctype=%s, charsets=%s",
            resource.url or "<unknown>", facts.doctype_class.value, sorted(facts.all_charset_declarations)
        )
        return facts

    @staticmethod
    def _aggregate_charsets(
            charset_http: Optional[str],
            bom: Optional[ByteOrderMark],
            charset_xml: Optional[str],
            meta_charsets: Sequence[str]
    ) -> Dict[str, frozenset]:
        """Union of all declared charsets, lower-cased; conflicts stay visible as a set size > 1."""
        in_document: Set[str] = set()
        if bom:
            in_document.add(bom.charset_name.lower())
        if charset_xml:
            in_document.add(charset_xml.strip().lower())
        in_document.update(charset.lower() for charset in meta_charsets)

        all_declarations = set(in_document)
        if charset_http:
            all_declarations.add(charset_http.strip().lower())

        return {
            "all_charset_declarations": frozenset(all_declarations),
            "in_document_charset_declarations": frozenset(in_document),
            "non_utf8_charset_declarations": frozenset(all_declarations - {"utf-8"}),
        }
