# src/i18n_checker/dom/models.py
from enum import Enum
from typing import Optional, Dict, Tuple, FrozenSet

from bs4 import BeautifulSoup
from pydantic import BaseModel, Field


class DoctypeClass(str, Enum):
    HTML = "HTML"
    HTML5 = "HTML5"
    XHTML10 = "XHTML10"
    XHTML10_RDFA = "XHTML10_RDFA"
    XHTML11 = "XHTML11"
    XHTML11_RDFA = "XHTML11_RDFA"


class ByteOrderMark(BaseModel):
    """A byte order mark found at the very start of the body."""
    charset_name: str  # e.g. 'UTF-16'
    mark_name: str  # e.g. 'UTF-16 (LE)'
    codec: str  # Python codec used to decode the rest of the body
    mark_bytes: bytes

    class Config:
        frozen = True


class MetaCharsetTag(BaseModel):
    """
    A <meta> element declaring a character encoding, either as
    <meta charset="..."> or as an http-equiv="Content-Type" pragma.
    """
    charset: str  # normalized (stripped, lower-cased)
    literal: str  # verbatim source text of the tag
    byte_offset: Optional[int] = None  # bytes of body up to and including the closing '>'
    is_pragma: bool = False
    has_charset_attr: bool = False

    class Config:
        frozen = True


class ParsedDocumentFacts(BaseModel):
    """
    Immutable snapshot of every signal the rule catalog needs about one document.

    It is built once by the FactsBuilder and shared read-only by all rules.
    Literal strings (doctype, XML declaration, tags) are verbatim extracts from the
    decoded source text, so they can be shown to the user as evidence.
    """
    # Decoded body text and the parsed tree (None when the body is empty)
    document_body: str = ""
    document: Optional[BeautifulSoup] = Field(default=None, exclude=True, repr=False)

    # Doctype
    doctype_declaration: Optional[str] = None
    doctype_class: DoctypeClass = DoctypeClass.HTML5

    # Byte order mark
    byte_order_mark: Optional[ByteOrderMark] = None
    bom_found_in_content: bool = False

    # XML declaration
    xml_declaration: Optional[str] = None
    charset_from_xml_declaration: Optional[str] = None

    # Opening <html> tag
    opening_html_tag: Optional[str] = None
    lang_attr: Optional[str] = None
    xml_lang_attr: Optional[str] = None
    dir_attr: Optional[str] = None

    # Meta charset declarations
    charset_meta_declarations: Dict[str, Tuple[str, ...]] = Field(default_factory=dict)
    meta_charset_tags: Tuple[MetaCharsetTag, ...] = ()

    # HTTP
    content_type: Optional[str] = None
    charset_from_http: Optional[str] = None
    served_as_xml: bool = False
    content_language: Optional[str] = None
    request_headers: Tuple[str, ...] = ()

    # Content-Language meta
    lang_from_meta_tag: Optional[str] = None
    content_language_meta_tag: Optional[str] = None

    # Aggregated charset declarations (lower-cased)
    all_charset_declarations: FrozenSet[str] = frozenset()
    in_document_charset_declarations: FrozenSet[str] = frozenset()
    non_utf8_charset_declarations: FrozenSet[str] = frozenset()

    # Language attributes on any element
    all_lang_attributes: FrozenSet[str] = frozenset()
    all_xml_lang_attributes: FrozenSet[str] = frozenset()
    conflicting_lang_pairs: Tuple[Tuple[str, str], ...] = ()

    # Class names and ids that are non-ASCII or not NFC, with the tags they came from
    non_nfc_class_or_id_names: FrozenSet[str] = frozenset()
    class_id_tags: Dict[str, Tuple[str, ...]] = Field(default_factory=dict)

    # Direction
    all_dir_attribute_values: FrozenSet[str] = frozenset()

    class Config:
        frozen = True
        arbitrary_types_allowed = True

    # --- Doctype predicates ---

    def is_html(self) -> bool:
        return self.doctype_class == DoctypeClass.HTML

    def is_html5(self) -> bool:
        return self.doctype_class == DoctypeClass.HTML5

    def is_xhtml10(self) -> bool:
        return self.doctype_class in (DoctypeClass.XHTML10, DoctypeClass.XHTML10_RDFA)

    def is_xhtml11(self) -> bool:
        return self.doctype_class in (DoctypeClass.XHTML11, DoctypeClass.XHTML11_RDFA)

    def is_xhtml1x(self) -> bool:
        return self.is_xhtml10() or self.is_xhtml11()

    def is_rdfa(self) -> bool:
        return self.doctype_class in (DoctypeClass.XHTML10_RDFA, DoctypeClass.XHTML11_RDFA)

    def is_utf16(self) -> bool:
        return self.byte_order_mark is not None and self.byte_order_mark.charset_name == "UTF-16"

    @property
    def charset_meta_literals(self) -> Tuple[str, ...]:
        """All literal meta charset tags, in discovery order, without repeats."""
        return tuple(dict.fromkeys(tag.literal for tag in self.meta_charset_tags))
