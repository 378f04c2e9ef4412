from __future__ import annotations
from typing import Dict, List, Optional
import itertools
import logging

from docx import Document
from docx.oxml import OxmlElement
from docx.text.paragraph import Paragraph

from docplan.errors import DocumentAccessError, StaleReferenceError
from docplan.ir import START, ParagraphRecord

logger = logging.getLogger(__name__)


class DocxDocument:
    """
    Document accessor over a python-docx Document.

    Each body-level ``w:p`` element gets an id the first time it is seen.
    Ids live in a dict keyed by the element itself, so they follow the
    paragraph wherever later insertions and removals push it.
    """

    def __init__(self, doc):
        self.doc = doc
        self._seq = itertools.count(1)
        self._by_id: Dict[str, object] = {}
        self._by_element: Dict[object, str] = {}
        for p in doc.paragraphs:
            self._register(p._p)

    @classmethod
    def load(cls, path: str) -> "DocxDocument":
        try:
            doc = Document(path)
        except Exception as e:
            raise DocumentAccessError(
                f"Unable to open {path}. Please ensure the document is not locked or corrupted."
            ) from e
        return cls(doc)

    def save(self, path: str) -> None:
        self.doc.save(path)

    def _register(self, element) -> str:
        sid = self._by_element.get(element)
        if sid is None:
            sid = f"w{next(self._seq)}"
            self._by_element[element] = sid
            self._by_id[sid] = element
        return sid

    def _paragraph(self, stable_id: str) -> Paragraph:
        element = self._by_id.get(stable_id)
        if element is None or element.getparent() is None:
            raise StaleReferenceError(stable_id)
        return Paragraph(element, self.doc._body)

    @property
    def texts(self) -> List[str]:
        return [p.text for p in self.doc.paragraphs]

    def list_paragraphs(self) -> List[ParagraphRecord]:
        return [ParagraphRecord(stable_id=self._register(p._p), text=p.text) for p in self.doc.paragraphs]

    def replace_content(self, stable_id: str, text: str) -> None:
        para = self._paragraph(stable_id)
        # setting .text drops the existing runs and writes a single new one
        para.text = text

    def insert_after(self, stable_id: Optional[str], text: str) -> str:
        new_p = OxmlElement("w:p")
        style = None
        if stable_id in (None, START):
            # ahead of everything in the body, tables included
            self.doc.element.body.insert(0, new_p)
        else:
            anchor = self._paragraph(stable_id)
            anchor._p.addnext(new_p)
            style = anchor.style
        para = Paragraph(new_p, self.doc._body)
        if style is not None:
            para.style = style
        para.add_run(text)
        return self._register(new_p)

    def remove_paragraph(self, stable_id: str) -> None:
        element = self._by_id.get(stable_id)
        parent = element.getparent() if element is not None else None
        if parent is None:
            raise StaleReferenceError(stable_id)
        parent.remove(element)
        del self._by_id[stable_id]
        del self._by_element[element]
