"""Document service for PDF loading, rendering and form metadata."""

import io
import logging
from collections.abc import Iterator
from typing import Any

import fitz  # PyMuPDF
import numpy as np
from pypdf import PdfReader
from pypdf.errors import PdfReadError
from pypdf.generic import ArrayObject, DictionaryObject, IndirectObject

from fieldscan.core.exceptions import DocumentLoadError
from fieldscan.models import PageInput, Rect, StructuredField
from fieldscan.services.geometry import to_document_space

logger = logging.getLogger(__name__)

# /Ff field flag bits
FLAG_READ_ONLY = 1 << 0
FLAG_REQUIRED = 1 << 1
FLAG_RADIO = 1 << 15
FLAG_PUSHBUTTON = 1 << 16
FLAG_COMBO = 1 << 17


def resolve(obj):
    """Recursively resolve indirect references."""
    while isinstance(obj, IndirectObject):
        obj = obj.get_object()
    return obj


class DocumentService:
    """Service for reading PDF documents."""

    # PyMuPDF widget type names -> PDF field-type codes
    WIDGET_TYPES = {
        "Text": "Tx",
        "CheckBox": "Btn",
        "RadioButton": "Btn",
        "Button": "Btn",
        "ComboBox": "Ch",
        "ListBox": "Ch",
        "Signature": "Sig",
    }

    def open(self, data: bytes) -> fitz.Document:
        """
        Open a PDF from raw bytes.

        Raises:
            DocumentLoadError: If the bytes are not a readable PDF
        """
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except (RuntimeError, ValueError) as e:
            raise DocumentLoadError(f"Unreadable PDF: {e}") from e

        if doc.page_count == 0:
            doc.close()
            raise DocumentLoadError("PDF has no pages")
        return doc

    def render(self, page: fitz.Page, scale: float) -> tuple[np.ndarray, float, float]:
        """
        Render a page to an RGBA pixel buffer.

        Args:
            page: PyMuPDF page
            scale: Pixels per document unit

        Returns:
            Tuple of (H x W x 4 uint8 array, page height, scale)
        """
        pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
        rgb = np.frombuffer(pix.samples, dtype=np.uint8).reshape(
            pix.height, pix.width, pix.n
        )[:, :, :3]
        alpha = np.full(rgb.shape[:2] + (1,), 255, dtype=np.uint8)
        return np.concatenate([rgb, alpha], axis=2), page.rect.height, scale

    def get_structured_fields(self, page: fitz.Page) -> list[StructuredField]:
        """Read the interactive widgets placed on a page."""
        page_height = page.rect.height
        fields = []

        for widget in page.widgets() or []:
            type_name = widget.field_type_string
            flags = widget.field_flags or 0
            r = widget.rect

            fields.append(StructuredField(
                type=self.WIDGET_TYPES.get(type_name, type_name),
                # Widget rects use a top-left origin like the raster
                rect=to_document_space((r.x0, r.y0, r.x1, r.y1), page_height, 1.0),
                name=widget.field_name or "",
                value=widget.field_value,
                options=[str(o) for o in (widget.choice_values or [])],
                required=bool(flags & FLAG_REQUIRED),
                read_only=bool(flags & FLAG_READ_ONLY),
                check_box=type_name == "CheckBox",
                radio_button=type_name == "RadioButton",
                page=page.number,
            ))

        return fields

    def get_field_registry(self, data: bytes) -> dict[str, list[StructuredField]]:
        """
        Read the document-level form field tree.

        Returns:
            Mapping of fully qualified field name to one entry per widget.
            Empty when the document has no form or the tree cannot be read.
        """
        try:
            reader = PdfReader(io.BytesIO(data))
            root = resolve(reader.trailer["/Root"])
            if "/AcroForm" not in root:
                return {}
            acroform = resolve(root["/AcroForm"])
            if "/Fields" not in acroform:
                return {}

            page_index = {
                page.indirect_reference.idnum: i
                for i, page in enumerate(reader.pages)
                if page.indirect_reference is not None
            }
            registry: dict[str, list[StructuredField]] = {}
            self._walk_fields(resolve(acroform["/Fields"]), registry, page_index)
            return registry
        except (PdfReadError, KeyError, ValueError) as e:
            logger.warning("Could not read form field registry: %s", e)
            return {}

    def _walk_fields(
        self,
        field_list: ArrayObject,
        registry: dict[str, list[StructuredField]],
        page_index: dict[int, int],
        parent_name: str = "",
        parent_type: str = "",
        parent_flags: int = 0,
    ) -> None:
        """Recursively walk the field tree, collecting terminal fields."""
        for field_ref in field_list:
            node = resolve(field_ref)
            if not isinstance(node, DictionaryObject):
                continue

            partial = str(node.get("/T", ""))
            if parent_name and partial:
                name = f"{parent_name}.{partial}"
            else:
                name = partial or parent_name
            field_type = str(resolve(node.get("/FT", parent_type)))
            flags = int(resolve(node.get("/Ff", parent_flags)))

            kids = [resolve(k) for k in resolve(node.get("/Kids", ArrayObject()))]
            # Kids carrying a /T are child fields, the rest are widgets
            child_fields = [k for k in kids if isinstance(k, DictionaryObject) and "/T" in k]
            if child_fields:
                self._walk_fields(
                    ArrayObject(child_fields), registry, page_index,
                    name, field_type, flags,
                )
                continue

            widgets = [k for k in kids if isinstance(k, DictionaryObject)] or [node]
            for widget in widgets:
                registry.setdefault(name, []).append(
                    self._registry_entry(node, widget, name, field_type, flags, page_index)
                )

    def _registry_entry(
        self,
        node: DictionaryObject,
        widget: DictionaryObject,
        name: str,
        field_type: str,
        flags: int,
        page_index: dict[int, int],
    ) -> StructuredField:
        rect = None
        if "/Rect" in widget:
            rect = Rect.from_points(*[float(resolve(v)) for v in resolve(widget["/Rect"])])

        page = None
        page_ref = widget.get("/P")
        if isinstance(page_ref, IndirectObject):
            page = page_index.get(page_ref.idnum)

        value: Any = node.get("/V")
        options = []
        for opt in resolve(node.get("/Opt", ArrayObject())):
            opt = resolve(opt)
            # [export, display] pairs show the display text
            options.append(str(resolve(opt[1])) if isinstance(opt, ArrayObject) else str(opt))

        type_name = self._registry_type(field_type, flags)
        return StructuredField(
            type=type_name,
            rect=rect,
            name=name,
            value=str(value) if value is not None else None,
            options=options,
            required=bool(flags & FLAG_REQUIRED),
            read_only=bool(flags & FLAG_READ_ONLY),
            check_box=type_name == "checkbox",
            radio_button=type_name == "radiobutton",
            page=page,
        )

    @staticmethod
    def _registry_type(field_type: str, flags: int) -> str:
        """Name the registry type of a field from its /FT code and flags."""
        if field_type == "/Tx":
            return "text"
        if field_type == "/Btn":
            if flags & FLAG_RADIO:
                return "radiobutton"
            if flags & FLAG_PUSHBUTTON:
                return "button"
            return "checkbox"
        if field_type == "/Ch":
            return "combobox" if flags & FLAG_COMBO else "listbox"
        if field_type == "/Sig":
            return "signature"
        return field_type.lstrip("/").lower() or "text"

    def page_inputs(
        self,
        doc: fitz.Document,
        registry: dict[str, list[StructuredField]],
        scale: float,
    ) -> Iterator[PageInput]:
        """Render each page and pair it with its structured metadata."""
        for page in doc:
            raster, page_height, page_scale = self.render(page, scale)
            yield PageInput(
                page_number=page.number + 1,
                raster=raster,
                page_height=page_height,
                scale=page_scale,
                structured_fields=self.get_structured_fields(page),
                field_registry=registry,
                page_count=doc.page_count,
            )


# Singleton instance
document_service = DocumentService()
