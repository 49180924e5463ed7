"""Relay interactive fields already declared by the document."""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import replace

from fieldscan.models import (
    ConfidenceTier,
    DetectionMethod,
    FieldKind,
    FieldRecord,
    StructuredField,
)

logger = logging.getLogger(__name__)


class AnnotationDetector:
    """
    Normalize structured field metadata into field records.

    Geometry is never inferred here: rectangles are already in document space
    and pass through unchanged. Every record is high confidence because the
    document itself declares it.
    """

    name = "annotations"

    # PDF field-type codes found on page widgets
    WIDGET_TYPE_MAP = {
        "Tx": FieldKind.TEXT,
        "Btn": FieldKind.CHECKBOX,
        "Ch": FieldKind.DROPDOWN,
        "Sig": FieldKind.SIGNATURE,
    }

    # Type names found in the document-level field registry
    REGISTRY_TYPE_MAP = {
        "text": FieldKind.TEXT,
        "checkbox": FieldKind.CHECKBOX,
        "radiobutton": FieldKind.RADIO,
        "combobox": FieldKind.DROPDOWN,
        "listbox": FieldKind.DROPDOWN,
        "signature": FieldKind.SIGNATURE,
        "button": FieldKind.CHECKBOX,
    }

    def detect(
        self,
        structured_fields: Sequence[StructuredField] | None,
        field_registry: Mapping[str, Sequence[StructuredField]] | None = None,
        page_index: int = 0,
        page_count: int = 1,
    ) -> list[FieldRecord]:
        """
        Convert structured entries for one page into field records.

        Args:
            structured_fields: Entries from the page's own widgets
            field_registry: Document-level registry, name -> entries
            page_index: Zero-based index of the page being scanned
            page_count: Number of pages in the document

        Returns:
            Field records, empty when the document declares nothing
        """
        entries = list(structured_fields or [])

        if not entries and field_registry:
            entries = self._registry_entries(field_registry, page_index, page_count)
            if entries:
                logger.debug(
                    "Using %d registry entries as fallback",
                    len(entries),
                    extra={"page": page_index + 1, "detector": self.name},
                )

        records = []
        for entry in entries:
            if entry.rect is None:
                logger.warning(
                    "Skipping structured field %r without a rectangle",
                    entry.name,
                    extra={"page": page_index + 1, "detector": self.name},
                )
                continue

            kind = self.classify(entry)
            records.append(FieldRecord(
                kind=kind,
                rect=entry.rect,
                confidence=ConfidenceTier.HIGH,
                detection_method=DetectionMethod.STRUCTURED_ANNOTATION,
                group_name=(entry.name or None) if kind == FieldKind.RADIO else None,
                name=entry.name or None,
                value=entry.value,
                options=list(entry.options),
                required=entry.required,
                read_only=entry.read_only,
            ))

        return records

    def classify(self, entry: StructuredField) -> FieldKind:
        """Map a structured type onto a field kind."""
        type_code = (entry.type or "").lstrip("/")

        if type_code == "Btn":
            if entry.radio_button and not entry.check_box:
                return FieldKind.RADIO
            return FieldKind.CHECKBOX

        if type_code in self.WIDGET_TYPE_MAP:
            return self.WIDGET_TYPE_MAP[type_code]

        return self.REGISTRY_TYPE_MAP.get(type_code.lower(), FieldKind.TEXT)

    def _registry_entries(
        self,
        field_registry: Mapping[str, Sequence[StructuredField]],
        page_index: int,
        page_count: int,
    ) -> list[StructuredField]:
        """Pick the registry entries that belong to this page."""
        entries = []
        for name, registered in field_registry.items():
            for entry in registered:
                if entry.page == page_index or (entry.page is None and page_count == 1):
                    entries.append(entry if entry.name else replace(entry, name=name))
        return entries


# Singleton instance
annotation_detector = AnnotationDetector()
