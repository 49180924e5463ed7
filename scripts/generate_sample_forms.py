#!/usr/bin/env python3
"""
Generate sample forms for testing field detection.

Creates the same membership registration form in two flavors:
- A fillable PDF with interactive text fields, checkboxes and a radio group
- A flat PDF where the fields are only printed underlines and boxes

A ground_truth.json file describing every field is written alongside.
"""

import json
from pathlib import Path

from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

PAGE_WIDTH, PAGE_HEIGHT = letter

FIELD_HEIGHT = 20
BOX_SIZE = 12

# (name, label, x, width) per row, rows top to bottom
TEXT_ROWS = [
    [("name", "NAME:", 50, 300), ("dob", "DATE OF BIRTH:", 400, 110)],
    [("address", "ADDRESS:", 50, 400)],
    [("city", "CITY:", 50, 150), ("state", "STATE:", 260, 50), ("zip", "ZIP CODE:", 380, 100)],
    [("phone", "PHONE:", 50, 150), ("email", "EMAIL:", 260, 250)],
    [("borough", "BOROUGH:", 50, 150), ("center", "CENTER:", 280, 200)],
    [
        ("emergency_name", "EMERGENCY CONTACT:", 50, 150),
        ("relationship", "RELATIONSHIP:", 340, 120),
    ],
]

# (name, label, x) per row
CHECKBOX_ROWS = [
    [("race_native", "American Indian or Alaskan Native", 50), ("race_asian", "Asian", 300)],
    [("race_black", "Black or African American", 50), ("race_white", "White", 300)],
    [("race_hispanic", "Hispanic or Latino/a/x", 50), ("race_other", "Other", 300)],
    [("income_low", "$0-32,999", 50), ("income_mid", "$33,000-106,999", 200), ("income_high", "$107,000+", 350)],
]

# (value, label, x)
MEMBERSHIP_OPTIONS = [
    ("adult", "Adult", 50),
    ("senior", "Senior", 200),
    ("youth", "Youth", 350),
]


def _field_x(label: str, x: float) -> float:
    """Input fields start just after their printed label."""
    return x + len(label) * 6 + 10


def build_layout() -> list[dict]:
    """Describe every field on the form in document coordinates."""
    fields = []
    y = PAGE_HEIGHT - 90

    for row in TEXT_ROWS:
        for name, label, x, width in row:
            fx = _field_x(label, x)
            fields.append({
                "kind": "text",
                "name": name,
                "label": label,
                "rect": [fx, y, fx + width, y + FIELD_HEIGHT],
            })
        y -= 35

    y -= 20
    for row in CHECKBOX_ROWS:
        for name, label, x in row:
            fields.append({
                "kind": "checkbox",
                "name": name,
                "label": label,
                "rect": [x, y, x + BOX_SIZE, y + BOX_SIZE],
            })
        y -= 22

    y -= 20
    for value, label, x in MEMBERSHIP_OPTIONS:
        fields.append({
            "kind": "radio",
            "name": "membership",
            "value": value,
            "label": label,
            "rect": [x, y, x + BOX_SIZE, y + BOX_SIZE],
        })

    return fields


def _draw_header(c: canvas.Canvas) -> None:
    c.setFont("Helvetica-Bold", 16)
    c.drawString(150, PAGE_HEIGHT - 50, "MEMBERSHIP REGISTRATION FORM")
    c.setFont("Helvetica", 10)


def _draw_labels(c: canvas.Canvas, layout: list[dict]) -> None:
    for field in layout:
        x0, y0, _, _ = field["rect"]
        if field["kind"] == "text":
            # Label text sits left of the input, on the same baseline
            label_x = x0 - len(field["label"]) * 6 - 10
            c.drawString(label_x, y0 + 5, field["label"])
        else:
            c.drawString(x0 + BOX_SIZE + 5, y0 + 2, field["label"])


def create_fillable_form(output_path: Path, layout: list[dict]) -> None:
    """Create the form with interactive fields."""
    c = canvas.Canvas(str(output_path), pagesize=letter)
    _draw_header(c)
    _draw_labels(c, layout)

    form = c.acroForm
    for field in layout:
        x0, y0, x1, y1 = field["rect"]
        if field["kind"] == "text":
            form.textfield(
                name=field["name"],
                x=x0,
                y=y0,
                width=x1 - x0,
                height=y1 - y0,
                borderWidth=1,
            )
        elif field["kind"] == "checkbox":
            form.checkbox(name=field["name"], x=x0, y=y0, size=BOX_SIZE)
        else:
            form.radio(
                name=field["name"],
                value=field["value"],
                selected=False,
                x=x0,
                y=y0,
                size=BOX_SIZE,
            )

    c.save()


def create_flat_form(output_path: Path, layout: list[dict]) -> None:
    """Create the same form with printed underlines and boxes only."""
    c = canvas.Canvas(str(output_path), pagesize=letter)
    _draw_header(c)
    _draw_labels(c, layout)

    c.setLineWidth(1.5)
    for field in layout:
        x0, y0, x1, y1 = field["rect"]
        if field["kind"] == "text":
            c.line(x0, y0, x1, y0)
        else:
            c.rect(x0, y0, x1 - x0, y1 - y0)

    c.save()


def main():
    """Generate all sample forms."""
    output_dir = Path(__file__).parent.parent / "sample_forms"
    output_dir.mkdir(exist_ok=True)

    layout = build_layout()
    forms = {
        "01_membership_fillable.pdf": create_fillable_form,
        "02_membership_flat.pdf": create_flat_form,
    }

    print("Generating sample forms...")
    for filename, create in forms.items():
        create(output_dir / filename, layout)
        print(f"  Created: {filename}")

    ground_truth = {filename: layout for filename in forms}
    with open(output_dir / "ground_truth.json", "w") as f:
        json.dump(ground_truth, f, indent=2)

    print(f"\nGenerated {len(forms)} sample forms in {output_dir}")


if __name__ == "__main__":
    main()
