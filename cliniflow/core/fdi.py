"""
FDI (ISO 3950) two-digit tooth numbering.

The first digit is the quadrant: 1-4 for permanent teeth (8 teeth each) and
5-8 for primary teeth (5 teeth each). The second digit is the tooth position
counted from the midline.
"""
from typing import Optional

PERMANENT_QUADRANTS = (1, 2, 3, 4)
PRIMARY_QUADRANTS = (5, 6, 7, 8)


def is_valid_fdi_tooth(code: Optional[str]) -> bool:
    if not code or len(code) != 2 or not (code.isascii() and code.isdigit()):
        return False
    quadrant, position = int(code[0]), int(code[1])
    if quadrant in PERMANENT_QUADRANTS:
        return 1 <= position <= 8
    if quadrant in PRIMARY_QUADRANTS:
        return 1 <= position <= 5
    return False
