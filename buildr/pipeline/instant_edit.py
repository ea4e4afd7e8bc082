"""Edits simple enough to apply without a model round trip.

``try_apply`` handles color requests on the client before any request is
sent. ``try_structural_edit`` handles section removal and heading resizing
on the server side of the generation endpoint.
"""

import re

from buildr.config import settings

COLOR_PHRASINGS = [
    re.compile(r"\bchange\s+(?:the\s+)?(?:main\s+|primary\s+|accent\s+)?colou?rs?(?:\s+scheme)?\s+to\s+([a-z]+)\b"),
    re.compile(r"\bmake\s+it\s+([a-z]+)\b"),
    re.compile(r"\b([a-z]+)\s+colou?r\b"),
]

QUESTION_PREFIXES = ("what", "how", "should", "can you explain")

COLOR_HEX = {
    "red": "#EF4444",
    "orange": "#F97316",
    "amber": "#F59E0B",
    "yellow": "#EAB308",
    "lime": "#84CC16",
    "green": "#22C55E",
    "emerald": "#10B981",
    "teal": "#14B8A6",
    "cyan": "#06B6D4",
    "sky": "#0EA5E9",
    "blue": "#3B82F6",
    "indigo": "#6366F1",
    "violet": "#8B5CF6",
    "purple": "#A855F7",
    "fuchsia": "#D946EF",
    "pink": "#EC4899",
    "rose": "#F43F5E",
    "gold": "#D4AF37",
    "navy": "#1E3A8A",
    "maroon": "#800000",
    "coral": "#FF7F50",
    "turquoise": "#40E0D0",
    "magenta": "#FF00FF",
    "crimson": "#DC143C",
}

# Tailwind palette names whose shade classes can be renamed in place
CLASS_COLORS = [
    "red", "orange", "amber", "yellow", "lime", "green", "emerald", "teal", "cyan",
    "sky", "blue", "indigo", "violet", "purple", "fuchsia", "pink", "rose",
]

_HEX_LITERAL = re.compile(r"#([0-9a-fA-F]{6})\b")
_COLOR_CLASS = re.compile(
    r"\b(bg|text|border|from|via|to|ring|fill|stroke|outline|divide|accent|shadow|decoration|placeholder)-("
    + "|".join(CLASS_COLORS)
    + r")-(\d{2,3})\b"
)


def saturation(hex_color: str) -> float:
    """HSL saturation of a ``#RRGGBB`` color, from 0.0 to 1.0."""
    value = hex_color.lstrip("#")
    r, g, b = (int(value[i:i + 2], 16) / 255 for i in (0, 2, 4))
    high, low = max(r, g, b), min(r, g, b)
    if high == low:
        return 0.0
    lightness = (high + low) / 2
    return (high - low) / (1 - abs(2 * lightness - 1))


def is_question(text: str) -> bool:
    text = text.strip().lower()
    return text.endswith("?") or text.startswith(QUESTION_PREFIXES)


def match_color(user_text: str) -> str | None:
    if is_question(user_text):
        return None
    text = user_text.lower()
    for pattern in COLOR_PHRASINGS:
        for name in pattern.findall(text):
            if name in COLOR_HEX:
                return name
    return None


def recolor(document: str, color: str, threshold: float | None = None) -> str:
    if threshold is None:
        threshold = settings.instant_edit_saturation_threshold
    target = COLOR_HEX[color]

    def replace_hex(match: re.Match) -> str:
        if saturation(match.group(1)) > threshold:
            return target
        return match.group(0)

    updated = _HEX_LITERAL.sub(replace_hex, document)
    if color in CLASS_COLORS:
        updated = _COLOR_CLASS.sub(lambda m: f"{m.group(1)}-{color}-{m.group(3)}", updated)
    return updated


def try_apply(user_text: str, document: str) -> str | None:
    color = match_color(user_text)
    if not color:
        return None
    updated = recolor(document, color)
    if updated == document:
        return None
    return updated


# ---------------------------------------------------------------------------
# Structural edits
# ---------------------------------------------------------------------------

SECTION_MARKERS = [
    "hero", "nav", "header", "about", "services", "features", "pricing",
    "testimonials", "team", "trainers", "classes", "schedule", "gallery",
    "faq", "contact", "cta", "footer", "membership", "stats", "benefits",
]

HEADING_SIZES = [
    "text-sm", "text-base", "text-lg", "text-xl", "text-2xl", "text-3xl",
    "text-4xl", "text-5xl", "text-6xl", "text-7xl", "text-8xl",
]

_REMOVE_REQUEST = re.compile(r"^(?:remove|delete)\s+(?:the\s+)?(.+?)(?:\s+section)?$")
_BIGGER_REQUEST = re.compile(r"(make|headings?|titles?).*(larger|bigger)")
_SMALLER_REQUEST = re.compile(r"(make|headings?|titles?).*smaller")
_BLOCK_TAG = re.compile(r"<(section|div|nav|header|footer|aside)", re.IGNORECASE)


def find_sections(code: str) -> list[tuple[str, int, int]]:
    """Locate marked sections as ``(name, first_line, last_line)``."""
    lines = code.split("\n")
    sections = []
    for i, raw in enumerate(lines):
        line = raw.lower()
        for marker in SECTION_MARKERS:
            if not (
                f'id="{marker}"' in line
                or f"id='{marker}'" in line
                or f"<!-- {marker}" in line
                or f"<!--{marker}" in line
                or ("<section" in line and marker in line)
            ):
                continue

            tag_match = _BLOCK_TAG.search(raw)
            tag = tag_match.group(1).lower() if tag_match else "section"
            opener = re.compile(rf"<{tag}[\s>]", re.IGNORECASE)
            closer = re.compile(rf"</{tag}>", re.IGNORECASE)
            depth = 0
            end = i
            for j in range(i, len(lines)):
                depth += len(opener.findall(lines[j])) - len(closer.findall(lines[j]))
                if j == i:
                    depth = max(depth, 1)
                end = j
                if depth <= 0:
                    break
            sections.append((marker, i, end))
            break
    return sections


def remove_section(code: str, target: str) -> tuple[str, str] | None:
    target = target.lower()
    for name, start, end in find_sections(code):
        if name in target or target in name:
            lines = code.split("\n")
            removed = end - start + 1
            del lines[start:end + 1]
            return "\n".join(lines), f"Removed {name} section ({removed} lines)"
    return None


def resize_headings(code: str, bigger: bool) -> tuple[str, str] | None:
    changes = 0
    # Walk away from the direction of travel so a class is only stepped once
    order = range(len(HEADING_SIZES) - 1, -1, -1) if bigger else range(len(HEADING_SIZES))
    for i in order:
        current = HEADING_SIZES[i]
        step = min(i + 1, len(HEADING_SIZES) - 1) if bigger else max(i - 1, 0)
        replacement = HEADING_SIZES[step]
        if replacement == current:
            continue
        pattern = re.compile(rf'(<h[1-6][^>]*class="[^"]*?)\b{current}\b', re.IGNORECASE)
        code, count = pattern.subn(rf"\g<1>{replacement}", code)
        changes += count
    if not changes:
        return None
    return code, f"Made {changes} heading(s) {'larger' if bigger else 'smaller'}"


def try_structural_edit(code: str, message: str) -> tuple[str, str] | None:
    """Return ``(new_code, summary)`` when the request needs no model."""
    if is_question(message):
        return None
    msg = message.strip().lower()

    match = _REMOVE_REQUEST.match(msg)
    if match:
        result = remove_section(code, match.group(1))
        if result:
            return result

    if _BIGGER_REQUEST.search(msg):
        return resize_headings(code, bigger=True)
    if _SMALLER_REQUEST.search(msg):
        return resize_headings(code, bigger=False)
    return None
