import re
from collections.abc import Callable
from dataclasses import dataclass

from buildr.schemas.pipeline import CodeIssue


_FORM_TAG = re.compile(r"<form\b([^>]*)>", re.IGNORECASE)
_SUBMIT_LISTENER = re.compile(r"""addEventListener\(\s*['"]submit['"]|\.onsubmit\s*=|\.submit\(""", re.IGNORECASE)
_BUTTON_TAG = re.compile(r"<button\b([^>]*)>", re.IGNORECASE)
_EMPTY_ANCHOR = re.compile(r"""href\s*=\s*['"]#['"]""", re.IGNORECASE)
_SMOOTH_SCROLL = re.compile(r"scroll-behavior\s*:\s*smooth|scroll-smooth|behavior\s*:\s*['\"]smooth", re.IGNORECASE)
_MOBILE_MENU = re.compile(r"hamburger|mobile-menu|mobile_menu|mobileMenu|menu-toggle|menu-btn", re.IGNORECASE)
_CLASS_TOGGLE = re.compile(r"classList\.toggle", re.IGNORECASE)
_IMG_TAG = re.compile(r"<img\b([^>]*)>", re.IGNORECASE)
_PHONE = re.compile(r"\(?\b\d{3}\)?[\s.-]?\d{3}[\s.-]\d{4}\b")
_EMAIL = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)*\.(?:com|net|org|io|co|dev|app)\b", re.IGNORECASE)
_VIEWPORT = re.compile(r"""<meta\b[^>]*name\s*=\s*['"]viewport['"]""", re.IGNORECASE)


def _has_attr(attrs: str, name: str) -> bool:
    return re.search(rf"\b{name}\s*=", attrs, re.IGNORECASE) is not None


@dataclass(frozen=True)
class ValidationRule:
    name: str
    severity: str
    check: Callable[[str], list[str]]
    fix: str | None = None


def _forms_without_handler(html: str) -> list[str]:
    for attrs in _FORM_TAG.findall(html):
        if not _has_attr(attrs, "onsubmit") and not _SUBMIT_LISTENER.search(html):
            return ["Form has no submit handler; submitting it will reload the page"]
    return []


def _buttons_without_action(html: str) -> list[str]:
    messages = []
    for attrs in _BUTTON_TAG.findall(html):
        if _has_attr(attrs, "onclick") or _has_attr(attrs, "type"):
            continue
        messages.append("Button has no click handler or explicit type")
    return messages


def _anchors_without_smooth_scroll(html: str) -> list[str]:
    if _EMPTY_ANCHOR.search(html) and not _SMOOTH_SCROLL.search(html):
        return ['Links point to "#" but smooth scrolling is not enabled']
    return []


def _mobile_menu_without_toggle(html: str) -> list[str]:
    if _MOBILE_MENU.search(html) and not _CLASS_TOGGLE.search(html):
        return ["Mobile menu button found but nothing toggles the menu"]
    return []


def _images_without_alt(html: str) -> list[str]:
    return ["Image is missing alt text" for attrs in _IMG_TAG.findall(html) if not _has_attr(attrs, "alt")]


def _phone_without_link(html: str) -> list[str]:
    if _PHONE.search(html) and "tel:" not in html:
        return ["Phone number is not clickable"]
    return []


def _email_without_link(html: str) -> list[str]:
    if _EMAIL.search(html) and "mailto:" not in html:
        return ["Email address is not clickable"]
    return []


def _missing_viewport(html: str) -> list[str]:
    if not _VIEWPORT.search(html):
        return ["Missing viewport meta tag; the page will not scale on mobile"]
    return []


RULES: list[ValidationRule] = [
    ValidationRule("form-handler", "warning", _forms_without_handler,
                   "Add an onsubmit handler or a submit event listener"),
    ValidationRule("button-action", "warning", _buttons_without_action,
                   'Add an onclick handler or type="button"'),
    ValidationRule("smooth-scroll", "info", _anchors_without_smooth_scroll,
                   "Add html { scroll-behavior: smooth; }"),
    ValidationRule("mobile-menu", "warning", _mobile_menu_without_toggle,
                   "Toggle the menu with classList.toggle on click"),
    ValidationRule("image-alt", "info", _images_without_alt, "Describe each image in an alt attribute"),
    ValidationRule("tel-link", "info", _phone_without_link, 'Wrap the number in <a href="tel:...">'),
    ValidationRule("mailto-link", "info", _email_without_link, 'Wrap the address in <a href="mailto:...">'),
    ValidationRule("viewport", "error", _missing_viewport,
                   '<meta name="viewport" content="width=device-width, initial-scale=1.0">'),
]


def validate(document: str) -> list[CodeIssue]:
    issues = []
    for rule in RULES:
        for message in rule.check(document):
            issues.append(CodeIssue(severity=rule.severity, message=message, fix=rule.fix))
    return issues
