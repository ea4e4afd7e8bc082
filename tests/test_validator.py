"""Tests for the static page checks."""

from buildr.pipeline.validator import RULES, validate

HEAD = '<head><meta name="viewport" content="width=device-width, initial-scale=1.0"></head>'

CLEAN = f"""<!DOCTYPE html>
<html>{HEAD}
<body>
  <h1>Hi</h1>
  <button type="button" onclick="go()">Go</button>
</body>
</html>"""

MESSY = """<html><body>
<form><input name="email"></form>
<button>Go</button><button type="submit">Send</button><button>Two</button>
<a href="#">Top</a>
<div class="hamburger"></div>
<img src="a.png"><img src="b.png" alt="b">
<p>Call 555-123-4567 or write hello@bakery.com</p>
</body></html>"""


def test_clean_document_has_no_issues():
    """Test that a well-formed page passes every check."""
    assert validate(CLEAN) == []


def test_missing_viewport_is_the_only_error():
    """Test that a page without a viewport tag gets exactly one error."""
    issues = validate("<!DOCTYPE html><html><head></head><body><h1>Hi</h1></body></html>")

    errors = [i for i in issues if i.severity == "error"]
    assert len(errors) == 1
    assert "viewport" in errors[0].message.lower()
    assert errors[0].fix


def test_issues_follow_check_order():
    """Test that every check fires, in order, one issue per offender."""
    issues = validate(MESSY)

    assert [i.severity for i in issues] == [
        "warning",  # form
        "warning", "warning",  # two untyped buttons
        "info",  # href="#"
        "warning",  # hamburger
        "info",  # img without alt
        "info",  # phone
        "info",  # email
        "error",  # viewport
    ]


def test_handlers_silence_checks():
    """Test that the markers each check looks for clear its issue."""
    fixed = MESSY.replace("<html><body>", f"<html>{HEAD}<body><style>html {{ scroll-behavior: smooth; }}</style>")
    fixed += """<script>
document.querySelector('form').addEventListener('submit', e => e.preventDefault());
menu.classList.toggle('hidden');
</script>
<a href="tel:5551234567">call</a><a href="mailto:hello@bakery.com">mail</a>"""

    messages = [i.message for i in validate(fixed)]

    assert messages == [
        "Button has no click handler or explicit type",
        "Button has no click handler or explicit type",
        "Image is missing alt text",
    ]


def test_validate_is_deterministic():
    """Test that repeated calls give identical results."""
    assert validate(MESSY) == validate(MESSY)


def test_severity_is_fixed_per_rule():
    """Test that only the viewport rule can produce an error."""
    assert [r.name for r in RULES if r.severity == "error"] == ["viewport"]
