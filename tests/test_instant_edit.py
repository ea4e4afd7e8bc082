"""Tests for edits applied without a model call."""

from buildr.pipeline.instant_edit import (
    find_sections,
    match_color,
    recolor,
    resize_headings,
    saturation,
    try_apply,
    try_structural_edit,
)

STYLED = """<style>
  .btn { background: #3B82F6; color: #FFFFFF; }
  body { color: #6B7280; background: #F9FAFB; }
</style>
<a class="bg-blue-600 hover:bg-blue-700 text-white">Book now</a>"""

PAGE = """<body>
<nav id="nav">
  <a href="#">Home</a>
</nav>
<section id="hero">
  <h1 class="text-5xl font-bold">Lift heavy</h1>
  <div class="mt-4">
    <p>Join today</p>
  </div>
</section>
<section id="pricing">
  <h2 class="text-3xl md:text-4xl">Plans</h2>
</section>
<footer id="footer">
  <p>&copy; Gym</p>
</footer>
</body>"""


def test_saturation():
    """Test HSL saturation of a few reference colors."""
    assert saturation("#FFFFFF") == 0.0
    assert saturation("#6B7280") < 0.3
    assert saturation("#3B82F6") > 0.8


def test_match_color_phrasings():
    """Test each supported phrasing."""
    assert match_color("Change the color to green") == "green"
    assert match_color("make it red") == "red"
    assert match_color("I want a purple color scheme") == "purple"
    assert match_color("make it bigger") is None
    assert match_color("change color to plaid") is None


def test_make_it_red_keeps_neutrals():
    """Test that saturated colors move and grays and whites stay."""
    updated = try_apply("make it red", STYLED)

    assert "#EF4444" in updated
    assert "#3B82F6" not in updated
    assert "#FFFFFF" in updated
    assert "#6B7280" in updated
    assert "#F9FAFB" in updated


def test_tailwind_classes_keep_shade():
    """Test that palette classes are renamed with their shade."""
    updated = try_apply("make it red", STYLED)
    assert "bg-red-600 hover:bg-red-700 text-white" in updated


def test_non_palette_color_leaves_classes():
    """Test that a named color without a palette only rewrites hex values."""
    updated = recolor(STYLED, "gold")

    assert "#D4AF37" in updated
    assert "bg-blue-600" in updated


def test_questions_are_not_instant_edits():
    """Test that asking about a color or section never edits the page."""
    assert match_color("what red color should I use?") is None
    assert try_apply("What shade of red color fits a bakery", STYLED) is None
    assert try_structural_edit(PAGE, "should I remove the hero section?") is None


def test_try_apply_falls_through():
    """Test that unmatched or no-op requests return None."""
    assert try_apply("add a contact form", STYLED) is None
    assert try_apply("make it teal", "<p style='color:#000000'>plain</p>") is None


def test_find_sections():
    """Test locating marked blocks and their extent."""
    sections = {name: (start, end) for name, start, end in find_sections(PAGE)}

    assert sections["nav"] == (1, 3)
    assert sections["hero"] == (4, 9)
    assert sections["pricing"] == (10, 12)
    assert sections["footer"] == (13, 15)


def test_remove_section():
    """Test removing a whole section, nested blocks included."""
    result = try_structural_edit(PAGE, "Remove the hero section")

    assert result is not None
    code, summary = result
    assert "Lift heavy" not in code
    assert "Join today" not in code
    assert '<section id="pricing">' in code
    assert summary == "Removed hero section (6 lines)"


def test_remove_unknown_section_falls_through():
    """Test that an unmatched removal needs the model."""
    assert try_structural_edit(PAGE, "remove the blog section") is None


def test_headings_bigger_steps_once():
    """Test that each heading class grows exactly one step."""
    code, summary = resize_headings(PAGE, bigger=True)

    assert 'class="text-6xl font-bold"' in code
    assert 'class="text-4xl md:text-5xl"' in code
    assert summary == "Made 3 heading(s) larger"


def test_headings_smaller():
    """Test shrinking headings through the request text."""
    code, summary = try_structural_edit(PAGE, "make the headings smaller")

    assert 'class="text-4xl font-bold"' in code
    assert 'class="text-2xl md:text-3xl"' in code
    assert summary.endswith("smaller")


def test_resize_without_headings():
    """Test that nothing to resize yields None."""
    assert resize_headings("<p class='text-sm'>hi</p>", bigger=True) is None
