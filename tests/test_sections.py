from vault_vector_server.vault.models import Section
from vault_vector_server.vault.sections import parse_markdown_sections, render_section


def test_no_headings_yields_no_sections():
    assert parse_markdown_sections("just some text\nwithout any headings\n") == []
    assert parse_markdown_sections("") == []


def test_nested_sections_paths_and_content():
    sections = parse_markdown_sections(
        "# A\nbody1\n## B\nbody2\n",
        min_viable_content_length=0,
    )

    assert [s.path for s in sections] == ["A", "A/B"]
    assert [s.level for s in sections] == [1, 2]
    assert sections[0].content == "# A\nbody1\n"
    assert sections[1].content == "## B\nbody2\n"


def test_short_interior_section_dropped_with_default_margin():
    # "# A\nbody1" trims to 9 chars, not more than len("A") + 15
    sections = parse_markdown_sections("# A\nbody1\n## B\nbody2\n")

    assert [s.path for s in sections] == ["A/B"]


def test_final_section_kept_whenever_non_empty():
    sections = parse_markdown_sections(
        "# Long heading\n"
        "This body is comfortably longer than the heading margin.\n"
        "## End\n"
        "x\n"
    )

    assert [s.heading for s in sections] == ["Long heading", "End"]
    assert sections[-1].content == "## End\nx\n"


def test_interior_section_needs_content_beyond_heading_margin():
    exactly_at_margin = "# H\n" + "a" * 12 + "\n"  # trimmed 16 == 1 + 15
    above_margin = "# H\n" + "a" * 13 + "\n"  # trimmed 17 > 16
    tail = "# Tail\nend\n"

    assert [s.heading for s in parse_markdown_sections(exactly_at_margin + tail)] == ["Tail"]
    assert [s.heading for s in parse_markdown_sections(above_margin + tail)] == ["H", "Tail"]


def test_level_jumps_and_siblings():
    body = "some content that is long enough to be kept around\n"
    markdown = (
        "# Root\n" + body
        + "### Deep\n" + body
        + "## Middle\n" + body
        + "# Other\n" + body
    )

    sections = parse_markdown_sections(markdown)

    assert [s.path for s in sections] == [
        "Root",
        "Root/Deep",
        "Root/Middle",
        "Other",
    ]
    assert [s.level for s in sections] == [1, 3, 2, 1]


def test_text_before_first_heading_belongs_to_no_section():
    sections = parse_markdown_sections(
        "preamble line\n# Title\nThe body of the titled section goes here.\n"
    )

    assert len(sections) == 1
    assert "preamble" not in sections[0].content
    assert sections[0].content.startswith("# Title\n")


def test_heading_text_is_trimmed():
    sections = parse_markdown_sections("##   Spaced out   \nbody\n")

    assert sections[0].heading == "Spaced out"
    assert sections[0].level == 2


def test_render_section_prefixes_breadcrumb():
    section = Section(heading="B", level=2, path="A/B", content="## B\nbody2\n")

    rendered = render_section(section)

    assert rendered.startswith("Parents: A/B\n")
    assert "Content: ## B\nbody2\n" in rendered


def test_only_newline_separates_lines():
    # Form feeds and Unicode line separators stay inside a body line.
    sections = parse_markdown_sections(
        "# Title\nbody text that is long enough here\x0c## Fake\nmore\n"
    )
    assert [s.path for s in sections] == ["Title"]
    assert "\x0c## Fake\n" in sections[0].content

    sections = parse_markdown_sections(
        "# Title\nfirst line # Not a heading ## Nor this\x85# Or this\n"
    )
    assert [s.path for s in sections] == ["Title"]


def test_skipped_levels_nest_by_depth():
    # The stack pops by depth, so two level-3 headings under a level-1
    # heading nest inside each other.
    sections = parse_markdown_sections(
        "# A\nintro text for the top level section\n"
        "### C\nfirst detail section with enough text\n"
        "### D\nsecond detail section with enough text\n"
    )

    assert [s.path for s in sections] == ["A", "A/C", "A/C/D"]
    assert [s.level for s in sections] == [1, 3, 3]
