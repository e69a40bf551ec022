from mdtree import DocumentParser, load, parse
from mdtree.models import FieldType, walk_blocks


def test_page_document(files_dir):
    doc = load(files_dir / "doc_page" / "page.md")

    assert doc.header == {"title": "Home page", "lang": "en"}
    assert doc.header_raw == 'title: "Home page"\nlang: en'
    assert [s.name for s in doc.sections] == ["hero", "columns", "story"]

    hero = doc.section("hero")
    assert hero.title == "Welcome to the studio"
    assert hero.field("title").type is FieldType.HEADING
    assert hero.field("title").text == "Welcome to the studio"
    assert hero.field("intro").text == "We build small tools for big ideas."
    assert hero.field("cover").type is FieldType.IMAGE
    assert hero.field("cover").element.title == "The front door"

    columns = doc.section("columns")
    assert [s.name for s in columns.subsections] == [None, "left", "right"]
    assert [b.heading.text for b in columns.blocks] == ["Services", "Contact"]
    assert columns.field("services").type is FieldType.LIST
    assert columns.subsection("left").field("services").text == columns.field("services").text
    assert columns.subsection("left").field("contact") is None
    assert columns.subsection("right").field("contact").element.href == "https://example.com/contact"

    story = doc.section("story").field("story")
    assert story.type is FieldType.TEXT
    assert story.text == "Our story\n\nIt started in a garage.\n\nGrowth\n\nThen it grew."


def test_page_aggregates(files_dir):
    doc = load(files_dir / "doc_page" / "page.md")

    assert [img.src for img in doc.images] == ["images/front.jpg"]
    assert [link.href for link in doc.links] == [
        "https://example.com/design",
        "https://example.com/code",
        "https://example.com/contact",
    ]
    assert len(doc.lists) == 1
    assert [h.text for h in doc.headings] == ["Welcome to the studio", "Services", "Contact", "Our story", "Growth"]
    assert len(doc.paragraphs) == 4
    assert doc.section("columns").subsection("left").links.text == "Design\n\nCode"
    assert "<img" in doc.section("hero").images.html

    stats = doc.validate_structure()
    assert stats["sections"] == 3
    assert stats["subsections"] == 2
    assert stats["blocks"] == 5
    assert stats["headings_by_level"] == {1: 2, 2: 3}


def test_nested_outline(files_dir):
    doc = load(files_dir / "doc_nested" / "outline.md")
    (section,) = doc.sections

    orphan, one, two = section.blocks
    assert orphan.is_orphan
    assert orphan.text == "Intro text before any heading."
    assert [b.heading.text for b in one.children] == ["One A", "One B"]
    assert [b.heading.text for b in one.children[0].children] == ["One A i"]

    code = one.children[1].elements[1]
    assert code.kind.value == "code"
    assert code.language == "python"
    assert "# not a heading" in code.text

    (numbers,) = two.own_lists()
    assert numbers.ordered
    assert [item.text for item in numbers.items][0] == "first"
    assert len(numbers.items) == 3


def test_parsing_is_deterministic(files_dir):
    text = (files_dir / "doc_page" / "page.md").read_text(encoding="utf-8")
    parser = DocumentParser()
    assert parser.parse(text) == parser.parse(text)


def test_trees_with_bound_blocks_compare_equal(upper_renderer):
    text = "<!-- section:hero -->\n<!-- title -->\n# Hello\n\nBody"
    a = parse(text, renderer=upper_renderer)
    b = parse(text, renderer=upper_renderer)

    assert a == b
    assert a.sections[0].blocks[0].field("title") is a.sections[0].field("title")
    assert a != parse(text.replace("Body", "Other"), renderer=upper_renderer)


def test_section_count_lower_bound(parse_md):
    body = "Intro\n<!-- section -->\n<!-- section:a -->\nA\n<!-- section:a -->"
    doc = parse_md(body)
    assert len(doc.sections) >= 3 + 1
    assert [s.name for s in doc.sections] == [None, None, "a", "a"]
    assert doc.section("a") is doc.sections[2]


def test_universal_closer_attribution(parse_md):
    doc = parse_md("<!-- sub:a -->\nX\n<!-- sub:b -->\nY\n<!-- / -->\nZ")
    (section,) = doc.sections

    assert section.subsection("a").text == "X"
    assert section.subsection("b").text == "Y"
    assert section.default_subsection.text == "Z"


def test_extended_field_keeps_bleeding_after_subsection_closes(parse_md):
    doc = parse_md("<!-- sub:x -->\n<!-- desc... -->\nInside\n<!-- /sub -->\nAfter")
    section = doc.sections[0]

    assert section.field("desc").text == "Inside\n\nAfter"
    assert section.subsection("x").field("desc").text == "Inside"
    assert section.default_subsection.text == "After"


def test_heading_levels_forest(parse_md):
    doc = parse_md("# A\n## B\n### C\n## D")
    (a,) = doc.blocks
    b, d = a.children

    assert a.level == 1
    assert (b.level, d.level) == (2, 2)
    assert [c.heading.text for c in b.children] == ["C"]
    assert d.children == ()
    assert [blk.heading.text for blk in walk_blocks(doc.blocks)] == ["A", "B", "C", "D"]


def test_header_round_trip():
    text = "---\ntitle: X\n---\n\nBody\n\n"
    doc = parse(text)

    assert doc.header == {"title": "X"}
    assert doc.body == "Body"
    assert doc.raw == text


def test_named_section_with_heading_and_text_fields():
    text = "<!-- section:hero -->\n<!-- title -->\n# Big title\n\n<!-- lead -->\nSome lead text."
    doc = parse(text)

    (hero,) = doc.sections
    assert hero.name == "hero"
    first, second = hero.field_list
    assert (first.name, first.type, first.text) == ("title", FieldType.HEADING, "Big title")
    assert (second.name, second.type, second.text) == ("lead", FieldType.TEXT, "Some lead text.")


def test_bytes_input():
    doc = parse("# Café\n".encode("utf-8"))
    assert doc.headings[0].text == "Café"


def test_empty_document():
    doc = parse("")
    assert doc.sections == ()
    assert doc.body == ""
    assert doc.header_raw is None
    assert len(doc.images) == 0


def test_section_markdown_keeps_markers(parse_md):
    doc = parse_md("<!-- section:a -->\n<!-- title -->\n# T\n<!-- section:b -->\nB")
    assert doc.section("a").markdown == "<!-- title -->\n# T"
    assert doc.section("a").blocks[0].markdown == "# T"


def test_custom_renderer_is_used(upper_renderer):
    doc = parse("<!-- lead -->\nhello", renderer=upper_renderer)
    assert doc.sections[0].field("lead").text == "HELLO"
    assert upper_renderer.calls == [["hello"]]
