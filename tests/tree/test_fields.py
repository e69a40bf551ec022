import pytest
from pydantic import ValidationError

from mdtree.models import Block, FieldKind, FieldType, ListElement


def test_regular_field_on_heading_excludes_unrelated_text(parse_md):
    doc = parse_md("<!-- title -->\n# Hello\n\nUnrelated text")
    field = doc.sections[0].field("title")

    assert field.kind is FieldKind.REGULAR
    assert field.type is FieldType.HEADING
    assert field.text == "Hello"
    assert "Unrelated" not in field.text
    assert "Unrelated" not in field.markdown
    assert isinstance(field.block, Block)
    assert field.block.heading.text == "Hello"


def test_regular_field_on_paragraph(parse_md):
    doc = parse_md("# Page\n\n<!-- intro -->\nFirst *line*\nsecond line\n\nNot captured")
    field = doc.sections[0].field("intro")

    assert field.type is FieldType.TEXT
    assert field.text == "First line second line"
    assert field.markdown == "First *line*\nsecond line"
    assert "<em>line</em>" in field.html


def test_regular_field_skips_blank_lines(parse_md):
    doc = parse_md("<!-- intro -->\n\n\nText")
    assert doc.sections[0].field("intro").text == "Text"


def test_image_link_and_list_types(parse_md):
    body = "\n".join(
        [
            "<!-- photo -->",
            '![Front](img/front.jpg "Door")',
            "",
            "<!-- cta -->",
            "[Read more](https://example.com/more)",
            "",
            "<!-- menu -->",
            "- [Home](/)",
            "- About",
        ]
    )
    section = parse_md(body).sections[0]

    photo = section.field("photo")
    assert photo.type is FieldType.IMAGE
    assert photo.element.src == "img/front.jpg"
    assert photo.element.alt == "Front"
    assert photo.element.title == "Door"

    cta = section.field("cta")
    assert cta.type is FieldType.LINK
    assert cta.element.href == "https://example.com/more"
    assert cta.text == "Read more"

    menu = section.field("menu")
    assert menu.type is FieldType.LIST
    assert isinstance(menu.element, ListElement)
    assert [item.text for item in menu.items] == ["Home", "About"]
    assert menu.items[0].links[0].href == "/"


def test_field_followed_by_marker_captures_nothing(parse_md):
    doc = parse_md("<!-- empty -->\n<!-- title -->\n# Hi")
    section = doc.sections[0]
    assert section.field("empty") is None
    assert [f.name for f in section.field_list] == ["title"]


def test_extended_field_collects_units(parse_md):
    body = "\n".join(
        [
            "# Gallery",
            "",
            "<!-- pictures... -->",
            "![One](1.png)",
            "",
            "![Two](2.png)",
            "",
            "Caption",
            "<!-- /pictures -->",
            "",
            "Outside",
        ]
    )
    field = parse_md(body).sections[0].field("pictures")

    assert field.kind is FieldKind.EXTENDED
    assert field.type is FieldType.TEXT
    assert [u.kind.value for u in field.items] == ["image", "image", "paragraph"]
    assert field.text == "One\n\nTwo\n\nCaption"
    assert "Outside" not in field.markdown


def test_extended_field_over_whole_block_is_a_heading(parse_md):
    body = "<!-- card... -->\n## Card\n\nBody text\n<!-- / -->\n## Next\nAfter"
    field = parse_md(body).sections[0].field("card")

    assert field.type is FieldType.HEADING
    assert field.block.heading.text == "Card"
    assert field.text == "Card\n\nBody text"


def test_extended_field_takes_partial_blocks_element_wise(parse_md):
    body = "\n".join(
        [
            "<!-- story... -->",
            "# Story",
            "",
            "Start",
            "",
            "## Later",
            "",
            "Then",
            "<!-- /story -->",
            "",
            "Tail",
        ]
    )
    field = parse_md(body).sections[0].field("story")

    assert field.type is FieldType.TEXT
    assert field.text == "Story\n\nStart\n\nLater\n\nThen"
    assert "Tail" not in field.text


def test_extended_field_bleeds_to_next_field(parse_md):
    body = "<!-- a... -->\nOne\n\nTwo\n\n<!-- b -->\nThree"
    section = parse_md(body).sections[0]
    assert section.field("a").text == "One\n\nTwo"
    assert section.field("b").text == "Three"


def test_first_field_wins_and_all_are_listed(parse_md):
    doc = parse_md("<!-- item -->\nFirst\n\n<!-- item -->\nSecond")
    section = doc.sections[0]

    assert section.field("item").text == "First"
    assert [f.text for f in section.fields_named("item")] == ["First", "Second"]
    assert section.field("missing") is None


def test_fields_are_scoped_to_their_subsection(parse_md):
    body = "\n".join(
        [
            "<!-- name -->",
            "Section level",
            "",
            "<!-- sub:card -->",
            "<!-- name -->",
            "Card level",
            "<!-- / -->",
        ]
    )
    section = parse_md(body).sections[0]
    card = section.subsection("card")

    assert section.field("name").text == "Section level"
    assert [f.text for f in section.fields_named("name")] == ["Section level", "Card level"]
    assert card.field("name").text == "Card level"
    assert section.default_subsection.field("name").text == "Section level"


def test_fields_are_reachable_from_their_block(parse_md):
    body = "# One\n\n<!-- a -->\nText a\n\n# Two\n\n<!-- b -->\nText b"
    section = parse_md(body).sections[0]
    one, two = section.blocks

    assert list(one.fields) == ["a"]
    assert list(two.fields) == ["b"]
    assert one.field("a") is section.field("a")


def test_field_dump_leaves_out_units(parse_md):
    doc = parse_md("<!-- title -->\n# Hello")
    dumped = doc.sections[0].field("title").model_dump()
    assert "units" not in dumped
    assert dumped["type"] == FieldType.HEADING


def test_regular_field_on_loose_list_stops_at_blank_line(parse_md):
    section = parse_md("<!-- f -->\n- a\n\n- b\n\nAfter").sections[0]
    field = section.field("f")

    assert field.type is FieldType.LIST
    assert field.markdown == "- a"
    assert [item.text for item in field.items] == ["a"]
    assert "b" not in field.text
    (whole,) = section.lists
    assert len(whole.items) == 2


def test_regular_field_on_tight_list_keeps_every_item(parse_md):
    field = parse_md("<!-- f -->\n- a\n- b\n\nAfter").sections[0].field("f")
    assert field.markdown == "- a\n- b"
    assert [item.text for item in field.items] == ["a", "b"]


def test_field_collections_are_read_only(parse_md):
    body = "# One\n\n<!-- a -->\nText a"
    section = parse_md(body).sections[0]
    (block,) = section.blocks

    assert isinstance(section.field_list, tuple)
    assert isinstance(block.field_list, tuple)
    with pytest.raises(TypeError):
        section.fields["b"] = section.field("a")
    with pytest.raises(TypeError):
        block.fields["b"] = block.field("a")
    with pytest.raises(ValidationError):
        section.field_list = ()
    assert [f.name for f in block.field_list] == ["a"]
