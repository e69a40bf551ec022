import pytest

from mdtree.markers import TokenKind, classify_line, classify_marker, scan


@pytest.mark.parametrize(
    "content, expected",
    [
        ("section", (TokenKind.SECTION, None, False)),
        ("section:hero", (TokenKind.SECTION, "hero", False)),
        ("sub:left", (TokenKind.SUB_OPEN, "left", False)),
        ("/", (TokenKind.CLOSE_ANY, None, False)),
        ("/sub", (TokenKind.CLOSE_SUB, None, False)),
        ("/sub:left", (TokenKind.CLOSE_SUB, "left", False)),
        ("/gallery", (TokenKind.CLOSE_FIELD, "gallery", False)),
        ("title", (TokenKind.FIELD_OPEN, "title", False)),
        ("gallery...", (TokenKind.FIELD_OPEN, "gallery", True)),
        ("card_2-b", (TokenKind.FIELD_OPEN, "card_2-b", False)),
    ],
)
def test_marker_forms(content, expected):
    assert classify_marker(content) == expected


@pytest.mark.parametrize("content", ["section:", "section:a b", "sub:", "sub:x.y", "/a b", "two words", "x..", "x....", ""])
def test_invalid_markers_are_not_markers(content):
    assert classify_marker(content) is None


def test_marker_line_allows_surrounding_whitespace():
    tok = classify_line(3, "   <!--   title   -->  ")
    assert tok.kind is TokenKind.FIELD_OPEN
    assert tok.name == "title"
    assert tok.line == 3
    assert tok.is_marker


def test_comment_with_other_text_is_content():
    assert classify_line(0, "Text <!-- title -->").kind is TokenKind.CONTENT
    assert classify_line(0, "<!-- just a comment -->").kind is TokenKind.CONTENT


def test_headings():
    tok = classify_line(0, "### Third level ###")
    assert tok.kind is TokenKind.HEADING
    assert tok.level == 3
    assert tok.heading_text == "Third level"

    assert classify_line(0, "####### seven").kind is TokenKind.CONTENT
    assert classify_line(0, "#hashtag").kind is TokenKind.CONTENT
    assert classify_line(0, "#").kind is TokenKind.CONTENT
    assert classify_line(0, "    # indented code").kind is TokenKind.CONTENT


def test_scan_keeps_line_numbers_and_blank_lines():
    tokens = scan("# A\n\n<!-- x -->\ntext")
    assert [t.kind for t in tokens] == [TokenKind.HEADING, TokenKind.BLANK, TokenKind.FIELD_OPEN, TokenKind.CONTENT]
    assert [t.line for t in tokens] == [0, 1, 2, 3]


def test_nothing_inside_a_fence_is_a_marker():
    body = "\n".join(["```markdown", "# not a heading", "<!-- section -->", "", "```", "<!-- title -->"])
    kinds = [t.kind for t in scan(body)]
    assert kinds == [
        TokenKind.CONTENT,
        TokenKind.CONTENT,
        TokenKind.CONTENT,
        TokenKind.BLANK,
        TokenKind.CONTENT,
        TokenKind.FIELD_OPEN,
    ]


def test_tilde_fence_needs_matching_closer():
    body = "~~~~\n```\n# inside\n~~~~\n# outside"
    kinds = [t.kind for t in scan(body)]
    assert kinds[2] is TokenKind.CONTENT
    assert kinds[4] is TokenKind.HEADING
