import pytest

from agentarmy.frontmatter import (
    Frontmatter,
    Value,
    extract_h1,
    format_field_line,
    parse_frontmatter,
    write_field,
)


@pytest.mark.parametrize(
    "content,want_keys",
    [
        ("", None),
        ("# Hello\nworld", None),
        ("---\nname: foo\nscope: universal\n---\n", ["name", "scope"]),
        ("---\nlanguages: [go, python]\n---\n", ["languages"]),
        ("---\nuses_rules: []\n---\n", ["uses_rules"]),
        ("---\nlanguages:\n  - go\n  - python\n---\n", ["languages"]),
        ('---\ndescription: "has: colon"\n---\n', ["description"]),
    ],
)
def test_parse_frontmatter_keys(content, want_keys):
    fm = parse_frontmatter(content)
    if want_keys is None:
        assert len(fm) == 0
    else:
        for key in want_keys:
            assert key in fm


def test_parse_frontmatter_values():
    content = (
        "---\nname: foo\nscope: universal\nlanguages: [go, python]\n"
        'uses_rules: []\ndescription: "has: colon"\n---\n'
    )
    fm = parse_frontmatter(content)
    assert fm.string_val("name", "") == "foo"
    assert fm.string_val("scope", "") == "universal"
    assert fm.string_val("description", "") == "has: colon"
    assert fm.list_val("languages") == ["go", "python"]
    assert fm.list_val("uses_rules") == []


def test_parse_frontmatter_block_list():
    fm = parse_frontmatter("---\nlanguages:\n  - go\n  - python\n  - typescript\n---\n")
    assert fm.list_val("languages") == ["go", "python", "typescript"]


def test_parse_frontmatter_quoted_list_items():
    fm = parse_frontmatter("---\nlanguages: ['go', \"python\"]\n---\n")
    assert fm.list_val("languages") == ["go", "python"]


def test_parse_frontmatter_empty_value_without_block_is_scalar():
    fm = parse_frontmatter("---\ndescription:\nname: foo\n---\n")
    assert fm["description"] == Value(scalar="")
    assert fm.string_val("name", "") == "foo"


@pytest.mark.parametrize(
    "content,want",
    [
        ("---\nname: foo\n---\n\n# My Title\n\nbody", "My Title"),
        ("# Direct Title\n\nbody", "Direct Title"),
        ("---\nname: foo\n---\n\nno heading here", ""),
        ("---\nname: foo\n---\n\n# First\n\n# Second", "First"),
    ],
)
def test_extract_h1(content, want):
    assert extract_h1(content) == want


def test_string_val():
    fm = Frontmatter(
        {
            "name": Value(scalar="foo"),
            "empty": Value(scalar=""),
            "list": Value(items=["a"], is_list=True),
        }
    )
    assert fm.string_val("name", "def") == "foo"
    assert fm.string_val("empty", "def") == "def"
    assert fm.string_val("list", "def") == "def"
    assert fm.string_val("missing", "def") == "def"


def test_list_val():
    fm = Frontmatter(
        {
            "langs": Value(items=["go", "py"], is_list=True),
            "empty": Value(items=[], is_list=True),
            "scalar": Value(scalar="single"),
            "blank": Value(scalar=""),
        }
    )
    assert len(fm.list_val("langs")) == 2
    assert fm.list_val("empty") == []
    assert fm.list_val("scalar") == ["single"]
    assert fm.list_val("blank") is None
    assert fm.list_val("missing") is None


def test_write_field_replace(tmp_path):
    fp = tmp_path / "test.md"
    fp.write_text("---\nname: foo\nuses_rules: [old1, old2]\n---\n\n# Body\n")
    write_field(fp, "uses_rules", ["new1", "new2"])
    assert fp.read_text() == "---\nname: foo\nuses_rules: [new1, new2]\n---\n\n# Body\n"


def test_write_field_insert(tmp_path):
    fp = tmp_path / "test.md"
    fp.write_text("---\nname: foo\n---\n\n# Body\n")
    write_field(fp, "uses_rules", ["a", "b"])
    assert fp.read_text() == "---\nname: foo\nuses_rules: [a, b]\n---\n\n# Body\n"


def test_write_field_empty(tmp_path):
    fp = tmp_path / "test.md"
    fp.write_text("---\nname: foo\nuses_rules: [old]\n---\n")
    write_field(fp, "uses_rules", None)
    assert fp.read_text() == "---\nname: foo\nuses_rules: []\n---\n"
    assert not (tmp_path / "test.md.tmp").exists()


def test_write_field_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        write_field(tmp_path / "nope.md", "uses_rules", ["a"])


@pytest.mark.parametrize(
    "field,values,want",
    [
        ("f", None, "f: []"),
        ("f", [], "f: []"),
        ("f", ["a"], "f: [a]"),
        ("f", ["a", "b", "c"], "f: [a, b, c]"),
    ],
)
def test_format_field_line(field, values, want):
    assert format_field_line(field, values) == want