"""Tests for gpucts/query: query objects, parsing and canonical printing."""

from __future__ import annotations

import pytest

from gpucts.errors import QuerySyntaxError
from gpucts.params import ParamSpec
from gpucts.query import (
    QueryLevel,
    TestQueryMultiCase,
    TestQueryMultiFile,
    TestQueryMultiTest,
    TestQuerySingleCase,
    parse_params,
    parse_query,
    query_covers,
)
from gpucts.query.encoding import split_top_level, stringify_param_value


# ---------------------------------------------------------------------------
# Parsing each level
# ---------------------------------------------------------------------------


class TestParseLevels:
    @pytest.mark.parametrize("text", ["s", "s:"])
    def test_multi_file(self, text):
        q = parse_query(text)
        assert q == TestQueryMultiFile("s")
        assert q.level is QueryLevel.MULTI_FILE

    @pytest.mark.parametrize("text", ["s:a,b", "s:a,b:"])
    def test_multi_test(self, text):
        q = parse_query(text)
        assert q == TestQueryMultiTest("s", ("a", "b"))
        assert q.level is QueryLevel.MULTI_TEST

    @pytest.mark.parametrize("text", ["s:a,b:t", "s:a,b:t:"])
    def test_multi_case(self, text):
        q = parse_query(text)
        assert q == TestQueryMultiCase("s", ("a", "b"), ("t",))
        assert q.level is QueryLevel.MULTI_CASE

    def test_single_case(self):
        q = parse_query("s:a,b:t,u:x=1,y=true")
        assert isinstance(q, TestQuerySingleCase)
        assert q.file_path == ("a", "b")
        assert q.test_path == ("t", "u")
        assert dict(q.params) == {"x": 1, "y": True}

    def test_single_case_flag_reads_empty_params(self):
        q = parse_query("s:a:t:", single_case=True)
        assert q == TestQuerySingleCase("s", ("a",), ("t",), ParamSpec())

    def test_single_case_flag_without_trailing_colon_is_multi_case(self):
        assert isinstance(parse_query("s:a:t", single_case=True), TestQueryMultiCase)

    def test_string_value_with_separators(self):
        q = parse_query('s:a:t:fmt="a:b,c=d"')
        assert q.params["fmt"] == "a:b,c=d"

    def test_array_and_record_values(self):
        q = parse_query('s:a:t:x=[1,2],y={"k":null}')
        assert q.params["x"] == [1, 2]
        assert q.params["y"] == {"k": None}

    def test_path_segments_may_contain_spaces(self):
        q = parse_query("s:a b:t")
        assert q.file_path == ("a b",)


class TestParseErrors:
    @pytest.mark.parametrize("text", [
        "",
        ":a",
        "s::t",
        "s:a,,b",
        "s:a:t:x",
        "s:a:t:x=",
        "s:a:t:x=1,x=2",
        "s:a:t:x=1:extra",
        "s:a:t:x=[1",
        's:a:t:x="open',
        "s:a:t:x=notjson",
        "s:a/b",
        "s:a:t:1x=1",
    ])
    def test_rejects(self, text):
        with pytest.raises(QuerySyntaxError):
            parse_query(text)

    def test_error_names_segment_and_query(self):
        with pytest.raises(QuerySyntaxError) as exc:
            parse_query("s:a:t:x=1,x=2")
        assert exc.value.query == "s:a:t:x=1,x=2"
        assert exc.value.segment == "x=2"

    def test_non_string_rejected(self):
        with pytest.raises(TypeError):
            parse_query(123)  # type: ignore[arg-type]

    def test_syntax_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_query("s::")


# ---------------------------------------------------------------------------
# Canonical printing
# ---------------------------------------------------------------------------


class TestCanonicalForm:
    @pytest.mark.parametrize("text,canonical", [
        ("s", "s:"),
        ("s:", "s:"),
        ("s:a,b", "s:a,b:"),
        ("s:a,b:t", "s:a,b:t:"),
        ("s:a,b:t:x=1", "s:a,b:t:x=1"),
        ('s:a:t:x="q",y=[1,{"k":false}]', 's:a:t:x="q",y=[1,{"k":false}]'),
    ])
    def test_print(self, text, canonical):
        assert str(parse_query(text)) == canonical

    def test_single_case_with_no_params(self):
        assert str(TestQuerySingleCase("s", ("a",), ("t",))) == "s:a:t:"

    def test_single_case_with_no_params_reads_back_as_multi_case(self):
        # The one query whose printed form does not parse back to itself.
        q = TestQuerySingleCase("s", ("a",), ("t",), ParamSpec())
        parsed = parse_query(str(q))
        assert isinstance(parsed, TestQueryMultiCase)
        assert parsed != q
        assert query_covers(parsed, q)
        assert parse_query(str(q), single_case=True) == q

    @pytest.mark.parametrize("q", [
        TestQueryMultiFile("s"),
        TestQueryMultiTest("s", ("a", "b")),
        TestQueryMultiCase("s", ("a",), ("t", "u")),
        TestQuerySingleCase("s", ("a",), ("t",), ParamSpec(x=1, y="z", w=None, b=False)),
        TestQuerySingleCase("s", ("a",), ("t",), ParamSpec(f=1.5)),
    ])
    def test_parse_print_roundtrip(self, q):
        single = isinstance(q, TestQuerySingleCase)
        assert parse_query(str(q), single_case=single) == q

    def test_nested_values_print_stably(self):
        text = 's:a:t:x=[[1,2],{"a":"b"}]'
        assert str(parse_query(text)) == text

    def test_invalid_param_key_rejected(self):
        with pytest.raises(QuerySyntaxError):
            TestQuerySingleCase("s", ("a",), ("t",), ParamSpec({"1bad": 1}))


class TestQueryObjects:
    def test_paths_coerced_to_tuples(self):
        q = TestQueryMultiTest("s", ["a", "b"])
        assert q.file_path == ("a", "b")

    def test_empty_path_rejected(self):
        with pytest.raises(QuerySyntaxError):
            TestQueryMultiTest("s", ())

    def test_absent_levels_are_empty(self):
        q = TestQueryMultiFile("s")
        assert q.file_path == ()
        assert q.test_path == ()
        assert len(q.params) == 0

    def test_frozen(self):
        q = TestQueryMultiFile("s")
        with pytest.raises(AttributeError):
            q.suite = "t"  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Encoding helpers
# ---------------------------------------------------------------------------


class TestEncoding:
    def test_split_respects_strings_and_brackets(self):
        assert split_top_level('a,"b,c",[d,e],{"f":1,"g":2}', ",") == [
            "a", '"b,c"', "[d,e]", '{"f":1,"g":2}',
        ]

    def test_stringify_rejects_objects(self):
        with pytest.raises(TypeError):
            stringify_param_value(object())

    def test_stringify_has_no_whitespace(self):
        assert stringify_param_value({"a": [1, 2]}) == '{"a":[1,2]}'

    def test_parse_params_empty(self):
        assert len(parse_params("")) == 0
