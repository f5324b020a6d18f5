"""Tests for argument marshaling and result serialization."""

from enum import Enum

import pytest

from scriptmcp.host.python_host import PythonSession
from scriptmcp.tools.marshal import convert_arguments
from scriptmcp.tools.serializer import serialize_results

from stubs import StubSession


class Color(Enum):
    RED = 1
    GREEN = 2


class TestConvertArguments:
    def test_none_in_none_out(self):
        """No arguments stay no arguments."""
        session = StubSession()
        assert convert_arguments(session, None) is None
        assert session.from_json_calls == []

    def test_empty_map(self):
        """An empty map converts to an empty map."""
        assert convert_arguments(StubSession(), {}) == {}

    def test_each_value_goes_through_host(self):
        """Every value is re-parsed by the host."""
        session = StubSession()
        native = convert_arguments(session, {"x": 5, "names": ["a"], "opts": {"deep": True}})

        assert native == {"x": 5, "names": ["a"], "opts": {"deep": True}}
        assert sorted(session.from_json_calls) == sorted(['5', '["a"]', '{"deep": true}'])

    def test_null_passes_through(self):
        """JSON null arrives as None."""
        assert convert_arguments(PythonSession(), {"x": None}) == {"x": None}

    def test_single_element_array_stays_array(self):
        """One-element arrays are not unwrapped."""
        assert convert_arguments(PythonSession(), {"ids": [7]}) == {"ids": [7]}

    def test_depth_limit(self):
        """Over-deep arguments are rejected."""
        session = PythonSession()
        deep = {"a": {"b": {"c": 1}}}
        result = convert_arguments(session, {"v": deep}, depth=3)
        assert result == {"v": deep}

        with pytest.raises(ValueError, match="maximum allowed depth of 2"):
            convert_arguments(session, {"v": deep}, depth=2)


class TestSerializeResults:
    def test_empty_results(self):
        """No results give no content."""
        session = StubSession()
        assert serialize_results(session, [], depth=1) == []
        assert session.to_json_calls == []

    def test_single_string_verbatim(self):
        """A lone string result is returned verbatim."""
        content = serialize_results(StubSession(), ["hello"], depth=1)
        assert len(content) == 1
        assert content[0].text == "hello"
        assert content[0].type == "text"

    def test_single_value_projected(self):
        """A lone value is serialized by the host."""
        session = StubSession()
        content = serialize_results(session, [{"a": 1}], depth=4)
        assert content[0].text == '{"a":1}'
        assert session.to_json_calls == [{"value": {"a": 1}, "depth": 4}]

    def test_many_values_projected_together(self):
        """Several results serialize as one array."""
        content = serialize_results(StubSession(), ["a", 2], depth=1)
        assert content[0].text == '["a",2]'

    def test_round_trip_integer(self):
        """An integer comes back as its JSON text."""
        session = PythonSession()
        native = convert_arguments(session, {"x": 5})
        content = serialize_results(session, [native["x"]], depth=1)
        assert content[0].text == "5"

    def test_enums_as_names(self):
        """Enums serialize by name."""
        content = serialize_results(PythonSession(), [{"color": Color.GREEN}], depth=2)
        assert content[0].text == '{"color":"GREEN"}'
