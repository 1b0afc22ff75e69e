"""
Field data tests for httpweave
"""

import pytest

from httpweave import Data, build_query


class TestBuildQuery:
    """Test query string building"""

    def test_flat(self):
        """Test a flat mapping"""
        assert build_query({"foo": "bar", "n": 1}) == "foo=bar&n=1"

    def test_nested_and_lists(self):
        """Test nested mappings and repeated keys"""
        query = build_query({"a": {"b": "c"}, "tags": ["x", "y"]})
        assert query == "a%5Bb%5D=c&tags=x&tags=y"

    def test_none_skipped_and_bools(self):
        """Test None is skipped and booleans become 1/0"""
        assert build_query({"skip": None, "yes": True, "no": False}) == "yes=1&no=0"

    def test_escaping(self):
        """Test values are escaped"""
        assert build_query({"q": "a b&c"}) == "q=a+b%26c"


class TestData:
    """Test the Data container"""

    def test_add_get_remove(self):
        """Test field manipulation"""
        data = Data({"a": 1})
        data.add_data("b", 2).add_data({"c": 3})
        assert data.get_data() == {"a": 1, "b": 2, "c": 3}
        assert data.get_data("b") == 2
        assert data.has_data("c")
        data.remove_data("c")
        assert not data.has_data("c")
        assert len(data) == 2
        assert "a" in data
        assert list(data) == ["a", "b"]

    def test_remove_all(self):
        """Test clearing every field"""
        data = Data({"a": 1}).remove_all_data()
        assert not data.has_data()
        assert data.query_string is None
        assert data.query_string_length == 0

    def test_query_string(self):
        """Test the encoded query string and its length"""
        data = Data({"foo": "bar"})
        assert data.prepare_query_string() == "foo=bar"
        assert data.query_string == "foo=bar"
        assert data.query_string_length == 7

    def test_changes_reset_prepared(self):
        """Test modifying fields invalidates the prepared state"""
        data = Data({"a": 1})
        data.prepare_query_string()
        data.prepared = True
        data.add_data("b", 2)
        assert data.prepared is False
        assert data.query_string == "a=1&b=2"

    def test_filters(self):
        """Test filters transform every scalar value"""
        data = Data({"name": " Weave ", "nested": {"v": " x "}}, filters=[str.strip, str.lower])
        assert data.has_filters()
        assert data.prepare_query_string() == "name=weave&nested%5Bv%5D=x"

    def test_filter_must_be_callable(self):
        """Test non-callable filters are rejected"""
        with pytest.raises(TypeError):
            Data().add_filter("strip")

    def test_set_data_from_data(self):
        """Test copying fields from another Data"""
        assert Data().set_data(Data({"k": "v"})).get_data() == {"k": "v"}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
