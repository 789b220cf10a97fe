"""Tests for ObjectMask construction, queries, filtering and mutators."""

import pytest
from objtools import (
    ObjectMask,
    MaskConfig,
    ArrayWildcardPolicy,
    InvalidArgumentError,
    new_mask,
    mask_from_field_list,
    mask_from_jsonpaths,
    collapse_to_dotted,
    deep_copy,
)
from objtools.jsonpath_utils import JSONPathConverter


OBJ1 = {
    "str1": "string",
    "str2": "string2",
    "num1": 1,
    "num2": 2,
    "nul1": None,
    "nul2": None,
    "undef": None,
    "obj": {"foo": "test", "bar": "test2", "baz": "test3"},
    "arr": [
        {"str1": "one", "str2": "two"},
        {"str1": "three", "str2": "four"},
    ],
}

MASK1 = {
    "str1": True,
    "str2": True,
    "num1": True,
    "nul1": True,
    "nul2": True,
    "obj": {"foo": True, "bar": True},
    "arr": [{"str1": True}],
}

MASK2 = {
    "str1": True,
    "num2": True,
    "nul2": True,
    "obj": {"_": True, "foo": False},
    "arr": [{"str2": True}],
}


class TestConstruction:
    """Test mask construction and normalization."""

    def test_array_wildcard_normalization(self):
        """Test single-element lists become wildcard nodes."""
        mask = ObjectMask({"foo": [{"bar": True}]})
        assert mask.to_tree() == {"foo": {"_": {"bar": True}}}

    def test_nested_array_wildcards(self):
        """Test normalization recurses into wildcard elements."""
        mask = new_mask({"_": [True]})
        assert mask.to_tree() == {"_": {"_": True}}

    def test_empty_array_denies_elements(self):
        """Test an empty list becomes a denying wildcard."""
        mask = ObjectMask({"foo": []})
        assert mask.to_tree() == {"foo": {"_": False}}

    def test_multi_element_array_rejected(self):
        """Test multi-element lists are rejected by default."""
        with pytest.raises(InvalidArgumentError) as exc_info:
            ObjectMask({"foo": [{"a": True}, {"b": True}]})
        assert exc_info.value.details["path"] == "foo"
        assert exc_info.value.details["length"] == 2

    def test_multi_element_array_first_policy(self):
        """Test the first-element policy keeps only the first element."""
        config = MaskConfig(array_policy=ArrayWildcardPolicy.FIRST)
        mask = ObjectMask({"foo": [{"a": True}, {"b": True}]}, config)
        assert mask.to_tree() == {"foo": {"_": {"a": True}}}

    def test_construction_copies_input(self):
        """Test the mask does not alias the raw tree it was built from."""
        raw = {"foo": {"bar": True}}
        mask = ObjectMask(raw)
        raw["foo"]["bar"] = False
        assert mask.to_tree() == {"foo": {"bar": True}}

    def test_keys_coerced_to_strings(self):
        """Test numeric keys become string keys."""
        mask = ObjectMask({"arr": {0: True}})
        assert mask.to_tree() == {"arr": {"0": True}}

    def test_default_mask_denies(self):
        """Test an empty constructor builds a denying mask."""
        assert ObjectMask().to_tree() is False

    def test_copy_is_independent(self):
        """Test copy() returns an unshared mask."""
        mask = ObjectMask({"foo": True})
        clone = mask.copy()
        clone.add_field("bar")
        assert mask.to_tree() == {"foo": True}
        assert clone.to_tree() == {"foo": True, "bar": True}

    def test_equality(self):
        """Test masks compare by tree."""
        assert ObjectMask({"a": True}) == ObjectMask({"a": True})
        assert ObjectMask({"a": True}) != ObjectMask({"a": 1})
        assert ObjectMask({"a": [True]}) == ObjectMask({"a": {"_": True}})


class TestValidate:
    """Test strict mask validation."""

    def test_boolean_masks_are_valid(self):
        """Test masks made of dicts and booleans validate."""
        assert ObjectMask(MASK1).validate() is True
        assert ObjectMask(MASK2).validate() is True
        assert ObjectMask(True).validate() is True

    def test_non_boolean_leaves_are_invalid(self):
        """Test other scalar leaves fail validation."""
        from datetime import datetime
        assert ObjectMask({"foo": datetime.now()}).validate() is False
        assert ObjectMask({"foo": {"bar": 5}}).validate() is False
        assert ObjectMask({"foo": None}).validate() is False

    def test_strict_config_rejects_invalid_masks(self):
        """Test strict mode validates at construction."""
        with pytest.raises(InvalidArgumentError):
            ObjectMask({"foo": 5}, MaskConfig(strict=True))

    def test_non_strict_accepts_invalid_masks(self):
        """Test malformed masks are accepted when not strict."""
        mask = ObjectMask({"foo": 5})
        assert mask.to_tree() == {"foo": 5}


class TestFieldLists:
    """Test masks built from field lists."""

    def test_create_mask_from_field_list(self):
        """Test field lists build a structured mask."""
        fields = ["foo", "bar.baz", "bar.baz.biz"]
        assert mask_from_field_list(fields).to_tree() == {
            "foo": True,
            "bar": {"baz": True},
        }

    def test_shorter_field_wins(self):
        """Test a shorter field is not replaced by a more specific one."""
        assert ObjectMask.from_field_list(["a", "a.b"]).to_tree() == {"a": True}
        assert ObjectMask.from_field_list(["a.b", "a"]).to_tree() == {"a": True}

    def test_field_list_allows_exactly_listed_paths(self):
        """Test the mask allows the listed leaves and nothing else."""
        mask = mask_from_field_list(["a.b", "c"])
        doc = {"a": {"b": 1, "x": 2}, "c": 3, "d": 4}
        assert mask.filter_object(doc) == {"a": {"b": 1}, "c": 3}
        assert mask.get_masked_out_fields(doc) == ["a.x", "d"]

    def test_field_list_with_wildcard_segment(self):
        """Test the wildcard segment can be used in field lists."""
        mask = mask_from_field_list(["items._.id"])
        assert mask.to_tree() == {"items": {"_": {"id": True}}}


class TestJSONPaths:
    """Test masks built from JSONPath expressions."""

    def test_fields_and_wildcards(self):
        """Test fields and [*] map onto mask keys and wildcards."""
        mask = mask_from_jsonpaths(["$.items[*].id", "$.name"])
        assert mask.to_tree() == {"items": {"_": {"id": True}}, "name": True}

    def test_star_field(self):
        """Test .* maps onto the wildcard."""
        mask = ObjectMask.from_jsonpaths(["$.meta.*"])
        assert mask.to_tree() == {"meta": {"_": True}}

    def test_index_combines_with_wildcard(self):
        """Test an explicit index inherits what the wildcard allows."""
        mask = mask_from_jsonpaths(["$.items[*].id", "$.items[0].name"])
        assert mask.to_tree() == {
            "items": {"_": {"id": True}, "0": {"id": True, "name": True}}
        }
        assert mask.check_path("items.0.name") is True
        assert mask.check_path("items.1.name") is False

    def test_unsupported_expressions(self):
        """Test descendants and bounded slices are rejected."""
        with pytest.raises(InvalidArgumentError):
            mask_from_jsonpaths(["$..name"])
        with pytest.raises(InvalidArgumentError):
            mask_from_jsonpaths(["$.items[1:3]"])

    def test_to_dotted(self):
        """Test expressions convert to dotted mask paths."""
        assert JSONPathConverter.to_dotted("$.items[0].id") == "items.0.id"
        assert JSONPathConverter.to_dotted("$.items[*].id") == "items._.id"

    def test_invalid_expression(self):
        """Test unparsable expressions are rejected."""
        with pytest.raises(InvalidArgumentError):
            mask_from_jsonpaths(["$.items[["])
        with pytest.raises(InvalidArgumentError):
            mask_from_jsonpaths(["$.a#b"])


class TestGetSubMask:
    """Test sub-mask lookup."""

    def setup_method(self):
        self.mask = ObjectMask({
            "obj": {"_": True, "foo": False},
            "arr": [{"str2": True}],
        })

    def test_gets_a_sub_mask(self):
        """Test a nested node is returned."""
        mask = ObjectMask({"foo": {"bar": {"baz": True}}})
        assert mask.get_sub_mask("foo").to_tree() == {"bar": {"baz": True}}

    def test_handles_wildcards(self):
        """Test unlisted keys fall back to the wildcard."""
        assert self.mask.get_sub_mask("obj.bar").mask is True
        assert self.mask.get_sub_mask("obj.foo").mask is False

    def test_stops_at_allowing_position(self):
        """Test everything below an allowed position is allowed."""
        assert self.mask.get_sub_mask("obj.bar.deep.deeper").mask is True

    def test_stops_at_denying_position(self):
        """Test everything below a denied position is denied."""
        assert self.mask.get_sub_mask("missing.deep").mask is False
        assert self.mask.get_sub_mask("obj.foo.deep").mask is False

    def test_sub_mask_is_a_copy(self):
        """Test modifying a sub-mask leaves the parent unchanged."""
        sub = self.mask.get_sub_mask("arr")
        sub.add_field("9.str1")
        assert self.mask.check_path("arr.9.str1") is False


class TestCheckPath:
    """Test path checks."""

    def setup_method(self):
        self.mask = ObjectMask({
            "obj": {"_": True, "foo": False},
            "arr": [{"str2": True}],
        })

    def test_checks_array_paths(self):
        """Test list indexes resolve through the wildcard."""
        assert self.mask.check_path("arr.8.str1") is False
        assert self.mask.check_path("arr.8.str2") is True

    def test_handles_wildcards(self):
        """Test wildcard and explicit keys."""
        assert self.mask.check_path("obj.bar.foo") is True
        assert self.mask.check_path("obj.foo.foo") is False

    def test_partial_node_is_not_allowed(self):
        """Test a partially allowed position does not pass."""
        assert self.mask.check_path("arr") is False
        assert self.mask.check_path("arr.0") is False

    def test_path_checks_do_not_build_sub_masks(self, monkeypatch):
        """Test path checks read the tree without copying sub-masks."""
        def fail(*args, **kwargs):
            raise AssertionError("sub-mask was built")

        monkeypatch.setattr("objtools.mask.normalize_tree", fail)
        assert self.mask.check_path("obj.bar") is True
        assert self.mask.filter_dotted_object({"obj.bar": 1, "obj.foo": 2}) == {"obj.bar": 1}
        assert self.mask.check_dotted_fields({"arr.3.str2": 1}) is True
        assert self.mask.get_dotted_masked_out_fields({"arr.3.str1": 1}) == ["arr.3.str1"]


class TestFilterObject:
    """Test structured document filtering."""

    def test_gets_matching_fields(self):
        """Test only allowed fields are kept."""
        mask = ObjectMask({
            "str1": True,
            "num1": True,
            "nul1": True,
            "obj": {"bar": True, "nonexist": True},
        })
        assert mask.filter_object(deep_copy(OBJ1)) == {
            "str1": "string",
            "num1": 1,
            "nul1": None,
            "obj": {"bar": "test2"},
        }

    def test_handles_arrays_and_wildcards(self):
        """Test lists keep their kind and wildcards apply to keys."""
        mask = ObjectMask({
            "obj": {"_": True, "bar": False},
            "arr": [{"str2": True}],
        })
        assert mask.filter_object(deep_copy(OBJ1)) == {
            "obj": {"foo": "test", "baz": "test3"},
            "arr": [{"str2": "two"}, {"str2": "four"}],
        }

    def test_wildcard_with_explicit_denial(self):
        """Test an explicit false overrides an allowing wildcard."""
        mask = ObjectMask({"obj": {"_": True, "foo": False}})
        assert mask.filter_object({"obj": {"foo": 1, "bar": 2}}) == {"obj": {"bar": 2}}

    def test_allowed_values_are_shared(self):
        """Test allowed subtrees are returned by reference."""
        doc = {"obj": {"foo": {"deep": 1}}, "other": 2}
        result = ObjectMask({"obj": True}).filter_object(doc)
        assert result["obj"] is doc["obj"]

    def test_scalar_value_under_node_mask(self):
        """Test a collection mask removes a scalar value."""
        mask = ObjectMask({"a": {"b": True}, "c": True})
        hook_paths = []
        result = mask.filter_object({"a": 5, "c": 1}, hook_paths.append)
        assert result == {"c": 1}
        assert hook_paths == ["a"]

    def test_whole_object_masked_out(self):
        """Test a denying mask removes everything."""
        hook_paths = []
        assert ObjectMask(False).filter_object({"a": 1}, hook_paths.append) is None
        assert hook_paths == [""]

    def test_present_but_empty(self):
        """Test containers with no allowed children stay as empty containers."""
        mask = ObjectMask({"obj": {"nope": True}})
        assert mask.filter_object({"obj": {"foo": 1}}) == {"obj": {}}

    def test_malformed_leaf_masks_out(self):
        """Test non-boolean leaves deny."""
        mask = ObjectMask({"a": 1, "b": True})
        assert mask.filter_object({"a": "x", "b": "y"}) == {"b": "y"}

    def test_filtered_fields_pass_check_path(self):
        """Test every leaf of a filtered document is allowed by the mask."""
        mask = ObjectMask(MASK2)
        filtered = mask.filter_object(OBJ1)
        for path in collapse_to_dotted(filtered):
            assert mask.check_path(path), path

    def test_create_filter_func(self):
        """Test the filter function matches filter_object()."""
        func = ObjectMask(MASK1).create_filter_func()
        assert func(OBJ1) == {
            "str1": "string",
            "str2": "string2",
            "num1": 1,
            "nul1": None,
            "nul2": None,
            "obj": {"foo": "test", "bar": "test2"},
            "arr": [{"str1": "one"}, {"str1": "three"}],
        }


class TestMaskedOutFields:
    """Test masked out field reporting and field checks."""

    def test_get_masked_out_fields(self):
        """Test masked out paths are reported at their highest level."""
        fields = ObjectMask(MASK1).get_masked_out_fields(OBJ1)
        assert sorted(fields) == sorted([
            "num2",
            "undef",
            "obj.baz",
            "arr.0.str2",
            "arr.1.str2",
        ])

    def test_filter_dotted_object(self):
        """Test dotted mappings are filtered by path."""
        dotted = collapse_to_dotted(OBJ1)
        assert ObjectMask(MASK2).filter_dotted_object(dotted) == {
            "str1": "string",
            "num2": 2,
            "nul2": None,
            "obj.bar": "test2",
            "obj.baz": "test3",
            "arr.0.str2": "two",
            "arr.1.str2": "four",
        }

    def test_get_dotted_masked_out_fields(self):
        """Test dotted masked out paths are reported in order."""
        dotted = collapse_to_dotted(OBJ1)
        assert ObjectMask(MASK1).get_dotted_masked_out_fields(dotted) == [
            "num2",
            "undef",
            "obj.baz",
            "arr.0.str2",
            "arr.1.str2",
        ]

    def test_check_fields(self):
        """Test structured documents are checked field by field."""
        mask = ObjectMask(MASK1)
        assert mask.check_fields({"str1": 5}) is True
        assert mask.check_fields({"num2": 5}) is False
        assert mask.check_fields({"obj": {"foo": 5}}) is True
        assert mask.check_fields({"obj": {"baz": 5}}) is False

    def test_check_fields_agrees_with_masked_out_fields(self):
        """Test check_fields() is true exactly when nothing is masked out."""
        for mask in (ObjectMask(MASK1), ObjectMask(MASK2)):
            for doc in (OBJ1, {"str1": 1}, {"obj": {"foo": 1}}, {}):
                assert mask.check_fields(doc) == (not mask.get_masked_out_fields(doc))

    def test_check_dotted_fields(self):
        """Test dotted documents are checked path by path."""
        mask = ObjectMask(MASK1)
        assert mask.check_dotted_fields({"obj.foo": 5}) is True
        assert mask.check_dotted_fields({"obj.baz": 5}) is False


class TestAddField:
    """Test adding fields to a mask."""

    def test_does_not_affect_masks_that_already_match(self):
        """Test adding an allowed field changes nothing."""
        orig = ObjectMask({"foo": True})
        expected = orig.copy()
        assert orig.add_field("foo.bar") == expected

    def test_recurses_to_subfields(self):
        """Test intermediate nodes are created under a denied field."""
        orig = ObjectMask({"foo": False, "baz": True})
        expected = ObjectMask({"foo": {"bar": True}, "baz": True})
        assert orig.add_field("foo.bar") == expected

    def test_prunes_to_become_more_general(self):
        """Test adding a parent field replaces its node."""
        orig = ObjectMask({"foo": {"bar": True}})
        assert orig.add_field("foo") == ObjectMask({"foo": True})

    def test_does_not_become_more_restrictive(self):
        """Test adding under an allowing wildcard keeps other fields."""
        orig = ObjectMask({"_": True})
        should_pass = {"foo": {"baz": 1}}
        assert orig.check_fields(should_pass) is True
        assert orig.add_field("foo.bar").check_fields(should_pass) is True

    def test_branches_node_wildcards(self):
        """Test a wildcard node is copied into the new explicit key."""
        orig = ObjectMask({"_": {"a": True}})
        orig.add_field("x.b")
        assert orig.to_tree() == {"_": {"a": True}, "x": {"a": True, "b": True}}
        assert orig.check_fields({"x": {"a": 1, "b": 2}, "y": {"a": 3}}) is True

    def test_returns_self(self):
        """Test add_field() supports chaining."""
        mask = ObjectMask()
        assert mask.add_field("a").add_field("b.c") is mask
        assert mask.to_tree() == {"a": True, "b": {"c": True}}


class TestRemoveField:
    """Test removing fields from a mask."""

    should_pass = {"foo": {"bar": {"foobar": True}}}
    should_also_pass = {"foo": {"biz": {"baz": True}}}
    should_fail = {"foo": {"bar": {"baz": True}}}

    def test_branches_wildcards(self):
        """Test the removed field gets its own copy of the wildcard."""
        orig = ObjectMask({"foo": {"_": {"baz": True, "foobar": True}}})
        expected = ObjectMask({"foo": {
            "bar": {"baz": False, "foobar": True},
            "_": {"baz": True, "foobar": True},
        }})
        assert orig.remove_field("foo.bar.baz").check_fields(self.should_pass) is True
        assert orig.remove_field("foo.bar.baz").check_fields(self.should_also_pass) is True
        assert orig.remove_field("foo.bar.baz").check_fields(self.should_fail) is False
        assert orig.remove_field("foo.bar.baz") == expected

    def test_doesnt_remove_other_fields(self):
        """Test siblings sharing the wildcard keep their permissions."""
        orig = ObjectMask({"foo": {"_": {"baz": True, "foobar": True}}})
        assert orig.check_fields(self.should_pass) is True
        assert orig.check_fields(self.should_also_pass) is True
        assert orig.check_fields(self.should_fail) is True
        orig.remove_field("foo.bar.baz")
        assert orig.check_fields(self.should_pass) is True
        assert orig.check_fields(self.should_also_pass) is True
        assert orig.check_fields(self.should_fail) is False

    def test_doesnt_match_new_fields(self):
        """Test branching does not allow anything new."""
        orig = ObjectMask({"_": {"bar": {"baz": True}}})
        should_fail = {"foo": {"bar": {"foobar": True}}}
        assert orig.check_fields(should_fail) is False
        assert orig.remove_field("foo.bar.baz").check_fields(should_fail) is False

    def test_throws_on_attempt_to_remove_wildcard(self):
        """Test removing the wildcard itself is rejected."""
        orig = ObjectMask({"_": [True]})
        with pytest.raises(InvalidArgumentError):
            orig.remove_field("_")
        with pytest.raises(InvalidArgumentError):
            orig.remove_field("foo._")

    def test_removing_denied_field_is_noop(self):
        """Test removing an already denied field changes nothing."""
        orig = ObjectMask({"a": True})
        assert orig.remove_field("b").to_tree() == {"a": True}

    def test_remove_from_allow_all(self):
        """Test a fully allowing mask becomes a wildcard with an exception."""
        mask = ObjectMask(True).remove_field("secret")
        assert mask.to_tree() == {"_": True, "secret": False}
        assert mask.check_fields({"a": 1}) is True
        assert mask.check_fields({"a": 1, "secret": 2}) is False

    def test_remove_partially_allowed_field(self):
        """Test a partially allowed node is denied outright."""
        mask = ObjectMask({"a": {"b": True}, "c": True}).remove_field("a")
        assert mask.check_path("a.b") is False
        assert mask.check_path("c") is True


class TestSubtractMaskInPlace:
    """Test the in-place subtract_mask() method."""

    def test_subtracts_a_mask(self):
        """Test the owned tree is replaced by the difference."""
        minuend = ObjectMask({
            "str1": True,
            "num1": True,
            "obj": {"_": True, "baz": False},
        })
        result = minuend.subtract_mask({"str1": True, "obj": {"quux": True}})
        assert result is minuend
        assert minuend.to_tree() == {
            "num1": True,
            "obj": {"_": True, "baz": False, "quux": False},
        }


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
