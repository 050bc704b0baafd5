"""Tests for list-operation classification."""

from duhgen.classifier import (
    classify,
    classify_operation,
    fetcher_name,
    first_array_field,
    has_offset_property,
    method_mentions_list,
)
from duhgen.extractor import extract_operations


def _list_op(spec):
    return next(op for op in extract_operations(spec) if op.path == "/v1/users.list")


class TestClassify:
    """Test the full three-criteria heuristic."""

    def test_users_list(self, users_spec):
        list_ops = classify(users_spec, extract_operations(users_spec))
        assert len(list_ops) == 1
        op = list_ops[0]
        assert op.method_name == "UsersList"
        assert op.const_name == "RPCUsersList"
        assert op.iterator_name == "UsersListIter"
        assert op.fetcher_name == "UserPageFetcher"
        assert op.item_type == "UserResponse"
        assert op.response_field == "Users"

    def test_keeps_operation_fields(self, users_spec):
        op = classify_operation(users_spec, _list_op(users_spec))
        assert op.request_type == "ListUsersRequest"
        assert op.response_type == "ListUsersResponse"
        assert op.summary == "List users"

    def test_no_list_ops(self, products_spec):
        assert classify(products_spec, extract_operations(products_spec)) == []

    def test_method_without_list(self, users_spec):
        users_spec["paths"]["/v1/users.search"] = users_spec["paths"].pop("/v1/users.list")
        assert classify(users_spec, extract_operations(users_spec)) == []

    def test_request_without_offset(self, users_spec):
        del users_spec["components"]["schemas"]["ListUsersRequest"]["properties"]["offset"]
        assert classify(users_spec, extract_operations(users_spec)) == []

    def test_response_without_array_of_refs(self, users_spec):
        users_spec["components"]["schemas"]["ListUsersResponse"]["properties"]["users"] = {
            "type": "array", "items": {"type": "string"},
        }
        assert classify(users_spec, extract_operations(users_spec)) == []

    def test_first_array_field_in_declared_order(self, users_spec, ref):
        props = users_spec["components"]["schemas"]["ListUsersResponse"]["properties"]
        props["admins"] = {"type": "array", "items": ref("AdminResponse")}
        op = classify_operation(users_spec, _list_op(users_spec))
        assert op.response_field == "Users"
        assert op.item_type == "UserResponse"

    def test_reordering_changes_choice(self, users_spec, ref):
        schema = users_spec["components"]["schemas"]["ListUsersResponse"]
        schema["properties"] = {
            "admins": {"type": "array", "items": ref("AdminResponse")},
            **schema["properties"],
        }
        op = classify_operation(users_spec, _list_op(users_spec))
        assert op.response_field == "Admins"
        assert op.item_type == "AdminResponse"
        assert op.fetcher_name == "AdminPageFetcher"

    def test_uppercase_list_and_offset(self, users_spec):
        users_spec["paths"]["/v1/users.LIST-all"] = users_spec["paths"].pop("/v1/users.list")
        req = users_spec["components"]["schemas"]["ListUsersRequest"]
        req["properties"] = {"Offset": {"type": "integer"}}
        list_ops = classify(users_spec, extract_operations(users_spec))
        assert [op.iterator_name for op in list_ops] == ["UsersLISTAllIter"]

    def test_referenced_component_alias(self, users_spec, ref):
        """A component that is itself a $ref is followed."""
        schemas = users_spec["components"]["schemas"]
        schemas["PagedUsersRequest"] = schemas.pop("ListUsersRequest")
        schemas["ListUsersRequest"] = ref("PagedUsersRequest")
        assert len(classify(users_spec, extract_operations(users_spec))) == 1

    def test_missing_component(self, users_spec):
        del users_spec["components"]["schemas"]["ListUsersResponse"]
        assert classify(users_spec, extract_operations(users_spec)) == []


class TestPredicates:
    def test_method_mentions_list(self):
        assert method_mentions_list("/v1/users.list")
        assert method_mentions_list("/v1/users.list-active")
        assert method_mentions_list("/v1/users.ListAll")
        assert not method_mentions_list("/v1/lists.get")
        assert not method_mentions_list("not-a-path")

    def test_has_offset_property(self):
        assert has_offset_property({"properties": {"offset": {}}})
        assert has_offset_property({"properties": {"OFFSET": {}}})
        assert not has_offset_property({"properties": {"page_offset": {}}})
        assert not has_offset_property({"type": "object"})
        assert not has_offset_property(None)

    def test_first_array_field(self, ref):
        schema = {
            "properties": {
                "count": {"type": "integer"},
                "tags": {"type": "array", "items": {"type": "string"}},
                "items": {"type": "array", "items": ref("ItemResponse")},
                "others": {"type": "array", "items": ref("OtherResponse")},
            }
        }
        assert first_array_field(schema) == ("items", "ItemResponse")

    def test_first_array_field_openapi_31_type_list(self, ref):
        schema = {"properties": {"rows": {"type": ["array", "null"], "items": ref("Row")}}}
        assert first_array_field(schema) == ("rows", "Row")

    def test_first_array_field_none(self):
        assert first_array_field({"properties": {}}) is None
        assert first_array_field(None) is None

    def test_fetcher_name(self):
        assert fetcher_name("UserResponse") == "UserPageFetcher"
        assert fetcher_name("User") == "UserPageFetcher"
        assert fetcher_name("ResponseResponse") == "ResponsePageFetcher"
