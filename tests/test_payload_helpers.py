from opensdk.runtime.payload import (
    ValueKind,
    classify,
    extract_data,
    find_value_by_hints,
    get_description,
    get_errcode,
    has_visible_data,
    pick_one,
)


def test_classify():
    assert classify(None) is ValueKind.NULL
    assert classify({"a": 1}) is ValueKind.MAPPING
    assert classify([1]) is ValueKind.SEQUENCE
    assert classify((1,)) is ValueKind.SEQUENCE
    assert classify("abc") is ValueKind.SCALAR
    assert classify(b"abc") is ValueKind.SCALAR
    assert classify(0) is ValueKind.SCALAR


def test_pick_one_keeps_falsy_non_empty_values():
    assert pick_one(None, "", 0, 5) == 0
    assert pick_one(None, "") is None
    assert pick_one(False, "x") is False


def test_get_errcode_reads_integer_codes_only():
    assert get_errcode({"errcode": 0, "code": 5}) == 0
    assert get_errcode({"code": 1001}) == 1001
    assert get_errcode({"data": {"errcode": 7}}) == 7
    assert get_errcode({"errcode": "0"}) is None
    assert get_errcode({"errcode": True}) is None
    assert get_errcode("plain text") is None


def test_get_description():
    assert get_description({"description": "dup", "message": "m"}) == "dup"
    assert get_description({"data": {"message": "inner"}}) == "inner"
    assert get_description({}) == ""


def test_extract_data_order():
    assert extract_data({"data": {"data": {"id": 1}, "list": [2]}}) == {"id": 1}
    assert extract_data({"data": {"list": [2], "rows": [3]}}) == [2]
    assert extract_data({"data": {"rows": [3]}}) == [3]
    assert extract_data({"data": {"id": 4}}) == {"id": 4}
    assert extract_data({"id": 5}) == {"id": 5}
    assert extract_data([1, 2]) == [1, 2]


def test_has_visible_data():
    assert has_visible_data({"data": {"rows": [{"id": 1}]}})
    assert not has_visible_data({"data": {"rows": []}})
    assert not has_visible_data({"data": {}})
    assert not has_visible_data(None)
    assert not has_visible_data("")
    assert has_visible_data("ok")


def test_find_value_by_hints_ignores_booleans_and_key_case():
    assert find_value_by_hints({"Number": True, "inner": {"BILLNO": 12}}, ["number", "billno"]) == "12"
    assert find_value_by_hints([{"单号": "D-1"}], ["单号"]) == "D-1"
    assert find_value_by_hints("scalar", ["number"]) is None
