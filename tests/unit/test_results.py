import pytest

from sfdash.exceptions import ApiError
from sfdash.results import QueryResult, ResponseClassifier, SObject
from sfdash.tags import KeyNormalizer


@pytest.fixture
def raw():
    return ResponseClassifier(KeyNormalizer("raw"))


@pytest.fixture
def normalized():
    return ResponseClassifier(KeyNormalizer())


def test_non_dict_results_pass_through(raw):
    assert raw.classify("2016-01-01T00:00:00.000Z") == "2016-01-01T00:00:00.000Z"
    assert raw.classify(None) is None
    assert raw.classify([{"a": 1}]) == [{"a": 1}]


def test_failure_raises_api_error(raw):
    with pytest.raises(ApiError) as exc_info:
        raw.classify({"success": False, "errors": {"statusCode": "DUPLICATE", "message": "dup"}})

    assert str(exc_info.value) == "DUPLICATE: dup"
    assert exc_info.value.code == "DUPLICATE"
    assert exc_info.value.message == "dup"


def test_failure_in_normalized_style_uses_first_error(normalized):
    node = {
        "success": False,
        "errors": [
            {"status_code": "REQUIRED_FIELD_MISSING", "message": "LastName"},
            {"status_code": "OTHER", "message": "ignored"},
        ],
    }
    with pytest.raises(ApiError, match="REQUIRED_FIELD_MISSING: LastName"):
        normalized.classify(node)


def test_failure_wins_over_type_discriminator(raw):
    node = {
        "@xsi:type": "sf:sObject",
        "success": False,
        "errors": {"statusCode": "INVALID_ID", "message": "bad id"},
    }
    with pytest.raises(ApiError):
        raw.classify(node)


def test_success_true_is_plain(raw):
    node = {"id": "001", "success": True, "errors": None}
    assert raw.classify(node) == node


def test_sobject_type_wraps_record(raw):
    node = {"@xsi:type": "sf:sObject", "type": "Contact", "Id": ["003A", "003A"], "LastName": "Smith"}

    record = raw.classify(node)

    assert isinstance(record, SObject)
    assert record.type == "Contact"
    assert record.id == "003A"
    assert record["LastName"] == "Smith"


def test_query_result_wraps_records(raw):
    node = {
        "@xsi:type": "QueryResult",
        "done": False,
        "queryLocator": "01gD0000002HU6KIAW-2000",
        "size": "3",
        "records": [
            {"@xsi:type": "sf:sObject", "type": "Account", "Id": "001A"},
            {"@xsi:type": "sf:sObject", "type": "Account", "Id": "001B"},
        ],
    }

    result = raw.classify(node)

    assert isinstance(result, QueryResult)
    assert result.done is False
    assert result.size == 3
    assert result.query_locator == "01gD0000002HU6KIAW-2000"
    assert [r.id for r in result] == ["001A", "001B"]
    assert all(isinstance(r, SObject) for r in result.records)
    assert result.first().id == "001A"


def test_query_result_single_and_empty(normalized):
    single = normalized.classify(
        {"@xsi:type": "QueryResult", "done": True, "size": "1", "records": {"type": "Organization", "id": "00D"}}
    )
    assert len(single) == 1
    assert single.first().id == "00D"

    empty = normalized.classify({"@xsi:type": "QueryResult", "done": True, "size": "0"})
    assert empty == []
    assert empty.size == 0
    assert empty.first() is None
    assert empty.query_locator is None


def test_unknown_type_is_returned_unchanged(raw):
    node = {"@xsi:type": "DescribeGlobalResult", "sobjects": []}
    assert raw.classify(node) is node
