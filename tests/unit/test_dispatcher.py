from unittest.mock import MagicMock

import pytest
from zeep.exceptions import Fault

from sfdash.dispatcher import SoapDispatcher
from sfdash.exceptions import ApiError
from sfdash.results import QueryResult
from sfdash.tags import KeyNormalizer


def make_dispatcher(tree, style="normalized"):
    transport = MagicMock()
    transport.call.return_value = tree
    return SoapDispatcher(transport, KeyNormalizer(style)), transport


def test_snake_case_operation_is_sent_in_wire_form():
    dispatcher, transport = make_dispatcher({"getUserInfoResponse": {"result": {"userName": "me"}}})

    result = dispatcher.call("get_user_info")

    transport.call.assert_called_once_with("getUserInfo", {})
    assert result == {"user_name": "me"}


def test_raw_style_keeps_wire_names():
    dispatcher, _ = make_dispatcher(
        {"describeSObjectResponse": {"result": {"name": "Account", "keyPrefix": "001"}}}, style="raw"
    )

    assert dispatcher.call("describe_s_object", {"sObjectType": "Account"}) == {
        "name": "Account",
        "keyPrefix": "001",
    }


def test_missing_body_or_result_gives_none():
    dispatcher, transport = make_dispatcher({"somethingElse": {}})
    assert dispatcher.call("logout") is None

    transport.call.return_value = {"logoutResponse": None}
    assert dispatcher.call("logout") is None

    transport.call.return_value = {"logoutResponse": {}}
    assert dispatcher.call("logout") is None


def test_result_is_classified():
    dispatcher, _ = make_dispatcher(
        {
            "queryResponse": {
                "result": {
                    "@xsi:type": "QueryResult",
                    "done": True,
                    "size": "1",
                    "records": {"@xsi:type": "sf:sObject", "type": "Account", "Id": "001A"},
                }
            }
        }
    )

    result = dispatcher.call("query", {"queryString": "SELECT Id FROM Account"})

    assert isinstance(result, QueryResult)
    assert result.first().id == "001A"


def test_remote_failure_becomes_api_error():
    dispatcher, _ = make_dispatcher(
        {"deleteResponse": {"result": {"success": False, "errors": {"statusCode": "ENTITY_IS_DELETED", "message": "gone"}}}}
    )

    with pytest.raises(ApiError, match="ENTITY_IS_DELETED: gone"):
        dispatcher.call("delete", {"ids": ["001A"]})


def test_transport_errors_pass_through_unchanged():
    dispatcher, transport = make_dispatcher({})
    fault = Fault("INVALID_SESSION_ID: Invalid Session ID", code="sf:INVALID_SESSION_ID")
    transport.call.side_effect = fault

    with pytest.raises(Fault) as exc_info:
        dispatcher.call("query", {"queryString": "SELECT Id FROM Account"})

    assert exc_info.value is fault
