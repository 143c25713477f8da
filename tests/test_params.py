import pytest

from app.api.params import parse_int_param
from app.core.exceptions import BadRequestError


@pytest.mark.parametrize("value,expected", [("7", 7), ("0042", 42), ("-3", -3)])
def test_parse_int_param_accepts_plain_digits(value, expected):
    assert parse_int_param(value, "Invalid ID", "ID must be a number") == expected


@pytest.mark.parametrize("value", ["1_000", " 7 ", "7 ", "+7", "١٢", "1.0", "", "abc"])
def test_parse_int_param_rejects_loose_integers(value):
    with pytest.raises(BadRequestError) as exc_info:
        parse_int_param(value, "Invalid ID", "ID must be a number")
    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "ID must be a number"


@pytest.mark.parametrize("path", [
    "/api/testplans/1_000",
    "/api/testcases/1_000",
    "/api/builds/1_000/testresults",
    "/api/testplans/1_0/suites/2/testcases",
])
def test_routes_reject_underscored_ids(test_client, ado_stub, path):
    response = test_client.get(path)
    assert response.status_code == 400
    assert ado_stub.calls == []
