"""Тесты ResponseHandler."""

from typing import Dict, List

import pytest
from requests import Response
from requests.structures import CaseInsensitiveDict

from conftest import INSTANCE_ID, read_fixture
from triton_client.core.exceptions import REQUEST_ID_NOT_SET, DecodeError, ErrorKind, ResponseError
from triton_client.core.response_handler import HEADERS, NO_VALUE, ResponseHandler
from triton_client.models import Instance

REQUEST_ID = "00000000-0000-0000-0000-000000000000"


def make_response(status_code=200, body=b"", headers=None, reason=None):
    """Собрать requests.Response без сети."""
    response = Response()
    response.status_code = status_code
    response._content = body.encode("utf-8") if isinstance(body, str) else body
    response.headers = CaseInsensitiveDict(headers or {})
    response.reason = reason
    response.encoding = "utf-8"
    return response


def test_decode_typed_value():
    """Успешный статус декодируется в модель."""
    handler = ResponseHandler("find instance", Instance, 200)
    instance = handler.handle(make_response(200, read_fixture("instance.json")))

    assert isinstance(instance, Instance)
    assert str(instance.id) == INSTANCE_ID
    assert instance.state == "running"


def test_decode_list():
    handler = ResponseHandler("list instances", List[Instance], 200)
    instances = handler.handle(make_response(200, read_fixture("list_under_limit.json")))

    assert len(instances) == 2
    assert all(isinstance(item, Instance) for item in instances)


@pytest.mark.parametrize("target,fixture", [
    (Instance, "instance.json"),
    (List[Instance], "list_under_limit.json"),
])
def test_decoding_is_deterministic(target, fixture):
    """Один и тот же ответ декодируется в равные значения."""
    handler = ResponseHandler("decode", target, 200)

    first = handler.handle(make_response(200, read_fixture(fixture)))
    second = handler.handle(make_response(200, read_fixture(fixture)))

    assert first == second
    assert first is not second


def test_no_value_ignores_body():
    """NO_VALUE всегда даёт None."""
    handler = ResponseHandler("delete instance", NO_VALUE, 204)
    assert handler.handle(make_response(204, b"")) is None
    assert handler.handle(make_response(204, b"garbage")) is None


def test_headers_target():
    """HEADERS возвращает заголовки в нижнем регистре."""
    handler = ResponseHandler("count instances", HEADERS, 200, allow_empty=True)
    headers = handler.handle(make_response(200, b"", {"X-Resource-Count": "2"}))

    assert headers["x-resource-count"] == "2"


def test_envelope_has_status_and_headers():
    handler = ResponseHandler("tags", Dict[str, str], 200)
    envelope = handler.handle_envelope(
        make_response(200, '{"role": "test"}', {"X-Query-Limit": "1000"})
    )

    assert envelope.value == {"role": "test"}
    assert envelope.status_code == 200
    assert envelope.headers["x-query-limit"] == "1000"


def test_empty_body_allowed():
    handler = ResponseHandler("find instance", Instance, 200, allow_empty=True)
    assert handler.handle(make_response(200, b"")) is None


def test_empty_body_not_allowed():
    handler = ResponseHandler("create instance", Instance, 201)

    with pytest.raises(DecodeError) as exc_info:
        handler.handle(make_response(201, b""))

    assert exc_info.value.kind is ErrorKind.DECODE
    assert exc_info.value.get_context_value("statusCode") == 201


def test_decode_failure():
    """Тело не соответствует типу - DecodeError с телом в контексте."""
    handler = ResponseHandler("find instance", Instance, 200)

    with pytest.raises(DecodeError) as exc_info:
        handler.handle(make_response(200, '{"id": "not-a-uuid"}', {"request-id": REQUEST_ID}))

    error = exc_info.value
    assert "find instance" in error.message
    assert error.get_context_value("requestID") == REQUEST_ID
    assert error.get_context_value("entityText") == '{"id": "not-a-uuid"}'
    assert error.get_context_value("decodeError")
    assert error.cause is not None


def test_invalid_json():
    handler = ResponseHandler("find instance", Instance, 200)

    with pytest.raises(DecodeError):
        handler.handle(make_response(200, "<html>oops</html>"))


def test_absent_code_returns_none():
    handler = ResponseHandler("find instance", Instance, 200, allow_empty=True, absent_codes={404})

    envelope = handler.handle_envelope(make_response(404, read_fixture("error/not_found.json")))

    assert envelope.value is None
    assert envelope.status_code == 404


def test_rest_error_with_request_id():
    """Структурированная ошибка сервера."""
    handler = ResponseHandler("delete instance", NO_VALUE, 204)
    response = make_response(
        404, read_fixture("error/not_found.json"), {"request-id": REQUEST_ID}, reason="Not Found"
    )

    with pytest.raises(ResponseError) as exc_info:
        handler.handle(response)

    error = exc_info.value
    assert error.kind is ErrorKind.PROTOCOL
    assert error.status_code == 404
    assert error.server_code == "ResourceNotFound"
    assert error.message == (
        "Error processing response for operation [delete instance]: [ResourceNotFound] VM not found"
    )
    assert f"requestID={REQUEST_ID}" in str(error)
    assert error.get_context_value("reasonPhrase") == "Not Found"
    assert error.get_context_value("errorCode") == "ResourceNotFound"
    assert "errors" not in error.context


def test_rest_error_with_field_errors():
    handler = ResponseHandler("create instance", Instance, 201)
    response = make_response(409, read_fixture("error/bad_request.json"), reason="Conflict")

    with pytest.raises(ResponseError) as exc_info:
        handler.handle(response)

    errors = exc_info.value.get_context_value("errors")
    assert errors[0]["field"] == "package"
    assert exc_info.value.get_context_value("requestID") == REQUEST_ID_NOT_SET


def test_non_json_error_body():
    """Неструктурированная ошибка: текст тела попадает в контекст."""
    handler = ResponseHandler("list instances", List[Instance], 200)
    response = make_response(
        500, "I'm an error message", {"request-id": REQUEST_ID}, reason="Internal Server Error"
    )

    with pytest.raises(ResponseError) as exc_info:
        handler.handle(response)

    error = exc_info.value
    assert error.message == (
        "Error processing response for operation [list instances]: [500] Internal Server Error"
    )
    assert error.server_code is None
    assert "entityText=I'm an error message" in str(error)
    assert f"requestID={REQUEST_ID}" in str(error)


def test_empty_error_body():
    handler = ResponseHandler("count instances", HEADERS, 200, allow_empty=True)

    with pytest.raises(ResponseError) as exc_info:
        handler.handle(make_response(403, b"", reason="Forbidden"))

    assert exc_info.value.message.endswith("[403] Forbidden")


def test_unexpected_success_code_is_error():
    """2xx вне списка успешных - тоже ошибка."""
    handler = ResponseHandler("delete instance", NO_VALUE, 204)

    with pytest.raises(ResponseError):
        handler.handle(make_response(200, b"", reason="OK"))


@pytest.mark.parametrize("kwargs", [
    {"success_codes": ()},
    {"success_codes": (200, 404), "absent_codes": {404}},
])
def test_invalid_handler(kwargs):
    with pytest.raises(ValueError):
        ResponseHandler("bad", Instance, **kwargs)
