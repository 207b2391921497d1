import pydantic
import pytest

from ondc_core.schemas import (
    CallbackPayload,
    LookupRequest,
    OnSubscribeRequest,
    SelectRequest,
    validation_error_from,
)


def errors_of(model, data):
    with pytest.raises(pydantic.ValidationError) as exc:
        model.model_validate(data)
    return exc.value.errors()


def test_missing_field_is_named():
    err = validation_error_from(errors_of(LookupRequest, {"subscriber_id": "s", "country": "IND"}))
    assert err.status_code == 400
    assert err.field == "city"
    assert str(err) == "Missing required field: city"


@pytest.mark.parametrize("data", [{"challenge": 12345}, {"challenge": ["a"]}, {"challenge": ""}])
def test_challenge_must_be_non_empty_string(data):
    err = validation_error_from(errors_of(OnSubscribeRequest, data))
    assert err.field == "challenge"
    assert err.public_message == "Invalid field: challenge"


def test_nested_field_path():
    err = validation_error_from(errors_of(SelectRequest, {"order": {}, "context": {"bpp_uri": 5}}))
    assert err.field == "context.bpp_uri"


def test_callback_payload_requires_message():
    with pytest.raises(pydantic.ValidationError) as exc:
        CallbackPayload.model_validate_json(b'{"context":{"action":"on_search"}}')
    assert validation_error_from(exc.value.errors()).field == "message"


def test_callback_payload_keeps_extra_keys():
    payload = CallbackPayload.model_validate_json(b'{"context":{},"message":{},"error":{"code":"30000"}}')
    assert payload.model_dump()["error"] == {"code": "30000"}


def test_invalid_json_body():
    with pytest.raises(pydantic.ValidationError) as exc:
        CallbackPayload.model_validate_json(b"{not json")
    err = validation_error_from(exc.value.errors())
    assert err.field == "body"
    assert err.public_message == "Request body must be valid JSON"


def test_request_validation_loc_drops_body_prefix():
    err = validation_error_from([{"type": "missing", "loc": ("body", "intent"), "msg": "Field required"}])
    assert err.field == "intent"
    assert validation_error_from([]).field == "body"
