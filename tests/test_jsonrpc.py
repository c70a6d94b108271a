import pytest

from general_mcp.jsonrpc import (
    RequestBuilder,
    is_full_request,
    notification,
    parse_payloads,
    prepare_request,
)


def test_build_stamps_envelope_and_first_id():
    builder = RequestBuilder()

    assert builder.build("ping") == {"jsonrpc": "2.0", "id": 1, "method": "ping"}
    assert builder.build("tools/call", {"name": "x"}) == {
        "jsonrpc": "2.0",
        "id": 2,
        "method": "tools/call",
        "params": {"name": "x"},
    }


def test_ids_strictly_increase():
    builder = RequestBuilder()
    ids = [builder.build("m")["id"] for _ in range(200)]

    assert ids == list(range(1, 201))


def test_builders_do_not_share_a_counter():
    a, b = RequestBuilder(), RequestBuilder()
    a.build("m")
    a.build("m")

    assert b.build("m")["id"] == 1
    assert a.build("m")["id"] == 3


def test_notification_has_no_id():
    assert notification("notifications/initialized") == {
        "jsonrpc": "2.0",
        "method": "notifications/initialized",
    }


def test_parse_single_object_and_array():
    assert parse_payloads('{"method": "ping"}') == [{"method": "ping"}]
    assert parse_payloads('[{"method": "a"}, {"method": "b"}]') == [
        {"method": "a"},
        {"method": "b"},
    ]


def test_parse_json_lines():
    text = '{"method": "a"}\n\n  {"method": "b", "params": [1]}\n'

    assert parse_payloads(text) == [{"method": "a"}, {"method": "b", "params": [1]}]


def test_parse_rejects_bad_input():
    with pytest.raises(ValueError, match="line 2"):
        parse_payloads('{"method": "a"}\nnot json\n')
    with pytest.raises(ValueError, match="JSON object"):
        parse_payloads("[1, 2]")


def test_prepare_request_passes_full_requests_through():
    builder = RequestBuilder()
    full = {"jsonrpc": "2.0", "id": 42, "method": "ping"}

    assert is_full_request(full)
    assert prepare_request(builder, full) is full
    assert prepare_request(builder, {"method": "ping", "id": 7}) == {
        "jsonrpc": "2.0",
        "id": 1,
        "method": "ping",
    }
