import json

from action_relay.protocol.framing import MessageFramer, encode_message, make_notification, make_request


def test_messages_split_across_chunks():
    framer = MessageFramer()

    assert framer.feed(b'{"id": 1, "res') == []
    assert framer.pending == b'{"id": 1, "res'
    assert framer.feed(b'ult": {}}\n{"id": 2}\n{"id"') == [{"id": 1, "result": {}}, {"id": 2}]
    assert framer.pending == b'{"id"'


def test_blank_and_garbage_lines_are_skipped():
    framer = MessageFramer()

    messages = framer.feed(b'\n  \nnot json\n[1,2]\n{"ok": true}\r\n')

    assert messages == [{"ok": True}]


def test_oversized_partial_line_is_discarded():
    framer = MessageFramer(max_buffer_bytes=8)

    framer.feed(b"x" * 20)

    assert framer.pending == b""


def test_encode_message_is_one_line():
    encoded = encode_message({"text": "a\nb", "n": "é"})

    assert encoded.endswith(b"\n")
    assert encoded.count(b"\n") == 1
    assert json.loads(encoded) == {"text": "a\nb", "n": "é"}


def test_request_and_notification_shapes():
    assert make_request(3, "tools/list", {}) == {"jsonrpc": "2.0", "id": 3, "method": "tools/list", "params": {}}
    assert make_notification("notifications/initialized") == {
        "jsonrpc": "2.0",
        "method": "notifications/initialized",
    }
