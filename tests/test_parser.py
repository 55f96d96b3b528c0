from chatdigest.parser import parse_chat, parse_export, parse_message


def _msg(id, text="hello", **extra):
    data = {
        "id": id,
        "type": "message",
        "date": "2024-01-15T10:00:00",
        "date_unixtime": str(1705312800 + id),
        "from": "Alice",
        "from_id": "user4242",
        "text": text,
    }
    data.update(extra)
    return data


def test_parse_plain_message():
    msg = parse_message(_msg(7), chat_id=-100)

    assert msg.chat_id == -100
    assert msg.message_id == 7
    assert msg.timestamp == (1705312800 + 7) * 1000
    assert msg.user_id == 4242
    assert msg.username == "Alice"
    assert msg.text == "hello"
    assert msg.reply_to_message_id is None
    assert msg.forward_from_name is None


def test_rich_text_is_flattened():
    text = ["See ", {"type": "link", "text": "https://example.com"}, " please"]
    assert parse_message(_msg(1, text), -1).text == "See https://example.com please"


def test_reply_and_forward_fields():
    msg = parse_message(_msg(2, reply_to_message_id=1, forwarded_from="News Channel"), -1)

    assert msg.reply_to_message_id == 1
    assert msg.forward_from_name == "News Channel"


def test_captioned_photo_is_prefixed():
    msg = parse_message(_msg(3, "look at this", photo="photos/p.jpg"), -1)
    assert msg.text == "[Photo] look at this"


def test_skips_service_commands_and_empty():
    assert parse_message({"id": 1, "type": "service", "action": "pin_message"}, -1) is None
    assert parse_message(_msg(2, "/summary 2h"), -1) is None
    assert parse_message(_msg(3, ""), -1) is None
    assert parse_message(_msg(4, "", photo="photos/p.jpg"), -1) is None


def test_missing_sender_is_unknown():
    msg = parse_message(_msg(5, **{"from": None, "from_id": None}), -1)
    assert msg.username == "Unknown"
    assert msg.user_id == 0


def test_parse_chat_sorts_and_counts():
    chat = parse_chat({
        "id": -100,
        "name": "Team",
        "type": "private_supergroup",
        "messages": [_msg(2), _msg(1), {"id": 3, "type": "service"}],
    })

    assert chat.id == -100
    assert chat.title == "Team"
    assert chat.message_count == 2
    assert [m.message_id for m in chat.messages] == [1, 2]


def test_parse_chat_without_text_messages_is_skipped():
    assert parse_chat({"id": 1, "name": "Quiet", "messages": [{"id": 1, "type": "service"}]}) is None
    assert parse_chat({"name": "Broken"}) is None


def test_parse_full_account_export():
    data = {
        "chats": {
            "list": [
                {"id": 1, "name": "A", "messages": [_msg(1)]},
                {"id": 2, "name": "B", "messages": []},
                {"id": 3, "name": "C", "messages": [_msg(1), _msg(2)]},
            ]
        }
    }

    chats = parse_export(data)

    assert [c.title for c in chats] == ["A", "C"]


def test_parse_single_chat_export():
    chats = parse_export({"id": 9, "name": "Solo", "messages": [_msg(1)]})
    assert len(chats) == 1
    assert chats[0].id == 9


def test_bad_chat_does_not_abort_export():
    data = {"chats": {"list": [
        {"id": "not-a-number", "name": "Bad", "messages": [_msg(1)]},
        {"id": 2, "name": "Good", "messages": [_msg(1)]},
    ]}}

    chats = parse_export(data)

    assert [c.title for c in chats] == ["Good"]
