from datetime import timedelta

from honeymoon_ai.algorithms.session_grouper import SessionGrouper, flatten_chats


def test_empty_history_gives_no_chats():
    assert SessionGrouper().group([]) == []


def test_gap_over_an_hour_starts_new_chat(make_message):
    grouper = SessionGrouper(gap=timedelta(minutes=60))
    history = [make_message("user", "first", 0), make_message("user", "second", 61)]

    chats = grouper.group(history)

    assert len(chats) == 2
    assert [c.messages[0].content for c in chats] == ["first", "second"]


def test_gap_under_an_hour_stays_in_same_chat(make_message):
    grouper = SessionGrouper(gap=timedelta(minutes=60))
    history = [make_message("user", "first", 0), make_message("user", "second", 59)]

    assert len(grouper.group(history)) == 1


def test_assistant_to_user_transition_splits(make_message):
    history = [
        make_message("user", "Hi", 0),
        make_message("assistant", "Hello!", 1),
        make_message("user", "Paris?", 2),
        make_message("assistant", "Great choice", 3),
    ]

    chats = SessionGrouper(split_on_role_transition=True).group(history)

    assert [len(c.messages) for c in chats] == [2, 2]


def test_role_transition_split_can_be_disabled(make_message):
    history = [
        make_message("user", "Hi", 0),
        make_message("assistant", "Hello!", 1),
        make_message("user", "Paris?", 2),
    ]

    chats = SessionGrouper(split_on_role_transition=False).group(history)

    assert len(chats) == 1


def test_unordered_input_is_sorted(make_message):
    history = [make_message("assistant", "reply", 1), make_message("user", "question", 0)]

    chats = SessionGrouper().group(history)

    assert [m.content for m in chats[0].messages] == ["question", "reply"]


def test_regrouping_flattened_output_is_stable(make_message):
    history = [
        make_message("user", "Merhaba", 0),
        make_message("assistant", "Hoş geldiniz", 1),
        make_message("user", "Santorini nasıl?", 5),
        make_message("assistant", "Harika", 6),
        make_message("user", "Peki ya Bali?", 200),
    ]
    grouper = SessionGrouper()

    first = grouper.group(history, "sess-1")
    second = grouper.group(flatten_chats(first), "sess-1")

    assert [c.id for c in first] == [c.id for c in second]
    assert [[m.id for m in c.messages] for c in first] == [[m.id for m in c.messages] for c in second]


def test_chat_metadata(make_message, base_time):
    long_text = "We would love a quiet honeymoon somewhere warm with great food and sunsets"
    history = [make_message("user", long_text, 0), make_message("assistant", "Noted!", 1)]

    chat = SessionGrouper().group(history, "sess-9")[0]

    assert chat.id == f"chat-{int(base_time.timestamp() * 1000)}-0"
    assert len(chat.title) == 50
    assert chat.title.endswith("...")
    assert chat.last_message_preview == "Noted!"
    assert chat.session_id == "sess-9"


def test_chat_without_user_message_gets_numbered_title(make_message):
    chats = SessionGrouper().group([make_message("assistant", "Welcome back", 0)])

    assert chats[0].title == "Chat 1"
