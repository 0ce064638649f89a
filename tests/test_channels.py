from ultron.channels.discord import MESSAGE_LIMIT, split_message


def test_short_message_is_one_chunk() -> None:
    assert split_message("hello") == ["hello"]


def test_empty_message_is_one_chunk() -> None:
    assert split_message("") == [""]


def test_long_message_splits_on_newlines() -> None:
    para = "x" * 1500
    chunks = split_message(f"{para}\n{para}")
    assert chunks == [para, para]


def test_long_message_splits_on_spaces() -> None:
    words = " ".join(["word"] * 1000)
    chunks = split_message(words)
    assert all(len(c) <= MESSAGE_LIMIT for c in chunks)
    assert " ".join(chunks) == words


def test_unbroken_text_is_hard_cut() -> None:
    text = "y" * (MESSAGE_LIMIT * 2 + 10)
    chunks = split_message(text)
    assert [len(c) for c in chunks] == [MESSAGE_LIMIT, MESSAGE_LIMIT, 10]
