from domainanalyzer.api.sse import DEFAULT_EVENT, ServerSentEvent, parse_sse_lines


def parse(text):
    return list(parse_sse_lines(text.split("\n")))


def test_named_event():
    events = parse('event: progress\ndata: {"phase": "community_mining", "progress": 20}\n\n')
    assert events == [ServerSentEvent(event="progress", data='{"phase": "community_mining", "progress": 20}')]
    assert events[0].json() == {"phase": "community_mining", "progress": 20}


def test_unnamed_event_defaults_to_message():
    events = parse('data: {"type": "complete"}\n\n')
    assert events[0].event == DEFAULT_EVENT


def test_multiline_data_is_joined():
    events = parse("data: first\ndata: second\n\n")
    assert events[0].data == "first\nsecond"


def test_comments_and_unknown_fields_are_ignored():
    events = parse(": keep-alive\nfoo: bar\nevent: complete\ndata: {}\n\n")
    assert [e.event for e in events] == ["complete"]


def test_event_without_data_is_not_dispatched():
    assert parse("event: progress\n\nevent: complete\ndata: {}\n\n") == [
        ServerSentEvent(event="complete", data="{}")
    ]


def test_event_name_does_not_leak_into_next_event():
    events = parse("event: error\ndata: {}\n\ndata: {}\n\n")
    assert [e.event for e in events] == ["error", DEFAULT_EVENT]


def test_id_and_retry():
    events = parse("id: 7\nretry: 3000\ndata: x\n\ndata: y\n\n")
    assert events[0].id == "7"
    assert events[0].retry == 3000
    assert events[1].id == "7"


def test_value_without_space_and_crlf():
    events = list(parse_sse_lines(["data:{}\r", "\r"]))
    assert events == [ServerSentEvent(data="{}")]


def test_bytes_lines():
    events = list(parse_sse_lines([b"event: complete", b"data: {}", b""]))
    assert events[0].event == "complete"


def test_pending_event_flushed_at_end_of_stream():
    events = list(parse_sse_lines(["event: complete", "data: {}"]))
    assert events == [ServerSentEvent(event="complete", data="{}")]


def test_empty_data_decodes_to_empty_dict():
    assert ServerSentEvent(data="").json() == {}
