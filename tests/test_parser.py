import pytest

from ftpclient.core.errors import ProtocolError
from ftpclient.core.parser import (
    ReplyParser,
    parse_directory,
    parse_listing,
    parse_pasv_address,
)
from ftpclient.core.response import FtpStatus, Response

MULTILINE = (
    b"230-Hello\r\n"
    b"200-still talking\r\n"
    b"230-more\r\n"
    b"  indented text\r\n"
    b"230 Done\r\n"
)


def parse_all(*chunks):
    parser = ReplyParser()
    replies = []
    for chunk in chunks:
        parser.feed(chunk)
        while True:
            reply = parser.next_reply()
            if reply is None:
                break
            replies.append(reply)
    return replies, parser


class TestReplyParser:

    def test_single_line(self):
        replies, parser = parse_all(b"220 Service ready\r\n")
        assert len(replies) == 1
        assert replies[0].status is FtpStatus.SERVICE_READY
        assert replies[0].message == "Service ready"
        assert replies[0].lines == ("220 Service ready",)
        assert parser.buffer == bytearray()

    def test_incomplete_line_waits_for_more(self):
        parser = ReplyParser()
        parser.feed(b"220 Service re")
        assert parser.next_reply() is None
        parser.feed(b"ady\r\n")
        assert parser.next_reply().message == "Service ready"

    def test_multiline_needs_matching_code_and_space(self):
        parser = ReplyParser()
        parser.feed(b"230-Hello\r\n200-still talking\r\n")
        assert parser.next_reply() is None
        parser.feed(b"200 not the end either\r\n")
        assert parser.next_reply() is None
        parser.feed(b"230 Done\r\n")
        reply = parser.next_reply()
        assert reply.status == 230
        assert reply.message == "Hello\n200-still talking\n200 not the end either\nDone"

    def test_multiline_keeps_every_line_in_order(self):
        (reply,), _ = parse_all(MULTILINE)
        assert reply.lines == (
            "230-Hello",
            "200-still talking",
            "230-more",
            "  indented text",
            "230 Done",
        )
        assert reply.message == "Hello\n200-still talking\n230-more\n  indented text\nDone"

    @pytest.mark.parametrize("size", [1, 2, 3, 5, 7, 16])
    def test_fragmentation_does_not_change_result(self, size):
        data = MULTILINE + b"331 Need password\r\n"
        whole, _ = parse_all(data)
        chunks = [data[i:i + size] for i in range(0, len(data), size)]
        pieces, _ = parse_all(*chunks)
        assert [(r.status, r.message) for r in pieces] == [(r.status, r.message) for r in whole]
        assert len(pieces) == 2

    def test_two_replies_in_one_chunk(self):
        replies, _ = parse_all(b"200 Type set\r\n227 Entering Passive Mode (1,2,3,4,5,6)\r\n")
        assert [r.status for r in replies] == [200, 227]

    def test_bare_lf_terminates_lines(self):
        (reply,), _ = parse_all(b"250-first\nmiddle\n250 last\n")
        assert reply.status == 250
        assert reply.message == "first\nmiddle\nlast"

    def test_bare_code(self):
        (reply,), _ = parse_all(b"200\r\n")
        assert reply.status == 200
        assert reply.message == ""

    def test_unknown_code_keeps_literal(self):
        (reply,), _ = parse_all(b"299 Something custom\r\n")
        assert reply.status == 299
        assert reply.is_success

    @pytest.mark.parametrize("line", [b"garbage here\r\n", b"12 short\r\n", b"2000 too long\r\n", b"\r\n"])
    def test_garbage_is_invalid_response(self, line):
        (reply,), parser = parse_all(line)
        assert reply.status == FtpStatus.INVALID_RESPONSE
        assert not reply.is_success
        assert parser.buffer == bytearray()

    def test_garbage_does_not_swallow_following_reply(self):
        replies, _ = parse_all(b"hello?\r\n200 OK\r\n")
        assert [r.status for r in replies] == [FtpStatus.INVALID_RESPONSE, 200]

    def test_invalid_utf8_is_replaced(self):
        (reply,), _ = parse_all(b"550 No such file: caf\xe9\r\n")
        assert reply.status == 550
        assert reply.message.startswith("No such file: caf")

    def test_reset_drops_partial_data(self):
        parser = ReplyParser()
        parser.feed(b"230-Hello\r\n")
        parser.reset()
        parser.feed(b"200 OK\r\n")
        assert parser.next_reply().status == 200


class TestPasvAddress:

    def test_parenthesised(self):
        assert parse_pasv_address("Entering Passive Mode (192,168,1,10,19,136).") == ("192.168.1.10", 5000)

    def test_without_parentheses(self):
        assert parse_pasv_address("Entering Passive Mode 10,0,0,1,4,1") == ("10.0.0.1", 1025)

    def test_with_leading_code(self):
        assert parse_pasv_address("227 Entering Passive Mode 127,0,0,1,195,80") == ("127.0.0.1", 50000)

    def test_spaces_between_numbers(self):
        assert parse_pasv_address("=(127, 0, 0, 1, 0, 21)") == ("127.0.0.1", 21)

    @pytest.mark.parametrize("message", [
        "Entering Passive Mode",
        "Entering Passive Mode (192,168,1,10,19)",
        "Entering Passive Mode (300,168,1,10,19,136)",
    ])
    def test_malformed(self, message):
        with pytest.raises(ProtocolError):
            parse_pasv_address(message)


class TestDecoders:

    def test_directory_from_pwd(self):
        response = Response(257, '"/home/user" is the current directory.')
        assert parse_directory(response) == "/home/user"

    def test_directory_with_doubled_quotes(self):
        response = Response(257, '"/say ""hi""" created')
        assert parse_directory(response) == '/say "hi"'

    def test_directory_without_quotes(self):
        assert parse_directory(Response(257, "/home/user")) == ""

    def test_directory_ignored_on_failure(self):
        assert parse_directory(Response(550, '"/nope" not allowed')) == ""

    def test_listing_keeps_order_and_text(self):
        payload = b"..\r\n.\r\nzeta/\r\nAlpha\r\n"
        assert parse_listing(payload) == ("..", ".", "zeta/", "Alpha")

    def test_listing_accepts_lf(self):
        assert parse_listing(b"a\nb\n") == ("a", "b")

    def test_listing_without_trailing_newline(self):
        assert parse_listing(b"a\r\nb") == ("a", "b")

    def test_listing_only_drops_one_trailing_empty_line(self):
        assert parse_listing(b"a\r\n\r\n") == ("a", "")

    def test_empty_listing(self):
        assert parse_listing(b"") == ()
