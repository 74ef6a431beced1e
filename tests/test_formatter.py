import pytest

from kvtap.formatter import (backslashify, describe_address,
                             describe_connection, describe_header)
from kvtap.models import (ConnectionDescriptor, Endpoint, MessageHeader,
                          UNKNOWN)

SERVER = Endpoint.from_ip("10.0.0.1", 11211)
CLIENT = Endpoint.from_ip("10.0.0.2", 52100)
EMPTY = Endpoint()


class TestBackslashify:
    def test_plain_ascii_untouched(self):
        assert backslashify(b"user:42") == "user:42"

    def test_control_bytes_escaped(self):
        assert backslashify(b"a\nb\x00") == "a\\x0ab\\x00"

    def test_high_bytes_escaped(self):
        assert backslashify(b"\x7f\xff") == "\\x7f\\xff"

    def test_backslash_kept(self):
        assert backslashify(b"a\\b") == "a\\b"

    def test_str_input(self):
        assert backslashify("tab\there") == "tab\\x09here"


class TestDescribeHeader:
    def test_all_absent(self):
        assert describe_header(UNKNOWN, UNKNOWN, "") == ""

    def test_none_fields(self):
        assert describe_header(None, None, None) == ""

    def test_operation_only(self):
        assert describe_header("get", UNKNOWN, "") == "get"

    def test_all_present(self):
        assert describe_header("get", "found", "k") == "get found k"

    def test_result_and_key(self):
        assert describe_header(UNKNOWN, "notfound", b"k") == "notfound k"

    def test_key_only(self):
        assert describe_header(UNKNOWN, UNKNOWN, "k") == "k"

    def test_key_escaped(self):
        out = describe_header("set", "stored", b"bad\nkey")
        assert out == "set stored bad\\x0akey"
        assert "\n" not in out

    def test_message_header_describe(self):
        assert MessageHeader("delete", "deleted", b"x").describe() == "delete deleted x"


class TestDescribeAddress:
    def test_ipv4(self):
        assert describe_address(SERVER) == "10.0.0.1:11211"

    def test_ipv6(self):
        assert describe_address(Endpoint.from_ip("::1", 11211)) == "[::1]:11211"

    def test_empty(self):
        assert describe_address(EMPTY) == ""

    def test_short_path_untouched(self):
        assert describe_address(Endpoint.from_path("/tmp/mc.sock"), 40) == "/tmp/mc.sock"

    def test_path_just_below_limit(self):
        # usable width is 40 - len("U:") - 1 = 37
        path = "/" + "a" * 35
        assert describe_address(Endpoint.from_path(path), 40) == path

    def test_path_at_limit(self):
        path = "/" + "a" * 36
        out = describe_address(Endpoint.from_path(path), 40)
        assert out.endswith("...")
        assert out == path[:37] + "..."

    def test_path_beyond_limit(self):
        path = "/very/long/" + "x" * 100
        out = describe_address(Endpoint.from_path(path), 40)
        assert out == path[:37] + "..."

    def test_width_is_configurable(self):
        path = "/tmp/mc.sock"
        assert describe_address(Endpoint.from_path(path), 10).endswith("...")
        assert describe_address(Endpoint.from_path(path), 100) == path

    def test_ip_endpoint_never_truncated(self):
        endpoint = Endpoint.from_ip("2001:db8:85a3::8a2e:370:7334", 11211)
        assert not describe_address(endpoint, 10).endswith("...")


class TestDescribeConnection:
    def test_both_empty(self):
        assert describe_connection(EMPTY, EMPTY, UNKNOWN) == ""

    def test_both_empty_known_protocol(self):
        assert describe_connection(EMPTY, EMPTY, "ascii") == ""

    def test_only_from(self):
        assert describe_connection(SERVER, EMPTY, UNKNOWN) == "10.0.0.1:11211"

    def test_only_to(self):
        assert describe_connection(EMPTY, CLIENT, None) == "10.0.0.2:52100"

    def test_one_endpoint_with_protocol(self):
        assert describe_connection(SERVER, EMPTY, "ascii") == "10.0.0.1:11211 (ascii)"

    def test_both_known_protocol(self):
        out = describe_connection(CLIENT, SERVER, "umbrella")
        assert out == "10.0.0.2:52100 -> 10.0.0.1:11211 (umbrella)"

    def test_both_unknown_protocol(self):
        assert describe_connection(CLIENT, SERVER, UNKNOWN) == "10.0.0.2:52100 -> 10.0.0.1:11211"

    @pytest.mark.parametrize("width", [20, 40])
    def test_local_endpoint_truncated_in_line(self, width):
        local = Endpoint.from_path("/" + "s" * 60)
        out = describe_connection(local, SERVER, "ascii", width)
        assert out.split(" -> ")[0].endswith("...")

    def test_connection_descriptor_describe(self):
        assert ConnectionDescriptor(CLIENT, SERVER, "ascii").describe() == (
            "10.0.0.2:52100 -> 10.0.0.1:11211 (ascii)"
        )
