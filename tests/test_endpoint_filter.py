import pytest

from kvtap.endpoint_filter import matches
from kvtap.models import ConfigurationError, Endpoint, FilterCriteria

SERVER = Endpoint.from_ip("10.0.0.1", 11211)
CLIENT = Endpoint.from_ip("10.0.0.2", 52100)
LOCAL = Endpoint.from_path("/var/run/mcrouter.sock")
EMPTY = Endpoint()

PAIRS = [
    (SERVER, CLIENT),
    (CLIENT, SERVER),
    (EMPTY, EMPTY),
    (LOCAL, EMPTY),
    (EMPTY, SERVER),
]


class TestUnsetCriteria:
    @pytest.mark.parametrize("from_,to", PAIRS)
    def test_everything_passes(self, from_, to):
        assert matches(from_, to, FilterCriteria())

    @pytest.mark.parametrize("from_,to", PAIRS)
    def test_no_criteria_passes(self, from_, to):
        assert matches(from_, to, None)


class TestHostCriterion:
    def test_matches_source(self):
        criteria = FilterCriteria.from_options("10.0.0.1")
        assert matches(SERVER, CLIENT, criteria)

    def test_matches_destination(self):
        criteria = FilterCriteria.from_options("10.0.0.1")
        assert matches(CLIENT, SERVER, criteria)

    def test_neither_side_matches(self):
        criteria = FilterCriteria.from_options("10.0.0.9")
        assert not matches(SERVER, CLIENT, criteria)

    def test_empty_endpoints_never_match(self):
        criteria = FilterCriteria.from_options("10.0.0.1")
        assert not matches(EMPTY, EMPTY, criteria)

    def test_local_endpoint_never_matches_host(self):
        criteria = FilterCriteria.from_options("10.0.0.1")
        assert not matches(LOCAL, EMPTY, criteria)

    def test_ipv4_mapped_endpoint_matches_ipv4_host(self):
        criteria = FilterCriteria.from_options("10.0.0.1")
        assert matches(Endpoint.from_ip("::ffff:10.0.0.1", 11211), EMPTY, criteria)

    def test_ipv4_endpoint_matches_ipv4_mapped_host(self):
        criteria = FilterCriteria.from_options("::ffff:10.0.0.1")
        assert matches(SERVER, CLIENT, criteria)

    def test_ipv6_host(self):
        criteria = FilterCriteria.from_options("::1")
        assert matches(Endpoint.from_ip("::1", 11211), EMPTY, criteria)


class TestPortCriterion:
    def test_matches_either_side(self):
        criteria = FilterCriteria.from_options(port=11211)
        assert matches(SERVER, CLIENT, criteria)
        assert matches(CLIENT, SERVER, criteria)

    def test_neither_side_matches(self):
        criteria = FilterCriteria.from_options(port=5000)
        assert not matches(SERVER, CLIENT, criteria)

    def test_empty_endpoints_never_match(self):
        criteria = FilterCriteria.from_options(port=11211)
        assert not matches(EMPTY, EMPTY, criteria)


class TestCombinedCriteria:
    def test_both_satisfied(self):
        criteria = FilterCriteria.from_options("10.0.0.1", 11211)
        assert matches(CLIENT, SERVER, criteria)

    def test_host_and_port_may_come_from_different_sides(self):
        criteria = FilterCriteria.from_options("10.0.0.2", 11211)
        assert matches(SERVER, CLIENT, criteria)

    @pytest.mark.parametrize("from_,to", PAIRS)
    def test_adding_a_criterion_never_widens(self, from_, to):
        host_only = FilterCriteria.from_options("10.0.0.9")
        both = FilterCriteria.from_options("10.0.0.9", 11211)
        if not matches(from_, to, host_only):
            assert not matches(from_, to, both)

    def test_port_fails_even_when_host_matches(self):
        criteria = FilterCriteria.from_options("10.0.0.1", 6379)
        assert not matches(SERVER, CLIENT, criteria)


class TestCriteriaParsing:
    def test_unset(self):
        assert FilterCriteria.from_options(None, 0).is_unset

    def test_invalid_host(self):
        with pytest.raises(ConfigurationError):
            FilterCriteria.from_options("not-an-ip")

    @pytest.mark.parametrize("port", [-1, 65536])
    def test_invalid_port(self, port):
        with pytest.raises(ConfigurationError):
            FilterCriteria.from_options(port=port)
