import pytest

from action_relay.core.errors import ProtocolConnectionError, UnsupportedTransportError
from action_relay.core.models import CapabilitySource, TransportKind
from action_relay.protocol import SubprocessTransport, TcpTransport, build_transport
from action_relay.protocol.transport import parse_network_address


def test_process_source_builds_subprocess_transport():
    source = CapabilitySource(
        name="files",
        transport=TransportKind.protocol_process,
        base_address="npx -y '@acme/files server'",
        protocol_env={"ROOT": "/srv"},
    )

    transport = build_transport(source, {"TOKEN": 123})

    assert isinstance(transport, SubprocessTransport)
    assert transport._argv == ["npx", "-y", "@acme/files server"]
    assert transport._env == {"ROOT": "/srv", "TOKEN": "123"}


def test_empty_command_is_rejected():
    source = CapabilitySource(name="files", transport=TransportKind.protocol_process, base_address="  ")

    with pytest.raises(ProtocolConnectionError):
        build_transport(source)


def test_network_source_builds_tcp_transport():
    source = CapabilitySource(name="net", transport=TransportKind.protocol_network, base_address="tcp://tools:7000")

    assert isinstance(build_transport(source), TcpTransport)


def test_bad_network_address():
    source = CapabilitySource(name="net", transport=TransportKind.protocol_network, base_address="http://tools")

    with pytest.raises(ProtocolConnectionError):
        build_transport(source)


def test_http_source_has_no_transport():
    with pytest.raises(UnsupportedTransportError):
        build_transport(CapabilitySource(name="api"))


@pytest.mark.parametrize(
    "address, expected",
    [("tcp://127.0.0.1:9000", ("127.0.0.1", 9000)), ("localhost:8123", ("localhost", 8123))],
)
def test_parse_network_address(address, expected):
    assert parse_network_address(address) == expected


async def test_stderr_drain_without_process_returns():
    transport = SubprocessTransport(["tool-server"])

    await transport._drain_stderr()

    assert transport.pid is None
