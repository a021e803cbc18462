import pytest

from fake_server import CONTROL_ADDRESS, FakeFtpServer
from ftpclient.core import FtpClient


@pytest.fixture
def server():
    return FakeFtpServer(
        files={
            "/pub/readme.txt": b"hello from the server\r\n",
            "/pub/data.bin": bytes(range(256)) * 40,
        },
        directories={"/pub", "/incoming"},
        users={"anonymous": None, "alice": "secret"},
    )


@pytest.fixture
def client(server):
    return FtpClient(transport_factory=server.transport_factory)


@pytest.fixture
def connected(client):
    host, port = CONTROL_ADDRESS
    client.connect(host, port, timeout=5)
    return client


@pytest.fixture
def logged_in(connected):
    connected.login()
    return connected
