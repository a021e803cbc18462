import pytest

from fake_server import CONTROL_ADDRESS, FakeFtpServer
from ftpclient import entrypoint
from ftpclient.config import ClientConfig


@pytest.fixture
def server():
    return FakeFtpServer(files={"/pub/readme.txt": b"hi\r\n"}, directories={"/pub", "/incoming"},
                         users={"anonymous": None, "alice": "secret"})


@pytest.fixture
def config(server, monkeypatch):
    config = ClientConfig(host=CONTROL_ADDRESS[0], port=CONTROL_ADDRESS[1])
    monkeypatch.setattr(ClientConfig, "transport_factory", lambda self: server.transport_factory)
    return config


def run(config, *argv):
    args = entrypoint.build_parser().parse_args(list(argv))
    return entrypoint.run_action(entrypoint.apply_overrides(config, args), args)


class TestRunAction:

    def test_ls(self, config, server, capsys):
        assert run(config, "ls", "/pub") == 0
        out = capsys.readouterr().out
        assert "readme.txt" in out
        assert server.command_names[-2:] == ["LIST", "QUIT"]

    def test_get(self, config, server, tmp_path):
        assert run(config, "get", "/pub/readme.txt", str(tmp_path)) == 0
        assert (tmp_path / "readme.txt").read_bytes() == b"hi\r\n"
        assert "TYPE I" in server.commands

    def test_put_ascii_append(self, config, server, tmp_path):
        local = tmp_path / "readme.txt"
        local.write_bytes(b"more\r\n")
        assert run(config, "put", str(local), "/pub", "--ascii", "--append") == 0
        assert "TYPE A" in server.commands
        assert server.files["/pub/readme.txt"] == b"hi\r\nmore\r\n"

    def test_named_login(self, config, server):
        assert run(config, "--user", "alice", "--password", "secret", "ls") == 0
        assert server.commands[:2] == ["USER alice", "PASS secret"]

    def test_login_failure(self, config, server):
        assert run(config, "--user", "alice", "--password", "nope", "ls") == 1
        assert "LIST" not in server.command_names

    def test_connect_failure(self, config, server):
        server.refuse_control = True
        assert run(config, "ls") == 1

    def test_failed_transfer_exit_code(self, config, tmp_path):
        assert run(config, "get", "/pub/missing", str(tmp_path)) == 1


class TestParser:

    def test_overrides(self):
        args = entrypoint.build_parser().parse_args(["--host", "h", "--port", "2121", "--timeout", "0", "ls"])
        config = entrypoint.apply_overrides(ClientConfig(), args)
        assert (config.host, config.port, config.connect_timeout) == ("h", 2121, 0)

    def test_ui_is_default(self, monkeypatch):
        started = []
        monkeypatch.setattr(entrypoint, "verify_dependencies", lambda config: True)
        monkeypatch.setattr(entrypoint, "start_streamlit_client", lambda host, port: started.append((host, port)))
        entrypoint.main([])
        assert started == [("0.0.0.0", 8501)]
