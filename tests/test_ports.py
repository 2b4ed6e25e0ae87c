"""Tests for port availability and ownership."""

import pytest

from visionsetup.errors import EXIT_INVALID_INPUT, InvalidInputError
from visionsetup.installer.models import InstallSession
from visionsetup.installer.ports import (
    PortOwner,
    identify_port_owner,
    listening_processes,
    negotiate_port,
    validate_port,
)
from tests.conftest import ok_result


@pytest.fixture
def session(temp_dir) -> InstallSession:
    return InstallSession(install_directory=temp_dir / "vision-ui-mcp")


class TestValidatePort:
    """Tests for validate_port function."""

    def test_valid(self):
        assert validate_port(" 9090 ") == 9090

    def test_empty_keeps_current(self):
        assert validate_port("") is None

    @pytest.mark.parametrize("answer", ["80", "70000", "1023"])
    def test_out_of_range(self, answer):
        with pytest.raises(InvalidInputError, match="out of range") as exc_info:
            validate_port(answer)
        assert exc_info.value.exit_code == EXIT_INVALID_INPUT

    @pytest.mark.parametrize("answer", ["abc", "80a", "-1", "٩٠٩٠"])
    def test_not_a_number(self, answer):
        with pytest.raises(InvalidInputError, match="not a port number"):
            validate_port(answer)


class TestIdentifyPortOwner:
    """Tests for identify_port_owner function."""

    def test_free(self):
        assert identify_port_owner(8080, in_use=lambda p: False) == PortOwner.FREE

    def test_own_container(self):
        owner = identify_port_owner(
            8080,
            in_use=lambda p: True,
            containers=lambda p: ["vision-ui-mcp-mcp-server-1"],
            processes=lambda p: [],
        )
        assert owner == PortOwner.OWN_INSTALL

    def test_engine_helper(self):
        owner = identify_port_owner(
            8080,
            in_use=lambda p: True,
            containers=lambda p: [],
            processes=lambda p: ["com.docke"],
        )
        assert owner == PortOwner.ENGINE_HELPER

    def test_foreign(self):
        owner = identify_port_owner(
            8080,
            in_use=lambda p: True,
            containers=lambda p: ["grafana"],
            processes=lambda p: ["node"],
        )
        assert owner == PortOwner.FOREIGN


class TestListeningProcesses:
    def test_lsof(self, mocker):
        mocker.patch("visionsetup.installer.ports.command_exists", side_effect=lambda name: name == "lsof")
        mocker.patch(
            "visionsetup.installer.ports.run_command",
            return_value=ok_result(
                "COMMAND   PID USER   FD   TYPE DEVICE SIZE/OFF NODE NAME\n"
                "node    41234 dev   22u  IPv4 0x1234      0t0  TCP *:8080 (LISTEN)\n"
            ),
        )
        assert listening_processes(8080) == ["node"]

    def test_ss(self, mocker):
        mocker.patch("visionsetup.installer.ports.command_exists", side_effect=lambda name: name == "ss")
        mocker.patch(
            "visionsetup.installer.ports.run_command",
            return_value=ok_result(
                'LISTEN 0 4096 0.0.0.0:8080 0.0.0.0:* users:(("docker-proxy",pid=1234,fd=4))\n'
            ),
        )
        assert listening_processes(8080) == ["docker-proxy"]

    def test_no_tools(self, mocker):
        mocker.patch("visionsetup.installer.ports.command_exists", return_value=False)
        assert listening_processes(8080) == []


class TestNegotiatePort:
    """Tests for negotiate_port function."""

    def test_free_port(self, session, plain_console, output):
        owner = negotiate_port(session, plain_console, prompt=pytest.fail, owner_of=lambda p: PortOwner.FREE)

        assert owner == PortOwner.FREE
        assert "Port 8080 is available" in output.getvalue()

    def test_own_install_is_not_asked(self, session, plain_console, output):
        owner = negotiate_port(session, plain_console, prompt=pytest.fail, owner_of=lambda p: PortOwner.OWN_INSTALL)

        assert owner == PortOwner.OWN_INSTALL
        assert session.port == 8080
        assert "reclaimed" in output.getvalue()

    def test_foreign_owner_new_port(self, session, plain_console, output):
        questions = []

        def prompt(label):
            questions.append(label)
            return "9090"

        negotiate_port(session, plain_console, prompt=prompt, owner_of=lambda p: PortOwner.FOREIGN)

        assert len(questions) == 1
        assert session.port == 9090
        assert session.server_url == "http://localhost:9090/mcp"
        assert "Using port 9090" in output.getvalue()

    def test_foreign_owner_keep_port(self, session, plain_console, output):
        negotiate_port(session, plain_console, prompt=lambda label: "", owner_of=lambda p: PortOwner.FOREIGN)

        assert session.port == 8080
        assert "Keeping port 8080" in output.getvalue()

    def test_foreign_owner_bad_answer(self, session, plain_console):
        with pytest.raises(InvalidInputError):
            negotiate_port(session, plain_console, prompt=lambda label: "80", owner_of=lambda p: PortOwner.FOREIGN)
        assert session.port == 8080
