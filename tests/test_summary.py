"""Tests for banners and summaries."""

import json

from visionsetup.installer.models import InstallSession
from visionsetup.tui.summary import (
    MCP_SERVER_NAME,
    day_to_day_commands,
    editor_config,
    print_success,
    print_timeout_warning,
)


class TestEditorConfig:
    """Tests for editor_config function."""

    def test_vscode_snippet(self):
        document = json.loads(editor_config("http://localhost:9090/mcp", "servers"))
        assert document == {"servers": {MCP_SERVER_NAME: {"type": "http", "url": "http://localhost:9090/mcp"}}}

    def test_claude_snippet_key(self):
        assert "mcpServers" in json.loads(editor_config("http://localhost:8080/mcp", "mcpServers"))


class TestSummaries:
    def test_commands_name_install_dir(self, temp_dir):
        commands = dict(day_to_day_commands(temp_dir))
        assert commands["Uninstall"] == f"cd {temp_dir} && docker compose down -v && rm -rf {temp_dir}"
        assert set(commands) == {"Start", "Stop", "Logs", "Update", "Uninstall"}

    def test_success_uses_session_port(self, temp_dir, plain_console, output):
        session = InstallSession(install_directory=temp_dir, port=9191)

        print_success(plain_console, session)

        text = output.getvalue()
        assert "Endpoint: http://localhost:9191/mcp" in text
        assert text.count('"url": "http://localhost:9191/mcp"') == 2

    def test_timeout_warning(self, temp_dir, plain_console, output):
        session = InstallSession(install_directory=temp_dir)

        print_timeout_warning(plain_console, session, 900.4)

        text = output.getvalue()
        assert "[WARN]  Timed out after 900s" in text
        assert "docker compose logs -f mcp-server" in text
