"""
MCP命令输出解析器测试
"""
import pytest

from backend.services.cli_output_parser import GeminiTextOutputParser, strip_ansi


@pytest.fixture
def parser():
    return GeminiTextOutputParser()


class TestParseList:
    """测试 `mcp list` 输出解析"""

    def test_sample_output(self, parser):
        output = "✓ my-server: (HTTP) https://x\n✗ other: /usr/bin/foo\n"

        servers = parser.parse_list(output)

        assert [s.model_dump() for s in servers] == [
            {"name": "my-server", "type": "http", "status": "active"},
            {"name": "other", "type": "stdio", "status": "inactive"},
        ]

    def test_skips_banner_lines(self, parser):
        output = (
            "Loaded cached credentials.\n"
            "Configured MCP servers:\n"
            "\n"
            "✓ fs: npx -y @modelcontextprotocol/server-filesystem (stdio) - Connected\n"
        )

        servers = parser.parse_list(output)

        assert len(servers) == 1
        assert servers[0].name == "fs"
        assert servers[0].type == "stdio"

    def test_strips_color_codes(self, parser):
        output = "\x1b[32m✓\x1b[0m weather: https://weather.example.com/sse (sse) - Connected\n"

        servers = parser.parse_list(output)

        assert servers[0].name == "weather"
        assert servers[0].type == "sse"
        assert servers[0].status == "active"

    def test_url_prefix_means_http(self, parser):
        servers = parser.parse_list("✗ api: http://localhost:9000/mcp\n")

        assert servers[0].type == "http"
        assert servers[0].status == "inactive"

    def test_lines_without_colon_are_skipped(self, parser):
        assert parser.parse_list("No MCP servers configured.\n\n") == []

    def test_empty_name_skipped(self, parser):
        assert parser.parse_list("✓ : something\n") == []


class TestParseGet:
    """测试 `mcp get` 输出解析"""

    def test_embedded_json(self, parser):
        output = 'Server details:\n{"name": "fs", "command": "npx", "args": ["-y"]}\n'

        assert parser.parse_get(output) == {"name": "fs", "command": "npx", "args": ["-y"]}

    def test_broken_json_falls_back_to_raw_output(self, parser):
        output = "config: {not json}"

        server = parser.parse_get(output)

        assert server["raw_output"] == output
        assert "parse_error" in server

    def test_labeled_lines(self, parser):
        output = "Name: remote\nType: http\nURL: https://example.com/mcp\n"

        server = parser.parse_get(output)

        assert server["name"] == "remote"
        assert server["type"] == "http"
        assert server["url"] == "https://example.com/mcp"
        assert server["raw_output"] == output

    def test_command_line(self, parser):
        server = parser.parse_get("Name: fs\nCommand: npx -y server\n")

        assert server["command"] == "npx -y server"

    def test_header_lines_do_not_override_labels(self, parser):
        """缩进的请求头行不会覆盖 Type 字段"""
        output = "Name: remote\nType: http\nHeaders:\n  Content-Type: application/json\n"

        server = parser.parse_get(output)

        assert server["type"] == "http"

    def test_unparseable_text_keeps_raw_output(self, parser):
        assert parser.parse_get("nothing useful") == {"raw_output": "nothing useful"}


def test_strip_ansi():
    assert strip_ansi("\x1b[1;31mred\x1b[0m") == "red"
