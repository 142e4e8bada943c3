"""Tests for the boards-list CLI."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from boards_list.cli import main

SNAPSHOT = {
    "detected_ports": [
        {
            "matching_boards": [{"name": "Arduino Uno", "fqbn": "arduino:avr:uno"}],
            "port": {"address": "/dev/ttyACM0", "label": "/dev/ttyACM0", "protocol": "serial",
                     "protocol_label": "Serial Port (USB)"},
        },
        {
            "matching_boards": [
                {"name": "Arduino Nano ESP32", "fqbn": "esp32:esp32:nano_nora"},
                {"name": "Arduino Nano ESP32", "fqbn": "arduino:esp32:nano_nora"},
            ],
            "port": {"address": "/dev/ttyACM1", "label": "/dev/ttyACM1", "protocol": "serial",
                     "protocol_label": "Serial Port (USB)"},
        },
        {
            "port": {"address": "/dev/ttyS0", "label": "/dev/ttyS0", "protocol": "serial",
                     "protocol_label": "Serial Port"},
        },
        {
            "matching_boards": [{"name": "Arduino MKR1000", "fqbn": "arduino:samd:mkr1000"}],
            "port": {"address": "192.168.0.104", "label": "Arduino at 192.168.0.104", "protocol": "network",
                     "protocol_label": "Network Port"},
        },
    ],
}


@pytest.fixture
def runner():
    return CliRunner()


def _write_snapshot(data=SNAPSHOT):
    Path("snapshot.json").write_text(json.dumps(data))
    return "snapshot.json"


class TestShow:
    def test_lists_items_in_order(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["show", _write_snapshot()])
            assert result.exit_code == 0, result.output
            lines = result.output.splitlines()
            assert lines[0] == "Select Board"
            assert "Arduino Uno (arduino:avr:uno)" in lines[2]
            assert "Arduino Nano ESP32" in lines[3]
            assert "edit (query: 'Arduino Nano ESP32')" in lines[3]
            assert "Unknown" in lines[4]
            assert "edit (query: '')" in lines[4]
            assert "192.168.0.104" in lines[5]

    def test_selected_board_and_port(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(
                main, ["show", _write_snapshot(), "--fqbn", "arduino:avr:uno", "--board", "Arduino Uno",
                       "--port", "/dev/ttyACM0"],
            )
            assert result.exit_code == 0, result.output
            assert result.output.splitlines()[0] == "Arduino Uno (arduino:avr:uno) on /dev/ttyACM0 (selected)"
            assert "* Arduino Uno" in result.output

    def test_selected_port_key(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(
                main, ["show", _write_snapshot(), "--fqbn", "arduino:samd:mkr1000",
                       "--port", "port+network://192.168.0.104"],
            )
            assert result.exit_code == 0, result.output
            assert "(selected)" in result.output.splitlines()[0]

    def test_port_not_connected(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["show", _write_snapshot(), "--fqbn", "arduino:avr:uno", "--port", "COM9"])
            assert result.exit_code == 0
            assert "COM9 [not connected]" in result.output
            assert "(selected)" not in result.output

    def test_history_overrides_board(self, runner):
        with runner.isolated_filesystem():
            Path("history.json").write_text(json.dumps({
                "port+serial:///dev/ttyS0": {"name": "Arduino Mega", "fqbn": "arduino:avr:mega"},
            }))
            result = runner.invoke(main, ["show", _write_snapshot(), "--history", "history.json"])
            assert result.exit_code == 0, result.output
            assert "Arduino Mega (arduino:avr:mega)" in result.output
            assert "Unknown" not in result.output

    def test_json(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["show", _write_snapshot(), "--json"])
            assert result.exit_code == 0
            data = json.loads(result.output)
            assert data["selected_index"] == -1
            assert len(data["items"]) == 4
            assert data["labels"]["tooltip"] == "Select Board"

    def test_stdin(self, runner):
        result = runner.invoke(main, ["show", "-"], input=json.dumps(SNAPSHOT))
        assert result.exit_code == 0
        assert "Arduino Uno" in result.output

    def test_no_ports(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["show", _write_snapshot({"detected_ports": []})])
            assert result.exit_code == 0
            assert "No ports detected." in result.output

    def test_config_selection(self, runner):
        with runner.isolated_filesystem():
            Path("boards-list.toml").write_text(
                '[selection]\nfqbn = "arduino:avr:uno"\nport = "port+serial:///dev/ttyACM0"\n'
            )
            result = runner.invoke(main, ["show", _write_snapshot()])
            assert result.exit_code == 0, result.output
            assert "(selected)" in result.output.splitlines()[0]

    def test_flag_overrides_config(self, runner):
        with runner.isolated_filesystem():
            Path("boards-list.toml").write_text(
                '[selection]\nfqbn = "arduino:avr:uno"\nport = "port+serial:///dev/ttyACM0"\n'
            )
            result = runner.invoke(main, ["show", _write_snapshot(), "--port", "/dev/ttyS0"])
            assert result.exit_code == 0
            assert result.output.splitlines()[0] == "arduino:avr:uno (arduino:avr:uno) on /dev/ttyS0"

    def test_invalid_protocols_config(self, runner):
        with runner.isolated_filesystem():
            Path("boards-list.toml").write_text('[ordering]\nprotocols = "serial"\n')
            result = runner.invoke(main, ["show", _write_snapshot()])
            assert result.exit_code == 1
            assert "Error: ordering.protocols" in result.output

    def test_invalid_json(self, runner):
        with runner.isolated_filesystem():
            Path("snapshot.json").write_text("{not json")
            result = runner.invoke(main, ["show", "snapshot.json"])
            assert result.exit_code == 1
            assert "Error: Invalid JSON" in result.output

    def test_invalid_port(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["show", _write_snapshot({"detected_ports": [{"port": {"protocol": "serial"}}]})])
            assert result.exit_code == 1
            assert "Error:" in result.output

    def test_invalid_fqbn(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["show", _write_snapshot(), "--fqbn", "uno"])
            assert result.exit_code == 1
            assert "Invalid FQBN" in result.output

    def test_verbose(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["-v", "show", _write_snapshot()])
            assert result.exit_code == 0


class TestBoards:
    def test_lists_pairs(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["boards", _write_snapshot()])
            assert result.exit_code == 0
            lines = result.output.splitlines()
            assert len(lines) == 4
            assert "arduino:esp32:nano_nora" in lines[1]
            assert "esp32:esp32:nano_nora" in lines[2]

    def test_json(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["boards", _write_snapshot(), "--json"])
            data = json.loads(result.output)
            assert data[0] == {
                "port": {"protocol": "serial", "address": "/dev/ttyACM0", "address_label": "/dev/ttyACM0",
                         "protocol_label": "Serial Port (USB)"},
                "board": {"name": "Arduino Uno", "fqbn": "arduino:avr:uno"},
            }

    def test_no_boards(self, runner):
        with runner.isolated_filesystem():
            snapshot = {"detected_ports": [SNAPSHOT["detected_ports"][2]]}
            result = runner.invoke(main, ["boards", _write_snapshot(snapshot)])
            assert result.exit_code == 0
            assert "No boards detected." in result.output


class TestPorts:
    def test_lists_ports(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["ports", _write_snapshot()])
            assert result.exit_code == 0
            assert result.output.splitlines()[0] == "  all:"
            assert "192.168.0.104" in result.output

    def test_only_protocol(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["ports", _write_snapshot(), "--only", "network", "--json"])
            data = json.loads(result.output)
            assert list(data) == ["network"]
            assert len(data["network"]["ports"]) == 1

    def test_group_json(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(
                main, ["ports", _write_snapshot(), "--group", "--json", "--fqbn", "arduino:samd:mkr1000",
                       "--port", "192.168.0.104", "--protocol", "network"],
            )
            assert result.exit_code == 0, result.output
            data = json.loads(result.output)
            assert list(data) == ["serial", "network"]
            assert data["serial"]["matching_index"] == -1
            assert data["network"]["matching_index"] == 0


class TestPortKeys:
    def test_key(self, runner):
        result = runner.invoke(main, ["key", "serial", "/dev/ttyACM0"])
        assert result.exit_code == 0
        assert result.output.strip() == "port+serial:///dev/ttyACM0"

    def test_parse_key(self, runner):
        result = runner.invoke(main, ["parse-key", "port+network://192.168.0.104"])
        assert result.exit_code == 0
        assert json.loads(result.output) == {"protocol": "network", "address": "192.168.0.104"}

    def test_parse_invalid_key(self, runner):
        result = runner.invoke(main, ["parse-key", "port+serial:/dev/ttyACM0"])
        assert result.exit_code == 2
        assert "Invalid port key" in result.output


class TestConfig:
    def test_shows_values(self, runner):
        with runner.isolated_filesystem():
            Path("boards-list.toml").write_text('[selection]\nfqbn = "arduino:avr:uno"\n')
            result = runner.invoke(main, ["config"])
            assert result.exit_code == 0
            assert "selection.fqbn = 'arduino:avr:uno'" in result.output

    def test_no_config(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["config"])
            assert "No boards-list.toml found." in result.output
