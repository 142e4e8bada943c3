"""Project configuration for boards-list (boards-list.toml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from boards_list.api import BoardIdentifier, BoardsConfig, PortIdentifier, parse_port_key
from boards_list.settings import FIRST_PARTY_VENDOR, PORT_PROTOCOL_PRIORITIES, ListSettings, Placeholders

try:
    import tomllib
except ImportError:
    try:
        import tomli as tomllib  # type: ignore[no-redef]
    except ImportError:
        tomllib = None  # type: ignore[assignment]

CONFIG_FILENAME = "boards-list.toml"


@dataclass
class SelectionConfig:
    board: str | None = None
    fqbn: str | None = None
    port: str | None = None
    protocol: str | None = None
    address: str | None = None

    def to_boards_config(self) -> BoardsConfig:
        """Resolve the configured board and port. Unset parts stay None."""
        board = None
        if self.board or self.fqbn:
            board = BoardIdentifier(name=self.board or self.fqbn, fqbn=self.fqbn)
        port = None
        if self.port:
            port = parse_port_key(self.port)
            if port is None:
                raise ValueError(f"Invalid port key in {CONFIG_FILENAME}: {self.port}")
        elif self.protocol and self.address:
            port = PortIdentifier(protocol=self.protocol, address=self.address)
        return BoardsConfig(selected_board=board, selected_port=port)


@dataclass
class OrderingConfig:
    first_party_vendor: str = FIRST_PARTY_VENDOR
    protocols: list[str] = field(default_factory=lambda: list(PORT_PROTOCOL_PRIORITIES))


@dataclass
class ProjectConfig:
    selection: SelectionConfig = field(default_factory=SelectionConfig)
    ordering: OrderingConfig = field(default_factory=OrderingConfig)
    labels: Placeholders = field(default_factory=Placeholders)

    def to_settings(self) -> ListSettings:
        return ListSettings.from_protocols(
            self.ordering.protocols,
            first_party_vendor=self.ordering.first_party_vendor,
            placeholders=self.labels,
        )


def _read_toml(project_dir: Path | str) -> dict | None:
    toml_path = Path(project_dir) / CONFIG_FILENAME
    if not toml_path.exists() or tomllib is None:
        return None
    with open(toml_path, "rb") as f:
        return tomllib.load(f)


def load_project_config(project_dir: Path | str) -> ProjectConfig:
    """Parse boards-list.toml and return a typed ProjectConfig."""
    project_dir = Path(project_dir)
    toml_path = project_dir / CONFIG_FILENAME
    if not toml_path.exists():
        raise FileNotFoundError(f"{CONFIG_FILENAME} not found in {project_dir}")

    if tomllib is None:
        raise ImportError("No TOML parser available (need Python 3.11+ or tomli)")

    with open(toml_path, "rb") as f:
        data = tomllib.load(f)

    selection_data = data.get("selection", {})
    ordering_data = data.get("ordering", {})
    labels_data = data.get("labels", {})

    selection = SelectionConfig(
        board=selection_data.get("board"),
        fqbn=selection_data.get("fqbn"),
        port=selection_data.get("port"),
        protocol=selection_data.get("protocol"),
        address=selection_data.get("address"),
    )
    protocols = ordering_data.get("protocols", list(PORT_PROTOCOL_PRIORITIES))
    if not isinstance(protocols, list) or not all(isinstance(p, str) for p in protocols):
        raise ValueError(f"ordering.protocols in {CONFIG_FILENAME} must be a list of protocol names, got: {protocols!r}")
    ordering = OrderingConfig(
        first_party_vendor=ordering_data.get("first_party_vendor", FIRST_PARTY_VENDOR),
        protocols=protocols,
    )
    defaults = Placeholders()
    labels = Placeholders(
        unconfirmed_board=labels_data.get("unconfirmed_board", defaults.unconfirmed_board),
        select_board=labels_data.get("select_board", defaults.select_board),
        not_connected=labels_data.get("not_connected", defaults.not_connected),
        unknown=labels_data.get("unknown", defaults.unknown),
    )
    return ProjectConfig(selection=selection, ordering=ordering, labels=labels)


def get_config_value(project_dir: Path | str, key: str):
    """Dotted key lookup, e.g. 'selection.fqbn', 'ordering.protocols'."""
    data = _read_toml(project_dir)
    if data is None:
        return None
    section, _, k = key.partition(".")
    if k:
        return data.get(section, {}).get(k)
    return data.get(key)


def list_config(project_dir: Path | str) -> dict:
    """Return a flat dotted-key dict of all config values."""
    data = _read_toml(project_dir)
    if data is None:
        return {}
    result = {}
    for section, values in data.items():
        if isinstance(values, dict):
            for k, v in values.items():
                result[f"{section}.{k}"] = v
        else:
            result[section] = values
    return result
