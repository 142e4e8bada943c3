"""Fully qualified board name (FQBN) parsing for boards-list.

An FQBN looks like ``vendor:arch:board_id[:option=value,option=value]``.
Only the first three segments identify a board; the options are the
selected board configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class FQBN:
    vendor: str
    arch: str
    board_id: str
    options: tuple[tuple[str, str], ...] = field(default=())

    @classmethod
    def parse(cls, text: str) -> FQBN:
        """Parse an FQBN string. Raises ValueError if it is malformed."""
        parts = text.split(":", 3)
        if len(parts) < 3 or not all(parts[:3]):
            raise ValueError(f"Invalid FQBN: {text!r}. Expected vendor:arch:board_id[:options]")
        vendor, arch, board_id = parts[:3]
        options: list[tuple[str, str]] = []
        if len(parts) == 4 and parts[3]:
            for pair in parts[3].split(","):
                key, sep, value = pair.partition("=")
                if not key or not sep:
                    raise ValueError(f"Invalid FQBN option {pair!r} in {text!r}")
                options.append((key, value))
        return cls(vendor=vendor, arch=arch, board_id=board_id, options=tuple(options))

    def sanitize(self) -> FQBN:
        """Return the FQBN without any config options."""
        return FQBN(vendor=self.vendor, arch=self.arch, board_id=self.board_id)

    def __str__(self) -> str:
        text = f"{self.vendor}:{self.arch}:{self.board_id}"
        if self.options:
            text += ":" + ",".join(f"{k}={v}" for k, v in self.options)
        return text


def base_fqbn(fqbn: str) -> str:
    """Return the first three colon-separated segments of an FQBN (vendor:arch:board)."""
    return str(FQBN.parse(fqbn).sanitize())


def fqbn_vendor(fqbn: str | None) -> str | None:
    """Return the vendor segment of an FQBN, or None if there is no FQBN."""
    if not fqbn:
        return None
    return FQBN.parse(fqbn).vendor
