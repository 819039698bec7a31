"""
Target palettes ("flavors").

Each flavor is a fixed, ordered set of 26 named Catppuccin colors. Palettes are
built once at import from the static table below and never change afterwards;
declaration order matters because nearest-color ties resolve to the earlier
entry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeAlias

import numpy as np

from flavorlut.colorspace import parse_hex_color, srgb_to_lab

logger = logging.getLogger(__name__)

RGB: TypeAlias = tuple[int, int, int]


class Flavor(Enum):
    """Catppuccin flavors, light to dark."""

    LATTE = "latte"
    FRAPPE = "frappe"
    MACCHIATO = "macchiato"
    MOCHA = "mocha"

    @property
    def display_name(self) -> str:
        """Human-readable name ("Frappé" keeps its accent)."""
        return {"frappe": "Frappé"}.get(self.value, self.value.capitalize())

    @classmethod
    def parse(cls, name: str) -> Flavor | None:
        """
        Resolve a flavor name case-insensitively.

        Args:
            name: Flavor name ("mocha", "Latte", "frappé", ...)

        Returns:
            Matching Flavor, or None if unknown
        """
        key = name.strip().lower().replace("é", "e")
        try:
            return cls(key)
        except ValueError:
            return None


@dataclass(frozen=True)
class Palette:
    """
    Immutable ordered set of named target colors.

    Attributes:
        name: Flavor this palette belongs to
        colors: Ordered ``(color_name, (r, g, b))`` pairs

    Invariants:
        - colors is non-empty
        - (name, value) pairs are unique
        - every channel is in [0, 255]

    Example:
        >>> palette = get_palette(Flavor.MOCHA)
        >>> palette["red"]
        (243, 139, 168)
        >>> palette.rgb.shape
        (26, 3)
    """

    name: Flavor
    colors: tuple[tuple[str, RGB], ...]
    _rgb: np.ndarray = field(init=False, repr=False, compare=False)
    _lab: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        """Validate palette contents and precompute array views."""
        if not self.colors:
            raise ValueError(f"Palette {self.name} must contain at least one color")

        if len(set(self.colors)) != len(self.colors):
            raise ValueError(f"Palette {self.name} contains duplicate (name, color) entries")

        for color_name, value in self.colors:
            if len(value) != 3 or not all(0 <= channel <= 255 for channel in value):
                raise ValueError(
                    f"Palette color '{color_name}'={value} is not an RGB triple in [0, 255]"
                )

        rgb = np.array([value for _, value in self.colors], dtype=np.uint8)
        rgb.flags.writeable = False
        lab = srgb_to_lab(rgb)
        lab.flags.writeable = False

        # Frozen dataclass: bypass __setattr__ for the derived arrays
        object.__setattr__(self, "_rgb", rgb)
        object.__setattr__(self, "_lab", lab)

    @property
    def rgb(self) -> np.ndarray:
        """Read-only uint8 array [K, 3] in declaration order."""
        return self._rgb

    @property
    def lab(self) -> np.ndarray:
        """Read-only float64 array [K, 3] of CIELAB coordinates."""
        return self._lab

    @property
    def names(self) -> tuple[str, ...]:
        """Color names in declaration order."""
        return tuple(color_name for color_name, _ in self.colors)

    def __len__(self) -> int:
        return len(self.colors)

    def __iter__(self):
        return iter(self.colors)

    def __getitem__(self, color_name: str) -> RGB:
        for name, value in self.colors:
            if name == color_name:
                return value
        raise KeyError(f"Palette {self.name.value} has no color named '{color_name}'")

    def __contains__(self, value: object) -> bool:
        return any(value == rgb for _, rgb in self.colors)


COLOR_NAMES = (
    "rosewater", "flamingo", "pink", "mauve", "red", "maroon",
    "peach", "yellow", "green", "teal", "sky", "sapphire",
    "blue", "lavender", "text", "subtext1", "subtext0", "overlay2",
    "overlay1", "overlay0", "surface2", "surface1", "surface0", "base",
    "mantle", "crust",
)  # fmt: skip

# Hex values in COLOR_NAMES order
_FLAVOR_HEX: dict[Flavor, tuple[str, ...]] = {
    Flavor.LATTE: (
        "#dc8a78", "#dd7878", "#ea76cb", "#8839ef", "#d20f39", "#e64553",
        "#fe640b", "#df8e1d", "#40a02b", "#179299", "#04a5e5", "#209fb5",
        "#1e66f5", "#7287fd", "#4c4f69", "#5c5f77", "#6c6f85", "#7c7f93",
        "#8c8fa1", "#9ca0b0", "#acb0be", "#bcc0cc", "#ccd0da", "#eff1f5",
        "#e6e9ef", "#dce0e8",
    ),
    Flavor.FRAPPE: (
        "#f2d5cf", "#eebebe", "#f4b8e4", "#ca9ee6", "#e78284", "#ea999c",
        "#ef9f76", "#e5c890", "#a6d189", "#81c8be", "#99d1db", "#85c1dc",
        "#8caaee", "#babbf1", "#c6d0f5", "#b5bfe2", "#a5adce", "#949cbb",
        "#838ba7", "#737994", "#626880", "#51576d", "#414559", "#303446",
        "#292c3c", "#232634",
    ),
    Flavor.MACCHIATO: (
        "#f4dbd6", "#f0c6c6", "#f5bde6", "#c6a0f6", "#ed8796", "#ee99a0",
        "#f5a97f", "#eed49f", "#a6da95", "#8bd5ca", "#91d7e3", "#7dc4e4",
        "#8aadf4", "#b7bdf8", "#cad3f5", "#b8c0e0", "#a5adcb", "#939ab7",
        "#8087a2", "#6e738d", "#5b6078", "#494d64", "#363a4f", "#24273a",
        "#1e2030", "#181926",
    ),
    Flavor.MOCHA: (
        "#f5e0dc", "#f2cdcd", "#f5c2e7", "#cba6f7", "#f38ba8", "#eba0ac",
        "#fab387", "#f9e2af", "#a6e3a1", "#94e2d5", "#89dceb", "#74c7ec",
        "#89b4fa", "#b4befe", "#cdd6f4", "#bac2de", "#a6adc8", "#9399b2",
        "#7f849c", "#6c7086", "#585b70", "#45475a", "#313244", "#1e1e2e",
        "#181825", "#11111b",
    ),
}  # fmt: skip


def _build_palette(flavor: Flavor) -> Palette:
    colors = tuple(
        (color_name, parse_hex_color(hex_value))
        for color_name, hex_value in zip(COLOR_NAMES, _FLAVOR_HEX[flavor], strict=True)
    )
    return Palette(name=flavor, colors=colors)


PALETTES: dict[Flavor, Palette] = {flavor: _build_palette(flavor) for flavor in Flavor}


def get_palette(flavor: Flavor | str) -> Palette:
    """
    Return the shared palette instance for a flavor.

    Args:
        flavor: Flavor enum member or name

    Returns:
        The flavor's Palette

    Raises:
        ValueError: If the flavor name is unknown
    """
    if isinstance(flavor, str):
        parsed = Flavor.parse(flavor)
        if parsed is None:
            valid = ", ".join(f.value for f in Flavor)
            raise ValueError(f"flavor='{flavor}' is not valid. Valid options are: {valid}")
        flavor = parsed
    return PALETTES[flavor]
