"""
Color matching algorithms.

Every algorithm reduces to two parameters consumed by the LUT build kernel:
a distance-weighting exponent and a flag selecting the weighted-blend family
over the nearest-color family.
"""

from __future__ import annotations

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class Algorithm(Enum):
    """
    Named matching strategies with their ``(power, weighted)`` parameters.

    Weighted family (inverse-distance blend of all palette colors):
    shepards-method, gaussian-rbf, gaussian-sampling, hald, mean, std.

    Nearest family (single closest palette color):
    linear-rbf, nearest-neighbor, euclide.

    Example:
        >>> Algorithm.from_name("nn")
        <Algorithm.NEAREST_NEIGHBOR: ('nearest-neighbor', 1.0, False)>
        >>> Algorithm.GAUSSIAN_RBF.power
        1.5
    """

    SHEPARDS_METHOD = ("shepards-method", 2.0, True)
    GAUSSIAN_RBF = ("gaussian-rbf", 1.5, True)
    LINEAR_RBF = ("linear-rbf", 1.0, False)
    GAUSSIAN_SAMPLING = ("gaussian-sampling", 2.5, True)
    NEAREST_NEIGHBOR = ("nearest-neighbor", 1.0, False)
    HALD = ("hald", 2.0, True)
    EUCLIDE = ("euclide", 1.0, False)
    MEAN = ("mean", 1.5, True)
    STD = ("std", 2.0, True)

    def __init__(self, label: str, power: float, weighted: bool):
        self.label = label
        self.power = power
        self.weighted = weighted

    def __str__(self) -> str:
        return self.label

    @classmethod
    def parse(cls, name: str) -> Algorithm | None:
        """
        Resolve an algorithm name or alias, case-insensitively.

        Args:
            name: Canonical name ("gaussian-rbf") or alias ("rbf", "nn", ...)

        Returns:
            Matching Algorithm, or None if the name is not recognized
        """
        return _LOOKUP.get(name.strip().lower())

    @classmethod
    def from_name(cls, name: str | Algorithm | None) -> Algorithm:
        """
        Resolve an algorithm name, falling back to shepards-method.

        Args:
            name: Algorithm name or alias; None selects the default

        Returns:
            Matching Algorithm (SHEPARDS_METHOD for unknown names)
        """
        if name is None:
            return cls.SHEPARDS_METHOD
        if isinstance(name, Algorithm):
            return name

        algorithm = cls.parse(name)
        if algorithm is None:
            logger.warning(
                "[Algorithm] Unknown algorithm '%s', falling back to %s",
                name,
                cls.SHEPARDS_METHOD.label,
            )
            return cls.SHEPARDS_METHOD
        return algorithm

    @classmethod
    def from_quality(cls, quality: str) -> Algorithm | None:
        """Map a quality preset (fast, normal, high) to its algorithm."""
        return _QUALITY_PRESETS.get(quality.strip().lower())


_ALIASES: dict[str, Algorithm] = {
    "shepards": Algorithm.SHEPARDS_METHOD,
    "shepard": Algorithm.SHEPARDS_METHOD,
    "gaussian": Algorithm.GAUSSIAN_RBF,
    "rbf": Algorithm.GAUSSIAN_RBF,
    "linear": Algorithm.LINEAR_RBF,
    "sampling": Algorithm.GAUSSIAN_SAMPLING,
    "gauss": Algorithm.GAUSSIAN_SAMPLING,
    "nearest": Algorithm.NEAREST_NEIGHBOR,
    "nn": Algorithm.NEAREST_NEIGHBOR,
}

_LOOKUP: dict[str, Algorithm] = {algorithm.label: algorithm for algorithm in Algorithm}
_LOOKUP.update(_ALIASES)

_QUALITY_PRESETS: dict[str, Algorithm] = {
    "fast": Algorithm.NEAREST_NEIGHBOR,
    "normal": Algorithm.SHEPARDS_METHOD,
    "high": Algorithm.GAUSSIAN_SAMPLING,
}
