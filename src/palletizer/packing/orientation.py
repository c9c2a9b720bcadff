# src/palletizer/packing/orientation.py

from __future__ import annotations

from enum import Enum

Dims = tuple[float, float, float]


class Orientation(str, Enum):
    """
    The six axis-aligned orientations of a carton.

    Each value maps the carton's (L, W, H) onto the pallet's (x, y, z) extents:
      original:   (L, W, H)
      rotated_z:  (W, L, H)   quarter turn around the vertical axis
      rotated_x:  (L, H, W)   tipped over around the length axis
      rotated_y:  (H, W, L)   tipped over around the width axis
      rotated_xz: (H, L, W)
      rotated_yz: (W, H, L)
    """

    ORIGINAL = "original"
    ROTATED_Z = "rotated_z"
    ROTATED_X = "rotated_x"
    ROTATED_Y = "rotated_y"
    ROTATED_XZ = "rotated_xz"
    ROTATED_YZ = "rotated_yz"

    def apply(self, length: float, width: float, height: float) -> Dims:
        return _PERMUTATIONS[self](length, width, height)


_PERMUTATIONS = {
    Orientation.ORIGINAL: lambda L, W, H: (L, W, H),
    Orientation.ROTATED_Z: lambda L, W, H: (W, L, H),
    Orientation.ROTATED_X: lambda L, W, H: (L, H, W),
    Orientation.ROTATED_Y: lambda L, W, H: (H, W, L),
    Orientation.ROTATED_XZ: lambda L, W, H: (H, L, W),
    Orientation.ROTATED_YZ: lambda L, W, H: (W, H, L),
}


def orientations_for(
    length: float,
    width: float,
    height: float,
    allow_rotation: bool,
) -> list[tuple[Orientation, Dims]]:
    """
    Legal orientations of a carton, in preference order (upright first).

    Orientations that produce the same (x, y, z) extents are collapsed, so a
    cube yields 1 candidate and a box with two equal sides yields 3.
    """
    L, W, H = float(length), float(width), float(height)
    if not allow_rotation:
        return [(Orientation.ORIGINAL, (L, W, H))]

    seen: list[Dims] = []
    out: list[tuple[Orientation, Dims]] = []
    for orientation in Orientation:
        dims = orientation.apply(L, W, H)
        if dims in seen:
            continue
        seen.append(dims)
        out.append((orientation, dims))
    return out
