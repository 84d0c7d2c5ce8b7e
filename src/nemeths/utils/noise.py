"""Seeded value noise for terrain layers."""

from __future__ import annotations

import numpy as np

LATTICE_PERIOD = 256


def _smoothstep(t: np.ndarray) -> np.ndarray:
    return t * t * (3.0 - 2.0 * t)


class ValueNoise:
    """Tileable 2D value noise with values in [0, 1).

    Random values sit on an integer lattice that wraps every
    ``LATTICE_PERIOD`` cells; samples between lattice points are blended with
    smoothstep-weighted bilinear interpolation.  Several octaves can be mixed
    as fractal noise.  Two instances built from the same seed always agree.
    """

    def __init__(
        self,
        seed: int,
        *,
        octaves: int = 1,
        persistence: float = 0.5,
        lacunarity: float = 2.0,
    ) -> None:
        if octaves < 1:
            raise ValueError(f"octaves must be at least 1, got {octaves}")
        self.seed = seed
        self.octaves = octaves
        self.persistence = persistence
        self.lacunarity = lacunarity
        rng = np.random.default_rng(seed)
        self._lattices = [
            rng.random((LATTICE_PERIOD, LATTICE_PERIOD)) for _ in range(octaves)
        ]

    def _interpolate(self, lattice: np.ndarray, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
        x0 = np.floor(xs).astype(np.int64)
        y0 = np.floor(ys).astype(np.int64)
        sx = _smoothstep(xs - x0)[:, None]
        sy = _smoothstep(ys - y0)[None, :]
        ix0 = (x0 % LATTICE_PERIOD)[:, None]
        ix1 = ((x0 + 1) % LATTICE_PERIOD)[:, None]
        iy0 = (y0 % LATTICE_PERIOD)[None, :]
        iy1 = ((y0 + 1) % LATTICE_PERIOD)[None, :]
        g00 = lattice[ix0, iy0]
        g10 = lattice[ix1, iy0]
        g01 = lattice[ix0, iy1]
        g11 = lattice[ix1, iy1]
        top = g00 * (1 - sx) + g10 * sx
        bottom = g01 * (1 - sx) + g11 * sx
        return top * (1 - sy) + bottom * sy

    def sample_grid(self, width: int, height: int, scale: float) -> np.ndarray:
        """Sample a ``width x height`` block at ``(x / scale, y / scale)``.

        Returns:
            Array of shape ``(width, height)`` indexed ``[x, y]``

        Raises:
            ValueError: If scale is not positive
        """
        if scale <= 0:
            raise ValueError(f"scale must be positive, got {scale}")
        out = np.zeros((width, height), dtype=np.float64)
        amplitude = 1.0
        frequency = 1.0 / scale
        total = 0.0
        for lattice in self._lattices:
            xs = np.arange(width, dtype=np.float64) * frequency
            ys = np.arange(height, dtype=np.float64) * frequency
            out += self._interpolate(lattice, xs, ys) * amplitude
            total += amplitude
            amplitude *= self.persistence
            frequency *= self.lacunarity
        out /= total
        # Rounding in the blend can land exactly on 1.0.
        return np.minimum(out, np.nextafter(1.0, 0.0))
