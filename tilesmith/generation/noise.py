"""
Tilesmith - Value Noise

Seeded fractal value noise on numpy arrays, used to carve terrain bands.
"""

import numpy as np


def _smoothstep(t):
    """Hermite smoothstep: 3t^2 - 2t^3, element-wise on numpy arrays."""
    t = np.clip(t, 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


def _value_noise_layer(width: int, height: int, frequency: float, rng: np.random.Generator):
    """One octave: random lattice values, smoothstep-interpolated per cell."""
    lattice_w = int(np.ceil(width * frequency)) + 2
    lattice_h = int(np.ceil(height * frequency)) + 2
    lattice = rng.random((lattice_h, lattice_w))

    ys = np.arange(height, dtype=np.float64) * frequency
    xs = np.arange(width, dtype=np.float64) * frequency
    y0 = np.floor(ys).astype(np.int64)
    x0 = np.floor(xs).astype(np.int64)
    ty = _smoothstep(ys - y0).reshape(-1, 1)
    tx = _smoothstep(xs - x0).reshape(1, -1)

    rows = y0.reshape(-1, 1)
    cols = x0.reshape(1, -1)
    v00 = lattice[rows, cols]
    v01 = lattice[rows, cols + 1]
    v10 = lattice[rows + 1, cols]
    v11 = lattice[rows + 1, cols + 1]

    top = v00 + (v01 - v00) * tx
    bottom = v10 + (v11 - v10) * tx
    return top + (bottom - top) * ty


def value_noise(
    width: int,
    height: int,
    rng: np.random.Generator,
    scale: float = 8.0,
    octaves: int = 3,
    persistence: float = 0.5,
    lacunarity: float = 2.0,
) -> np.ndarray:
    """
    Generate a fractal value-noise field normalized to [0, 1].

    Args:
        width: Field width in cells
        height: Field height in cells
        rng: Seeded numpy generator; the field is a pure function of its state
        scale: Cells per lattice step of the first octave (larger = smoother)
        octaves: Number of noise layers
        persistence: Amplitude decay per octave (0-1)
        lacunarity: Frequency multiplier per octave (>1)

    Returns:
        (height, width) float64 array with min 0 and max 1 (all 0.5 if flat)
    """
    total = np.zeros((height, width), dtype=np.float64)
    amplitude = 1.0
    frequency = 1.0 / max(scale, 1e-6)

    for _ in range(max(octaves, 1)):
        total += _value_noise_layer(width, height, frequency, rng) * amplitude
        amplitude *= persistence
        frequency *= lacunarity

    low = total.min() if total.size else 0.0
    high = total.max() if total.size else 0.0
    if high - low < 1e-12:
        return np.full((height, width), 0.5)
    return (total - low) / (high - low)


def threshold_bands(field: np.ndarray, bands: list[tuple[float, int]]) -> np.ndarray:
    """
    Map a [0, 1] field to terrain ids.

    Args:
        field: Noise values
        bands: (upper_bound, terrain_id) pairs in ascending bound order; values
               above the last bound take the last band's terrain

    Returns:
        int32 array of terrain ids
    """
    result = np.full(field.shape, bands[-1][1], dtype=np.int32)
    assigned = np.zeros(field.shape, dtype=bool)
    for upper, terrain_id in bands:
        mask = (field <= upper) & ~assigned
        result[mask] = terrain_id
        assigned |= mask
    return result
