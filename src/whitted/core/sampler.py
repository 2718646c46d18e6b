"""Counter-based random jitter for soft shadows and reflection blur.

Pixels are rendered in parallel, so a shared generator would make images
depend on thread scheduling. Instead every pixel owns a 32-bit xorshift
state derived from hash(seed, pixel index) with Thomas Wang's integer
hash. The same seed therefore reproduces the same image exactly, on any
number of threads.

Generator state is threaded explicitly: every draw takes the current
state and returns the advanced state with the sample.

Example:
    >>> @ti.kernel
    ... def demo(seed: ti.i32):
    ...     for i in range(16):
    ...         state = pixel_state(seed, i)
    ...         state, r = next_random(state)
"""

import taichi as ti

from whitted.core.ray import vec3


@ti.func
def wang_hash(key: ti.u32) -> ti.u32:
    """Thomas Wang's 32-bit integer hash."""
    k = key
    k = (k ^ ti.u32(61)) ^ (k >> ti.u32(16))
    k = k * ti.u32(9)
    k = k ^ (k >> ti.u32(4))
    k = k * ti.u32(0x27D4EB2D)
    k = k ^ (k >> ti.u32(15))
    return k


@ti.func
def pixel_state(seed: ti.i32, pixel_index: ti.i32) -> ti.u32:
    """Initial generator state for one pixel.

    Args:
        seed: The render seed.
        pixel_index: Row-major index of the pixel.

    Returns:
        A non-zero 32-bit state (xorshift never leaves zero).
    """
    state = wang_hash(ti.cast(pixel_index, ti.u32) ^ wang_hash(ti.cast(seed, ti.u32)))
    if state == ti.u32(0):
        state = ti.u32(1)
    return state


@ti.func
def next_random(state: ti.u32):
    """Advance a xorshift32 state and draw a uniform number in [0, 1).

    Returns:
        A tuple (new_state, value).
    """
    x = state
    x ^= x << ti.u32(13)
    x ^= x >> ti.u32(17)
    x ^= x << ti.u32(5)
    # Top 24 bits give an exactly representable fraction
    value = ti.cast(x >> ti.u32(8), ti.f64) / 16777216.0
    return x, value


@ti.func
def centered_random(state: ti.u32, magnitude: ti.f64):
    """Uniform number in [-magnitude / 2, magnitude / 2).

    Returns:
        A tuple (new_state, value).
    """
    new_state, r = next_random(state)
    return new_state, (r - 0.5) * magnitude


@ti.func
def random_jitter(state: ti.u32, magnitude: ti.f64):
    """Random offset vector, each component uniform in [-magnitude / 2, magnitude / 2).

    Returns:
        A tuple (new_state, offset).
    """
    s, jx = centered_random(state, magnitude)
    s, jy = centered_random(s, magnitude)
    s, jz = centered_random(s, magnitude)
    return s, vec3(jx, jy, jz)
