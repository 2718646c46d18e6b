"""Immutable fixed-size vector and matrix algebra.

Python-side linear algebra used to build cameras, shape transforms, quad
frames and lights before they are uploaded to Taichi fields. Values are
NumPy float64 arrays flagged read-only, so every operation returns a new
value and no value can be mutated after it is created.

Supported shapes:
    Vec3, Vec4: arrays of shape (3,) and (4,)
    Mat3, Mat4: row-major arrays of shape (3, 3) and (4, 4)

Determinant and inverse use closed-form cofactor expansion. Inverting a
singular matrix raises SingularMatrixError and normalizing a zero vector
raises DegenerateVectorError; neither ever produces NaN or Infinity.
No tolerance-based comparisons are made in this module.

Example:
    >>> from whitted.core.algebra import vec3, cross, X_AXIS, Y_AXIS
    >>> cross(X_AXIS, Y_AXIS)
    array([0., 0., 1.])
    >>> normalize(vec3(3.0, 0.0, 4.0))
    array([0.6, 0. , 0.8])
"""

import math
from collections.abc import Iterable

import numpy as np
import numpy.typing as npt

from whitted.errors import DegenerateVectorError, SingularMatrixError

# Type aliases; the dimension is checked at construction, not by the type.
Vec3 = npt.NDArray[np.float64]
Vec4 = npt.NDArray[np.float64]
Mat3 = npt.NDArray[np.float64]
Mat4 = npt.NDArray[np.float64]
Vector = npt.NDArray[np.float64]
Matrix = npt.NDArray[np.float64]


def _frozen(values: "Iterable[float] | npt.ArrayLike") -> npt.NDArray[np.float64]:
    """Copy values into a new read-only float64 array."""
    array = np.array(values, dtype=np.float64)
    array.setflags(write=False)
    return array


def _check_vector(v: Vector) -> None:
    if v.ndim != 1 or v.shape[0] not in (3, 4):
        raise ValueError(f"Expected a 3- or 4-vector, got shape {v.shape}")


def _check_matrix(m: Matrix) -> None:
    if m.ndim != 2 or m.shape not in ((3, 3), (4, 4)):
        raise ValueError(f"Expected a 3x3 or 4x4 matrix, got shape {m.shape}")


# =============================================================================
# Constructors
# =============================================================================


def vec3(x: float, y: float, z: float) -> Vec3:
    """Create an immutable 3-vector."""
    return _frozen((x, y, z))


def vec4(x: float, y: float, z: float, w: float) -> Vec4:
    """Create an immutable 4-vector."""
    return _frozen((x, y, z, w))


def as_vec3(values: "Iterable[float] | npt.ArrayLike") -> Vec3:
    """Convert any 3-element sequence into an immutable 3-vector.

    Raises:
        ValueError: If values does not hold exactly three numbers.
    """
    array = _frozen(values)
    if array.shape != (3,):
        raise ValueError(f"Expected 3 components, got shape {array.shape}")
    return array


def mat3(rows: "Iterable[Iterable[float]] | npt.ArrayLike") -> Mat3:
    """Create an immutable 3x3 matrix from row-major rows."""
    array = _frozen(rows)
    if array.shape != (3, 3):
        raise ValueError(f"Expected a 3x3 matrix, got shape {array.shape}")
    return array


def mat4(rows: "Iterable[Iterable[float]] | npt.ArrayLike") -> Mat4:
    """Create an immutable 4x4 matrix from row-major rows."""
    array = _frozen(rows)
    if array.shape != (4, 4):
        raise ValueError(f"Expected a 4x4 matrix, got shape {array.shape}")
    return array


def from_columns(*columns: Vector) -> Matrix:
    """Build a square matrix whose columns are the given vectors."""
    return _frozen(np.column_stack(columns))


def to_vec4(v: Vec3, w: float) -> Vec4:
    """Extend a 3-vector with a homogeneous coordinate."""
    return vec4(v[0], v[1], v[2], w)


def to_vec3(v: Vec4) -> Vec3:
    """Drop the homogeneous coordinate of a 4-vector."""
    return vec3(v[0], v[1], v[2])


# =============================================================================
# Named Constants
# =============================================================================

ORIGIN = vec3(0.0, 0.0, 0.0)
X_AXIS = vec3(1.0, 0.0, 0.0)
Y_AXIS = vec3(0.0, 1.0, 0.0)
Z_AXIS = vec3(0.0, 0.0, 1.0)
ONES = vec3(1.0, 1.0, 1.0)
IDENTITY3 = _frozen(np.eye(3))
IDENTITY4 = _frozen(np.eye(4))


# =============================================================================
# Vector Operations
# =============================================================================


def add(a: npt.NDArray[np.float64], b: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """Elementwise sum of two vectors or two matrices of the same shape."""
    if a.shape != b.shape:
        raise ValueError(f"Shape mismatch: {a.shape} vs {b.shape}")
    return _frozen(a + b)


def subtract(a: npt.NDArray[np.float64], b: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """Elementwise difference a - b."""
    if a.shape != b.shape:
        raise ValueError(f"Shape mismatch: {a.shape} vs {b.shape}")
    return _frozen(a - b)


def scale(a: npt.NDArray[np.float64], s: float) -> npt.NDArray[np.float64]:
    """Multiply every element of a vector or matrix by a scalar."""
    return _frozen(a * float(s))


def hadamard(a: Vector, b: Vector) -> Vector:
    """Elementwise (Hadamard) product, used for color modulation."""
    _check_vector(a)
    if a.shape != b.shape:
        raise ValueError(f"Shape mismatch: {a.shape} vs {b.shape}")
    return _frozen(a * b)


def dot(a: Vector, b: Vector) -> float:
    """Inner product of two vectors of the same size."""
    _check_vector(a)
    if a.shape != b.shape:
        raise ValueError(f"Shape mismatch: {a.shape} vs {b.shape}")
    return float(np.dot(a, b))


def cross(a: Vec3, b: Vec3) -> Vec3:
    """Cross product; only defined for 3-vectors."""
    if a.shape != (3,) or b.shape != (3,):
        raise ValueError("Cross product is only defined for 3-vectors")
    return _frozen(np.cross(a, b))


def magnitude(v: Vector) -> float:
    """Euclidean length of a vector."""
    _check_vector(v)
    return float(np.linalg.norm(v))


def distance(a: Vector, b: Vector) -> float:
    """Euclidean distance between two points."""
    return magnitude(subtract(a, b))


def normalize(v: Vector) -> Vector:
    """Unit vector pointing in the direction of v.

    Raises:
        DegenerateVectorError: If v has zero magnitude.
    """
    length = magnitude(v)
    if length == 0.0:
        raise DegenerateVectorError(f"Cannot normalize zero-length vector {v.tolist()}")
    return _frozen(v / length)


# =============================================================================
# Matrix Operations
# =============================================================================


def mat_mul(a: Matrix, b: Matrix) -> Matrix:
    """Matrix product a @ b for square matrices of the same size."""
    _check_matrix(a)
    if a.shape != b.shape:
        raise ValueError(f"Shape mismatch: {a.shape} vs {b.shape}")
    return _frozen(a @ b)


def mat_vec(m: Matrix, v: Vector) -> Vector:
    """Matrix times column vector (M @ v)."""
    _check_matrix(m)
    if m.shape[1] != v.shape[0]:
        raise ValueError(f"Shape mismatch: {m.shape} @ {v.shape}")
    return _frozen(m @ v)


def vec_mat(v: Vector, m: Matrix) -> Vector:
    """Row vector times matrix (v @ M)."""
    _check_matrix(m)
    if m.shape[0] != v.shape[0]:
        raise ValueError(f"Shape mismatch: {v.shape} @ {m.shape}")
    return _frozen(v @ m)


def transpose(m: Matrix) -> Matrix:
    """Transpose of a square matrix."""
    _check_matrix(m)
    return _frozen(m.T)


def _det3(m: Matrix) -> float:
    return float(
        m[0, 0] * (m[1, 1] * m[2, 2] - m[1, 2] * m[2, 1])
        - m[0, 1] * (m[1, 0] * m[2, 2] - m[1, 2] * m[2, 0])
        + m[0, 2] * (m[1, 0] * m[2, 1] - m[1, 1] * m[2, 0])
    )


def _minor(m: Matrix, row: int, col: int) -> Matrix:
    """Matrix with the given row and column removed."""
    return np.delete(np.delete(m, row, axis=0), col, axis=1)


def determinant(m: Matrix) -> float:
    """Determinant by closed-form cofactor expansion (3x3 or 4x4).

    The 4x4 case expands along the first row into 3x3 minors.
    """
    _check_matrix(m)
    if m.shape == (3, 3):
        return _det3(m)
    return float(sum((-1) ** col * m[0, col] * _det3(_minor(m, 0, col)) for col in range(4)))


def _cofactor(m: Matrix, row: int, col: int) -> float:
    minor = _minor(m, row, col)
    sign = -1.0 if (row + col) % 2 else 1.0
    if minor.shape == (2, 2):
        return sign * float(minor[0, 0] * minor[1, 1] - minor[0, 1] * minor[1, 0])
    return sign * _det3(minor)


def adjugate(m: Matrix) -> Matrix:
    """Adjugate (transpose of the cofactor matrix)."""
    _check_matrix(m)
    n = m.shape[0]
    return _frozen([[_cofactor(m, col, row) for col in range(n)] for row in range(n)])


def inverse(m: Matrix) -> Matrix:
    """Inverse by adjugate / determinant.

    Raises:
        SingularMatrixError: If the determinant is exactly zero.
    """
    det = determinant(m)
    if det == 0.0:
        raise SingularMatrixError(f"Matrix is singular (determinant 0): {m.tolist()}")
    return _frozen(adjugate(m) / det)


# =============================================================================
# Affine Transform Builders (4x4, column-vector convention)
# =============================================================================


def translation(offset: Vec3) -> Mat4:
    """Translation by offset."""
    return mat4(
        [
            [1.0, 0.0, 0.0, offset[0]],
            [0.0, 1.0, 0.0, offset[1]],
            [0.0, 0.0, 1.0, offset[2]],
            [0.0, 0.0, 0.0, 1.0],
        ]
    )


def scaling(factors: Vec3) -> Mat4:
    """Non-uniform scale along the coordinate axes."""
    return mat4(
        [
            [factors[0], 0.0, 0.0, 0.0],
            [0.0, factors[1], 0.0, 0.0],
            [0.0, 0.0, factors[2], 0.0],
            [0.0, 0.0, 0.0, 1.0],
        ]
    )


def rotation(axis: Vec3, degrees: float) -> Mat4:
    """Rotation about an arbitrary axis through the origin (Rodrigues' formula).

    R = cos(theta) * I + sin(theta) * [k]x + (1 - cos(theta)) * k k^T

    Args:
        axis: Rotation axis; need not be unit length.
        degrees: Counter-clockwise rotation angle in degrees.

    Raises:
        DegenerateVectorError: If axis has zero length.
    """
    k = normalize(axis)
    theta = math.radians(degrees)
    cos_t, sin_t = math.cos(theta), math.sin(theta)
    skew = np.array(
        [
            [0.0, -k[2], k[1]],
            [k[2], 0.0, -k[0]],
            [-k[1], k[0], 0.0],
        ]
    )
    r = cos_t * np.eye(3) + sin_t * skew + (1.0 - cos_t) * np.outer(k, k)
    result = np.eye(4)
    result[:3, :3] = r
    return _frozen(result)


def compose(*transforms: Mat4) -> Mat4:
    """Compose transforms left to right: compose(A, B, C) == A @ B @ C."""
    result = IDENTITY4
    for transform in transforms:
        result = mat_mul(result, transform)
    return result
