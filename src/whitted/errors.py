"""Exception hierarchy for the ray tracer.

Every error raised deliberately by this package derives from RayTracerError.
The concrete classes also inherit from the builtin exception that best
describes them, so callers that already catch ValueError or ArithmeticError
keep working.

Per-ray outcomes such as a missed sphere or a ray parallel to a quad are
not errors; intersection routines report them as "no hit".
"""


class RayTracerError(Exception):
    """Base class for all ray tracer errors."""


class SingularMatrixError(RayTracerError, ArithmeticError):
    """Raised when inverting a matrix whose determinant is zero."""


class DegenerateVectorError(RayTracerError, ArithmeticError):
    """Raised when normalizing a vector of zero magnitude."""


class InvalidQuadError(RayTracerError, ValueError):
    """Raised when four corner points do not describe a valid quad."""


class NonCoplanarQuadError(InvalidQuadError):
    """Raised when the four corners of a quad do not share a plane."""


class SceneValidationError(RayTracerError, ValueError):
    """Raised when a scene contains a shape or light that cannot be built.

    Attributes:
        kind: The kind of the failing element ("sphere", "quad", "light", ...).
        index: Position of the failing element in its collection.
    """

    def __init__(self, kind: str, index: int, message: str) -> None:
        super().__init__(f"{kind} #{index}: {message}")
        self.kind = kind
        self.index = index
