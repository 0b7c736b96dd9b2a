"""Small vector types and scalar helpers used throughout the engine."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator

PI = 3.141592
DEG2RAD = PI / 180.0
RAD2DEG = 180.0 / PI
EPSILON = 2.0 ** -23
FLOAT_MAX = 3.402823e38
FLOAT_MIN = 1.175494e-38


@dataclass(frozen=True)
class Vec2:
    """Two-component vector."""

    x: float = 0.0
    y: float = 0.0

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def __add__(self, other: Vec2) -> Vec2:
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vec2) -> Vec2:
        return Vec2(self.x - other.x, self.y - other.y)

    def __neg__(self) -> Vec2:
        return Vec2(-self.x, -self.y)

    def __mul__(self, scalar: float) -> Vec2:
        if isinstance(scalar, (int, float)):
            return Vec2(self.x * scalar, self.y * scalar)
        return NotImplemented

    __rmul__ = __mul__

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y)

    def sqr_length(self) -> float:
        return self.x * self.x + self.y * self.y


@dataclass(frozen=True)
class Vec3:
    """Three-component vector; also used as an RGB colour."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @property
    def r(self) -> float:
        return self.x

    @property
    def g(self) -> float:
        return self.y

    @property
    def b(self) -> float:
        return self.z

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def __add__(self, other: Vec3) -> Vec3:
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vec3) -> Vec3:
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self) -> Vec3:
        return Vec3(-self.x, -self.y, -self.z)

    def __mul__(self, other: Vec3 | float) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3(self.x * other.x, self.y * other.y, self.z * other.z)
        if isinstance(other, (int, float)):
            return Vec3(self.x * other, self.y * other, self.z * other)
        return NotImplemented

    def __rmul__(self, other: float) -> Vec3:
        if isinstance(other, (int, float)):
            return Vec3(self.x * other, self.y * other, self.z * other)
        return NotImplemented

    def __truediv__(self, scalar: float) -> Vec3:
        return Vec3(self.x / scalar, self.y / scalar, self.z / scalar)

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def sqr_length(self) -> float:
        return self.x * self.x + self.y * self.y + self.z * self.z

    def normalized(self) -> Vec3:
        """Unit vector in the same direction, or the zero vector if too short."""
        size = self.length()
        if size > 1e-6:
            return Vec3(self.x / size, self.y / size, self.z / size)
        return Vec3()

    @staticmethod
    def min(lhs: Vec3, rhs: Vec3) -> Vec3:
        return Vec3(
            lhs.x if lhs.x < rhs.x else rhs.x,
            lhs.y if lhs.y < rhs.y else rhs.y,
            lhs.z if lhs.z < rhs.z else rhs.z,
        )

    @staticmethod
    def max(lhs: Vec3, rhs: Vec3) -> Vec3:
        return Vec3(
            lhs.x if lhs.x > rhs.x else rhs.x,
            lhs.y if lhs.y > rhs.y else rhs.y,
            lhs.z if lhs.z > rhs.z else rhs.z,
        )

    @staticmethod
    def abs(v: Vec3) -> Vec3:
        return Vec3(math.fabs(v.x), math.fabs(v.y), math.fabs(v.z))

    @staticmethod
    def dot(lhs: Vec3, rhs: Vec3) -> float:
        return lhs.x * rhs.x + lhs.y * rhs.y + lhs.z * rhs.z

    @staticmethod
    def cross(lhs: Vec3, rhs: Vec3) -> Vec3:
        return Vec3(
            lhs.y * rhs.z - lhs.z * rhs.y,
            lhs.z * rhs.x - lhs.x * rhs.z,
            lhs.x * rhs.y - lhs.y * rhs.x,
        )

    @staticmethod
    def project(v: Vec3, normal: Vec3) -> Vec3:
        """Projection of ``v`` onto ``normal``."""
        sqr = normal.sqr_length()
        if sqr < EPSILON:
            return Vec3()
        d = Vec3.dot(v, normal)
        return Vec3(normal.x * d / sqr, normal.y * d / sqr, normal.z * d / sqr)

    @staticmethod
    def project_on_plane(v: Vec3, normal: Vec3) -> Vec3:
        """Projection of ``v`` onto the plane orthogonal to ``normal``."""
        sqr = normal.sqr_length()
        if sqr < EPSILON:
            return v
        d = Vec3.dot(v, normal)
        return Vec3(
            v.x - normal.x * d / sqr,
            v.y - normal.y * d / sqr,
            v.z - normal.z * d / sqr,
        )

    @staticmethod
    def reflect(v: Vec3, normal: Vec3) -> Vec3:
        factor = -2.0 * Vec3.dot(v, normal)
        return Vec3(
            normal.x * factor + v.x,
            normal.y * factor + v.y,
            normal.z * factor + v.z,
        )

    @staticmethod
    def angle(lhs: Vec3, rhs: Vec3) -> float:
        """Unsigned angle between two vectors in degrees."""
        size = Vec3.cross(lhs, rhs).length()
        d = Vec3.dot(lhs, rhs)
        return math.atan2(size, d) * RAD2DEG


@dataclass(frozen=True)
class Vec4:
    """Four-component vector; also used as an RGBA colour."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 0.0

    @classmethod
    def splat(cls, value: float) -> Vec4:
        """Vector with every component set to ``value``."""
        return cls(value, value, value, value)

    @property
    def r(self) -> float:
        return self.x

    @property
    def g(self) -> float:
        return self.y

    @property
    def b(self) -> float:
        return self.z

    @property
    def a(self) -> float:
        return self.w

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z
        yield self.w

    def length(self) -> float:
        return math.sqrt(self.sqr_length())

    def sqr_length(self) -> float:
        return self.x * self.x + self.y * self.y + self.z * self.z + self.w * self.w


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle given by its corner and size."""

    x: float = 0.0
    y: float = 0.0
    w: float = 0.0
    h: float = 0.0


def sign(value: float) -> float:
    """1.0 for zero or positive values, -1.0 otherwise."""
    return 1.0 if value >= 0.0 else -1.0


def clamp(value: float, minimum: float, maximum: float) -> float:
    return min(maximum, max(minimum, value))


def clamp01(value: float) -> float:
    return min(1.0, max(0.0, value))


def clamp_vec3(value: Vec3, minimum: Vec3, maximum: Vec3) -> Vec3:
    return Vec3(
        max(minimum.x, min(maximum.x, value.x)),
        max(minimum.y, min(maximum.y, value.y)),
        max(minimum.z, min(maximum.z, value.z)),
    )


def lerp(start: float, end: float, t: float) -> float:
    return (1 - t) * start + t * end


def lerp_vec3(start: Vec3, end: Vec3, t: float) -> Vec3:
    return start * (1.0 - t) + end * t