"""Transforms, rays, axis-aligned bounds and planes."""

from __future__ import annotations

from dataclasses import dataclass, field

from mintengine.transform import Mat4, Quat
from mintengine.vector import Vec3


@dataclass(frozen=True)
class Transform:
    """Position, rotation and scale of an object."""

    pos: Vec3 = Vec3()
    rot: Quat = Quat()
    scale: Vec3 = Vec3(1.0, 1.0, 1.0)

    def to_mat4(self) -> Mat4:
        return Mat4.from_trs(self.pos, self.rot, self.scale)


@dataclass(frozen=True)
class Ray:
    """Half-line starting at ``pos`` and running along ``direction``."""

    pos: Vec3 = Vec3()
    direction: Vec3 = Vec3()


@dataclass
class Bounds:
    """Axis-aligned box given by its centre and half its size."""

    center: Vec3 = field(default_factory=Vec3)
    extents: Vec3 = field(default_factory=Vec3)

    @classmethod
    def from_min_max(cls, minimum: Vec3, maximum: Vec3) -> Bounds:
        return cls((minimum + maximum) * 0.5, (maximum - minimum) * 0.5)

    def get_min(self) -> Vec3:
        return self.center - self.extents

    def get_max(self) -> Vec3:
        return self.center + self.extents

    def get_size(self) -> Vec3:
        return self.extents * 2.0

    def encapsulate(self, other: Vec3 | Bounds) -> None:
        """Grow the box in place so that it holds a point or another box."""
        if isinstance(other, Bounds):
            self.encapsulate(other.get_min())
            self.encapsulate(other.get_max())
            return

        lo = list(self.get_min())
        hi = list(self.get_max())
        for axis, value in enumerate(other):
            if value < lo[axis]:
                lo[axis] = value
            elif value > hi[axis]:
                hi[axis] = value
        minimum, maximum = Vec3(*lo), Vec3(*hi)
        self.center = (minimum + maximum) * 0.5
        self.extents = (maximum - minimum) * 0.5

    def intersects(self, other: Bounds) -> bool:
        a_min, a_max = self.get_min(), self.get_max()
        b_min, b_max = other.get_min(), other.get_max()
        # The second axis compares only the lower y bound; the x overlap is
        # checked twice, matching the engine's established behaviour.
        return (
            a_min.x <= b_max.x
            and a_max.x >= b_min.x
            and a_min.y <= b_max.y
            and a_max.x >= b_min.x
            and a_min.z <= b_max.z
            and a_max.z >= b_min.z
        )

    def contains(self, other: Vec3 | Bounds) -> bool:
        """Whether a point, or a whole box, lies inside this box."""
        lo, hi = self.get_min(), self.get_max()
        if isinstance(other, Bounds):
            b_min, b_max = other.get_min(), other.get_max()
            return (
                lo.x <= b_min.x and hi.x >= b_max.x
                and lo.y <= b_min.y and hi.y >= b_max.y
                and lo.z <= b_min.z and hi.z >= b_max.z
            )
        return (
            lo.x <= other.x <= hi.x
            and lo.y <= other.y <= hi.y
            and lo.z <= other.z <= hi.z
        )


@dataclass(frozen=True)
class Plane:
    """Plane through ``origin`` with the given ``normal``."""

    origin: Vec3
    normal: Vec3

    @classmethod
    def from_points(cls, p1: Vec3, p2: Vec3, p3: Vec3) -> Plane:
        """Plane through three points, its normal following their winding."""
        return cls(p1, Vec3.cross(p2 - p1, p3 - p1).normalized())

    def get_side(self, point: Vec3) -> bool:
        """True when the point lies on the side the normal faces, or on the plane."""
        return Vec3.dot(self.normal, (point - self.origin).normalized()) >= 0

    def signed_distance_to(self, point: Vec3) -> float:
        return Vec3.dot(point, self.normal) - Vec3.dot(self.normal, self.origin)