"""Quaternions and 4x4 matrices."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Iterator

from mintengine.vector import DEG2RAD, EPSILON, RAD2DEG, Vec3, Vec4


@dataclass(frozen=True)
class Quat:
    """Rotation quaternion; angles taken by constructors are in degrees."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z
        yield self.w

    def __neg__(self) -> Quat:
        return Quat(-self.x, -self.y, -self.z, -self.w)

    def __mul__(self, rhs):
        x, y, z, w = self.x, self.y, self.z, self.w
        if isinstance(rhs, Vec3):
            return Vec3(
                rhs.x * (x * x + w * w - y * y - z * z)
                + rhs.y * (2.0 * x * y - 2.0 * w * z)
                + rhs.z * (2.0 * x * z + 2.0 * w * y),
                rhs.x * (2.0 * w * z + 2.0 * x * y)
                + rhs.y * (w * w - x * x + y * y - z * z)
                + rhs.z * (-2.0 * w * x + 2.0 * y * z),
                rhs.x * (-2.0 * w * y + 2.0 * x * z)
                + rhs.y * (2.0 * w * x + 2.0 * y * z)
                + rhs.z * (w * w - x * x - y * y + z * z),
            )
        if isinstance(rhs, Quat):
            return Quat(
                x * rhs.w + w * rhs.x + y * rhs.z - z * rhs.y,
                y * rhs.w + w * rhs.y + z * rhs.x - x * rhs.z,
                z * rhs.w + w * rhs.z + x * rhs.y - y * rhs.x,
                w * rhs.w - x * rhs.x - y * rhs.y - z * rhs.z,
            )
        if isinstance(rhs, (int, float)):
            return Quat(x * rhs, y * rhs, z * rhs, w * rhs)
        return NotImplemented

    @staticmethod
    def identity() -> Quat:
        return Quat(0.0, 0.0, 0.0, 1.0)

    @staticmethod
    def euler(x: float, y: float, z: float) -> Quat:
        """Rotation from Euler angles in degrees."""
        xr = x * DEG2RAD
        yr = y * DEG2RAD
        zr = z * DEG2RAD
        x0 = math.cos(xr * 0.5)
        x1 = math.sin(xr * 0.5)
        y0 = math.cos(yr * 0.5)
        y1 = math.sin(yr * 0.5)
        z0 = math.cos(zr * 0.5)
        z1 = math.sin(zr * 0.5)
        return Quat(
            x1 * y0 * z0 - x0 * y1 * z1,
            x0 * y1 * z0 + x1 * y0 * z1,
            x0 * y0 * z1 - x1 * y1 * z0,
            x0 * y0 * z0 + x1 * y1 * z1,
        )

    @staticmethod
    def from_euler(angles: Vec3) -> Quat:
        return Quat.euler(angles.x, angles.y, angles.z)

    @staticmethod
    def from_to(source: Vec3, target: Vec3) -> Quat:
        """Rotation taking unit vector ``source`` onto unit vector ``target``."""
        theta = Vec3.dot(source, target)
        if theta == 0.0:
            return Quat.identity()
        c = Vec3.cross(source, target)
        return Quat(c.x, c.y, c.z, 1.0 + theta).normalized()

    @staticmethod
    def axis_angle(axis: Vec3, angle: float) -> Quat:
        """Rotation of ``angle`` degrees about ``axis``."""
        if axis.length() == 0.0:
            return Quat()
        half = angle * DEG2RAD * 0.5
        a = axis.normalized()
        s = math.sin(half)
        return Quat(a.x * s, a.y * s, a.z * s, math.cos(half)).normalized()

    @staticmethod
    def lerp(start: Quat, end: Quat, t: float) -> Quat:
        t = t if t < 1.0 else 1.0
        return Quat(
            start.x + (end.x - start.x) * t,
            start.y + (end.y - start.y) * t,
            start.z + (end.z - start.z) * t,
            start.w + (end.w - start.w) * t,
        )

    @staticmethod
    def nlerp(start: Quat, end: Quat, t: float) -> Quat:
        t = t if t < 1.0 else 1.0
        return Quat.lerp(start, end, t).normalized()

    @staticmethod
    def slerp(start: Quat, end: Quat, t: float) -> Quat:
        t = t if t < 1.0 else 1.0
        q2 = end
        cos_half = start.x * q2.x + start.y * q2.y + start.z * q2.z + start.w * q2.w
        if cos_half < 0:
            q2 = -q2
            cos_half = -cos_half

        if math.fabs(cos_half) >= 1.0:
            return start
        if cos_half > 0.95:
            return Quat.nlerp(start, q2, t)

        half_theta = math.acos(cos_half)
        sin_half = math.sqrt(1.0 - cos_half * cos_half)
        if math.fabs(sin_half) < 0.001:
            return Quat(*(a * 0.5 + b * 0.5 for a, b in zip(start, q2)))
        ratio_a = math.sin((1 - t) * half_theta) / sin_half
        ratio_b = math.sin(t * half_theta) / sin_half
        return Quat(*(a * ratio_a + b * ratio_b for a, b in zip(start, q2)))

    @staticmethod
    def angle(q1: Quat, q2: Quat) -> float:
        """Angle in degrees between two rotations."""
        d = q1.x * q2.x + q1.y * q2.y + q1.z * q2.z + q1.w * q2.w
        d = min(math.fabs(d), 1.0)
        return 0.0 if d > 1.0 - EPSILON else math.acos(d) * 2.0 * RAD2DEG

    @staticmethod
    def look(direction: Vec3, up: Vec3) -> Quat:
        """Rotation whose forward axis points along ``direction``."""
        return Mat4.lookat(Vec3(), -direction.normalized(), up).inversed().to_quat()

    def to_euler(self) -> Vec3:
        """Roll, pitch and yaw in radians."""
        x, y, z, w = self.x, self.y, self.z, self.w
        roll = math.atan2(2.0 * (w * x + y * z), 1.0 - 2.0 * (x * x + y * y))
        y0 = 2.0 * (w * y - z * x)
        y0 = 1.0 if y0 > 1.0 else y0
        y0 = -1.0 if y0 < -1.0 else y0
        pitch = math.asin(y0)
        yaw = math.atan2(2.0 * (w * z + x * y), 1.0 - 2.0 * (y * y + z * z))
        return Vec3(roll, pitch, yaw)

    def to_mat4(self) -> Mat4:
        x, y, z, w = self.x, self.y, self.z, self.w
        a2, b2, c2 = x * x, y * y, z * z
        ac, ab, bc = x * z, x * y, y * z
        ad, bd, cd = w * x, w * y, w * z
        return Mat4(
            (
                1.0 - 2.0 * (b2 + c2), 2.0 * (ab + cd), 2.0 * (ac - bd), 0.0,
                2.0 * (ab - cd), 1.0 - 2.0 * (a2 + c2), 2.0 * (bc + ad), 0.0,
                2.0 * (ac + bd), 2.0 * (bc - ad), 1.0 - 2.0 * (a2 + b2), 0.0,
                0.0, 0.0, 0.0, 1.0,
            )
        )

    def length(self) -> float:
        return math.sqrt(self.sqr_length())

    def sqr_length(self) -> float:
        return self.x * self.x + self.y * self.y + self.z * self.z + self.w * self.w

    def normalized(self) -> Quat:
        size = self.length()
        if size == 0.0:
            size = 1.0
        inv = 1.0 / size
        return Quat(self.x * inv, self.y * inv, self.z * inv, self.w * inv)

    def inverse(self) -> Quat:
        t = 1.0 / self.sqr_length()
        return Quat(-self.x * t, -self.y * t, -self.z * t, self.w)

    def right(self) -> Vec3:
        x, y, z, w = self.x, self.y, self.z, self.w
        return -Vec3(
            x * x - y * y - z * z + w * w,
            2 * (x * y + z * w),
            2 * (x * z - y * w),
        )

    def up(self) -> Vec3:
        x, y, z, w = self.x, self.y, self.z, self.w
        return Vec3(
            2 * (x * y - z * w),
            -x * x + y * y - z * z + w * w,
            2 * (x * w + y * z),
        )

    def forward(self) -> Vec3:
        x, y, z, w = self.x, self.y, self.z, self.w
        return Vec3(
            2 * (x * z + y * w),
            2 * (y * z - x * w),
            -x * x - y * y + z * z + w * w,
        )


@dataclass(frozen=True)
class Mat4:
    """4x4 matrix of 16 floats; elements 12..14 hold the translation."""

    m: tuple = (0.0,) * 16

    def __post_init__(self) -> None:
        values = tuple(float(v) for v in self.m)
        if len(values) != 16:
            raise ValueError(f"a 4x4 matrix needs 16 values, got {len(values)}")
        object.__setattr__(self, "m", values)

    def __iter__(self) -> Iterator[float]:
        return iter(self.m)

    def __getitem__(self, index: int) -> float:
        return self.m[index]

    def __matmul__(self, rhs):
        a = self.m
        if isinstance(rhs, Mat4):
            b = rhs.m
            return Mat4(
                tuple(
                    sum(a[row * 4 + k] * b[k * 4 + col] for k in range(4))
                    for row in range(4)
                    for col in range(4)
                )
            )
        if isinstance(rhs, Vec4):
            v = tuple(rhs)
            return Vec4(*(sum(a[k * 4 + i] * v[k] for k in range(4)) for i in range(4)))
        return NotImplemented

    @classmethod
    def zero(cls) -> Mat4:
        return cls((0.0,) * 16)

    @classmethod
    def identity(cls) -> Mat4:
        return cls(tuple(1.0 if i % 5 == 0 else 0.0 for i in range(16)))

    @classmethod
    def from_trs(cls, pos: Vec3, rot: Quat, scale: Vec3) -> Mat4:
        """Matrix applying scale, then rotation, then translation."""
        qx, qy, qz, qw = rot.x, rot.y, rot.z, rot.w
        return cls(
            (
                (1 - 2 * qy * qy - 2 * qz * qz) * scale.x,
                (2 * qx * qy + 2 * qz * qw) * scale.x,
                (2 * qx * qz - 2 * qy * qw) * scale.x,
                0.0,
                (2 * qx * qy - 2 * qz * qw) * scale.y,
                (1 - 2 * qx * qx - 2 * qz * qz) * scale.y,
                (2 * qy * qz + 2 * qx * qw) * scale.y,
                0.0,
                (2 * qx * qz + 2 * qy * qw) * scale.z,
                (2 * qy * qz - 2 * qx * qw) * scale.z,
                (1 - 2 * qx * qx - 2 * qy * qy) * scale.z,
                0.0,
                pos.x,
                pos.y,
                pos.z,
                1.0,
            )
        )

    @classmethod
    def translate(cls, pos: Vec3) -> Mat4:
        values = list(cls.identity().m)
        values[12:16] = [pos.x, pos.y, pos.z, 1.0]
        return cls(values)

    @classmethod
    def perspective(cls, fovy: float, aspect: float, near: float, far: float) -> Mat4:
        """Perspective projection; ``fovy`` is in radians."""
        top = near * math.tan(fovy * 0.5)
        bottom = -top
        right = top * aspect
        left = -right
        rl = right - left
        tb = top - bottom
        fn = far - near
        values = [0.0] * 16
        values[0] = near * 2.0 / rl
        values[5] = near * 2.0 / tb
        values[8] = (right + left) / rl
        values[9] = (top + bottom) / tb
        values[10] = -(far + near) / fn
        values[11] = -1.0
        values[14] = far * near * -2.0 / fn
        return cls(values)

    @classmethod
    def ortho(
        cls, left: float, right: float, bottom: float, top: float, near: float, far: float
    ) -> Mat4:
        values = [0.0] * 16
        values[0] = 2.0 / (right - left)
        values[5] = 2.0 / (top - bottom)
        values[10] = -2.0 / (far - near)
        values[15] = 1.0
        values[12] = -(left + right) / (right - left)
        values[13] = -(top + bottom) / (top - bottom)
        values[14] = -(far + near) / (far - near)
        return cls(values)

    @classmethod
    def lookat(cls, pos: Vec3, target: Vec3, up: Vec3) -> Mat4:
        """View matrix looking from ``pos`` towards ``target``."""
        f = (target - pos).normalized() * -1.0
        r = Vec3.cross(up, f).normalized()
        if r.x == 0.0 and r.y == 0.0 and r.z == 0.0:
            return cls.lookat(pos, pos - Vec3(0.0, 0.0, -1.0), Vec3(0.0, 1.0, 0.0))
        u = Vec3.cross(f, r).normalized()
        return cls(
            (
                r.x, u.x, f.x, 0.0,
                r.y, u.y, f.y, 0.0,
                r.z, u.z, f.z, 0.0,
                -Vec3.dot(r, pos), -Vec3.dot(u, pos), -Vec3.dot(f, pos), 1.0,
            )
        )

    def inversed(self) -> Mat4:
        """Inverse matrix; raises ValueError when the matrix is singular."""
        (a00, a01, a02, a03,
         a10, a11, a12, a13,
         a20, a21, a22, a23,
         a30, a31, a32, a33) = self.m

        b00 = a00 * a11 - a01 * a10
        b01 = a00 * a12 - a02 * a10
        b02 = a00 * a13 - a03 * a10
        b03 = a01 * a12 - a02 * a11
        b04 = a01 * a13 - a03 * a11
        b05 = a02 * a13 - a03 * a12
        b06 = a20 * a31 - a21 * a30
        b07 = a20 * a32 - a22 * a30
        b08 = a20 * a33 - a23 * a30
        b09 = a21 * a32 - a22 * a31
        b10 = a21 * a33 - a23 * a31
        b11 = a22 * a33 - a23 * a32

        det = b00 * b11 - b01 * b10 + b02 * b09 + b03 * b08 - b04 * b07 + b05 * b06
        if det == 0.0:
            raise ValueError("matrix is not invertible")
        inv = 1.0 / det

        return Mat4(
            (
                (a11 * b11 - a12 * b10 + a13 * b09) * inv,
                (-a01 * b11 + a02 * b10 - a03 * b09) * inv,
                (a31 * b05 - a32 * b04 + a33 * b03) * inv,
                (-a21 * b05 + a22 * b04 - a23 * b03) * inv,
                (-a10 * b11 + a12 * b08 - a13 * b07) * inv,
                (a00 * b11 - a02 * b08 + a03 * b07) * inv,
                (-a30 * b05 + a32 * b02 - a33 * b01) * inv,
                (a20 * b05 - a22 * b02 + a23 * b01) * inv,
                (a10 * b10 - a11 * b08 + a13 * b06) * inv,
                (-a00 * b10 + a01 * b08 - a03 * b06) * inv,
                (a30 * b04 - a31 * b02 + a33 * b00) * inv,
                (-a20 * b04 + a21 * b02 - a23 * b00) * inv,
                (-a10 * b09 + a11 * b07 - a12 * b06) * inv,
                (a00 * b09 - a01 * b07 + a02 * b06) * inv,
                (-a30 * b03 + a31 * b01 - a32 * b00) * inv,
                (a20 * b03 - a21 * b01 + a22 * b00) * inv,
            )
        )

    def to_quat(self) -> Quat:
        """Rotation held in the upper 3x3 part."""
        m = self.m
        candidates = (
            m[0] + m[5] + m[10],
            m[0] - m[5] - m[10],
            m[5] - m[0] - m[10],
            m[10] - m[0] - m[5],
        )
        biggest_index = 0
        biggest = candidates[0]
        for index in (1, 2, 3):
            if candidates[index] > biggest:
                biggest = candidates[index]
                biggest_index = index

        value = math.sqrt(biggest + 1.0) * 0.5
        mult = 0.25 / value

        if biggest_index == 0:
            return Quat((m[6] - m[9]) * mult, (m[8] - m[2]) * mult, (m[1] - m[4]) * mult, value)
        if biggest_index == 1:
            return Quat(value, (m[1] + m[4]) * mult, (m[8] + m[2]) * mult, (m[6] - m[9]) * mult)
        if biggest_index == 2:
            return Quat((m[1] + m[4]) * mult, value, (m[6] + m[9]) * mult, (m[8] - m[2]) * mult)
        return Quat((m[8] + m[2]) * mult, (m[6] + m[9]) * mult, value, (m[1] - m[4]) * mult)

    def multiply_point_3x4(self, point: Vec3) -> Vec3:
        m = self.m
        return Vec3(
            m[0] * point.x + m[4] * point.y + m[8] * point.z + m[12],
            m[1] * point.x + m[5] * point.y + m[9] * point.z + m[13],
            m[2] * point.x + m[6] * point.y + m[10] * point.z + m[14],
        )

    def multiply_point(self, point: Vec3) -> Vec3:
        """Transform a point including the perspective divide."""
        m = self.m
        res = self.multiply_point_3x4(point)
        w = m[3] * point.x + m[7] * point.y + m[11] * point.z + m[15]
        return res * (1.0 / w)

    def multiply_vector(self, vector: Vec3) -> Vec3:
        """Transform a direction, ignoring translation."""
        m = self.m
        return Vec3(
            m[0] * vector.x + m[4] * vector.y + m[8] * vector.z,
            m[1] * vector.x + m[5] * vector.y + m[9] * vector.z,
            m[2] * vector.x + m[6] * vector.y + m[10] * vector.z,
        )

    def get_position(self) -> Vec3:
        return Vec3(self.m[12], self.m[13], self.m[14])


def _as_mat4(values: Iterable[float]) -> Mat4:
    return Mat4(tuple(values))