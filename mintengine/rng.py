"""Deterministic xorshift random number generator and sampling helpers."""

from __future__ import annotations

import math

from mintengine.transform import Quat
from mintengine.vector import DEG2RAD, PI, RAD2DEG, Vec2, Vec3

_MASK32 = 0xFFFFFFFF
_DEFAULT_STATE = (123456789, 362436069, 521288629, 88675123)


class Rng:
    """Xorshift128 generator with helpers for ranges and geometric samples."""

    def __init__(self) -> None:
        self._state = list(_DEFAULT_STATE)

    def set_seed(self, seed: int) -> None:
        """Mix ``seed`` into the state and discard the next 40 outputs."""
        self._state[3] = seed & _MASK32
        for _ in range(40):
            self.next_u32()

    def next_u32(self) -> int:
        s = self._state
        t = (s[0] ^ (s[0] << 11)) & _MASK32
        s[0], s[1], s[2] = s[1], s[2], s[3]
        s[3] = (s[3] ^ (s[3] >> 19)) ^ (t ^ (t >> 8))
        return s[3]

    def random(self) -> float:
        """Float in [0, 1], both ends included."""
        return self.next_u32() / float(_MASK32)

    def uniform(self, low: float, high: float) -> float:
        """Float between ``low`` and ``high``, both included."""
        return (high - low) * self.random() + low

    def randint(self, low: int, high: int) -> int:
        """Integer in [low, high)."""
        span = high - low
        if span <= 0:
            raise ValueError(f"empty range [{low}, {high})")
        return self.next_u32() % span + low

    def in_circle(self, radius: float = 1.0) -> Vec2:
        """Uniform point inside a disc of the given radius."""
        r = radius * math.sqrt(self.random())
        theta = self.random() * 2.0 * PI
        return Vec2(r * math.cos(theta), r * math.sin(theta))

    def in_sphere(self, radius: float = 1.0) -> Vec3:
        """Uniform point inside a ball of the given radius."""
        u = self.random()
        v = self.random()
        theta = u * 2.0 * PI
        phi = math.acos(2.0 * v - 1.0)
        r = radius * self.random() ** (1.0 / 3.0)
        sin_phi = math.sin(phi)
        return Vec3(
            r * sin_phi * math.cos(theta),
            r * sin_phi * math.sin(theta),
            r * math.cos(phi),
        )

    def cone(self, direction: Vec3, cone_half_angle: float) -> Vec3:
        """``direction`` turned by a random angle of at most ``cone_half_angle`` degrees."""
        u = self.random()
        v = self.random()
        theta = u * 2.0 * PI
        phi = math.fmod(math.acos(2.0 * v - 1.0), cone_half_angle * DEG2RAD)
        q = Quat.from_to(Vec3(0.0, 0.0, 1.0), direction.normalized())
        dir_z = q * Vec3(0.0, 0.0, 1.0)
        dir_x = q * Vec3(1.0, 0.0, 0.0)
        res = Quat.axis_angle(dir_x, phi * RAD2DEG) * direction
        return Quat.axis_angle(dir_z, theta * RAD2DEG) * res