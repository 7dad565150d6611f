"""
Geometry primitives

Small immutable 2D/3D vector value types used by the per-triangle placement
math. Bulk data (vertex buffers, UV buffers) stays in numpy arrays.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Sequence

import numpy as np

_EPS = 1e-10


@dataclass(frozen=True)
class Vec2:
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Vec2) -> Vec2:
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vec2) -> Vec2:
        return Vec2(self.x - other.x, self.y - other.y)

    def __mul__(self, s: float) -> Vec2:
        return Vec2(self.x * s, self.y * s)

    __rmul__ = __mul__

    def dot(self, other: Vec2) -> float:
        return self.x * other.x + self.y * other.y

    def cross(self, other: Vec2) -> float:
        """z 성분 (2D signed area x2)"""
        return self.x * other.y - self.y * other.x

    def perp(self) -> Vec2:
        """90도 반시계 회전"""
        return Vec2(-self.y, self.x)

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y)

    def normalize(self) -> Vec2:
        n = self.length()
        if n > _EPS:
            return Vec2(self.x / n, self.y / n)
        return Vec2(0.0, 0.0)

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=np.float64)

    @classmethod
    def from_seq(cls, values: Sequence[float]) -> Vec2:
        return cls(float(values[0]), float(values[1]))


@dataclass(frozen=True)
class Vec3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: Vec3) -> Vec3:
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vec3) -> Vec3:
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, s: float) -> Vec3:
        return Vec3(self.x * s, self.y * s, self.z * s)

    __rmul__ = __mul__

    def dot(self, other: Vec3) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: Vec3) -> Vec3:
        return Vec3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def normalize(self) -> Vec3:
        n = self.length()
        if n > _EPS:
            return Vec3(self.x / n, self.y / n, self.z / n)
        return Vec3(0.0, 0.0, 0.0)

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @classmethod
    def from_seq(cls, values: Sequence[float]) -> Vec3:
        return cls(float(values[0]), float(values[1]), float(values[2]))


def clamp_unit(value: float) -> float:
    """cos 값 등 부동소수 오차로 [-1, 1]을 벗어난 값을 잘라냅니다."""
    return max(-1.0, min(1.0, float(value)))
