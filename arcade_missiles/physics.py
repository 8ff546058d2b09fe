#!/usr/bin/env python3
"""
Physics Primitives for the Arcade Missiles simulator

Provides the spatial math the flight model is built on:
- Vector3D for positions, velocities and directions
- Quaternion for orientations (look rotations, bounded slews)
- Bounded direction rotation used by the lead-guidance clamp

Frame convention (right-handed, body and world alike):
- X: forward (missile nose)
- Y: left
- Z: up

All units are arcade units: metres, seconds, degrees where a name says so.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


# =============================================================================
# CONSTANTS
# =============================================================================

# Free-fall acceleration (m/s^2), applied along world -Z
GRAVITY_MS2 = 9.81

# Below this length a direction is treated as undefined
EPSILON = 1e-9


# =============================================================================
# VECTOR3D CLASS
# =============================================================================

@dataclass
class Vector3D:
    """
    3D vector for positions, velocities, and directions.

    Equality is tolerance based so that vectors produced by rotations
    compare equal to their analytic values.
    """
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: Vector3D) -> Vector3D:
        return Vector3D(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector3D) -> Vector3D:
        return Vector3D(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> Vector3D:
        return Vector3D(self.x * scalar, self.y * scalar, self.z * scalar)

    def __rmul__(self, scalar: float) -> Vector3D:
        return self.__mul__(scalar)

    def __truediv__(self, scalar: float) -> Vector3D:
        if scalar == 0:
            raise ValueError("Cannot divide vector by zero")
        return Vector3D(self.x / scalar, self.y / scalar, self.z / scalar)

    def __neg__(self) -> Vector3D:
        return Vector3D(-self.x, -self.y, -self.z)

    def __eq__(self, other: object) -> bool:
        """Equality check with tolerance."""
        if not isinstance(other, Vector3D):
            return False
        eps = 1e-10
        return (abs(self.x - other.x) < eps and
                abs(self.y - other.y) < eps and
                abs(self.z - other.z) < eps)

    def dot(self, other: Vector3D) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: Vector3D) -> Vector3D:
        return Vector3D(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x
        )

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.x**2 + self.y**2 + self.z**2)

    @property
    def magnitude_squared(self) -> float:
        """Squared magnitude (avoids sqrt for comparisons)."""
        return self.x**2 + self.y**2 + self.z**2

    def normalized(self) -> Vector3D:
        """Unit vector in the same direction; the zero vector stays zero."""
        mag = self.magnitude
        if mag < EPSILON:
            return Vector3D.zero()
        return self / mag

    def distance_to(self, other: Vector3D) -> float:
        return (self - other).magnitude

    def angle_to(self, other: Vector3D) -> float:
        """Unsigned angle between vectors in radians (0 if either is zero)."""
        mags = self.magnitude * other.magnitude
        if mags < EPSILON:
            return 0.0
        cos_angle = max(-1.0, min(1.0, self.dot(other) / mags))
        return math.acos(cos_angle)

    def angle_to_deg(self, other: Vector3D) -> float:
        """Unsigned angle between vectors in degrees."""
        return math.degrees(self.angle_to(other))

    def rotate_around_axis(self, axis: Vector3D, angle_rad: float) -> Vector3D:
        """Rotate around an axis using Rodrigues' rotation formula."""
        k = axis.normalized()
        cos_a = math.cos(angle_rad)
        sin_a = math.sin(angle_rad)

        # v_rot = v*cos(a) + (k x v)*sin(a) + k*(k.v)*(1-cos(a))
        return (self * cos_a +
                k.cross(self) * sin_a +
                k * k.dot(self) * (1 - cos_a))

    def any_perpendicular(self) -> Vector3D:
        """Some unit vector perpendicular to this one."""
        # Cross with whichever world axis is least aligned
        if abs(self.z) < 0.9:
            return self.cross(Vector3D.unit_z()).normalized()
        return self.cross(Vector3D.unit_y()).normalized()

    def copy(self) -> Vector3D:
        return Vector3D(self.x, self.y, self.z)

    def to_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @classmethod
    def from_tuple(cls, t: tuple[float, float, float]) -> Vector3D:
        return cls(float(t[0]), float(t[1]), float(t[2]))

    @classmethod
    def zero(cls) -> Vector3D:
        return cls(0.0, 0.0, 0.0)

    @classmethod
    def unit_x(cls) -> Vector3D:
        """Unit vector in X direction (forward)."""
        return cls(1.0, 0.0, 0.0)

    @classmethod
    def unit_y(cls) -> Vector3D:
        """Unit vector in Y direction (left)."""
        return cls(0.0, 1.0, 0.0)

    @classmethod
    def unit_z(cls) -> Vector3D:
        """Unit vector in Z direction (up)."""
        return cls(0.0, 0.0, 1.0)

    def __repr__(self) -> str:
        return f"Vector3D({self.x:.6g}, {self.y:.6g}, {self.z:.6g})"


def gravity_vector() -> Vector3D:
    """World-space gravitational acceleration."""
    return Vector3D(0.0, 0.0, -GRAVITY_MS2)


def rotate_towards(
    current: Vector3D,
    target: Vector3D,
    max_radians: float
) -> Vector3D:
    """
    Rotate the direction `current` towards `target` by at most max_radians.

    Both inputs are treated as directions; the result is a unit vector. When
    the target lies within max_radians the target direction is returned.

    Args:
        current: Starting direction
        target: Desired direction
        max_radians: Largest rotation allowed

    Returns:
        Unit direction vector
    """
    start = current.normalized()
    goal = target.normalized()
    if start.magnitude < EPSILON:
        return goal
    if goal.magnitude < EPSILON:
        return start

    angle = start.angle_to(goal)
    if angle <= max_radians:
        return goal

    axis = start.cross(goal)
    if axis.magnitude < EPSILON:
        # Antiparallel: any perpendicular axis is a valid great circle
        axis = start.any_perpendicular()

    return start.rotate_around_axis(axis, max_radians).normalized()


# =============================================================================
# QUATERNION CLASS
# =============================================================================

@dataclass
class Quaternion:
    """
    Unit quaternion describing a body orientation.

    rotate() maps body-frame vectors into the world frame, so
    `q.rotate(Vector3D.unit_x())` is the body's forward direction.
    """
    w: float = 1.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def identity(cls) -> Quaternion:
        return cls(1.0, 0.0, 0.0, 0.0)

    @classmethod
    def from_axis_angle(cls, axis: Vector3D, angle_rad: float) -> Quaternion:
        k = axis.normalized()
        if k.magnitude < EPSILON:
            return cls.identity()
        half = angle_rad / 2.0
        s = math.sin(half)
        return cls(math.cos(half), k.x * s, k.y * s, k.z * s)

    @classmethod
    def look_rotation(
        cls,
        forward: Vector3D,
        up: Vector3D | None = None
    ) -> Quaternion:
        """
        Orientation whose forward axis points along `forward`.

        The body up axis is the component of `up` perpendicular to forward.
        If `up` is missing or parallel to forward, a perpendicular is chosen.

        Args:
            forward: Desired forward direction (world space)
            up: Preferred up direction (world space), defaults to world +Z

        Returns:
            Orientation quaternion (identity for a zero forward vector)
        """
        f = forward.normalized()
        if f.magnitude < EPSILON:
            return cls.identity()
        if up is None:
            up = Vector3D.unit_z()

        left = up.cross(f)
        if left.magnitude < EPSILON:
            left = f.any_perpendicular().cross(f)
        left = left.normalized()
        u = f.cross(left)

        # Rotation matrix columns are the body axes in world space
        m00, m01, m02 = f.x, left.x, u.x
        m10, m11, m12 = f.y, left.y, u.y
        m20, m21, m22 = f.z, left.z, u.z

        trace = m00 + m11 + m22
        if trace > 0.0:
            s = math.sqrt(trace + 1.0) * 2.0
            q = cls(0.25 * s, (m21 - m12) / s, (m02 - m20) / s, (m10 - m01) / s)
        elif m00 > m11 and m00 > m22:
            s = math.sqrt(1.0 + m00 - m11 - m22) * 2.0
            q = cls((m21 - m12) / s, 0.25 * s, (m01 + m10) / s, (m02 + m20) / s)
        elif m11 > m22:
            s = math.sqrt(1.0 + m11 - m00 - m22) * 2.0
            q = cls((m02 - m20) / s, (m01 + m10) / s, 0.25 * s, (m12 + m21) / s)
        else:
            s = math.sqrt(1.0 + m22 - m00 - m11) * 2.0
            q = cls((m10 - m01) / s, (m02 + m20) / s, (m12 + m21) / s, 0.25 * s)
        return q.normalized()

    def __mul__(self, other: Quaternion) -> Quaternion:
        """Hamilton product: applying `other` first, then self."""
        return Quaternion(
            self.w * other.w - self.x * other.x - self.y * other.y - self.z * other.z,
            self.w * other.x + self.x * other.w + self.y * other.z - self.z * other.y,
            self.w * other.y - self.x * other.z + self.y * other.w + self.z * other.x,
            self.w * other.z + self.x * other.y - self.y * other.x + self.z * other.w
        )

    def dot(self, other: Quaternion) -> float:
        return self.w * other.w + self.x * other.x + self.y * other.y + self.z * other.z

    def conjugate(self) -> Quaternion:
        return Quaternion(self.w, -self.x, -self.y, -self.z)

    def normalized(self) -> Quaternion:
        mag = math.sqrt(self.dot(self))
        if mag < EPSILON:
            return Quaternion.identity()
        return Quaternion(self.w / mag, self.x / mag, self.y / mag, self.z / mag)

    def rotate(self, v: Vector3D) -> Vector3D:
        """Transform a body-frame vector into the world frame."""
        qv = Vector3D(self.x, self.y, self.z)
        t = qv.cross(v) * 2.0
        return v + t * self.w + qv.cross(t)

    def inverse_rotate(self, v: Vector3D) -> Vector3D:
        """Transform a world-frame vector into the body frame."""
        return self.conjugate().rotate(v)

    @property
    def forward(self) -> Vector3D:
        return self.rotate(Vector3D.unit_x())

    @property
    def left(self) -> Vector3D:
        return self.rotate(Vector3D.unit_y())

    @property
    def up(self) -> Vector3D:
        return self.rotate(Vector3D.unit_z())

    def angle_to(self, other: Quaternion) -> float:
        """Angle in degrees of the rotation taking self to other."""
        d = min(1.0, abs(self.dot(other)))
        return math.degrees(2.0 * math.acos(d))

    def slerp(self, other: Quaternion, t: float) -> Quaternion:
        """Spherical interpolation along the shortest arc."""
        d = self.dot(other)
        if d < 0.0:
            other = Quaternion(-other.w, -other.x, -other.y, -other.z)
            d = -d

        if d > 0.9995:
            # Nearly identical; linear blend is exact enough
            return Quaternion(
                self.w + (other.w - self.w) * t,
                self.x + (other.x - self.x) * t,
                self.y + (other.y - self.y) * t,
                self.z + (other.z - self.z) * t
            ).normalized()

        theta_0 = math.acos(d)
        theta = theta_0 * t
        sin_0 = math.sin(theta_0)
        s0 = math.cos(theta) - d * math.sin(theta) / sin_0
        s1 = math.sin(theta) / sin_0
        return Quaternion(
            self.w * s0 + other.w * s1,
            self.x * s0 + other.x * s1,
            self.y * s0 + other.y * s1,
            self.z * s0 + other.z * s1
        ).normalized()

    def rotate_towards(self, target: Quaternion, max_degrees: float) -> Quaternion:
        """
        Step towards `target` by at most max_degrees.

        Returns the target itself when it is within reach, so repeated calls
        converge exactly rather than oscillating around it.
        """
        angle = self.angle_to(target)
        if angle <= max_degrees or angle < EPSILON:
            return target
        if max_degrees <= 0.0:
            return self
        return self.slerp(target, max_degrees / angle)

    def __repr__(self) -> str:
        return f"Quaternion({self.w:.6g}, {self.x:.6g}, {self.y:.6g}, {self.z:.6g})"
