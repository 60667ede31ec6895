"""
Motion models (process models) for the fusion filters.

Provides the two process models used by the trackers:
- Constant velocity in 2D (linear, used by the EKF)
- Constant turn rate and velocity, CTRV (nonlinear, used by the UKF)

The CV model carries an analytic process noise matrix. The CTRV model takes
its noise through an augmented state and is only ever evaluated on sigma
points, so it has no Jacobian.
"""

import numpy as np
from typing import Tuple


class ConstantVelocity2D:
    """
    2D Constant Velocity Motion Model.

    State: x = [px, py, vx, vy]
    Dynamics: Constant velocity in x and y independently, perturbed by
    piecewise-constant white acceleration noise.

    Example:
        >>> model = ConstantVelocity2D()
        >>> x = np.array([0.0, 0.0, 1.0, 0.5])  # At origin, moving at [1, 0.5] m/s
        >>> x_next = model.f(x, dt=0.5)
        >>> x_next[:2]  # New position
        array([0.5 , 0.25])
    """

    dim = 4

    @staticmethod
    def f(x: np.ndarray, dt: float) -> np.ndarray:
        """
        Process model: x_{k+1} = f(x_k, dt).

        Args:
            x: State [px, py, vx, vy]
            dt: Time step in seconds

        Returns:
            Next state [px', py', vx', vy']
        """
        if x.shape != (4,):
            raise ValueError(f"State must be 4D [px,py,vx,vy], got shape {x.shape}")

        px, py, vx, vy = x
        return np.array([
            px + vx * dt,
            py + vy * dt,
            vx,
            vy
        ])

    @staticmethod
    def F(dt: float) -> np.ndarray:
        """
        State transition matrix (exact, the model is linear).

        Args:
            dt: Time step in seconds

        Returns:
            4x4 state transition matrix
        """
        return np.array([
            [1.0, 0.0, dt, 0.0],
            [0.0, 1.0, 0.0, dt],
            [0.0, 0.0, 1.0, 0.0],
            [0.0, 0.0, 0.0, 1.0]
        ])

    @staticmethod
    def Q(dt: float, noise_ax: float, noise_ay: float) -> np.ndarray:
        """
        Process noise covariance (discretized white noise acceleration).

        Q = G diag(noise_ax, noise_ay) G^T with G = [[dt²/2, 0], [0, dt²/2],
        [dt, 0], [0, dt]].

        Args:
            dt: Time step in seconds
            noise_ax: Acceleration variance along x (m²/s⁴)
            noise_ay: Acceleration variance along y (m²/s⁴)

        Returns:
            4x4 process noise covariance matrix
        """
        dt2 = dt**2
        dt3 = dt**3
        dt4 = dt**4

        return np.array([
            [dt4/4*noise_ax, 0,              dt3/2*noise_ax, 0             ],
            [0,              dt4/4*noise_ay, 0,              dt3/2*noise_ay],
            [dt3/2*noise_ax, 0,              dt2*noise_ax,   0             ],
            [0,              dt3/2*noise_ay, 0,              dt2*noise_ay  ]
        ])


class CTRV:
    """
    Constant Turn Rate and Velocity (CTRV) Motion Model.

    State: x = [px, py, v, yaw, yaw_rate]
    Augmented state: x_aug = [px, py, v, yaw, yaw_rate, nu_a, nu_yawdd]

    nu_a and nu_yawdd are the longitudinal and yaw accelerations, held
    constant over one time step.

    Example:
        >>> model = CTRV()
        >>> x_aug = np.array([0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 0.0])
        >>> model.f(x_aug, dt=2.0)
        array([2., 0., 1., 0., 0.])
    """

    dim = 5
    augmented_dim = 7

    def __init__(self, yaw_rate_threshold: float = 1e-3):
        """
        Initialize CTRV model.

        Args:
            yaw_rate_threshold: |yaw_rate| at or below which the straight-line
                solution is used instead of the turning one.
        """
        self.yaw_rate_threshold = yaw_rate_threshold

    def f(self, x_aug: np.ndarray, dt: float) -> np.ndarray:
        """
        Propagate one augmented state over dt.

        Args:
            x_aug: Augmented state (7,)
            dt: Time step in seconds

        Returns:
            Predicted state [px, py, v, yaw, yaw_rate] (5,)
        """
        if x_aug.shape != (7,):
            raise ValueError(f"Augmented CTRV state must have shape (7,), got {x_aug.shape}")

        px, py, v, yaw, yawd, nu_a, nu_yawdd = x_aug

        if abs(yawd) > self.yaw_rate_threshold:
            px_p = px + v / yawd * (np.sin(yaw + yawd * dt) - np.sin(yaw))
            py_p = py + v / yawd * (np.cos(yaw) - np.cos(yaw + yawd * dt))
        else:
            px_p = px + v * dt * np.cos(yaw)
            py_p = py + v * dt * np.sin(yaw)

        v_p = v
        yaw_p = yaw + yawd * dt
        yawd_p = yawd

        # Noise contribution
        half_dt2 = 0.5 * dt**2
        px_p += half_dt2 * np.cos(yaw) * nu_a
        py_p += half_dt2 * np.sin(yaw) * nu_a
        v_p += dt * nu_a
        yaw_p += half_dt2 * nu_yawdd
        yawd_p += dt * nu_yawdd

        return np.array([px_p, py_p, v_p, yaw_p, yawd_p])

    @staticmethod
    def augment(
        x: np.ndarray,
        P: np.ndarray,
        std_a: float,
        std_yawdd: float
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Build the augmented mean and covariance.

        The noise terms have zero mean and are independent of the state, so
        the augmented covariance is block diagonal.

        Args:
            x: State (5,)
            P: State covariance (5, 5)
            std_a: Longitudinal acceleration noise std
            std_yawdd: Yaw acceleration noise std

        Returns:
            Tuple of (x_aug (7,), P_aug (7, 7))
        """
        x_aug = np.zeros(7)
        x_aug[:5] = x

        P_aug = np.zeros((7, 7))
        P_aug[:5, :5] = P
        P_aug[5, 5] = std_a**2
        P_aug[6, 6] = std_yawdd**2

        return x_aug, P_aug

    @staticmethod
    def to_cartesian(x: np.ndarray) -> np.ndarray:
        """
        Convert a CTRV state to [px, py, vx, vy].

        Args:
            x: State [px, py, v, yaw, yaw_rate]

        Returns:
            Cartesian position and velocity (4,)
        """
        px, py, v, yaw = x[:4]
        return np.array([px, py, v * np.cos(yaw), v * np.sin(yaw)])
