"""Classic cart-pole balancing environment.

The cart-pole problem described by Barto, Sutton, and Anderson in
"Neuronlike Adaptive Elements That Can Solve Difficult Learning Control
Problems". A pole is attached by an un-actuated joint to a cart moving on a
frictionless track; the agent pushes the cart left or right to keep the pole
upright.

Action space: Discrete(2)
  0 = push cart to the left, 1 = push cart to the right.

Observation space: Box(4,) float64
  | Index | Observation           | Min             | Max            |
  |-------|-----------------------|-----------------|----------------|
  | 0     | Cart position         | -4.8            | 4.8            |
  | 1     | Cart velocity         | -inf            | inf            |
  | 2     | Pole angle (rad)      | ~ -0.418 (-24°) | ~ 0.418 (24°)  |
  | 3     | Pole angular velocity | -inf            | inf            |

Reward: +1 for every step, including the terminating one. With
sutton_barto_reward=True, 0 for every non-terminating step and -1 for the
terminating step.

Episode end:
  - Terminated: |pole angle| > 12° or |cart position| > 2.4.
  - Truncated: by the TimeLimit wrapper (500 steps when made from the registry).

Rendering: "ansi" returns a two-line text frame of the track and state.
"""

from __future__ import annotations

import math
from typing import Any

import numpy as np

from gymkit.src.core import Env, Info
from gymkit.src.error import InvalidArgument
from gymkit.src.seeding import RNG
from gymkit.src.spaces import Box, Discrete

# --- Physics constants (same as the reference cart-pole model) ---
GRAVITY = 9.8
MASS_CART = 1.0
MASS_POLE = 0.1
TOTAL_MASS = MASS_POLE + MASS_CART
LENGTH = 0.5  # actually half the pole's length
POLE_MASS_LENGTH = MASS_POLE * LENGTH
FORCE_MAG = 10.0
TAU = 0.02  # seconds between state updates

# --- Termination thresholds ---
THETA_THRESHOLD_RADIANS = 12 * 2 * math.pi / 360
X_THRESHOLD = 2.4

# Default range for the uniform initial state, overridable via reset options.
DEFAULT_RESET_BOUND = 0.05

KINEMATICS_INTEGRATORS = ("euler", "semi-implicit euler")

# Text track width for "ansi" rendering.
TRACK_WIDTH = 41


class CartPoleEnv(Env[np.ndarray, int]):
    """Cart-pole balancing task.

    Args:
        render_mode: "ansi" for text frames, or None.
        sutton_barto_reward: Use the 0 / -1 reward scheme instead of +1 per step.
        kinematics_integrator: "euler" or "semi-implicit euler".
        rng: Optional RNG for initial-state sampling.
    """

    metadata = {
        "render_modes": ["ansi"],
        "render_fps": 50,
    }

    def __init__(
        self,
        render_mode: str | None = None,
        sutton_barto_reward: bool = False,
        kinematics_integrator: str = "euler",
        rng: RNG | None = None,
    ):
        super().__init__(render_mode=render_mode, rng=rng)
        if kinematics_integrator not in KINEMATICS_INTEGRATORS:
            raise InvalidArgument(
                f"kinematics_integrator must be one of {KINEMATICS_INTEGRATORS}, "
                f"got '{kinematics_integrator}'"
            )
        self.sutton_barto_reward = sutton_barto_reward
        self.kinematics_integrator = kinematics_integrator

        # Observation bounds are twice the termination thresholds so that
        # the failing state itself is still a valid observation.
        high = np.array(
            [
                X_THRESHOLD * 2,
                np.inf,
                THETA_THRESHOLD_RADIANS * 2,
                np.inf,
            ],
            dtype=np.float64,
        )
        self.observation_space = Box(-high, high)
        self.action_space = Discrete(2)

        self.state: np.ndarray | None = None

    def _reset(self, options: dict[str, Any] | None) -> tuple[np.ndarray, Info]:
        low, high = -DEFAULT_RESET_BOUND, DEFAULT_RESET_BOUND
        if options:
            low = float(options.get("low", low))
            high = float(options.get("high", high))
        if low > high:
            raise InvalidArgument(f"reset bounds inverted: low={low} > high={high}")

        self.state = low + self.rng.float64(size=4) * (high - low)
        return self.state.copy(), {}

    def _step(self, action: int) -> tuple[np.ndarray, float, bool, bool, Info]:
        x, x_dot, theta, theta_dot = self.state
        force = FORCE_MAG if action == 1 else -FORCE_MAG
        costheta = math.cos(theta)
        sintheta = math.sin(theta)

        # Equations of motion from the reference paper.
        temp = (force + POLE_MASS_LENGTH * theta_dot**2 * sintheta) / TOTAL_MASS
        thetaacc = (GRAVITY * sintheta - costheta * temp) / (
            LENGTH * (4.0 / 3.0 - MASS_POLE * costheta**2 / TOTAL_MASS)
        )
        xacc = temp - POLE_MASS_LENGTH * thetaacc * costheta / TOTAL_MASS

        if self.kinematics_integrator == "euler":
            x = x + TAU * x_dot
            x_dot = x_dot + TAU * xacc
            theta = theta + TAU * theta_dot
            theta_dot = theta_dot + TAU * thetaacc
        else:
            x_dot = x_dot + TAU * xacc
            x = x + TAU * x_dot
            theta_dot = theta_dot + TAU * thetaacc
            theta = theta + TAU * theta_dot

        self.state = np.array([x, x_dot, theta, theta_dot], dtype=np.float64)

        terminated = bool(
            x < -X_THRESHOLD
            or x > X_THRESHOLD
            or theta < -THETA_THRESHOLD_RADIANS
            or theta > THETA_THRESHOLD_RADIANS
        )

        if self.sutton_barto_reward:
            reward = -1.0 if terminated else 0.0
        else:
            reward = 1.0

        # truncated=False -- time limits are the TimeLimit wrapper's job.
        return self.state.copy(), reward, terminated, False, {}

    def _render(self) -> str:
        x, x_dot, theta, theta_dot = self.state
        # Map cart position [-X_THRESHOLD, X_THRESHOLD] onto the track.
        frac = (x + X_THRESHOLD) / (2 * X_THRESHOLD)
        col = int(round(min(max(frac, 0.0), 1.0) * (TRACK_WIDTH - 1)))

        if theta > THETA_THRESHOLD_RADIANS / 3:
            pole = "/"
        elif theta < -THETA_THRESHOLD_RADIANS / 3:
            pole = "\\"
        else:
            pole = "|"

        pole_row = [" "] * TRACK_WIDTH
        cart_row = ["-"] * TRACK_WIDTH
        pole_row[col] = pole
        cart_row[col] = "#"
        stats = (
            f"x={x:+.2f} x_dot={x_dot:+.2f} "
            f"theta={theta:+.3f} rad ({math.degrees(theta):+.1f} deg) "
            f"theta_dot={theta_dot:+.2f}"
        )
        return "".join(pole_row) + "\n" + "".join(cart_row) + "\n" + stats

    def _close(self) -> None:
        self.state = None
