'''Two-body trajectory segments sampled with the universal propagator.

A Trajectory holds one Cartesian state at t0 and evaluates it at any
number of times in [t0, tf] with a single batched propagation call.
'''

import numpy as np
import pandas as pd
import plotly.graph_objects as go
from typing import Optional, Union
from .config import config
from .exceptions import InvalidInputError
from .propagator import UniversalPropagator


class Trajectory:
    """
    A two-body trajectory segment with continuous-time state access.

    Parameters
    ----------
    state : array_like
        Cartesian state [x, y, z, vx, vy, vz] at t0 (km, km/s)
    t0 : float
        Epoch of the state [s]
    tf : float
        End time [s]; may be earlier than t0 for backward segments
    propagator : UniversalPropagator, optional
        Propagator to sample with. Defaults to an Earth propagator.
    """
    # ========== CONSTRUCTION ==========
    def __init__(self, state, t0: float, tf: float,
                 propagator: Optional[UniversalPropagator] = None):
        state = np.array(state, dtype=float)
        if state.shape != (6,):
            raise InvalidInputError(f"State must be a 6-element vector, got shape {state.shape}")
        if not np.all(np.isfinite(state)):
            raise InvalidInputError(f"State contains NaN or Inf values: {state}")
        if np.all(state[:3] == 0.0):
            raise InvalidInputError("State position has zero magnitude")
        state.flags.writeable = False
        self._state0 = state
        self._t0 = float(t0)
        self._tf = float(tf)
        self._propagator = propagator if propagator is not None else UniversalPropagator()

    # ========== PROPERTY ACCESS ==========
    @property
    def propagator(self) -> UniversalPropagator:
        return self._propagator

    @property
    def state0(self) -> np.ndarray:
        """State at t0 (read-only)."""
        return self._state0

    @property
    def t0(self):
        return self._t0

    @property
    def tf(self):
        return self._tf

    @property
    def duration(self):
        """Trajectory duration."""
        return self.tf - self.t0

    # ========== UTILITY METHODS ==========
    def state_at(self, t: float) -> np.ndarray:
        """
        Get Cartesian state at specified time.

        Parameters:
            t: Time to query (must lie between t0 and tf)

        Returns:
            State array of shape (6,)
        """
        self._validate_time(t)
        return self._propagate(np.array([float(t)]))[0]

    def evaluate(self, times: Union[float, np.ndarray, list]) -> np.ndarray:
        """
        Evaluate trajectory at one or more times.

        Parameters:
            times: Single time or array of times

        Returns:
            State array of shape (6,) if times is scalar,
            Array of shape (n_times, 6) if times is array-like
        """
        if np.ndim(times) == 0:
            return self.state_at(float(times))

        times = np.asarray(times, dtype=float)
        for t in (times.min(), times.max()):
            self._validate_time(t)
        return self._propagate(times)  # One batched propagation

    def sample(self, n_points: int = 100) -> np.ndarray:
        """
        Uniformly sample trajectory in time.

        Parameters:
            n_points: Number of points to sample (default: 100)

        Returns:
            Array of shape (n_points, 6) with uniformly spaced states
        """
        if n_points < 2:
            raise ValueError("n_points must be at least 2, use .state_at()")
        return self._propagate(self.get_times(n_points))

    def _propagate(self, times: np.ndarray) -> np.ndarray:
        """Propagate the initial state to each time as one batch."""
        n = times.size
        r0 = np.repeat(self._state0[:3, np.newaxis], n, axis=1)
        v0 = np.repeat(self._state0[3:, np.newaxis], n, axis=1)
        return self._propagator.propagate(r0, v0, times - self._t0).states()

    def _validate_time(self, t: float):
        """Validate that time is within trajectory bounds."""
        if not self.contains_time(t):
            raise ValueError(
                f"Time {t} outside trajectory bounds [{self.t0}, {self.tf}]"
            )

    def contains_time(self, t: float) -> bool:
        """Check if time is within trajectory bounds."""
        return min(self.t0, self.tf) <= t <= max(self.t0, self.tf)

    def get_times(self, n_points: int = 100) -> np.ndarray:
        """Generate uniform time array spanning trajectory."""
        return np.linspace(self.t0, self.tf, n_points)

    def to_dataframe(self,
                     times: Optional[np.ndarray] = None,
                     n_points: int = 1000) -> pd.DataFrame:
        """
        Export trajectory to pandas DataFrame.

        Parameters:
            times: Specific times to evaluate. If None, uses uniform sampling.
            n_points: Number of uniform samples if times not provided (default: 1000)

        Returns:
            DataFrame with columns for time and state components
        """
        if times is None:
            times = self.get_times(n_points)
        else:
            times = np.atleast_1d(np.asarray(times, dtype=float))

        states = self.evaluate(times)

        data = {
            'time': times,
            'x': states[:, 0],
            'y': states[:, 1],
            'z': states[:, 2],
            'vx': states[:, 3],
            'vy': states[:, 4],
            'vz': states[:, 5],
        }
        return pd.DataFrame(data)

    def extend(self, new_tf: float) -> 'Trajectory':
        """
        Continue the trajectory from its end state to a new final time.

        Creates a NEW Trajectory spanning [self.tf, new_tf]. The original
        trajectory is unchanged.

        Raises:
            ValueError: If new_tf does not lie beyond tf in the direction
            of the segment
        """
        new_tf = float(new_tf)
        direction = 1.0 if self.tf >= self.t0 else -1.0
        if (new_tf - self.tf) * direction <= 0:
            raise ValueError(f"new_tf ({new_tf}) must extend past current tf ({self.tf})")
        return Trajectory(self.state_at(self.tf), self.tf, new_tf, self._propagator)

    def slice(self, t_start: float, t_end: float) -> 'Trajectory':
        """
        Extract a time window as a new Trajectory.

        Parameters:
            t_start: Start time of slice (within bounds)
            t_end: End time of slice (within bounds)

        Raises:
            ValueError: If slice bounds are invalid or outside trajectory bounds
        """
        if t_start == t_end:
            raise ValueError(f"t_start ({t_start}) must differ from t_end ({t_end})")
        if not (self.contains_time(t_start) and self.contains_time(t_end)):
            raise ValueError(
                f"Slice bounds [{t_start}, {t_end}] outside trajectory "
                f"bounds [{self.t0}, {self.tf}]"
            )
        return Trajectory(self.state_at(t_start), t_start, t_end, self._propagator)

    # ========== SPECIAL METHODS ==========
    def __repr__(self):
        return (f"Trajectory(propagator={self._propagator!r}, "
                f"t0={self.t0}, tf={self.tf}, duration={self.duration})")

    def __str__(self):
        name = self._propagator.body.name or "unnamed body"
        return f"Trajectory around {name}: t ∈ [{self.t0}, {self.tf}]"

    def __call__(self, t: float) -> np.ndarray:
        """
        Evaluate trajectory at time t.
        Syntactic sugar for .state_at(t). Allows traj(t) syntax.
        """
        return self.state_at(t)

    # ========== PLOTTING ==========
    def plot_3d(self, n_points: Optional[int] = None, show_body: bool = True,
                body_color: Optional[str] = None,
                traj_color: Optional[str] = None,
                body_opacity: Optional[float] = None) -> go.Figure:
        """
        Create 3D plot of trajectory with optional central body.

        Parameters:
            n_points: Number of points to sample trajectory
                (default: config.DEFAULT_PLOT_POINTS)
            show_body: Whether to show central body sphere (default: True).
                Ignored when the body has no radius.
            body_color: Color of central body (default: config.DEFAULT_BODY_COLOR)
            traj_color: Color of trajectory line (default: config.DEFAULT_TRAJ_COLOR)
            body_opacity: Opacity of central body (default: config.DEFAULT_BODY_OPACITY)

        Returns:
            Plotly Figure object
        """
        body = self._propagator.body
        fig = go.Figure()

        if show_body and body.radius is not None:
            if body_opacity is None:
                body_opacity = config.DEFAULT_BODY_OPACITY
            fig.add_trace(_body_surface(
                body.radius,
                color=body_color or config.DEFAULT_BODY_COLOR,
                opacity=body_opacity,
                name=body.name or "Central Body",
            ))

        fig.add_trace(self._line_trace(n_points,
                                       traj_color or config.DEFAULT_TRAJ_COLOR,
                                       'Trajectory'))
        fig.update_layout(
            scene=dict(
                xaxis_title='X [km]',
                yaxis_title='Y [km]',
                zaxis_title='Z [km]',
                aspectmode='data'
            ),
            title='Orbital Trajectory',
            showlegend=True
        )
        return fig

    def add_to_plot(self, fig: go.Figure,
                    n_points: Optional[int] = None, color: Optional[str] = None,
                    name: Optional[str] = None, **kwargs) -> go.Figure:
        """
        Add this trajectory to an existing Plotly figure.

        Parameters:
            fig: Existing Plotly Figure object, modified in place
            n_points: Number of points to sample trajectory
                (default: config.DEFAULT_PLOT_POINTS)
            color: Color of trajectory line (default: config.DEFAULT_TRAJ_COLOR_ADD)
            name: Legend name (default: 'Trajectory N', numbering the lines
                already in the figure)
            **kwargs: Additional arguments passed to Scatter3d
        """
        if name is None:
            n_lines = sum(isinstance(trace, go.Scatter3d) for trace in fig.data)
            name = f'Trajectory {n_lines + 1}'
        fig.add_trace(self._line_trace(n_points,
                                       color or config.DEFAULT_TRAJ_COLOR_ADD,
                                       name, **kwargs))
        return fig

    def _line_trace(self, n_points: Optional[int], color: str, name: str,
                    **kwargs) -> go.Scatter3d:
        """Sampled positions as a Scatter3d line."""
        positions = self.sample(n_points or config.DEFAULT_PLOT_POINTS)[:, :3]
        return go.Scatter3d(
            x=positions[:, 0],
            y=positions[:, 1],
            z=positions[:, 2],
            mode='lines',
            line=dict(color=color, width=3),
            name=name,
            hovertemplate='x: %{x:.1f}<br>y: %{y:.1f}<br>z: %{z:.1f}<extra></extra>',
            **kwargs
        )


def _body_surface(radius: float, color: str, opacity: float,
                  name: str) -> go.Surface:
    """Sphere of the given radius centred on the origin."""
    lon, colat = np.meshgrid(np.linspace(0.0, 2.0 * np.pi, 30),
                             np.linspace(0.0, np.pi, 20), indexing='ij')
    return go.Surface(
        x=radius * np.cos(lon) * np.sin(colat),
        y=radius * np.sin(lon) * np.sin(colat),
        z=radius * np.cos(colat),
        colorscale=[[0, color], [1, color]],
        showscale=False,
        opacity=opacity,
        name=name,
        hoverinfo='name'
    )
