"""Discrete-time simulation loop and its run control."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, Optional

from ..adaptation.controller import AdaptationConfig, SignalBasedAdaptation
from ..adaptation.probe import MoteProbe
from .device import Mote, Waypoint
from .environment import Environment

logger = logging.getLogger(__name__)

DEFAULT_TICK_MS = 1500.0


def step_towards(mote: Mote, target: Waypoint) -> bool:
    """Move *mote* one unit along the axis with the larger remaining distance.

    Returns False (and does not move) when the mote already sits on *target*.
    """
    dx = target[0] - mote.x
    dy = target[1] - mote.y
    if dx == 0 and dy == 0:
        return False
    if abs(dx) >= abs(dy):
        mote.x += 1 if dx > 0 else -1
    else:
        mote.y += 1 if dy > 0 else -1
    return True


class SimulationLoop:
    """Drives motes tick by tick: movement along paths, periodic sampling.

    Parameters
    ----------
    env : Environment
        The environment to simulate; the loop owns it while running.
    stop_event : threading.Event, optional
        Polled once per iteration, before the pass over all motes.
    controller : SignalBasedAdaptation, optional
        Fed after every transmission; ``None`` disables adaptation.
    tick_ms : float
        Simulated time per iteration (default 1500 ms).
    """

    def __init__(
        self,
        env: Environment,
        stop_event: Optional[threading.Event] = None,
        controller: Optional[SignalBasedAdaptation] = None,
        probe: Optional[MoteProbe] = None,
        tick_ms: float = DEFAULT_TICK_MS,
    ) -> None:
        self.env = env
        self.stop_event = stop_event or threading.Event()
        self.controller = controller
        self.probe = probe or MoteProbe()
        self.tick_ms = tick_ms
        self.iterations = 0

        self._countdowns: Dict[Mote, int] = {}
        self._path_indices: Dict[Mote, int] = {}
        for mote in env.motes:
            self._track(mote)

    def _track(self, mote: Mote) -> None:
        self._countdowns[mote] = mote.initial_countdown
        self._path_indices[mote] = 0

    def path_index(self, mote: Mote) -> int:
        return self._path_indices.get(mote, 0)

    # ------------------------------------------------------------------
    def step(self) -> None:
        """One full pass over every mote, then one environment tick."""
        for mote in list(self.env.motes):
            if mote not in self._countdowns:
                self._track(mote)
            self._move(mote)
            self._count_down(mote)
        self.env.tick(self.tick_ms)
        self.iterations += 1

    def run(self, max_iterations: Optional[int] = None) -> int:
        """Iterate until the stop event is set (or *max_iterations* passes).

        Returns the number of iterations performed by this call.
        """
        done = 0
        logger.info("Simulation loop started on run %d", self.env.current_run)
        while not self.stop_event.is_set():
            if max_iterations is not None and done >= max_iterations:
                break
            self.step()
            done += 1
        logger.info("Simulation loop ended after %d iterations", done)
        return done

    # ------------------------------------------------------------------
    def _move(self, mote: Mote) -> None:
        if not mote.path:
            return
        index = self._path_indices[mote]
        target = mote.path[index % len(mote.path)]
        if not step_towards(mote, target):
            self._path_indices[mote] = (index + 1) % len(mote.path)

    def _count_down(self, mote: Mote) -> None:
        counter = self._countdowns[mote] - 1
        if counter <= 0:
            self._sample(mote)
            counter = mote.sampling_rate
        self._countdowns[mote] = counter

    def _sample(self, mote: Mote) -> None:
        transmission = mote.send_to_gateway()
        self.update_statistics(mote)
        if transmission is not None and self.controller is not None:
            self.controller.observe(mote)

    def update_statistics(self, mote: Mote) -> None:
        mote.highest_received_signal = self.probe.highest_received_signal(mote)
        mote.shortest_distance_to_gateway = self.probe.shortest_distance_to_gateway(mote)
        mote.packet_loss = mote.calculate_packet_loss(self.env.current_run)


class SimulationState:
    """State shared between the control surface and the loop thread.

    Only the references below are guarded; the entity graph itself is owned
    by the loop while a run is active and read without locking.
    """

    def __init__(self, environment: Optional[Environment] = None) -> None:
        self._lock = threading.Lock()
        self._environment = environment
        self._running = False
        self.stop_event = threading.Event()
        self.created_at = time.monotonic()
        self.run_started_at: Optional[float] = None
        self.last_error: Optional[BaseException] = None

    @property
    def environment(self) -> Optional[Environment]:
        with self._lock:
            return self._environment

    @environment.setter
    def environment(self, environment: Optional[Environment]) -> None:
        with self._lock:
            self._environment = environment

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._running

    @property
    def should_stop(self) -> bool:
        return self.stop_event.is_set()

    def try_start(self) -> bool:
        """Atomically claim the running flag; False when a run is already active."""
        with self._lock:
            if self._running:
                return False
            self._running = True
            self.stop_event.clear()
            self.run_started_at = time.monotonic()
            self.last_error = None
            return True

    def mark_stopped(self) -> None:
        with self._lock:
            self._running = False

    def request_stop(self) -> None:
        self.stop_event.set()

    @property
    def uptime_ms(self) -> int:
        return int((time.monotonic() - self.created_at) * 1000)


def _default_environment() -> Environment:
    from ..scenario.factory import create_environment

    return create_environment()


class SimulationRunner:
    """Starts and stops :class:`SimulationLoop` runs on a dedicated worker thread.

    Parameters
    ----------
    state : SimulationState, optional
        Shared state; a fresh one is created when omitted.
    environment_factory : callable, optional
        Builds an environment when none is configured (default scenario).
    adaptation : AdaptationConfig, optional
        Enables transmission-power adaptation for every run.
    tick_ms : float
        Simulated time per loop iteration.
    """

    def __init__(
        self,
        state: Optional[SimulationState] = None,
        environment_factory: Optional[Callable[[], Environment]] = None,
        adaptation: Optional[AdaptationConfig] = None,
        tick_ms: float = DEFAULT_TICK_MS,
    ) -> None:
        self.state = state or SimulationState()
        self.environment_factory = environment_factory or _default_environment
        self.adaptation = adaptation
        self.tick_ms = tick_ms
        self.loop: Optional[SimulationLoop] = None
        self._thread: Optional[threading.Thread] = None

    def start(self, environment: Optional[Environment] = None) -> bool:
        """Launch a run; False (and nothing else) when one is already active.

        *environment* replaces the configured one before the run starts.
        """
        if not self.state.try_start():
            logger.warning("Start requested while a simulation is already running")
            return False
        try:
            if environment is not None:
                self.state.environment = environment
            env = self.state.environment
            if env is None:
                logger.info("No environment configured, creating the default scenario")
                env = self.environment_factory()
                self.state.environment = env
            elif env.has_activity:
                env.add_run()
            controller = SignalBasedAdaptation(self.adaptation) if self.adaptation else None
            self.loop = SimulationLoop(env, self.state.stop_event, controller, tick_ms=self.tick_ms)
            self._thread = threading.Thread(
                target=self._work, args=(self.loop,), name="simulation-loop", daemon=True
            )
            self._thread.start()
        except Exception:
            self.state.mark_stopped()
            raise
        logger.info("Simulation started: run %d, %d motes, %d gateways",
                    env.current_run, len(env.motes), len(env.gateways))
        return True

    def _work(self, loop: SimulationLoop) -> None:
        try:
            loop.run()
        except Exception as exc:
            logger.exception("Simulation loop failed")
            self.state.last_error = exc
        finally:
            self.state.mark_stopped()

    def stop(self) -> bool:
        """Ask the loop to finish its current pass; False when nothing is running."""
        if not self.state.is_running:
            return False
        self.state.request_stop()
        return True

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def status(self) -> dict:
        env = self.state.environment
        return {
            "is_running": self.state.is_running,
            "current_run": env.current_run if env is not None else 0,
            "number_of_runs": env.get_number_of_runs() if env is not None else 0,
            "mote_count": len(env.motes) if env is not None else 0,
            "gateway_count": len(env.gateways) if env is not None else 0,
            "uptime_ms": self.state.uptime_ms,
        }
