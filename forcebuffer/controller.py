"""Buffer-forcing controller.

Runs a periodic control loop against one bound media source. Each attempt
seeks the playhead just past the furthest buffered point so the player's own
cache fetches ahead, waits for it to settle, measures the gain and restores
the playhead. Step size and retry cadence adapt to measured throughput and to
runs of failed attempts.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Optional

from forcebuffer.config import ForceBufferConfig, get_config
from forcebuffer.controller_state import ControllerPhase, ControllerState
from forcebuffer.events import BufferEvent, EventEmitter, EventStatus
from forcebuffer.exceptions import MediaSourceError
from forcebuffer.interfaces.events import IEventSink
from forcebuffer.interfaces.media import IMediaSource
from forcebuffer.media_state import MediaStateReader
from forcebuffer.quality_monitor import QualityChange, QualityChangeMonitor
from forcebuffer.step_planner import StepPlanner
from forcebuffer.strategy import StrategyAdapter
from forcebuffer.throughput import ThroughputEstimator

logger = logging.getLogger(__name__)


class BufferForcingController:
    """Forces a bound media source to buffer the whole asset ahead of playback."""

    # Seek target is kept this far before the end of the asset
    END_MARGIN_SECONDS = 0.1

    # Extra recovery pause when failures persist: after more than this many
    # consecutive failures, on every Nth attempt
    RECOVERY_FAILURE_THRESHOLD = 5
    RECOVERY_ATTEMPT_INTERVAL = 5

    def __init__(
        self,
        config: Optional[ForceBufferConfig] = None,
        sink: Optional[IEventSink] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize controller.

        Args:
            config: Controller configuration (defaults to the global config)
            sink: Destination for status events (best-effort)
            clock: Wall-clock source in seconds, used for throughput deltas
        """
        self.config = config or get_config()
        self.clock = clock

        self.reader = MediaStateReader(self.config.fully_buffered_epsilon_seconds)
        self.throughput = ThroughputEstimator(self.config.throughput_sample_window)
        self.planner = StepPlanner(
            min_step=self.config.min_step_seconds,
            max_step=self.config.max_step_seconds,
            short_form_step=self.config.short_form_step_seconds,
        )
        self.strategy = StrategyAdapter()
        self.quality_monitor = QualityChangeMonitor(self.reader, self.strategy)
        self.emitter = EventEmitter(sink)

        self.source: Optional[IMediaSource] = None
        self.state = ControllerState(source_id="unbound")
        self._binding_generation = 0
        self._short_form_hint: Optional[bool] = None

        self._in_flight: Optional[tuple[ControllerState, int]] = None
        self._monitor_task: Optional[asyncio.Task] = None
        self._restart_task: Optional[asyncio.Task] = None

        logger.info(
            f"Controller initialized (tick={self.config.tick_interval_ms}ms, "
            f"max_attempts={self.config.max_attempts})"
        )

    # Binding

    def on_source_available(
        self,
        source: IMediaSource,
        source_id: Optional[str] = None,
        is_short_form: Optional[bool] = None,
        monitor: bool = True,
    ) -> None:
        """Bind a media source, replacing any previously bound one.

        Args:
            source: Media source to force-buffer
            source_id: Identifier used in events and logs
            is_short_form: Short-form override; derived from duration when None
            monitor: Start the periodic control loop (requires a running loop)

        Raises:
            RuntimeError: If monitor is set and no event loop is running; the
                controller is left unchanged
        """
        # Raises before any state changes when there is no running loop
        loop = asyncio.get_running_loop() if monitor else None

        if self.source is not None:
            self.on_source_removed()

        self._binding_generation += 1
        self.source = source
        self.state = ControllerState(
            source_id=source_id or f"source_{self._binding_generation}",
            binding_generation=self._binding_generation,
        )
        self._short_form_hint = is_short_form

        self.strategy.reset()
        self.throughput.reset()
        self.quality_monitor.reset()
        quality = self.quality_monitor.prime(source)

        try:
            source.add_quality_listener(self._on_quality_signal)
        except Exception as e:
            logger.warning(f"Could not subscribe to quality changes: {e}")

        logger.info(
            f"Source bound{f' ({quality})' if quality else ''}",
            extra={"source_id": self.state.source_id, "quality": quality},
        )

        if loop is not None:
            self._monitor_task = loop.create_task(self._monitor_loop())

    def on_source_removed(self) -> None:
        """Unbind the current source, cancelling pending work before stopping."""
        self._cancel_pending()

        source = self.source
        if source is None:
            return

        try:
            source.remove_quality_listener(self._on_quality_signal)
        except Exception as e:
            logger.debug(f"Could not unsubscribe from quality changes: {e}")

        self.stop()

        source_id = self.state.source_id
        self._binding_generation += 1
        self.source = None
        self.state = ControllerState(
            source_id=source_id, binding_generation=self._binding_generation
        )
        self._in_flight = None
        logger.info("Source unbound", extra={"source_id": source_id})

    def _cancel_pending(self) -> None:
        for task in (self._monitor_task, self._restart_task):
            if task is not None and not task.done():
                task.cancel()
        self._monitor_task = None
        self._restart_task = None

    async def shutdown(self) -> None:
        """Unbind and wait for cancelled tasks to finish."""
        tasks = [
            task
            for task in (self._monitor_task, self._restart_task)
            if task is not None and task is not asyncio.current_task()
        ]
        self.on_source_removed()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass

    # Control loop

    async def _monitor_loop(self) -> None:
        """Periodic tick loop for the bound source."""
        interval = self.config.tick_interval_ms / 1000.0
        try:
            while True:
                await asyncio.sleep(interval)
                try:
                    await self.tick()
                except Exception as e:
                    logger.error(f"Error in control loop tick: {e}", exc_info=True)
        except asyncio.CancelledError:
            logger.debug("Control loop cancelled")

    async def tick(self) -> None:
        """Evaluate the bound source once: start, continue, or stop forcing.

        A no-op while an attempt or a quality restart is still pending.
        """
        source = self.source
        if source is None or self._attempt_pending() or self._restart_pending():
            return

        if not self.state.is_buffering:
            change = self.quality_monitor.check(source)
            if change is not None:
                self._handle_quality_change(change)

        if self.reader.is_fully_buffered(source):
            if self.state.is_buffering:
                logger.info(
                    "Source fully buffered", extra={"source_id": self.state.source_id}
                )
                self.stop()
            return

        if self.state.is_buffering:
            await self.attempt()
        elif not self.state.exhausted:
            await self.start()

    def _attempt_pending(self) -> bool:
        if self._in_flight is None:
            return False
        state, generation = self._in_flight
        return state is self.state and generation == self.state.session_generation

    def _restart_pending(self) -> bool:
        return self._restart_task is not None and not self._restart_task.done()

    def _is_live(
        self, source: IMediaSource, state: ControllerState, generation: int
    ) -> bool:
        return (
            self.source is source
            and self.state is state
            and state.is_buffering
            and state.session_generation == generation
        )

    # State machine

    async def start(self) -> None:
        """Transition Idle -> Buffering and perform the first attempt."""
        source = self.source
        state = self.state
        if source is None or state.is_buffering or state.exhausted:
            return

        duration = self.reader.duration(source)
        if duration is None:
            logger.debug("Duration unknown, not starting", extra={"source_id": state.source_id})
            return
        if self.reader.is_fully_buffered(source):
            return
        # Nothing left past the furthest range for a seek to induce
        furthest = self.reader.furthest_buffered_end(source)
        if duration - furthest <= self.config.fully_buffered_epsilon_seconds:
            return

        try:
            position = float(source.get_position())
            rate = float(source.get_playback_rate())
            was_paused = bool(source.is_paused())
            if not was_paused:
                source.pause()
        except Exception as e:
            logger.warning(
                f"Could not capture playback state, not starting: {e}",
                extra={"source_id": state.source_id},
            )
            return

        state.original_position = position
        state.original_rate = rate
        state.was_paused = was_paused
        state.phase = ControllerPhase.BUFFERING
        state.session_generation += 1
        state.attempts = 0
        state.consecutive_faults = 0
        if self._short_form_hint is not None:
            state.is_short_form = self._short_form_hint
        else:
            state.is_short_form = duration < self.config.short_form_threshold_seconds

        self.strategy.reset()
        self.throughput.reset()
        self.quality_monitor.clear()
        quality = self.quality_monitor.prime(source)

        logger.info(
            f"Starting force buffering{' (short-form)' if state.is_short_form else ''}"
            f"{f' ({quality})' if quality else ''}",
            extra={"source_id": state.source_id, "quality": quality},
        )
        self._emit(EventStatus.STARTED, quality=quality, attempts=0)

        await self.attempt()

    async def attempt(self) -> None:
        """Perform one seek-and-restore cycle."""
        source = self.source
        state = self.state
        if source is None or not state.is_buffering or self._attempt_pending():
            return

        if state.attempts >= self.config.max_attempts:
            logger.info(
                f"Attempt budget exhausted ({state.attempts} attempts)",
                extra={"source_id": state.source_id, "attempt": state.attempts},
            )
            state.exhausted = True
            self.stop()
            return
        if self.reader.is_fully_buffered(source):
            self.stop()
            return

        change = self.quality_monitor.check(source)
        if change is not None:
            self._handle_quality_change(change)
            return

        furthest = self.reader.furthest_buffered_end(source)
        self.throughput.update(furthest, self.clock())

        duration = self.reader.duration(source)
        if duration is None:
            self._record_fault(state, MediaSourceError("duration unavailable"))
            return

        remaining = duration - furthest
        if remaining <= self.config.fully_buffered_epsilon_seconds:
            logger.info(
                f"Buffered to within {remaining:.2f}s of the end",
                extra={"source_id": state.source_id, "attempt": state.attempts},
            )
            self.stop()
            return

        step = self.planner.plan(
            duration,
            state.is_short_form,
            self.throughput.average_rate(),
            self.strategy.step_multiplier,
        )
        target = min(furthest + step, duration - self.END_MARGIN_SECONDS)

        token = (state, state.session_generation)
        self._in_flight = token
        try:
            await self._seek_and_measure(source, state, furthest, target)
        finally:
            if self._in_flight is token:
                self._in_flight = None

    async def _seek_and_measure(
        self,
        source: IMediaSource,
        state: ControllerState,
        furthest: float,
        target: float,
    ) -> None:
        generation = state.session_generation

        try:
            saved_position = float(source.get_position())
            source.set_position(target)
        except Exception as e:
            self._record_fault(state, e)
            return

        settle_ms = (
            self.config.settle_delay_ms
            + self.strategy.consecutive_failures * self.config.retry_delay_increment_ms
        )
        await asyncio.sleep(settle_ms / 1000.0)

        if not self._is_live(source, state, generation):
            logger.debug("Session changed while settling, abandoning attempt")
            return

        new_furthest = self.reader.furthest_buffered_end(source)
        made_progress = (
            new_furthest - furthest
        ) > self.config.progress_threshold_seconds

        try:
            source.set_position(saved_position)
        except Exception as e:
            self._record_fault(state, e)
            return

        if not self._is_live(source, state, generation):
            logger.debug("Session ended while restoring the playhead, dropping outcome")
            return

        self.strategy.record_outcome(made_progress)
        state.consecutive_faults = 0
        state.attempts += 1

        logger.debug(
            f"Seek to {target:.1f}s: buffered {furthest:.1f}s -> {new_furthest:.1f}s "
            f"({'progress' if made_progress else 'no progress'}, "
            f"strategy={self.strategy.strategy.value} x{self.strategy.step_multiplier})",
            extra={"source_id": state.source_id, "attempt": state.attempts},
        )
        self._emit(
            EventStatus.PROGRESS,
            quality=self.quality_monitor.last_known,
            progress=self.reader.buffered_percentage(source),
            speed=round(self.throughput.average_rate(), 1),
            attempts=state.attempts,
        )

        if (
            self.strategy.consecutive_failures > self.RECOVERY_FAILURE_THRESHOLD
            and state.attempts % self.RECOVERY_ATTEMPT_INTERVAL == 0
        ):
            logger.debug(
                f"Persistent failures, pausing {self.config.recovery_delay_ms}ms",
                extra={"source_id": state.source_id, "attempt": state.attempts},
            )
            await asyncio.sleep(self.config.recovery_delay_ms / 1000.0)

    def _record_fault(self, state: ControllerState, error: Exception) -> None:
        """Count a source fault as a failed attempt; stop when faults persist."""
        state.attempts += 1
        state.consecutive_faults += 1
        self.strategy.record_outcome(False)

        logger.warning(
            f"Source fault during attempt ({state.consecutive_faults} consecutive): {error}",
            extra={"source_id": state.source_id, "attempt": state.attempts},
        )

        if state.consecutive_faults >= self.config.fault_ceiling:
            logger.error(
                f"Stopping after {state.consecutive_faults} consecutive source faults",
                extra={"source_id": state.source_id, "attempt": state.attempts},
            )
            state.exhausted = True
            self.stop()

    def stop(self) -> None:
        """Transition Buffering -> Idle, restoring the captured playback state.

        Calling stop() while idle does nothing.
        """
        state = self.state
        if not state.is_buffering:
            return

        source = self.source
        if source is not None:
            self._restore_playback(source, state)

        state.phase = ControllerPhase.IDLE
        state.session_generation += 1
        self.quality_monitor.clear()
        self.strategy.reset()
        self.throughput.reset()

        attempts = state.attempts
        quality = self.reader.quality(source)
        logger.info(
            f"Stopped force buffering after {attempts} attempts",
            extra={"source_id": state.source_id, "attempt": attempts, "quality": quality},
        )
        self._emit(EventStatus.COMPLETE, quality=quality, attempts=attempts)

        state.attempts = 0
        state.consecutive_faults = 0

    def _restore_playback(self, source: IMediaSource, state: ControllerState) -> None:
        try:
            source.set_playback_rate(state.original_rate)
            source.set_position(state.original_position)
            if not state.was_paused:
                source.play()
        except Exception as e:
            logger.warning(
                f"Could not restore playback state: {e}",
                extra={"source_id": state.source_id},
            )

    # Quality changes

    def _on_quality_signal(self) -> None:
        """Resize-equivalent callback from the source."""
        source = self.source
        if source is None:
            return
        change = self.quality_monitor.check(source)
        if change is not None:
            self._handle_quality_change(change)

    def _handle_quality_change(self, change: QualityChange) -> None:
        state = self.state
        state.exhausted = False
        self._emit(
            EventStatus.QUALITY_CHANGE,
            quality=change.new,
            from_quality=change.old,
            to_quality=change.new,
        )

        if not state.is_buffering:
            return

        # Extent measured at the old bitrate is stale: restart from scratch
        self.stop()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, restart deferred to next tick")
            return
        self._restart_task = loop.create_task(
            self._restart_after_settle(state.binding_generation)
        )

    async def _restart_after_settle(self, binding_generation: int) -> None:
        try:
            await asyncio.sleep(self.config.quality_change_settle_ms / 1000.0)
            if self.source is None or self.state.binding_generation != binding_generation:
                return
            logger.info(
                "Restarting force buffering after quality change",
                extra={"source_id": self.state.source_id},
            )
            await self.start()
        finally:
            if self._restart_task is asyncio.current_task():
                self._restart_task = None

    # Events and status

    def _emit(self, status: EventStatus, **fields: Any) -> None:
        self.emitter.emit(
            BufferEvent(
                status=status,
                source_id=self.state.source_id,
                is_short=self.state.is_short_form,
                **fields,
            )
        )

    def is_buffering(self) -> bool:
        """Check if a forcing session is active."""
        return self.state.is_buffering

    def get_status(self) -> dict[str, Any]:
        """Return a snapshot of the controller for diagnostics."""
        return {
            "source_id": self.state.source_id,
            "bound": self.source is not None,
            "phase": self.state.phase.value,
            "attempts": self.state.attempts,
            "exhausted": self.state.exhausted,
            "is_short": self.state.is_short_form,
            "quality": self.quality_monitor.last_known,
            "throughput": self.throughput.average_rate(),
            **self.strategy.snapshot(),
        }
