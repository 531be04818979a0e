"""
Session Manager

Owns the browser session for one run: one acquisition before the first step
and one guaranteed release afterwards.
"""

import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterator, Optional, TypeVar

from uiflow.browser.interface import IAutomationDriver
from uiflow.config.types import RunConfig
from uiflow.errors import SessionAcquisitionFailed, UIFlowError
from uiflow.locator import LocatorResolver
from uiflow.wait import WaitGate

logger = logging.getLogger(__name__)

T = TypeVar("T")
DriverFactoryFn = Callable[[RunConfig], IAutomationDriver]


class SessionState(str, Enum):
    """Lifecycle of the session for one run."""

    UNSTARTED = "unstarted"
    ACQUIRING = "acquiring"
    READY = "ready"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    RELEASED = "released"


@dataclass
class Session:
    """A live browser session and the helpers bound to it."""

    session_id: str
    config: RunConfig
    driver: IAutomationDriver
    wait_gate: WaitGate
    resolver: LocatorResolver
    created_at: datetime = field(default_factory=datetime.utcnow)
    _manager: Optional["SessionManager"] = field(default=None, repr=False)

    def mark_failed(self):
        """Record that the run using this session failed."""
        if self._manager is not None:
            self._manager.mark_failed()


def _default_driver_factory(config: RunConfig) -> IAutomationDriver:
    from uiflow.browser.factory import DriverFactory

    return DriverFactory.from_config(config)


class SessionManager:
    """
    Session lifetime manager.

    State machine: unstarted -> acquiring -> ready -> running ->
    (completed | failed) -> released. ``release()`` is idempotent.
    """

    def __init__(self, config: RunConfig, driver_factory: Optional[DriverFactoryFn] = None):
        """
        Initialize the manager.

        Args:
            config: Run configuration
            driver_factory: Callable building a driver from the config;
                            defaults to a Selenium driver
        """
        self.config = config
        self.driver_factory = driver_factory or _default_driver_factory
        self.state = SessionState.UNSTARTED
        self.current: Optional[Session] = None
        self.release_count = 0

    def acquire(self) -> Session:
        """
        Start the browser session.

        Raises:
            SessionAcquisitionFailed: If the driver could not be created
            RuntimeError: If a session was already acquired by this manager
        """
        if self.state != SessionState.UNSTARTED:
            raise RuntimeError(f"Session already acquired (state: {self.state.value})")

        self.state = SessionState.ACQUIRING
        logger.info(f"Acquiring {self.config.browser_type} session")
        try:
            driver = self.driver_factory(self.config)
        except Exception as e:
            self.state = SessionState.FAILED
            raise SessionAcquisitionFailed(f"Could not start browser session: {e}") from e

        wait_gate = WaitGate(
            driver,
            default_timeout=self.config.explicit_wait_seconds,
            poll_interval=self.config.poll_interval_seconds,
        )
        self.current = Session(
            session_id=str(uuid.uuid4()),
            config=self.config,
            driver=driver,
            wait_gate=wait_gate,
            resolver=LocatorResolver(driver, wait_gate, self.config.implicit_wait_seconds),
            _manager=self,
        )

        if self.config.start_maximized:
            try:
                driver.maximize()
            except UIFlowError as e:
                self.state = SessionState.FAILED
                self.release()
                raise SessionAcquisitionFailed(f"Could not maximize browser window: {e}") from e

        self.state = SessionState.READY
        logger.info(f"Session {self.current.session_id} ready")
        return self.current

    def mark_failed(self):
        """Move a running session to the failed state."""
        if self.state in (SessionState.READY, SessionState.RUNNING):
            self.state = SessionState.FAILED

    def release(self):
        """
        Close the browser. Safe to call any number of times; the driver is
        quit at most once.
        """
        if self.state == SessionState.RELEASED:
            return

        session, self.current = self.current, None
        if session is not None:
            self.release_count += 1
            try:
                session.driver.quit()
            except UIFlowError as e:
                # Teardown must not mask the run's own outcome
                logger.warning(f"Error while closing session {session.session_id}: {e}")
            logger.info(f"Session {session.session_id} released")
        self.state = SessionState.RELEASED

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Acquire a session for the duration of the ``with`` block."""
        if self.state != SessionState.UNSTARTED:
            raise RuntimeError(f"Session already acquired (state: {self.state.value})")
        try:
            session = self.acquire()
            self.state = SessionState.RUNNING
            try:
                yield session
            except BaseException:
                self.state = SessionState.FAILED
                raise
            if self.state == SessionState.RUNNING:
                self.state = SessionState.COMPLETED
        finally:
            self.release()


def with_session(
    config: RunConfig,
    body: Callable[[Session], T],
    driver_factory: Optional[DriverFactoryFn] = None,
) -> T:
    """
    Run ``body`` with a freshly acquired session and always release it.

    Args:
        config: Run configuration
        body: Callable receiving the session
        driver_factory: Optional driver factory override

    Returns:
        Whatever ``body`` returns
    """
    manager = SessionManager(config, driver_factory)
    with manager.session() as session:
        return body(session)
