"""Session runner.

Connects a MeasurementProducer to a LivenessSession:

    >>> session = LivenessSession(settings, result_evaluator=evaluator)
    >>> producer = MeasurementProducer(CameraSource(0), detector,
    ...                                stop_event=session.closed_event,
    ...                                mirrored=True)
    >>> result = run_session(session, producer)
"""

import logging
from typing import Iterable, Optional, Tuple

from facelive.session import LivenessSession
from facelive.types import FaceMeasurement, SessionResult

logger = logging.getLogger(__name__)


def run_session(
    session: LivenessSession,
    producer: Iterable[Tuple[FaceMeasurement, object]],
) -> Optional[SessionResult]:
    """Feed every produced measurement to the session until it finishes.

    The producer (if closable) and the session are closed on every exit
    path. A producer that runs out before the session finishes cancels
    the session.

    Returns:
        The session result (passed, failed recognition or cancelled).

    Raises:
        LivenessError: The session failed.
    """
    clock = getattr(producer, "clock", None)
    try:
        for measurement, image in producer:
            if clock is not None:
                session.check_deadline(clock())
            session.process(measurement, image)
            if session.is_finished:
                break

        if not session.is_finished:
            logger.warning(
                "Frame source ended before the session finished (%d/%d captures)",
                len(session.captures), session.settings.max_bearings,
            )
    finally:
        close = getattr(producer, "close", None)
        if close is not None:
            close()
        session.close()

    return session.result


__all__ = ["run_session"]
