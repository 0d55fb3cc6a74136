"""
Structured logging for the adapter.

Modules log through ``structlog.get_logger(__name__)``. Fetch tasks bind the
resource type and the requested ids with :func:`fetch_context`, so transport
and serializer events emitted while a fetch runs carry them too.
"""

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

import structlog

LOGGER_NAME = "jsonapi_adapter"


def setup_logging(level: int = logging.DEBUG, *, json_output: bool = False) -> None:
    """
    Route adapter events through the standard library logger.

    Parameters
    ----------
    level : int, optional
        Level of the ``jsonapi_adapter`` logger.
    json_output : bool, optional
        Render one JSON object per event instead of the colored console format.
    """
    logging.getLogger(LOGGER_NAME).setLevel(level)
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=True)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


@contextmanager
def logging_context(**required_context) -> Iterator[None]:
    """Bind values that are set and not already bound for the current task."""
    current = structlog.contextvars.get_contextvars()
    to_bind = {
        key: value
        for key, value in required_context.items()
        if value is not None and key not in current
    }

    if to_bind:
        with structlog.contextvars.bound_contextvars(**to_bind):
            yield
    else:
        yield


@contextmanager
def fetch_context(resource_type: str, ids: Iterable[str]) -> Iterator[None]:
    """
    Bind ``resource_type`` and ``ids`` for the duration of one fetch.

    Parameters
    ----------
    resource_type : str
        Resource type being fetched.
    ids : collections.abc.Iterable[str]
        Requested ids, in request order.
    """
    with logging_context(resource_type=resource_type, ids=list(ids)):
        yield
