"""Instrumentation for closet operations: input validation plus timing logs."""

from __future__ import annotations

import logging
import time
from functools import wraps
from typing import Any, Callable, Dict, ParamSpec, TypeVar

from pydantic import BaseModel, ValidationError

from closet_app.logging_config import ensure_correlation_id, get_logger, log_event
from logic.errors import ClosetError

LOGGER = get_logger(__name__)
P = ParamSpec("P")
R = TypeVar("R")

_MAX_PREVIEW_KEYS = 6


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


def _preview_kwargs(kwargs: Dict[str, Any]) -> Dict[str, Any]:
    preview = dict(list(kwargs.items())[:_MAX_PREVIEW_KEYS])
    if len(kwargs) > _MAX_PREVIEW_KEYS:
        preview["truncated"] = True
    return preview


def instrument_operation(
    operation: str,
    input_model: type[BaseModel] | None = None,
    summarise: Callable[[Any], Dict[str, Any]] | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Validate keyword input against ``input_model`` and log the call.

    Closet errors such as a missing or unprepared item are expected outcomes
    and are logged as warnings; anything else is logged with a traceback.
    ``summarise`` turns the result into extra fields for the completion log.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            correlation_id = ensure_correlation_id()
            start = time.perf_counter()

            if input_model is not None:
                try:
                    kwargs = input_model.model_validate(kwargs).model_dump()
                except ValidationError as exc:
                    log_event(
                        LOGGER,
                        logging.WARNING,
                        "operation_validation_failed",
                        operation=operation,
                        correlation_id=correlation_id,
                        errors=exc.errors(include_url=False),
                    )
                    raise

            log_event(
                LOGGER,
                logging.INFO,
                "operation_started",
                operation=operation,
                correlation_id=correlation_id,
                kwargs=_preview_kwargs(kwargs),
            )
            try:
                result = func(*args, **kwargs)
            except ClosetError as exc:
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "operation_rejected",
                    operation=operation,
                    correlation_id=correlation_id,
                    duration_ms=_elapsed_ms(start),
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                raise
            except Exception:
                log_event(
                    LOGGER,
                    logging.ERROR,
                    "operation_failed",
                    operation=operation,
                    correlation_id=correlation_id,
                    duration_ms=_elapsed_ms(start),
                    exc_info=True,
                )
                raise

            log_event(
                LOGGER,
                logging.INFO,
                "operation_completed",
                operation=operation,
                correlation_id=correlation_id,
                duration_ms=_elapsed_ms(start),
                **(summarise(result) if summarise else {}),
            )
            return result

        return wrapper

    return decorator


__all__ = ["instrument_operation"]
