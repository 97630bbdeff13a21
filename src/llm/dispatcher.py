# src/llm/dispatcher.py — v2
"""Retry/fallback dispatcher in front of a BaseModelClient.

State per request is (current_model, attempt_number), advanced by an
explicit loop:

  * success                         -> return the text
  * transient, budget left          -> sleep base_delay * attempt, same model
  * transient exhausted, or fatal   -> next model in the chain, attempt 1,
                                       no sleep; end of chain -> DispatchError

Attempts are strictly sequential. Cancellation of the surrounding task
interrupts the provider call or the backoff sleep and is never
classified as a failure.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from diarygate.errors import DiarygateError
from diarygate.config.settings import Settings
from diarygate.llm.base_client import AdapterError, BaseModelClient, check_payload
from diarygate.llm.fallback import ModelChain
from diarygate.llm.models import Action, Attempt, Payload, parse_action
from diarygate.llm.retry import ErrorClass, RetryPolicy, classify_error, status_hint_for
from diarygate.logging.context import set_model_context

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[object]]
AttemptObserver = Callable[[Attempt], None]


class DispatchError(DiarygateError):
    """Every model in the chain failed."""

    def __init__(
        self,
        model: str,
        message: str,
        error_class: ErrorClass,
        status_hint: str | None,
        attempts: list[Attempt],
        last_error: Exception,
    ):
        self.model = model
        self.message = message
        self.error_class = error_class
        self.status_hint = status_hint
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Model '{model}' failed after {len(attempts)} attempts: {message}")


@dataclass
class DispatchResult:
    text: str
    model: str
    attempts: list[Attempt] = field(default_factory=list)


class Dispatcher:
    """Make a model client resilient to transient provider failures."""

    def __init__(
        self,
        client: BaseModelClient,
        chain: ModelChain | None = None,
        policy: RetryPolicy | None = None,
        default_model: str = "gemini-3-flash-preview",
        sleep: Sleep = asyncio.sleep,
        observer: AttemptObserver | None = None,
    ) -> None:
        self._client = client
        self._chain = chain or ModelChain()
        self._policy = policy or RetryPolicy()
        self._default_model = default_model
        self._sleep = sleep
        self._observer = observer

    @classmethod
    def from_settings(
        cls,
        client: BaseModelClient,
        settings: Settings,
        sleep: Sleep = asyncio.sleep,
        observer: AttemptObserver | None = None,
    ) -> Dispatcher:
        """Build a dispatcher from application Settings."""
        return cls(
            client,
            chain=ModelChain.parse(settings.llm_fallback_chain),
            policy=RetryPolicy(
                max_attempts_per_model=settings.retry_max_attempts,
                base_delay_s=settings.retry_base_delay_s,
            ),
            default_model=settings.llm_default_model,
            sleep=sleep,
            observer=observer,
        )

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    def _record(self, attempts: list[Attempt], attempt: Attempt) -> None:
        attempts.append(attempt)
        if self._observer is None:
            return
        try:
            self._observer(attempt)
        except Exception as exc:  # noqa: BLE001 - observers must not break dispatch
            logger.debug("Attempt observer failed: %s", exc)

    async def dispatch(self, action: Action | str, payload: Payload) -> DispatchResult:
        """Run the request through retries and fallbacks.

        Raises:
            UnknownActionError: Before any attempt, for an unrecognized action.
            PayloadMismatchError: Before any attempt, when the payload does
                not fit the action.
            DispatchError: When the whole chain is exhausted.
        """
        action = parse_action(action)
        check_payload(action, payload)
        model = getattr(payload, "model", None) or self._default_model
        logger.debug("Dispatch %s via %s", action.value, " -> ".join(self._chain.walk(model)))
        attempt_number = 1
        attempts: list[Attempt] = []

        while True:
            set_model_context(model)
            logger.debug("Attempt %d: %s | action=%s", attempt_number, model, action.value)
            try:
                text = await self._client.invoke(model, action, payload)
            except (AdapterError, TimeoutError) as exc:
                error_class = classify_error(exc)
                retry = (
                    error_class is ErrorClass.TRANSIENT
                    and self._policy.can_retry(attempt_number)
                )
                delay = self._policy.delay_for(attempt_number) if retry else 0.0
                self._record(
                    attempts,
                    Attempt(
                        model=model,
                        attempt_number=attempt_number,
                        outcome=error_class.value,
                        detail=str(exc),
                        delay_s=delay,
                    ),
                )
                logger.warning(
                    "Model '%s' %s failure (attempt %d/%d): %s",
                    model, error_class.value, attempt_number,
                    self._policy.max_attempts_per_model, exc,
                )

                if retry:
                    await self._sleep(delay)
                    attempt_number += 1
                    continue

                fallback = self._chain.next(model)
                if fallback is not None and fallback != model:
                    logger.info("Falling back: %s -> %s", model, fallback)
                    model = fallback
                    attempt_number = 1
                    continue

                raise DispatchError(
                    model=model,
                    message=str(exc),
                    error_class=error_class,
                    status_hint=_hint(exc),
                    attempts=attempts,
                    last_error=exc,
                ) from exc

            self._record(
                attempts,
                Attempt(model=model, attempt_number=attempt_number, outcome="success"),
            )
            return DispatchResult(text=text, model=model, attempts=attempts)


def _hint(error: Exception) -> str | None:
    if isinstance(error, AdapterError):
        return error.status_hint or status_hint_for(error.status_code, error.message)
    if isinstance(error, TimeoutError):
        return "deadline-exceeded"
    return status_hint_for(None, str(error))
