"""Client for the JSON-mode chat completion endpoint used by the analyzers.

We call the HTTP API directly with `requests` instead of a vendor SDK, as the
rest of the service does, and keep the retry policy here so that every
analyzer gets the same behaviour for rate limits and transient errors.
"""

import copy
import json
import random
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from flask import current_app

from ..errors import AnalysisCancelled, ProviderError, ProviderUnavailable

DEFAULT_CHAR_LIMIT = 10000
JSON_BLOCK = re.compile(r"\{[\s\S]*\}")


def truncate(text: str, limit: int = DEFAULT_CHAR_LIMIT) -> str:
    # character count approximates the token budget
    return (text or "")[:limit]


def parse_completion(jr: Dict[str, Any]) -> Dict[str, Any]:
    """Extract the JSON object from a chat completion response body."""
    try:
        text = jr["choices"][0]["message"]["content"] or ""
    except (KeyError, IndexError, TypeError) as e:
        raise ProviderError(f"unexpected completion shape: {e!r}") from e

    try:
        data = json.loads(text) if text else {}
    except ValueError:
        # the model sometimes wraps the object in commentary
        m = JSON_BLOCK.search(text)
        if not m:
            raise ProviderError("completion is not JSON")
        try:
            data = json.loads(m.group(0))
        except ValueError as e:
            raise ProviderError("completion contains malformed JSON") from e
    if not isinstance(data, dict):
        raise ProviderError("completion JSON is not an object")
    return data


class CompletionProvider:
    """Structured-JSON completion capability injected into the pipeline.

    ``cancel_event`` is set per analysis via :meth:`bound_to`; once it is set
    no further attempt is made and pending backoff sleeps return at once.
    ``budget`` caps the wall time of one :meth:`complete` call, retries and
    ``Retry-After`` waits included; when it runs out the call fails with
    :class:`ProviderError` so the caller can fall back.
    """

    def __init__(self, api_key, model="gpt-4o", base_url="https://api.openai.com/v1",
                 timeout=30.0, max_attempts=3, char_limit=DEFAULT_CHAR_LIMIT, cancel_event=None,
                 budget=None):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max(1, int(max_attempts))
        self.char_limit = char_limit
        self.cancel_event = cancel_event
        self.budget = budget if budget is not None else self.timeout * self.max_attempts

    def bound_to(self, cancel_event, budget=None):
        clone = copy.copy(self)
        clone.cancel_event = cancel_event
        if budget is not None:
            clone.budget = min(clone.budget, budget)
        return clone

    def _check_cancelled(self):
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise AnalysisCancelled("analysis cancelled before provider call")

    def _sleep(self, seconds):
        if self.cancel_event is None:
            time.sleep(seconds)
        elif self.cancel_event.wait(seconds):
            raise AnalysisCancelled("analysis cancelled while waiting to retry")

    def complete(self, system_instruction: str, user_payload: str = "", temperature: float = 0.3) -> Dict[str, Any]:
        messages = [{"role": "system", "content": system_instruction}]
        if user_payload:
            messages.append({"role": "user", "content": user_payload})
        url = f"{self.base_url}/chat/completions"
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        body = {
            "model": self.model,
            "messages": messages,
            "response_format": {"type": "json_object"},
            "temperature": temperature,
        }

        logger = current_app.logger
        started = time.monotonic()
        backoff = 1.0
        last_error = None
        for attempt in range(1, self.max_attempts + 1):
            self._check_cancelled()
            remaining = self.budget - (time.monotonic() - started)
            if remaining <= 0:
                break
            try:
                r = requests.post(url, headers=headers, json=body, timeout=min(self.timeout, remaining))
            except requests.exceptions.RequestException as e:
                last_error = ProviderError(f"network error: {e}")
                logger.warning(f"completion network error, attempt {attempt}/{self.max_attempts}")
                if attempt < self.max_attempts and not self._wait_to_retry(backoff + random.uniform(0, 0.5), started):
                    break
                backoff *= 2
                continue

            status = r.status_code
            if status == 429 or 500 <= status < 600:
                body_text = r.text or ""
                if "insufficient_quota" in body_text:
                    raise ProviderError("completion quota exhausted")
                wait = backoff
                ra = r.headers.get("Retry-After")
                if ra:
                    try:
                        wait = float(ra)
                    except ValueError:
                        # HTTP-date form; keep the computed backoff
                        wait = backoff
                last_error = ProviderError(f"completion request failed with {status}")
                logger.warning(f"completion request returned {status}, attempt {attempt}/{self.max_attempts}, "
                               f"retrying in {wait}s; body={body_text[:500]}")
                if attempt < self.max_attempts and not self._wait_to_retry(wait + random.uniform(0, 0.5), started):
                    break
                backoff *= 2
                continue

            if status >= 400:
                raise ProviderError(f"completion HTTP error {status}: {(r.text or '')[:500]}")

            try:
                jr = r.json()
            except ValueError as e:
                raise ProviderError("completion response is not JSON") from e
            return parse_completion(jr)

        # attempts ran out, or the budget could not cover the next one
        raise last_error or ProviderError(f"completion budget of {self.budget}s exhausted")

    def _wait_to_retry(self, seconds, started) -> bool:
        """Sleep before the next attempt; ``False`` when the budget cannot cover the wait."""
        remaining = self.budget - (time.monotonic() - started)
        if seconds >= remaining:
            current_app.logger.warning(f"completion retry wait of {seconds:.1f}s exceeds the remaining "
                                       f"budget of {max(remaining, 0):.1f}s, giving up")
            return False
        self._sleep(seconds)
        return True


def provider_from_config(config) -> Optional[CompletionProvider]:
    """Build the provider from app config; ``None`` means heuristic-only mode."""
    api_key = config.get("OPENAI_API_KEY")
    if not api_key:
        return None
    return CompletionProvider(
        api_key,
        model=config.get("OPENAI_MODEL", "gpt-4o"),
        base_url=config.get("OPENAI_BASE_URL", "https://api.openai.com/v1"),
        timeout=float(config.get("PROVIDER_TIMEOUT_SEC", 30)),
        max_attempts=int(config.get("PROVIDER_MAX_ATTEMPTS", 3)),
        char_limit=int(config.get("TRANSCRIPT_CHAR_LIMIT", DEFAULT_CHAR_LIMIT)),
        budget=config.get("PROVIDER_BUDGET_SEC"),
    )


@dataclass
class CompletionOutcome:
    data: Optional[Dict[str, Any]] = None
    error: Optional[ProviderError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def request_json(provider, system_instruction: str, payload: str = "", temperature: float = 0.3) -> CompletionOutcome:
    """Issue one completion and return its outcome instead of raising.

    Cancellation is the exception: it is not a provider failure and must
    reach the orchestrator.
    """
    if provider is None:
        return CompletionOutcome(error=ProviderUnavailable("no completion provider configured"))
    limit = getattr(provider, "char_limit", DEFAULT_CHAR_LIMIT)
    try:
        data = provider.complete(system_instruction, truncate(payload, limit), temperature)
    except AnalysisCancelled:
        raise
    except ProviderError as e:
        current_app.logger.exception("completion request failed, using heuristic fallback")
        return CompletionOutcome(error=e)
    except Exception as e:
        current_app.logger.exception("completion request failed unexpectedly, using heuristic fallback")
        return CompletionOutcome(error=ProviderError(str(e)))
    if not isinstance(data, dict):
        return CompletionOutcome(error=ProviderError("completion JSON is not an object"))
    return CompletionOutcome(data=data)
