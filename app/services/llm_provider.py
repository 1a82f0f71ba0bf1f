"""
Text enhancement providers.

The enricher talks to an ``EnhancementProvider``: one async call that takes
a system prompt and a user prompt and returns raw model text.  The only
shipped implementation posts to Ollama's /api/generate endpoint.

Model output is untrusted.  ``parse_json_lenient`` recovers JSON from the
usual small-model noise: code fences, trailing commas, Python literals,
prose around the payload and a missing closing bracket.
"""
from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Tuple

import httpx

from app.config import settings
from app.services.errors import EnhancementError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnhancementOptions:
    temperature: float = 0.3
    max_output_chars: int = 4000
    expect_structured_output: bool = True

    @classmethod
    def from_settings(cls) -> "EnhancementOptions":
        return cls(
            temperature=settings.ENHANCEMENT_TEMPERATURE,
            max_output_chars=settings.ENHANCEMENT_MAX_OUTPUT_CHARS,
        )


class EnhancementProvider(Protocol):
    """Anything that can turn a prompt pair into model text."""

    async def enhance(
        self, system_prompt: str, user_prompt: str, options: EnhancementOptions
    ) -> str:
        ...


# ---------------------------------------------------------------------------
# Ollama
# ---------------------------------------------------------------------------

class OllamaEnhancementProvider:
    """
    Enhancement via Ollama /api/generate.

    Concurrent calls are capped by a semaphore.  Every failure mode is
    reported as EnhancementError; callers decide whether to fall back.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        max_concurrent: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.OLLAMA_BASE_URL).rstrip("/")
        self.model = model or settings.OLLAMA_LLM_MODEL
        self.timeout_seconds = timeout or settings.ENHANCEMENT_TIMEOUT
        self.timeout = httpx.Timeout(self.timeout_seconds, connect=min(self.timeout_seconds, 5.0))
        self._semaphore = asyncio.Semaphore(max_concurrent or settings.ENHANCEMENT_MAX_CONCURRENT)
        self._transport = transport

    def _payload(self, system_prompt: str, user_prompt: str, options: EnhancementOptions) -> dict:
        payload = {
            "model": self.model,
            "system": system_prompt,
            "prompt": user_prompt,
            "stream": False,
            "options": {
                # ~4 chars per token is close enough for a cap
                "num_predict": max(64, options.max_output_chars // 4),
                "temperature": options.temperature,
            },
        }
        if options.expect_structured_output:
            payload["format"] = "json"
        return payload

    async def enhance(
        self, system_prompt: str, user_prompt: str, options: EnhancementOptions
    ) -> str:
        async with self._semaphore:
            try:
                async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                    resp = await client.post(
                        f"{self.base_url}/api/generate",
                        json=self._payload(system_prompt, user_prompt, options),
                    )
            except httpx.TimeoutException as exc:
                raise EnhancementError(
                    f"Ollama request timed out after {self.timeout_seconds:.0f} s"
                ) from exc
            except httpx.HTTPError as exc:
                raise EnhancementError(f"Ollama transport error: {exc}") from exc

        if resp.status_code != 200:
            raise EnhancementError(
                f"Ollama returned HTTP {resp.status_code}: {resp.text[:300]}"
            )
        try:
            text = resp.json().get("response", "")
        except ValueError as exc:
            raise EnhancementError("Ollama returned a non-JSON body") from exc
        if not isinstance(text, str) or not text.strip():
            raise EnhancementError("Ollama returned an empty response")
        return text[: options.max_output_chars]

    async def is_available(self) -> bool:
        """Cheap reachability probe used by the health endpoint."""
        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(2.0), transport=self._transport) as client:
                resp = await client.get(f"{self.base_url}/api/tags")
            return resp.status_code == 200
        except httpx.HTTPError:
            return False


def build_provider() -> Optional[EnhancementProvider]:
    """The configured provider, or None when enhancement is switched off."""
    if not settings.ENHANCEMENT_ENABLED:
        return None
    logger.info(
        "Enhancement enabled: Ollama %s at %s", settings.OLLAMA_LLM_MODEL, settings.OLLAMA_BASE_URL
    )
    return OllamaEnhancementProvider()


# ---------------------------------------------------------------------------
# Lenient JSON parsing
# ---------------------------------------------------------------------------

_OPEN_FENCE_RE = re.compile(r"^```(?:json|javascript|text)?\s*\n?", re.IGNORECASE)
_CLOSE_FENCE_RE = re.compile(r"\n?```\s*$")
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")
_LINE_COMMENT_RE = re.compile(r"//[^\n]*")


def _loads(text: str) -> Tuple[bool, Any]:
    try:
        return True, json.loads(text)
    except ValueError:
        return False, None


def strip_code_fences(text: str) -> str:
    return _CLOSE_FENCE_RE.sub("", _OPEN_FENCE_RE.sub("", text)).strip()


def repair_json(text: str) -> str:
    """Trailing commas, Python literals and // comments."""
    text = _TRAILING_COMMA_RE.sub(r"\1", text)
    for py, js in (("True", "true"), ("False", "false"), ("None", "null")):
        text = re.sub(rf"\b{py}\b", js, text)
    return _LINE_COMMENT_RE.sub("", text).strip()


def find_balanced(text: str, open_b: str, close_b: str) -> str:
    """First balanced open_b ... close_b fragment of *text*, ignoring brackets in strings."""
    start = text.find(open_b)
    if start == -1:
        return ""
    depth = 0
    in_string = escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if escaped:
            escaped = False
        elif in_string:
            if ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == open_b:
            depth += 1
        elif ch == close_b:
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return ""


def parse_json_lenient(response: str) -> Tuple[bool, Any]:
    """
    Recover a JSON value from model output.

    Returns ``(success, value)``; strategies are tried cheapest first.
    """
    if not response or not response.strip():
        return False, None

    text = response.strip()
    ok, value = _loads(text)
    if ok:
        return True, value

    text = strip_code_fences(text)
    repaired = repair_json(text)
    for candidate in (text, repaired):
        ok, value = _loads(candidate)
        if ok:
            return True, value

    # prefer an object: {"content": [...]} contains a list too
    for open_b, close_b in (("{", "}"), ("[", "]")):
        fragment = find_balanced(text, open_b, close_b)
        if not fragment:
            continue
        for candidate in (fragment, repair_json(fragment)):
            ok, value = _loads(candidate)
            if ok:
                return True, value

    for suffix in ("]", "}", "]}"):
        ok, value = _loads(repaired + suffix)
        if ok:
            logger.debug("parse_json_lenient: closed truncated output with %r", suffix)
            return True, value

    logger.warning("parse_json_lenient: unparseable output: %s", response[:200])
    return False, None
