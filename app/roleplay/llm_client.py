import json
import os
from typing import Any, Dict, List, Optional

from openai import APIConnectionError, APIStatusError, APITimeoutError, OpenAI


DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_TIMEOUT_SECONDS = 30.0
MAX_ERROR_CHARS = 1200


def truncate(text: str, max_chars: int = MAX_ERROR_CHARS) -> str:
    value = (text or "").strip()
    if len(value) <= max_chars:
        return value
    return value[: max_chars - 3] + "..."


def _get_api_key() -> str:
    api_key = os.getenv("OPENAI_API_KEY", "").strip()
    if not api_key:
        raise RuntimeError(
            "Missing OPENAI_API_KEY. Set it before starting role-play or feedback requests "
            '(example: export OPENAI_API_KEY="YOUR_KEY_HERE").'
        )
    return api_key


def model_name() -> str:
    return os.getenv("OPENAI_MODEL", DEFAULT_MODEL).strip() or DEFAULT_MODEL


def build_client() -> OpenAI:
    base_url = os.getenv("OPENAI_BASE_URL", DEFAULT_BASE_URL).strip() or DEFAULT_BASE_URL
    timeout_seconds = float(os.getenv("OPENAI_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS)))
    return OpenAI(
        base_url=base_url,
        api_key=_get_api_key(),
        timeout=timeout_seconds,
    )


def _extract_content(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, list):
        parts: List[str] = []
        for item in value:
            if isinstance(item, dict):
                text = item.get("text")
                if text:
                    parts.append(str(text))
        return "\n".join(parts).strip()
    return str(value or "").strip()


def _unsupported_temperature(exc: APIStatusError) -> bool:
    message = (getattr(exc, "message", "") or str(exc)).lower()
    return "temperature" in message and ("default (1)" in message or "unsupported" in message)


def request_chat_completion(
    messages: List[Dict[str, str]],
    *,
    max_tokens: int,
    temperature: Optional[float] = None,
    label: str = "LLM",
    client: Optional[OpenAI] = None,
) -> str:
    """Run one chat completion and return the text of the first choice.

    Raises ``RuntimeError`` for every provider failure; callers decide on the
    fallback text.
    """
    client = client or build_client()
    base_kwargs: Dict[str, Any] = {
        "model": model_name(),
        "messages": messages,
        "max_tokens": max_tokens,
    }
    if temperature is not None:
        base_kwargs["temperature"] = temperature

    attempts = [
        dict(base_kwargs),
        {k: v for k, v in base_kwargs.items() if k != "temperature"},
    ]
    seen_signatures: set = set()
    last_status_error: Optional[APIStatusError] = None

    for kwargs in attempts:
        signature = json.dumps(sorted(kwargs.keys()))
        if signature in seen_signatures:
            continue
        seen_signatures.add(signature)

        try:
            response = client.chat.completions.create(**kwargs)
        except APIStatusError as exc:
            last_status_error = exc
            if _unsupported_temperature(exc):
                continue
            status_code = getattr(exc, "status_code", None)
            detail = getattr(exc, "message", None) or str(exc)
            if status_code is not None:
                raise RuntimeError(f"{label} request failed ({status_code}): {truncate(detail)}") from exc
            raise RuntimeError(f"{label} request failed: {truncate(detail)}") from exc
        except APITimeoutError as exc:
            raise RuntimeError(f"{label} request timed out.") from exc
        except APIConnectionError as exc:
            raise RuntimeError(f"Failed to connect to LLM provider: {exc}") from exc
        except Exception as exc:
            raise RuntimeError(f"Unexpected {label} error: {exc}") from exc

        choice = response.choices[0] if getattr(response, "choices", None) else None
        if choice is None:
            raise RuntimeError(f"{label} response did not contain choices.")
        content = _extract_content(choice.message.content)
        if not content:
            raise RuntimeError(f"{label} response content is empty.")
        return content

    if last_status_error is not None:
        detail = getattr(last_status_error, "message", None) or str(last_status_error)
        raise RuntimeError(f"{label} request failed: {truncate(detail)}")
    raise RuntimeError(f"{label} request failed before receiving a response.")
