"""
Resume text -> ParsedProfile.

The generative path is tried once; any failure (no key configured, transport
error, timeout, unparseable or invalid JSON) degrades to a regex-only profile.
`extract_profile` never raises: callers read `ProfileExtraction.source` to
tell an AI result from a fallback.
"""
import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Literal

from pydantic import ValidationError as PydanticValidationError

from ..config import AI_TIMEOUT_S
from ..schemas.profile import ParsedProfile
from .ai_client import AIClientError, AIClientHTTPError, AIClientTimeout, TextGenerator
from .ai_prompts import profile_extraction_prompt
from .json_repair import parse_model_json


logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-z]{2,}")
_PHONE_RE = re.compile(r"(\+91[\s-]?)?\d{10}")


@dataclass
class ProfileExtraction:
    source: Literal["ai", "fallback"]
    profile: ParsedProfile
    warnings: list[str] = field(default_factory=list)
    model: str | None = None


def fallback_profile(text: str) -> ParsedProfile:
    """Minimal profile: first email and phone number found in the raw text, everything else empty."""
    raw = text or ""
    email = _EMAIL_RE.search(raw)
    phone = _PHONE_RE.search(raw)
    return ParsedProfile(
        email=email.group(0) if email else "",
        phone_number=phone.group(0) if phone else "",
    )


async def extract_profile(
    *,
    resume_text: str,
    generator: TextGenerator | None,
    timeout_s: float = AI_TIMEOUT_S,
) -> ProfileExtraction:
    text = resume_text or ""

    if generator is None:
        return ProfileExtraction(
            source="fallback",
            profile=fallback_profile(text),
            warnings=["GEMINI_API_KEY missing; used regex fallback"],
        )

    model = getattr(generator, "model", None)
    prompt = profile_extraction_prompt(resume_text=text)

    def degrade(reason: str) -> ProfileExtraction:
        logger.warning("Profile extraction fell back to regex: %s", reason)
        return ProfileExtraction(
            source="fallback",
            profile=fallback_profile(text),
            warnings=[reason],
            model=model,
        )

    try:
        raw = await asyncio.wait_for(generator.generate(prompt), timeout=timeout_s)
    except (asyncio.TimeoutError, AIClientTimeout):
        return degrade("AI call timed out")
    except AIClientHTTPError as e:
        return degrade(f"AI call failed: HTTP {e.status_code}")
    except AIClientError as e:
        return degrade(f"AI call failed: {type(e).__name__}")
    except Exception as e:
        logger.exception("Unexpected error from text generator: %s", e)
        return degrade("AI call failed due to unexpected error")

    try:
        obj = parse_model_json(raw)
    except ValueError as e:
        logger.debug("Unparseable AI response: %s", e)
        return degrade("AI response parse failed")

    try:
        profile = ParsedProfile.model_validate(obj)
    except PydanticValidationError as e:
        return degrade(f"AI response failed validation ({e.error_count()} errors)")

    return ProfileExtraction(source="ai", profile=profile, model=model)
