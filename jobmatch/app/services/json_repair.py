"""
Recover a JSON object from a generative model's raw text.

Models are asked for bare JSON but routinely wrap it in markdown fences, put
literal newlines inside string values, or add prose around it. Each stage
below is a pure function `str -> dict` that raises ValueError when it cannot
produce an object; `parse_model_json` tries them in order and returns the
first success.
"""
import json
import re
from typing import Callable

_FENCE_OPEN_RE = re.compile(r"^```[a-zA-Z]*\s*")
_FENCE_CLOSE_RE = re.compile(r"\s*```\s*$")
_NEWLINES_RE = re.compile(r"\r?\n")


def _loads_object(text: str) -> dict:
    obj = json.loads(text)
    if not isinstance(obj, dict):
        raise ValueError("JSON value is not an object")
    return obj


def _strip_fences(text: str) -> str:
    t = (text or "").strip()
    t = _FENCE_OPEN_RE.sub("", t, count=1)
    t = _FENCE_CLOSE_RE.sub("", t, count=1)
    return t.strip()


def parse_as_is(text: str) -> dict:
    return _loads_object((text or "").strip())


def parse_without_fences(text: str) -> dict:
    """Drop ```/```json fences and fold newlines (including ones inside strings) into spaces."""
    return _loads_object(_NEWLINES_RE.sub(" ", _strip_fences(text)))


_CONTROL_ESCAPES = {"\r": "\\r", "\n": "\\n", "\t": "\\t"}


def _escape_controls_in_strings(text: str) -> str:
    out: list[str] = []
    in_string = False
    escaped = False
    for ch in text:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            elif ch in _CONTROL_ESCAPES:
                ch = _CONTROL_ESCAPES[ch]
        elif ch == '"':
            in_string = True
        out.append(ch)
    return "".join(out)


def parse_with_escaped_controls(text: str) -> dict:
    """Escape raw control characters left in the fence-stripped, newline-folded text."""
    t = _NEWLINES_RE.sub(" ", _strip_fences(text))
    return _loads_object(_escape_controls_in_strings(t))


def find_first_object(text: str) -> str:
    """
    Return the first balanced top-level {...} substring.
    Braces inside JSON strings are ignored.
    """
    start = text.find("{")
    if start < 0:
        raise ValueError("No JSON object found in AI response")

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    raise ValueError("Unbalanced JSON object in AI response")


def parse_first_object(text: str) -> dict:
    chunk = find_first_object(text or "")
    return _run_chain(chunk, _TEXT_STAGES)


RepairStage = Callable[[str], dict]

_TEXT_STAGES: tuple[RepairStage, ...] = (
    parse_as_is,
    parse_without_fences,
    parse_with_escaped_controls,
)

REPAIR_STAGES: tuple[RepairStage, ...] = _TEXT_STAGES + (parse_first_object,)


def _run_chain(text: str, stages: tuple[RepairStage, ...]) -> dict:
    errors: list[str] = []
    for stage in stages:
        try:
            return stage(text)
        except ValueError as e:
            # json.JSONDecodeError is a ValueError
            errors.append(f"{stage.__name__}: {e}")
    raise ValueError("All JSON recovery attempts failed (" + "; ".join(errors) + ")")


def parse_model_json(text: str) -> dict:
    """Best-effort parse of a model response into a dict. Raises ValueError if nothing works."""
    if not (text or "").strip():
        raise ValueError("Empty AI response")
    return _run_chain(text, REPAIR_STAGES)
