"""
Input Validator - first step in the generation pipeline.
Validates a raw request against allowed values and returns a sanitized copy.
"""
import re
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Union

from services.models import (
    ReferenceContext,
    ScriptRequest,
    VALID_DURATIONS,
    VALID_REFERENCE_MODES,
    VALID_TONES,
    VALID_TYPES,
)

MIN_IDEA_LENGTH = 10
MAX_IDEA_LENGTH = 1000
MAX_NOTES_LENGTH = 5000

_EMOJI_ONLY = re.compile(
    "^[\U0001F300-\U0001F9FF\U0001FA70-\U0001FAFF\u2600-\u26FF\u2700-\u27BF"
    "\U0001F1E6-\U0001F1FF\u200d\ufe0f\\s]+$"
)

# Placeholder for content policy terms.
PROHIBITED_TERMS: tuple = ()

RawRequest = Union[ScriptRequest, Mapping[str, Any]]


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    sanitized_input: Optional[ScriptRequest] = None


def _as_mapping(request: RawRequest) -> Mapping[str, Any]:
    if isinstance(request, ScriptRequest):
        context = request.context
        return {
            "idea": request.idea,
            "duration": request.duration,
            "type": request.script_type,
            "tone": request.tone,
            "context": None if context is None else {
                "notes": context.notes,
                "voiceId": context.voice_id,
                "referenceMode": context.reference_mode,
            },
        }
    return request


def _normalize_enum(value: Any) -> Any:
    # Durations arrive as "30" from JSON bodies and as 30 from Python callers.
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


def contains_only_emojis(text: str) -> bool:
    return bool(_EMOJI_ONLY.match(text))


def contains_prohibited_content(text: str) -> bool:
    lowered = text.lower()
    return any(term in lowered for term in PROHIBITED_TERMS)


class InputValidator:
    """Validates and sanitizes script generation requests."""

    @staticmethod
    def validate(request: RawRequest) -> ValidationResult:
        errors: List[str] = []
        warnings: List[str] = []

        if request is None:
            return ValidationResult(is_valid=False, errors=["Request is required"])

        data = _as_mapping(request)

        idea = data.get("idea")
        if not idea or not isinstance(idea, str):
            errors.append("Idea is required and must be a string")
        else:
            trimmed = idea.strip()
            if len(trimmed) < MIN_IDEA_LENGTH:
                errors.append(f"Idea must be at least {MIN_IDEA_LENGTH} characters long")
            if len(trimmed) > MAX_IDEA_LENGTH:
                errors.append(f"Idea must be no more than {MAX_IDEA_LENGTH} characters long ({len(trimmed)} given)")
            if trimmed and contains_only_emojis(trimmed):
                errors.append("Idea cannot contain only emojis")
            if contains_prohibited_content(trimmed):
                errors.append("Idea contains prohibited content")

        duration = _normalize_enum(data.get("duration"))
        if duration not in VALID_DURATIONS:
            errors.append(f"Invalid duration. Must be one of: {', '.join(VALID_DURATIONS)}")

        script_type = data.get("type")
        if script_type not in VALID_TYPES:
            errors.append(f"Invalid type. Must be one of: {', '.join(VALID_TYPES)}")

        tone = data.get("tone")
        if tone not in VALID_TONES:
            errors.append(f"Invalid tone. Must be one of: {', '.join(VALID_TONES)}")

        context = data.get("context")
        if context is not None and not isinstance(context, Mapping):
            errors.append("Context must be an object")
            context = None

        if context:
            notes = context.get("notes")
            if notes is not None and not isinstance(notes, str):
                errors.append("Context notes must be a string")
            elif notes and len(notes) > MAX_NOTES_LENGTH:
                warnings.append("Context notes are very long. This may affect generation quality.")

            voice_id = context.get("voiceId")
            if voice_id is not None and not isinstance(voice_id, str):
                errors.append("Context voiceId must be a string")

            reference_mode = context.get("referenceMode")
            if reference_mode and reference_mode not in VALID_REFERENCE_MODES:
                errors.append(f"Invalid reference mode. Must be one of: {', '.join(VALID_REFERENCE_MODES)}")

        if duration == "15" and script_type == "educational":
            warnings.append("15-second educational content may be too brief. Consider using 30+ seconds.")

        if tone == "professional" and script_type == "viral":
            warnings.append('Professional tone with viral type may conflict. Consider "energetic" tone for viral content.')

        if errors:
            return ValidationResult(is_valid=False, errors=errors, warnings=warnings)

        sanitized_context = None
        if context:
            notes = context.get("notes")
            voice_id = context.get("voiceId")
            sanitized_context = ReferenceContext(
                notes=notes.strip() or None if notes else None,
                voice_id=voice_id.strip() or None if voice_id else None,
                reference_mode=context.get("referenceMode") or None,
            )

        return ValidationResult(
            is_valid=True,
            warnings=warnings,
            sanitized_input=ScriptRequest(
                idea=idea.strip(),
                duration=duration,
                script_type=script_type,
                tone=tone,
                context=sanitized_context,
            ),
        )
