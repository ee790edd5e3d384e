from ..config import PROFILE_PROMPT_MAX_CHARS


def profile_extraction_prompt(*, resume_text: str, max_chars: int = PROFILE_PROMPT_MAX_CHARS) -> str:
    # Schema keys must stay in sync with schemas.profile.ParsedProfile.
    return (
        "You are a resume parsing engine.\n\n"
        "Return ONLY valid JSON.\n"
        "No markdown.\n"
        "No explanation.\n\n"
        "Schema:\n"
        "{\n"
        '  "full_name": "",\n'
        '  "email": "",\n'
        '  "phone_number": "",\n'
        '  "skills": [],\n'
        '  "education": [],\n'
        '  "experience": [],\n'
        '  "projects": [],\n'
        '  "certifications": [],\n'
        '  "achievements": [],\n'
        '  "areas_of_interest": []\n'
        "}\n\n"
        "Rules:\n"
        "- All keys must exist\n"
        "- Empty string or array if missing\n"
        "- Do not guess\n\n"
        "Resume:\n"
        '"""\n'
        f"{(resume_text or '')[:max_chars]}\n"
        '"""\n'
    )
