def normalize_answer(text: str) -> str:
    return text.strip().lower()


def grade(submitted: str, expected: str) -> bool:
    """Exact match after trimming surrounding whitespace and lowercasing"""
    return normalize_answer(submitted) == normalize_answer(expected)
