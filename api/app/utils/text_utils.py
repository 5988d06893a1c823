"""
Text utility functions.
"""


def normalize_answer(text: str) -> str:
    """
    Normalize a spoken or typed answer for comparison: lowercase and collapse whitespace.

    Args:
        text: The text to normalize

    Returns:
        Normalized text
    """
    if not text:
        return ""
    return " ".join(text.lower().split())


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance between two strings (insertions, deletions, substitutions)."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, 1):
        current = [i]
        for j, char_b in enumerate(b, 1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j - 1], current[j - 1], previous[j]) + 1)
        previous = current
    return previous[-1]


def word_similarity(spoken: str, expected: str) -> float:
    """
    Word-level similarity between a spoken transcript and the expected sentence.

    A spoken word counts as a match when some expected word is equal to it or
    within edit distance 1. The match count is divided by the longer word count,
    so both missing and extra words lower the score.

    Args:
        spoken: Transcript of what the learner said
        expected: The sentence the learner should have said

    Returns:
        Similarity between 0.0 and 1.0
    """
    spoken_words = normalize_answer(spoken).split()
    expected_words = normalize_answer(expected).split()

    if not spoken_words or not expected_words:
        return 0.0

    matches = 0
    for spoken_word in spoken_words:
        for expected_word in expected_words:
            if spoken_word == expected_word or levenshtein_distance(spoken_word, expected_word) <= 1:
                matches += 1
                break

    return matches / max(len(spoken_words), len(expected_words))
