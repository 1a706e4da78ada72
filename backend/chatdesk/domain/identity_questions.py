"""
Detection of "what is your name / who are you" questions.

These are answered with the configured AI display name instead of a model
call. Inbound text is normalized first so that keyboard and script variants
(Arabic vs. Persian yeh/kaf, ZWNJ, bidi marks, trailing `؟`, emoji) do not
defeat the match.
"""

import unicodedata


# Extra words tolerated around a phrase ("سلام اسمت چیه", "hi, who are you")
MAX_EXTRA_WORDS = 2

_LETTER_VARIANTS = str.maketrans({
    "ي": "ی",
    "ى": "ی",
    "ك": "ک",
    "ة": "ه",
    "ۀ": "ه",
    "أ": "ا",
    "إ": "ا",
    "آ": "ا",
    "ٱ": "ا",
    "ؤ": "و",
})

_APOSTROPHES = {"'", "’", "‘", "`", "´"}

IDENTITY_PHRASES = (
    # Persian
    "اسمت چیه",
    "اسمت چیست",
    "اسمت چی",
    "اسم تو چیه",
    "اسم تو چیست",
    "اسم شما چیه",
    "اسم شما چیست",
    "اسمتون چیه",
    "اسمتان چیست",
    "نامت چیست",
    "نام تو چیست",
    "نام شما چیست",
    "تو کی هستی",
    "شما کی هستید",
    "شما کی هستین",
    "کی هستی",
    "کی هستید",
    "تو چه کسی هستی",
    "شما چه کسی هستید",
    "خودتو معرفی کن",
    "خودت را معرفی کن",
    "خودتان را معرفی کنید",
    # English
    "what is your name",
    "whats your name",
    "what is ur name",
    "whats ur name",
    "tell me your name",
    "what should i call you",
    "who are you",
    "who r u",
    "who are u",
    "introduce yourself",
)


def normalize_text(text: str) -> str:
    """
    Canonical form used for phrase matching.

    NFKC, drop format characters (bidi marks, ZWNJ/ZWJ, BOM) and combining
    marks, unify Arabic letter variants to Persian, drop apostrophes, turn
    remaining punctuation and symbols into spaces, collapse whitespace,
    casefold.
    """
    text = unicodedata.normalize("NFKC", text or "")
    text = text.translate(_LETTER_VARIANTS)

    chars = []
    for char in text:
        category = unicodedata.category(char)
        if category == "Cf" or category.startswith("M") or char in _APOSTROPHES:
            continue
        if category.startswith("P") or category.startswith("S"):
            chars.append(" ")
        else:
            chars.append(char)

    return " ".join("".join(chars).split()).casefold()


_PHRASE_TOKENS = tuple(
    tuple(normalize_text(phrase).split()) for phrase in dict.fromkeys(IDENTITY_PHRASES)
)


def _contains(tokens: list[str], phrase: tuple[str, ...]) -> bool:
    size = len(phrase)
    return any(
        tuple(tokens[i:i + size]) == phrase
        for i in range(len(tokens) - size + 1)
    )


def is_identity_question(text: str) -> bool:
    """True when the message is asking for the assistant's name."""
    tokens = normalize_text(text).split()
    if not tokens:
        return False

    for phrase in _PHRASE_TOKENS:
        if len(tokens) - len(phrase) > MAX_EXTRA_WORDS:
            continue
        if _contains(tokens, phrase):
            return True
    return False
