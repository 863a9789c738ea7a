"""Voice intent classification."""

from dataclasses import dataclass

from moment_composer.domain.intents import Intent

PHOTO_PHRASES = (
    "take photo",
    "capture photo",
    "snap photo",
    "take picture",
    "capture picture",
    "snap picture",
    "camera",
    "photo",
)

SHOPPING_PHRASES = (
    "buy",
    "purchase",
    "order",
    "shopping",
)

CALENDAR_PHRASES = (
    "schedule",
    "meeting",
    "calendar",
    "appointment",
    "book",
    "plan",
    "create event",
    "add to calendar",
)

EMAIL_PHRASES = (
    "email",
    "reply",
    "send email",
    "compose",
    "check email",
    "inbox",
    "message",
)

# Evaluation order; the first category with a matching phrase wins.
DEFAULT_PHRASES: tuple[tuple[Intent, tuple[str, ...]], ...] = (
    (Intent.PHOTO, PHOTO_PHRASES),
    (Intent.SHOPPING, SHOPPING_PHRASES),
    (Intent.CALENDAR, CALENDAR_PHRASES),
    (Intent.EMAIL, EMAIL_PHRASES),
)


def normalize_utterance(text: str) -> str:
    """Lower-case and trim an utterance for matching."""
    return text.lower().strip()


@dataclass(frozen=True)
class IntentClassifier:
    """Stateless substring matcher over ordered phrase lists."""

    phrases: tuple[tuple[Intent, tuple[str, ...]], ...] = DEFAULT_PHRASES

    def classify(self, text: str) -> Intent:
        """Return the first matching intent for normalized text."""
        for intent, phrases in self.phrases:
            if _contains_any(text, phrases):
                return intent
        return Intent.NONE

    def matches(self, text: str) -> dict[Intent, bool]:
        """Report every category that matches, ignoring precedence."""
        return {intent: _contains_any(text, phrases) for intent, phrases in self.phrases}


def _contains_any(text: str, phrases: tuple[str, ...]) -> bool:
    return any(phrase in text for phrase in phrases)
