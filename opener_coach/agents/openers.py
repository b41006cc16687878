"""
Opener Coach - Opener Catalog
The fixed, ordered library of scripted call openers agents choose from.

Catalog order is significant: the matcher and the recommendation engine use
it to break ties, so entries must never be reordered casually.
"""

from dataclasses import dataclass, asdict
from typing import Optional

from opener_coach.errors import CatalogError


@dataclass(frozen=True)
class Opener:
    """A canonical opener. `text` may contain a `{your name}` placeholder."""
    id: str
    text: str
    category: Optional[str] = None

    def to_dict(self):
        return asdict(self)


# ─── CATALOG ────────────────────────────────────────────────

OPENERS = (
    Opener(
        id="pl-1",
        text="Hi, thank you for requesting a callback from Dis-Chem Life. I'm {your name}. "
             "Is this a good time to talk about how you can increase your Better Rewards "
             "with our cover?",
        category="rewarding",
    ),
    Opener(
        id="pl-2",
        text="Hello, it's {your name}  I'm calling to answer all your questions about "
             "Dis-Chem Cover. Is it a convenient time?",
        category="helpful",
    ),
    Opener(
        id="pl-3",
        text="Hello, I'm {your name} You wanted to find out more about Dis-Chem Life. "
             "Can I start by how it can help you save every time you shop at Dis-Chem.",
        category="engagement",
    ),
    Opener(
        id="pl-4",
        text="Hi, it's {your name} from Dis-Chem Life. You asked for more info and I'm "
             "here to answer your questions. Can we talk?",
        category="answers",
    ),
    Opener(
        id="pl-5",
        text="Hello, it's {your name} from Dis-Chem Life. I'm here to answer your questions "
             "and help you cover your family without spending too much. Is this a good time?",
        category="savings",
    ),
    Opener(
        id="pl-6",
        text="Good morning, it's {your name} calling from Dis-Chem Life. How are you today? "
             "I'm also well, thank you. Do you have five minutes to talk about the cover "
             "you asked about?",
        category="traditional",
    ),
    Opener(
        id="pl-7",
        text="Good morning, it's {your name} calling from Dis-Chem Life. Can we chat about "
             "the cover you asked about?",
        category="short",
    ),
)


def validate_catalog(openers) -> tuple:
    """Check catalog ids are unique and non-empty.

    An empty catalog is accepted: matching then never finds anything and the
    recommendation engine falls back to "no opener". Returns the catalog as a
    tuple so callers can keep an immutable copy.
    """
    openers = tuple(openers)
    seen = set()
    for opener in openers:
        if not opener.id:
            raise CatalogError("Opener ids must be non-empty")
        if opener.id in seen:
            raise CatalogError(f"Duplicate opener id '{opener.id}'")
        seen.add(opener.id)
    return openers


def get_opener(opener_id: str, openers=OPENERS) -> Optional[Opener]:
    """Look up an opener by id. Returns None for unknown ids."""
    for opener in openers:
        if opener.id == opener_id:
            return opener
    return None


validate_catalog(OPENERS)
