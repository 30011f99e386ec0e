"""
Content packs and the read-only pack sources the engine consumes.
"""

import logging
import os
from typing import Any, Dict, List, Mapping, Optional, Sequence

import orjson

from .constants import DEFAULT_PACK_ID
from .models import Pack

logger = logging.getLogger(__name__)


def _prompts(*entries) -> List[Dict[str, Any]]:
    cards = []
    for entry in entries:
        if isinstance(entry, tuple):
            text, pick = entry
            cards.append({'text': text, 'pick': pick})
        else:
            cards.append({'text': entry, 'pick': 1})
    return cards


def _answers(*texts) -> List[Dict[str, Any]]:
    return [{'text': text} for text in texts]


BASE_PACK = Pack(
    id=DEFAULT_PACK_ID,
    name='Base Pack',
    prompt_cards=_prompts(
        "The secret ingredient in grandma's soup is _.",
        "My therapist says I need to stop thinking about _.",
        "Nothing ruins a first date faster than _.",
        "The museum's newest exhibit: _.",
        "I never leave the house without _.",
        "Breaking news: scientists discover _.",
        "What's that smell?",
        "The real reason the dinosaurs went extinct: _.",
        "My superpower would be _.",
        "What did I bring back from vacation?",
        "The worst thing to find in your sandwich: _.",
        "Coming soon to a theater near you: _.",
        "What keeps me up at night?",
        "The office holiday party was ruined by _.",
        "Step one: _. Step two: profit.",
        ("_ is the new _.", 2),
        ("I replaced my morning coffee with _ and now I can't stop _.", 2),
        ("The wedding was going fine until _ met _.", 2),
        ("In my memoir, chapter one is _ and chapter two is _.", 2),
        ("Make a haiku.", 3),
        "What's the next viral dance craze?",
        "My landlord won't stop complaining about _.",
        "Instead of a diploma, graduates now receive _.",
        "The unofficial mascot of the internet: _.",
    ),
    answer_cards=_answers(
        "A suspiciously friendly goose",
        "Forgetting the lyrics halfway through",
        "Aggressive interpretive dance",
        "A haunted spreadsheet",
        "Three raccoons in a trench coat",
        "Unsolicited life advice",
        "The last slice of pizza",
        "A motivational poster about failure",
        "Socks with sandals",
        "A dramatic slow clap",
        "Grandma's browser history",
        "An inflatable castle",
        "Crying in the grocery store",
        "A very confident pigeon",
        "The group chat",
        "Sweatpants at a job interview",
        "A mysterious stain",
        "Reply-all",
        "An emotional support cactus",
        "Pretending to understand cryptocurrency",
        "The sound of a dial-up modem",
        "A kazoo solo",
        "Tax season",
        "Glitter that never leaves",
        "A time-traveling plumber",
        "Mayonnaise on everything",
        "Small talk in an elevator",
        "A surprise tuba recital",
        "Accidentally waving at a stranger",
        "Being left on read",
        "A llama with a grudge",
        "Microwave fish in the break room",
        "An unskippable ad",
        "The world's smallest violin",
        "Putting ketchup on cereal",
        "A self-checkout machine with opinions",
        "An awkward high five",
        "Running on three hours of sleep",
        "A karaoke battle to the death",
        "The password is 'password'",
        "A parade of tiny horses",
        "Overly complicated coffee orders",
        "A dad joke that goes on too long",
        "An alarm that never went off",
        "A conspiracy about the moon",
        "Losing a flip-flop at the beach",
        "A fortune cookie with bad news",
        "The neighbor's leaf blower",
        "A smart fridge that judges you",
        "Interpretive yodeling",
        "Stepping on a single Lego",
        "A suspicious amount of glue",
        "Winning a lifetime supply of mustard",
        "A bicycle built for seven",
        "Panic-buying houseplants",
        "An enthusiastic mime",
        "The cursed family heirloom",
        "Typing in all caps",
        "A sourdough starter named Kevin",
        "Aggressively recommending podcasts",
        "Breakfast for dinner",
        "A pirate with stage fright",
        "Dancing like nobody is watching, badly",
        "A sneeze during a silent moment",
        "The unread terms and conditions",
        "A balloon animal that got out of hand",
        "An existential crisis at brunch",
        "Tiny hats for cats",
        "A printer that only works on Tuesdays",
        "Doing the robot at a funeral",
        "The chosen one, but lazy",
        "Too many browser tabs",
    ),
)

BUILT_IN_PACKS: List[Pack] = [BASE_PACK]


def _read_json(path: str) -> Any:
    with open(path, 'rb') as f:
        return orjson.loads(f.read())


def _card_list(data: Mapping[str, Any], *keys: str) -> List[Dict[str, Any]]:
    for key in keys:
        value = data.get(key)
        if value:
            return list(value)
    return []


class StaticPackSource:
    """In-memory pack source."""

    def __init__(
        self,
        built_in: Optional[Sequence[Pack]] = None,
        custom: Optional[Mapping[str, Pack]] = None,
    ):
        self.built_in = list(BUILT_IN_PACKS if built_in is None else built_in)
        self.custom = dict(custom or {})

    def list_built_in_packs(self) -> List[Pack]:
        return list(self.built_in)

    def list_custom_decks(self) -> Dict[str, Pack]:
        return dict(self.custom)


class DirectoryDeckSource:
    """
    Read-only loader for custom decks stored one per directory.

    Each deck lives at ``<decks_dir>/<deck_id>/`` with ``meta.json`` (name),
    ``black.json`` (prompt cards) and ``white.json`` (answer cards). The disk is
    re-read on every call so edits made outside the server are picked up.
    """

    def __init__(self, decks_dir: str, built_in: Optional[Sequence[Pack]] = None):
        self.decks_dir = decks_dir
        self.built_in = list(BUILT_IN_PACKS if built_in is None else built_in)

    def list_built_in_packs(self) -> List[Pack]:
        return list(self.built_in)

    def list_custom_decks(self) -> Dict[str, Pack]:
        decks: Dict[str, Pack] = {}
        if not os.path.isdir(self.decks_dir):
            return decks

        for deck_id in sorted(os.listdir(self.decks_dir)):
            deck_path = os.path.join(self.decks_dir, deck_id)
            if not os.path.isdir(deck_path):
                continue
            meta_path = os.path.join(deck_path, 'meta.json')
            black_path = os.path.join(deck_path, 'black.json')
            white_path = os.path.join(deck_path, 'white.json')
            if not all(os.path.exists(p) for p in (meta_path, black_path, white_path)):
                logger.warning(f"Incomplete deck directory: {deck_id}")
                continue
            try:
                meta = _read_json(meta_path)
                black = _read_json(black_path)
                white = _read_json(white_path)
            except (OSError, orjson.JSONDecodeError) as e:
                logger.error(f"Failed to load deck {deck_id}: {e}")
                continue

            record = {}
            record.update(black if isinstance(black, dict) else {'black': black})
            record.update(white if isinstance(white, dict) else {'white': white})
            record['name'] = meta.get('name') if isinstance(meta, dict) else None
            decks[deck_id] = pack_from_dict(deck_id, record)

        logger.info(f"Loaded {len(decks)} custom decks from {self.decks_dir}")
        return decks


def pack_from_dict(deck_id: str, data: Mapping[str, Any]) -> Pack:
    """Build a custom Pack from a deck record using either key style."""
    return Pack(
        id=deck_id,
        name=str(data.get('name') or deck_id),
        prompt_cards=_card_list(data, 'black', 'blackCards', 'prompt_cards'),
        answer_cards=_card_list(data, 'white', 'whiteCards', 'answer_cards'),
        is_custom=True,
    )


def list_available_packs(source) -> List[Dict[str, Any]]:
    """Pack choices for lobby display."""
    packs = [
        {'id': pack.id, 'name': pack.name, 'is_custom': False}
        for pack in source.list_built_in_packs()
    ]
    for deck_id, deck in source.list_custom_decks().items():
        packs.append({'id': deck_id, 'name': f"{deck.name} (Custom)", 'is_custom': True})
    return packs
