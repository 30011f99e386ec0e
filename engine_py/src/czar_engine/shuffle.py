"""
Card shuffling, deck building and dealing utilities.
"""

import logging
import random
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from .errors import NO_CARDS_IN_PACKS, GameError
from .models import Card, Pack

logger = logging.getLogger(__name__)

Shuffler = Callable[[Sequence[Any]], List[Any]]


def shuffle_deck(deck: Sequence[Any], seed: Optional[int] = None) -> List[Any]:
    """
    Shuffle a deck, deterministically if seed is provided.

    Args:
        deck: Cards (or any items) to shuffle
        seed: Optional seed for deterministic shuffling

    Returns:
        Shuffled copy of the deck
    """
    deck_copy = list(deck)

    if seed is not None:
        rng = random.Random(seed)
        rng.shuffle(deck_copy)
    else:
        random.shuffle(deck_copy)

    return deck_copy


def seeded_shuffler(seed: int) -> Shuffler:
    """Build a shuffler that draws every permutation from one seeded generator."""
    rng = random.Random(seed)

    def _shuffle(deck: Sequence[Any]) -> List[Any]:
        deck_copy = list(deck)
        rng.shuffle(deck_copy)
        return deck_copy

    return _shuffle


def _unique_id(candidate: str, seen: Set[str]) -> str:
    card_id = candidate
    suffix = 1
    while card_id in seen:
        suffix += 1
        card_id = f"{candidate}~{suffix}"
    seen.add(card_id)
    return card_id


def _to_cards(
    records: Iterable[Mapping[str, Any]],
    prefix: str,
    seen_ids: Set[str],
    seen_texts: Optional[Set[str]] = None,
    prompt: bool = False,
) -> List[Card]:
    cards = []
    for i, record in enumerate(records):
        text = str(record.get('text') or '').strip()
        if not text:
            logger.debug(f"Skipping card {prefix}_{i} with no text")
            continue
        if seen_texts is not None:
            if text in seen_texts:
                continue
            seen_texts.add(text)

        raw_id = record.get('id')
        candidate = str(raw_id) if raw_id is not None and raw_id != '' else f"{prefix}_{i}"
        card_id = _unique_id(candidate, seen_ids)

        if prompt:
            cards.append(Card(id=card_id, text=text, pick=max(1, int(record.get('pick') or 1))))
        else:
            cards.append(Card(id=card_id, text=text))
    return cards


def build_decks(
    pack_ids: Sequence[str],
    built_in_packs: Sequence[Pack],
    custom_decks: Mapping[str, Pack],
    shuffle: Shuffler = shuffle_deck,
) -> Tuple[List[Card], List[Card]]:
    """
    Merge the selected packs into shuffled prompt and answer decks.

    Built-in packs are merged in their listed order, then custom decks in selection
    order. Custom deck cards are de-duplicated by text against everything merged so far.

    Raises:
        GameError: if either merged pool is empty
    """
    selected = list(dict.fromkeys(pack_ids))
    prompt_ids: Set[str] = set()
    answer_ids: Set[str] = set()
    prompt_texts: Set[str] = set()
    answer_texts: Set[str] = set()
    prompts: List[Card] = []
    answers: List[Card] = []

    for pack in built_in_packs:
        if pack.id not in selected:
            continue
        new_prompts = _to_cards(pack.prompt_cards, f"{pack.id}_p", prompt_ids, prompt=True)
        new_answers = _to_cards(pack.answer_cards, f"{pack.id}_a", answer_ids)
        prompt_texts.update(card.text for card in new_prompts)
        answer_texts.update(card.text for card in new_answers)
        prompts.extend(new_prompts)
        answers.extend(new_answers)

    for deck_id in selected:
        deck = custom_decks.get(deck_id)
        if deck is None:
            continue
        prompts.extend(_to_cards(
            deck.prompt_cards, f"custom_{deck_id}_prompt", prompt_ids, prompt_texts, prompt=True
        ))
        answers.extend(_to_cards(
            deck.answer_cards, f"custom_{deck_id}_answer", answer_ids, answer_texts
        ))

    if not prompts or not answers:
        raise GameError(NO_CARDS_IN_PACKS, "No cards in selected packs")

    logger.info(f"Built decks from {selected}: {len(prompts)} prompt and {len(answers)} answer cards")
    return shuffle(prompts), shuffle(answers)


def deal(
    deck: List[Card],
    discard_pile: List[Card],
    count: int,
    shuffle: Shuffler = shuffle_deck,
) -> List[Card]:
    """
    Draw cards from the top (end) of the deck, mutating deck and discard pile.

    When the deck runs out the discard pile is shuffled back in. If both are
    empty fewer cards than requested are returned.
    """
    drawn = []
    for _ in range(count):
        if not deck and discard_pile:
            deck.extend(shuffle(discard_pile))
            discard_pile.clear()
            logger.debug(f"Reshuffled discard pile into deck ({len(deck)} cards)")
        if not deck:
            break
        drawn.append(deck.pop())
    return drawn
