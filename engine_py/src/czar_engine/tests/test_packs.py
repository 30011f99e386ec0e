"""
Pack source tests, including custom decks read from disk.
"""

import orjson
from czar_engine.models import Pack
from czar_engine.packs import (
    BASE_PACK, DirectoryDeckSource, StaticPackSource, list_available_packs, pack_from_dict
)


def write_deck(root, deck_id, name="My Deck", black=None, white=None):
    deck_dir = root / deck_id
    deck_dir.mkdir()
    (deck_dir / "meta.json").write_bytes(orjson.dumps({"name": name}))
    (deck_dir / "black.json").write_bytes(orjson.dumps(black if black is not None else [
        {"text": "Custom prompt _", "pick": 1},
    ]))
    (deck_dir / "white.json").write_bytes(orjson.dumps(white if white is not None else [
        {"text": "Custom answer"},
    ]))
    return deck_dir


def test_base_pack_has_cards():
    assert BASE_PACK.id == "base"
    assert len(BASE_PACK.prompt_cards) > 0
    assert len(BASE_PACK.answer_cards) > len(BASE_PACK.prompt_cards)
    assert any(card["pick"] == 2 for card in BASE_PACK.prompt_cards)


def test_static_source_lists_packs():
    custom = Pack(id="mine", name="Mine", is_custom=True)
    source = StaticPackSource(custom={"mine": custom})

    assert list_available_packs(source) == [
        {"id": "base", "name": "Base Pack", "is_custom": False},
        {"id": "mine", "name": "Mine (Custom)", "is_custom": True},
    ]


def test_directory_source_reads_decks(tmp_path):
    write_deck(tmp_path, "party", name="Party Deck")
    source = DirectoryDeckSource(str(tmp_path))

    decks = source.list_custom_decks()
    assert list(decks) == ["party"]
    deck = decks["party"]
    assert deck.name == "Party Deck"
    assert deck.is_custom
    assert deck.prompt_cards == [{"text": "Custom prompt _", "pick": 1}]
    assert deck.answer_cards == [{"text": "Custom answer"}]
    assert [p.id for p in source.list_built_in_packs()] == ["base"]


def test_directory_source_accepts_wrapped_card_lists(tmp_path):
    write_deck(
        tmp_path, "wrapped",
        black={"blackCards": [{"text": "Wrapped _"}]},
        white={"whiteCards": [{"text": "Wrapped answer"}]},
    )

    deck = DirectoryDeckSource(str(tmp_path)).list_custom_decks()["wrapped"]
    assert deck.prompt_cards == [{"text": "Wrapped _"}]
    assert deck.answer_cards == [{"text": "Wrapped answer"}]


def test_directory_source_skips_broken_decks(tmp_path):
    write_deck(tmp_path, "good")
    incomplete = tmp_path / "incomplete"
    incomplete.mkdir()
    (incomplete / "meta.json").write_bytes(b'{"name": "Half"}')
    broken = write_deck(tmp_path, "broken")
    (broken / "white.json").write_bytes(b"{not json")
    (tmp_path / "stray.txt").write_text("ignored")

    decks = DirectoryDeckSource(str(tmp_path)).list_custom_decks()
    assert list(decks) == ["good"]


def test_directory_source_rereads_disk(tmp_path):
    source = DirectoryDeckSource(str(tmp_path))
    assert source.list_custom_decks() == {}

    write_deck(tmp_path, "late")
    assert list(source.list_custom_decks()) == ["late"]


def test_missing_directory_has_no_decks(tmp_path):
    source = DirectoryDeckSource(str(tmp_path / "missing"))

    assert source.list_custom_decks() == {}
    assert [p["id"] for p in list_available_packs(source)] == ["base"]


def test_pack_from_dict_accepts_both_key_styles():
    deck = pack_from_dict("d1", {"name": "Deck", "blackCards": [{"text": "Q _"}], "white": [{"text": "A"}]})

    assert deck.id == "d1"
    assert deck.name == "Deck"
    assert deck.prompt_cards == [{"text": "Q _"}]
    assert deck.answer_cards == [{"text": "A"}]
    assert deck.is_custom
    assert pack_from_dict("d2", {}).name == "d2"
