from __future__ import annotations

from chat_sync.application.state.ledger import MessageLedger
from chat_sync.domain.entities.message import Reaction
from tests.conftest import make_message


def _ids(ledger: MessageLedger, conversation_id: str = "c1") -> list[str]:
    return [m.id for m in ledger.messages(conversation_id)]


def test_insert_is_idempotent_and_keeps_first_copy():
    ledger = MessageLedger()

    assert ledger.insert(make_message(message_id="m1", body="first")) is True
    assert ledger.insert(make_message(message_id="m1", body="second")) is False

    assert len(ledger) == 1
    assert ledger.get("m1").body == "first"


def test_snapshot_then_inserts_keep_arrival_order():
    ledger = MessageLedger()
    ledger.replace("c1", [
        make_message(message_id="m5", seq=5),
        make_message(message_id="m2", seq=2),
    ])

    ledger.insert(make_message(message_id="m9", seq=9))
    ledger.insert(make_message(message_id="m1", seq=1))

    assert _ids(ledger) == ["m5", "m2", "m9", "m1"]


def test_replace_only_touches_one_conversation():
    ledger = MessageLedger()
    ledger.insert(make_message(message_id="a1", conversation_id="a"))
    ledger.insert(make_message(message_id="b1", conversation_id="b"))

    ledger.replace("a", [make_message(message_id="a2", conversation_id="a")])

    assert _ids(ledger, "a") == ["a2", "a1"]
    assert _ids(ledger, "b") == ["b1"]


def test_replace_keeps_local_tombstone():
    ledger = MessageLedger()
    ledger.replace("c1", [make_message(message_id="m1", body="hi")])
    ledger.apply_delete("m1")

    ledger.replace("c1", [make_message(message_id="m1", body="hi")])

    assert ledger.get("m1").deleted is True
    assert ledger.get("m1").body == "hi"
    assert _ids(ledger) == ["m1"]


def test_replace_takes_snapshot_copy_of_live_message():
    ledger = MessageLedger()
    ledger.insert(make_message(message_id="m1", body="old"))

    ledger.replace("c1", [make_message(message_id="m1", body="new")])

    assert ledger.get("m1").body == "new"


def test_replace_skips_foreign_and_duplicate_messages():
    ledger = MessageLedger()

    ledger.replace("c1", [
        make_message(message_id="m1"),
        make_message(message_id="m1", body="dup"),
        make_message(message_id="x1", conversation_id="other"),
    ])

    assert _ids(ledger) == ["m1"]
    assert ledger.get("m1").body == "hello"


def test_edit_replaces_body_and_preserves_identity():
    ledger = MessageLedger()
    original = make_message(message_id="m1", seq=3)
    ledger.insert(original)

    assert ledger.apply_edit("m1", "changed") is True

    edited = ledger.get("m1")
    assert edited.body == "changed"
    assert edited.edited is True
    assert edited.seq == 3
    assert edited.created_at == original.created_at


def test_edit_unknown_message_is_noop():
    ledger = MessageLedger()
    assert ledger.apply_edit("nope", "x") is False
    assert len(ledger) == 0


def test_delete_is_idempotent_and_retains_body():
    ledger = MessageLedger()
    ledger.insert(make_message(message_id="m1", body="keep me"))

    assert ledger.apply_delete("m1") is True
    assert ledger.apply_delete("m1") is False

    deleted = ledger.get("m1")
    assert deleted.deleted is True
    assert deleted.body == "keep me"
    assert _ids(ledger) == ["m1"]


def test_edit_after_delete_keeps_tombstone():
    ledger = MessageLedger()
    ledger.insert(make_message(message_id="m1"))
    ledger.apply_delete("m1")

    assert ledger.apply_edit("m1", "x") is False

    assert ledger.get("m1").deleted is True
    assert ledger.get("m1").body == "hello"


def test_reactions_are_a_set():
    ledger = MessageLedger()
    ledger.insert(make_message(message_id="m1"))

    assert ledger.add_reaction("m1", "👍", "bob") is True
    assert ledger.add_reaction("m1", "👍", "bob") is False
    assert ledger.add_reaction("m1", "👍", "carol") is True

    assert ledger.get("m1").reactions == {Reaction("👍", "bob"), Reaction("👍", "carol")}

    assert ledger.remove_reaction("m1", "🎉", "bob") is False
    assert ledger.remove_reaction("m1", "👍", "bob") is True
    assert ledger.get("m1").reactions == {Reaction("👍", "carol")}


def test_reactions_frozen_on_tombstone():
    ledger = MessageLedger()
    ledger.insert(make_message(message_id="m1"))
    ledger.add_reaction("m1", "👍", "bob")
    ledger.apply_delete("m1")

    assert ledger.add_reaction("m1", "🎉", "bob") is False
    assert ledger.remove_reaction("m1", "👍", "bob") is False
    assert ledger.get("m1").reactions == {Reaction("👍", "bob")}


def test_reaction_on_unknown_message_is_noop():
    ledger = MessageLedger()
    assert ledger.add_reaction("ghost", "👍", "bob") is False


def test_observers_notified_only_on_effective_changes():
    ledger = MessageLedger()
    changes = []
    ledger.subscribe(changes.append)

    ledger.insert(make_message(message_id="m1"))
    ledger.insert(make_message(message_id="m1"))
    ledger.apply_edit("ghost", "x")
    ledger.apply_delete("m1")

    assert [c.kind for c in changes] == ["inserted", "deleted"]
    assert all(c.key == "c1" for c in changes)


def test_failing_observer_does_not_abort_mutation():
    ledger = MessageLedger()
    seen = []

    def _broken(change):
        raise RuntimeError("boom")

    ledger.subscribe(_broken)
    ledger.subscribe(seen.append)

    assert ledger.insert(make_message(message_id="m1")) is True
    assert len(seen) == 1


def test_unsubscribe_stops_notifications():
    ledger = MessageLedger()
    seen = []
    unsubscribe = ledger.subscribe(seen.append)

    unsubscribe()
    ledger.insert(make_message())

    assert seen == []
