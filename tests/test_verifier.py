"""
Verification pipeline tests: single actions, card commitments and hand replay.
"""

import pytest

from hup.chain import ChainBook, ChainHead, build_actions
from hup.commit import build_card_commit, make_card
from hup.eip712 import action_digest, card_commit_digest
from hup.errors import ChainMismatchError, EncodingError, SenderMismatchError, SequenceError, SignatureFormatError
from hup.logs import VerificationLogger
from hup.schemas import ActionKind, Slot
from hup.sign import sign_actions, sign_card_commit, sign_digest
from hup.verifier import replay_hand, verify_action, verify_card_commit


@pytest.fixture
def showdown_hand(separator, player1, player2):
    """Blinds then check down to showdown."""
    p1, p2 = player1[1], player2[1]
    specs = [
        {"action": ActionKind.SMALL_BLIND, "amount": 1, "sender": p1},
        {"action": ActionKind.BIG_BLIND, "amount": 2, "sender": p2},
        {"action": ActionKind.CHECK_CALL, "amount": 0, "sender": p1},
        {"action": ActionKind.CHECK_CALL, "amount": 0, "sender": p2},
        {"action": ActionKind.CHECK_CALL, "amount": 0, "sender": p2},
        {"action": ActionKind.CHECK_CALL, "amount": 0, "sender": p1},
    ]
    actions = build_actions(specs, separator, channel_id=1, hand_id=1)
    signatures = sign_actions(actions, [player1[0], player2[0]], separator)
    return actions, signatures


class TestVerifyAction:

    def test_accepts_and_advances(self, separator, showdown_hand, player1, player2):
        actions, sigs = showdown_hand
        head = verify_action(separator, ChainHead.start(1, 1), actions[0], sigs[0], players=[player1[1], player2[1]])
        assert head.seq == 1
        assert head.last_digest == action_digest(separator, actions[0])

    def test_sender_mismatch(self, separator, showdown_hand, player2):
        actions, _ = showdown_hand
        forged = sign_digest(player2[0], action_digest(separator, actions[0]))
        with pytest.raises(SenderMismatchError):
            verify_action(separator, ChainHead.start(1, 1), actions[0], forged)

    def test_outsider_rejected(self, separator, player1, player2, outsider):
        actions = build_actions([{"action": ActionKind.SMALL_BLIND, "amount": 1, "sender": outsider[1]}], separator)
        sigs = sign_actions(actions, [outsider[0]], separator)
        with pytest.raises(SenderMismatchError, match="not a player"):
            verify_action(separator, ChainHead.start(1, 1), actions[0], sigs[0], players=[player1[1], player2[1]])

    def test_out_of_order(self, separator, showdown_hand):
        actions, sigs = showdown_hand
        with pytest.raises(SequenceError):
            verify_action(separator, ChainHead.start(1, 1), actions[1], sigs[1])

    def test_bad_link_checked_before_signature(self, separator, showdown_hand, player1):
        actions, _ = showdown_hand
        forged = actions[0].model_copy(update={"prev_hash": b"\x00" * 32})
        with pytest.raises(ChainMismatchError):
            verify_action(separator, ChainHead.start(1, 1), forged, b"")

    def test_malformed_signature(self, separator, showdown_hand):
        actions, _ = showdown_hand
        with pytest.raises(SignatureFormatError):
            verify_action(separator, ChainHead.start(1, 1), actions[0], b"\x00" * 64)

    def test_book_tracks_session(self, separator, showdown_hand):
        actions, sigs = showdown_hand
        book = ChainBook()
        for action, sig in zip(actions, sigs):
            head = verify_action(separator, book.head(action.channel_id, action.hand_id), action, sig)
            book.record(head)
        assert book.head(1, 1).seq == len(actions)


class TestReplay:

    @pytest.mark.integration
    def test_full_hand(self, separator, showdown_hand, player1, player2):
        actions, sigs = showdown_hand
        head = replay_hand(separator, 1, 1, actions, sigs, players=[player1[1], player2[1]])
        assert head.seq == 6
        assert head.last_digest == action_digest(separator, actions[-1])

    def test_swapped_signatures(self, separator, showdown_hand):
        actions, sigs = showdown_hand
        swapped = [sigs[1], sigs[0]] + sigs[2:]
        with pytest.raises(SenderMismatchError):
            replay_hand(separator, 1, 1, actions, swapped)

    def test_dropped_action(self, separator, showdown_hand):
        actions, sigs = showdown_hand
        with pytest.raises(SequenceError):
            replay_hand(separator, 1, 1, actions[:2] + actions[3:], sigs[:2] + sigs[3:])

    def test_length_mismatch(self, separator, showdown_hand):
        actions, sigs = showdown_hand
        with pytest.raises(SequenceError):
            replay_hand(separator, 1, 1, actions, sigs[:-1])

    def test_wrong_hand(self, separator, showdown_hand):
        actions, sigs = showdown_hand
        with pytest.raises(ChainMismatchError):
            replay_hand(separator, 1, 2, actions, sigs)


class TestVerifyCardCommit:

    def test_cosigned_commit(self, separator, player1, player2):
        head = ChainHead.start(1, 1)
        cc, _ = build_card_commit(separator, head, Slot.A1, make_card(0, 1))
        sig_a, sig_b = sign_card_commit(separator, cc, player1[0], player2[0])
        new_head = verify_card_commit(separator, head, cc, [sig_b, sig_a], players=[player1[1], player2[1]])
        assert new_head.last_digest == card_commit_digest(separator, cc)

    def test_single_signature_rejected(self, separator, player1, player2):
        head = ChainHead.start(1, 1)
        cc, _ = build_card_commit(separator, head, Slot.A1, make_card(0, 1))
        sig_a, _ = sign_card_commit(separator, cc, player1[0], player2[0])
        with pytest.raises(SenderMismatchError) as exc:
            verify_card_commit(separator, head, cc, [sig_a, sig_a], players=[player1[1], player2[1]])
        assert exc.value.details["missing"] == [player2[1]]

    def test_unsigned_commit_rejected(self, separator, player1, player2):
        head = ChainHead.start(1, 1)
        cc, _ = build_card_commit(separator, head, Slot.A1, make_card(0, 1))
        with pytest.raises(SenderMismatchError, match="no signatures"):
            verify_card_commit(separator, head, cc, [], players=[player1[1], player2[1]])

    @pytest.mark.parametrize("count", [0, 1, 3])
    def test_player_count_must_be_two(self, separator, player1, player2, outsider, count):
        players = [player1[1], player2[1], outsider[1]][:count]
        head = ChainHead.start(1, 1)
        cc, _ = build_card_commit(separator, head, Slot.A1, make_card(0, 1))
        with pytest.raises(EncodingError, match="exactly two"):
            verify_card_commit(separator, head, cc, [], players=players)

    def test_duplicate_player_rejected(self, separator, player1, player2):
        head = ChainHead.start(1, 1)
        cc, _ = build_card_commit(separator, head, Slot.A1, make_card(0, 1))
        sig_a, _ = sign_card_commit(separator, cc, player1[0], player2[0])
        with pytest.raises(EncodingError):
            verify_card_commit(separator, head, cc, [sig_a], players=[player1[1], player1[1].lower()])

    def test_mixed_chain(self, separator, player1, player2):
        """Commitments and actions share one chain per hand."""
        players = [player1[1], player2[1]]
        head = ChainHead.start(1, 1)
        cc, _ = build_card_commit(separator, head, Slot.A1, make_card(0, 1))
        head = verify_card_commit(separator, head, cc, sign_card_commit(separator, cc, player1[0], player2[0]), players)
        actions = build_actions([{"action": ActionKind.SMALL_BLIND, "amount": 1, "sender": player1[1]}],
                                separator, start=head)
        sigs = sign_actions(actions, [player1[0]], separator)
        head = verify_action(separator, head, actions[0], sigs[0], players=players)
        assert head.seq == 2


class TestAuditTrail:

    def test_outcomes_written(self, separator, showdown_hand, player2, temp_dir):
        audit = VerificationLogger(log_dir=str(temp_dir))
        actions, sigs = showdown_hand
        head = verify_action(separator, ChainHead.start(1, 1), actions[0], sigs[0], audit=audit)
        with pytest.raises(SenderMismatchError):
            verify_action(separator, head, actions[1], sigs[0], audit=audit)

        entries = audit.get_recent()
        assert [e["result"] for e in entries] == ["accepted", "SENDER_MISMATCH"]
        assert entries[0]["signer"] == actions[0].sender
        assert entries[1]["seq"] == 2
        assert entries[1]["digest"].startswith("0x")
