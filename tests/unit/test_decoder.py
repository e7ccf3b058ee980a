"""Unit tests for StreamDecoder."""

import pytest
import pytest_check as check

from chat_session.models.schemas import (
    ChunkEvent,
    DoneEvent,
    ErrorEvent,
    FailureReason,
    Message,
    MessageStatus,
    Role,
)
from chat_session.session.decoder import CancelToken, DecodeResult, StreamDecoder
from chat_session.session.store import MessageStore


@pytest.fixture
def store() -> MessageStore:
    return MessageStore()


@pytest.fixture
def message_id(store: MessageStore) -> str:
    return store.append(Message(role=Role.ASSISTANT, status=MessageStatus.PENDING))


@pytest.fixture
def token() -> CancelToken:
    return CancelToken()


@pytest.fixture
def decoder(store: MessageStore, message_id: str, token: CancelToken) -> StreamDecoder:
    return StreamDecoder(store, message_id, token)


class TestFolding:
    """Tests for applying fragments."""

    def test_chunks_then_done_concatenate(
        self, decoder: StreamDecoder, store: MessageStore, message_id: str
    ) -> None:
        """Content at completion is the in-order concatenation of chunks."""
        check.is_none(decoder.feed(ChunkEvent(text="Hel")))
        check.is_none(decoder.feed(ChunkEvent(text="lo!")))
        result = decoder.feed(DoneEvent())

        message = store.get(message_id)
        check.equal(result, DecodeResult.COMPLETE)
        check.equal(message.content, "Hello!")
        check.equal(message.status, MessageStatus.COMPLETE)
        check.equal(decoder.accepted, 2)

    def test_first_chunk_moves_message_to_streaming(
        self, decoder: StreamDecoder, store: MessageStore, message_id: str
    ) -> None:
        """Partial state is visible while streaming."""
        decoder.feed(ChunkEvent(text="Hi"))

        message = store.get(message_id)
        check.equal(message.status, MessageStatus.STREAMING)
        check.equal(message.content, "Hi")

    def test_empty_fragments_are_ignored(
        self, decoder: StreamDecoder, store: MessageStore, message_id: str
    ) -> None:
        """Empty chunks are skipped without failing the turn."""
        decoder.feed(ChunkEvent(text=""))
        check.equal(store.get(message_id).status, MessageStatus.PENDING)
        check.equal(decoder.accepted, 0)

        decoder.feed(ChunkEvent(text="ok"))
        decoder.feed(ChunkEvent(text=""))
        decoder.feed(DoneEvent())

        check.equal(store.get(message_id).content, "ok")
        check.equal(decoder.accepted, 1)

    def test_raw_mappings_are_accepted(
        self, decoder: StreamDecoder, store: MessageStore, message_id: str
    ) -> None:
        """Events shaped as plain mappings are validated and applied."""
        decoder.feed({"type": "chunk", "text": "a"})
        decoder.feed({"type": "done"})

        check.equal(store.get(message_id).content, "a")
        check.equal(store.get(message_id).status, MessageStatus.COMPLETE)

    def test_malformed_mapping_fails_turn(
        self, decoder: StreamDecoder, store: MessageStore, message_id: str
    ) -> None:
        """Unknown event shapes fail the message with reason error."""
        result = decoder.feed({"type": "banana"})

        check.equal(result, DecodeResult.FAILED)
        check.equal(store.get(message_id).reason, FailureReason.ERROR)


class TestTerminalMarkers:
    """Tests for done/error markers and unterminated channels."""

    def test_done_without_chunks_completes_empty(
        self, decoder: StreamDecoder, store: MessageStore, message_id: str
    ) -> None:
        """An immediate done passes through streaming to complete."""
        result = decoder.feed(DoneEvent())

        check.equal(result, DecodeResult.COMPLETE)
        check.equal(store.get(message_id).status, MessageStatus.COMPLETE)
        check.equal(store.get(message_id).content, "")

    def test_error_marker_preserves_partial_content(
        self, decoder: StreamDecoder, store: MessageStore, message_id: str
    ) -> None:
        """An error marker fails the message without discarding text."""
        decoder.feed(ChunkEvent(text="par"))
        result = decoder.feed(ErrorEvent(reason="model overloaded"))

        message = store.get(message_id)
        check.equal(result, DecodeResult.FAILED)
        check.equal(message.content, "par")
        check.equal(message.reason, FailureReason.ERROR)
        check.equal(message.error, "model overloaded")

    def test_unterminated_channel_without_chunks(
        self, decoder: StreamDecoder, store: MessageStore, message_id: str
    ) -> None:
        """A channel closing with no marker and no chunks fails empty."""
        result = decoder.finish_unterminated()

        message = store.get(message_id)
        check.equal(result, DecodeResult.FAILED)
        check.equal(message.status, MessageStatus.FAILED)
        check.equal(message.content, "")
        check.equal(message.reason, FailureReason.CLOSED)

    def test_events_after_terminal_marker_are_ignored(
        self, decoder: StreamDecoder, store: MessageStore, message_id: str
    ) -> None:
        """Once finalized, the decoder applies nothing further."""
        decoder.feed(ChunkEvent(text="a"))
        decoder.feed(DoneEvent())

        check.equal(decoder.feed(ChunkEvent(text="b")), DecodeResult.COMPLETE)
        check.equal(decoder.finish_unterminated(), DecodeResult.COMPLETE)
        check.equal(store.get(message_id).content, "a")


class TestOrdering:
    """Tests for sequence-number enforcement."""

    def test_sequential_numbers_are_accepted(
        self, decoder: StreamDecoder, store: MessageStore, message_id: str
    ) -> None:
        """Consecutive sequence numbers apply normally."""
        for seq, text in enumerate(["a", "b", "c"]):
            decoder.feed(ChunkEvent(text=text, seq=seq))
        decoder.feed(DoneEvent())

        check.equal(store.get(message_id).content, "abc")

    def test_numbered_empty_fragment_keeps_sequence(
        self, decoder: StreamDecoder, store: MessageStore, message_id: str
    ) -> None:
        """An empty fragment still consumes its sequence number."""
        decoder.feed(ChunkEvent(text="a", seq=0))
        decoder.feed(ChunkEvent(text="", seq=1))
        decoder.feed(ChunkEvent(text="b", seq=2))
        result = decoder.feed(DoneEvent())

        message = store.get(message_id)
        check.equal(result, DecodeResult.COMPLETE)
        check.equal(message.status, MessageStatus.COMPLETE)
        check.equal(message.content, "ab")
        check.equal(decoder.accepted, 2)

    @pytest.mark.parametrize("bad_seq", [0, 1, 3])
    def test_duplicate_or_out_of_order_chunk_fails_turn(
        self,
        decoder: StreamDecoder,
        store: MessageStore,
        message_id: str,
        bad_seq: int,
    ) -> None:
        """Duplicates, regressions and gaps fail the turn with partial content kept."""
        decoder.feed(ChunkEvent(text="a", seq=0))
        decoder.feed(ChunkEvent(text="b", seq=1))
        result = decoder.feed(ChunkEvent(text="x", seq=bad_seq))

        message = store.get(message_id)
        check.equal(result, DecodeResult.FAILED)
        check.equal(message.reason, FailureReason.OUT_OF_ORDER)
        check.equal(message.content, "ab")
        check.is_in("Expected chunk 2", message.error)


class TestCancellation:
    """Tests for the cooperative cancellation token."""

    def test_no_chunk_applied_after_cancel(
        self,
        decoder: StreamDecoder,
        store: MessageStore,
        message_id: str,
        token: CancelToken,
    ) -> None:
        """Chunks arriving after cancellation are dropped."""
        decoder.feed(ChunkEvent(text="kept"))
        token.cancel()

        check.is_none(decoder.feed(ChunkEvent(text="dropped")))
        check.equal(store.get(message_id).content, "kept")
        check.equal(decoder.accepted, 1)
