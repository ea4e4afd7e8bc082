"""Tests for decoding the generation event stream."""

import pytest

from buildr.pipeline.stream_decoder import StreamDecoder, StreamError


async def _chunks(*parts: bytes):
    for part in parts:
        yield part


def test_feed_decodes_content_records():
    """Test that each data record yields its content delta."""
    decoder = StreamDecoder()
    deltas = decoder.feed(b'data: {"content": "Hello"}\ndata: {"content": " world"}\n')

    assert deltas == ["Hello", " world"]
    assert decoder.text == "Hello world"
    assert not decoder.done


def test_done_sentinel():
    """Test that [DONE] ends the stream without producing a delta."""
    decoder = StreamDecoder()
    assert decoder.feed(b'data: {"content": "x"}\ndata: [DONE]\n') == ["x"]
    assert decoder.done


def test_record_split_across_chunks():
    """Test that a record is held back until its newline arrives."""
    decoder = StreamDecoder()
    assert decoder.feed(b'data: {"cont') == []
    assert decoder.feed(b'ent": "abc"}\n') == ["abc"]
    assert decoder.text == "abc"


def test_multibyte_character_split_across_chunks():
    """Test that UTF-8 sequences cut between chunks are reassembled."""
    encoded = 'data: {"content": "café über"}\n'.encode()
    cut = encoded.index("é".encode()) + 1

    decoder = StreamDecoder()
    deltas = decoder.feed(encoded[:cut]) + decoder.feed(encoded[cut:])

    assert deltas == ["café über"]
    assert decoder.bytes_received == len(encoded)


def test_malformed_record_is_skipped():
    """Test that a broken record is skipped and the stream continues."""
    decoder = StreamDecoder()
    deltas = decoder.feed(b'data: {"content": "a"}\ndata: {not json\ndata: [1, 2]\ndata: {"content": "b"}\n')

    assert deltas == ["a", "b"]
    assert decoder.skipped == 2


def test_non_data_lines_are_ignored():
    """Test that comments and blank lines produce nothing."""
    decoder = StreamDecoder()
    assert decoder.feed(b': keep-alive\n\nevent: ping\n') == []
    assert decoder.skipped == 0


def test_code_record_is_kept():
    """Test that the server's extracted document is stored, not streamed."""
    decoder = StreamDecoder()
    assert decoder.feed(b'data: {"code": "<html></html>"}\n') == []
    assert decoder.code == "<html></html>"


def test_error_record_raises():
    """Test that a server-side failure record aborts decoding."""
    decoder = StreamDecoder()
    with pytest.raises(StreamError, match="quota"):
        decoder.feed(b'data: {"error": "quota exceeded"}\n')


def test_flush_decodes_unterminated_last_record():
    """Test that the final record needs no trailing newline."""
    decoder = StreamDecoder()
    assert decoder.feed(b'data: {"content": "tail"}') == []
    assert decoder.flush() == ["tail"]


async def test_decode_async_iteration():
    """Test decoding a whole async byte stream."""
    decoder = StreamDecoder()
    deltas = [d async for d in decoder.decode(_chunks(b'data: {"content": "<ht', b'"}\ndata: {"content": "ml>"}'))]

    assert deltas == ["<ht", "ml>"]
    assert decoder.text == "<html>"
