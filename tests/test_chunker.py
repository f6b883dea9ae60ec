"""Tests for window chunking."""

import pytest

from projectrag.chunkers import CHUNK_OVERLAP, CHUNK_SIZE, WindowChunker, split_text


class TestSplitText:
    def test_short_text_is_one_window(self):
        assert split_text("hello world") == [(0, 11)]

    def test_exact_chunk_size_is_one_window(self):
        text = "x" * CHUNK_SIZE
        assert split_text(text) == [(0, CHUNK_SIZE)]

    def test_windows_overlap(self):
        text = "x" * 2500
        assert split_text(text) == [(0, 1000), (800, 1800), (1600, 2500)]

    def test_consecutive_windows_share_overlap(self):
        windows = split_text("y" * 5000)
        for (_, prev_end), (start, _) in zip(windows, windows[1:]):
            assert prev_end - start == CHUNK_OVERLAP

    def test_last_window_reaches_end(self):
        text = "z" * 4321
        assert split_text(text)[-1][1] == len(text)

    def test_forward_progress_when_overlap_exceeds_size(self):
        windows = split_text("a" * 10, chunk_size=3, overlap=5)
        starts = [start for start, _ in windows]
        assert starts == sorted(set(starts))
        assert windows[0] == (0, 3)
        assert windows[-1] == (7, 10)
        assert len(windows) == 8

    def test_max_chunks_truncates(self):
        windows = split_text("a" * 100, chunk_size=10, overlap=0, max_chunks=3)
        assert windows == [(0, 10), (10, 20), (20, 30)]

    def test_invalid_chunk_size(self):
        with pytest.raises(ValueError):
            split_text("abc", chunk_size=0)

    def test_negative_overlap(self):
        with pytest.raises(ValueError):
            split_text("a" * 50, chunk_size=10, overlap=-5)


class TestWindowChunker:
    def test_chunk_metadata(self):
        text = "".join(chr(ord("a") + i % 26) for i in range(2500))
        chunks = WindowChunker().chunk(text, "src/app.py")

        assert [c.chunk_index for c in chunks] == [0, 1, 2]
        for c in chunks:
            assert c.file_path == "src/app.py"
            assert c.text == text[c.start_char:c.end_char]
            assert len(c.text) <= CHUNK_SIZE

    def test_custom_sizes(self):
        chunks = WindowChunker(chunk_size=4, overlap=1).chunk("abcdefghij", "f.txt")
        assert [c.text for c in chunks] == ["abcd", "defg", "ghij"]

    def test_respects_max_chunks(self):
        chunks = WindowChunker(chunk_size=2, overlap=0, max_chunks=5).chunk("x" * 100, "f.txt")
        assert len(chunks) == 5
