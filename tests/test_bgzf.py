import gzip
import os
import random

import pytest

from kitbag.bgzf import (
    BLOCK_SIZE,
    ERR_HEADER,
    ERR_IO,
    ERR_MISUSE,
    BgzfError,
    is_bgzf,
    open_bgzf,
    open_fd,
)

EOF_MARKER = (
    b"\x1f\x8b\x08\x04\x00\x00\x00\x00\x00\xff\x06\x00\x42\x43\x02\x00"
    b"\x1b\x00\x03\x00\x00\x00\x00\x00\x00\x00\x00\x00"
)


def _write(path, data, mode="w"):
    with open_bgzf(path, mode) as fp:
        assert fp.write(data) == len(data)


def _read_all(path):
    with open_bgzf(path) as fp:
        parts = []
        while True:
            chunk = fp.read(10000)
            if not chunk:
                break
            parts.append(chunk)
        return b"".join(parts)


def _blocks(raw):
    pos = 0
    sizes = []
    while pos < len(raw):
        assert raw[pos:pos + 4] == b"\x1f\x8b\x08\x04"
        bsize = int.from_bytes(raw[pos + 16:pos + 18], "little") + 1
        isize = int.from_bytes(raw[pos + bsize - 4:pos + bsize], "little")
        sizes.append(isize)
        pos += bsize
    assert pos == len(raw)
    return sizes


def test_round_trip_small(tmp_path):
    path = tmp_path / "a.bgz"
    _write(path, b"hello, blocked gzip")
    assert _read_all(path) == b"hello, blocked gzip"


def test_file_ends_with_eof_marker(tmp_path):
    path = tmp_path / "a.bgz"
    _write(path, b"payload")
    raw = path.read_bytes()
    assert raw.endswith(EOF_MARKER)
    with open_bgzf(path) as fp:
        assert fp.check_eof() is True


def test_check_eof_false_without_marker(tmp_path):
    path = tmp_path / "a.bgz"
    _write(path, b"payload")
    cut = tmp_path / "b.bgz"
    cut.write_bytes(path.read_bytes()[: -len(EOF_MARKER)])
    with open_bgzf(cut) as fp:
        assert fp.check_eof() is False
        assert fp.read(100) == b"payload"


def test_is_bgzf(tmp_path):
    path = tmp_path / "a.bgz"
    _write(path, b"x")
    other = tmp_path / "plain.gz"
    other.write_bytes(gzip.compress(b"x"))
    assert is_bgzf(path) is True
    assert is_bgzf(other) is False
    assert is_bgzf(tmp_path / "missing") is False


def test_large_incompressible_round_trip(tmp_path):
    data = random.Random(1).randbytes(200000)
    path = tmp_path / "big.bgz"
    _write(path, data)
    assert _read_all(path) == data
    sizes = _blocks(path.read_bytes())
    assert sum(sizes) == len(data)
    assert sizes[-1] == 0
    assert all(0 < s <= BLOCK_SIZE for s in sizes[:-1])


def test_gzip_module_reads_output(tmp_path):
    data = b"line of text\n" * 10000
    path = tmp_path / "t.bgz"
    _write(path, data)
    assert gzip.decompress(path.read_bytes()) == data


def test_uncompressed_mode(tmp_path):
    data = b"abc" * 30000
    path = tmp_path / "u.bgz"
    _write(path, data, "wu")
    assert _read_all(path) == data
    assert len(path.read_bytes()) > len(data)


def test_compression_level_in_mode(tmp_path):
    data = b"abcabcabc" * 20000
    path = tmp_path / "l.bgz"
    _write(path, data, "w9")
    assert _read_all(path) == data
    assert len(path.read_bytes()) < len(data)


def test_readline(tmp_path):
    path = tmp_path / "lines.bgz"
    _write(path, b"alpha\nbeta\n\ngamma")
    with open_bgzf(path) as fp:
        assert fp.readline() == b"alpha"
        assert fp.readline() == b"beta"
        assert fp.readline() == b""
        assert fp.readline() == b"gamma"
        assert fp.readline() is None


def test_readline_custom_delimiter_across_blocks(tmp_path):
    fields = [bytes([65 + i % 26]) * 1000 for i in range(200)]
    path = tmp_path / "d.bgz"
    _write(path, b"\t".join(fields))
    with open_bgzf(path) as fp:
        got = []
        while (line := fp.readline(ord("\t"))) is not None:
            got.append(line)
    assert got == fields


def test_getc(tmp_path):
    path = tmp_path / "c.bgz"
    _write(path, b"xyz")
    with open_bgzf(path) as fp:
        assert [fp.getc(), fp.getc(), fp.getc()] == list(b"xyz")
        assert fp.getc() is None


def test_seek_to_told_offset(tmp_path):
    path = tmp_path / "s.bgz"
    first = random.Random(2).randbytes(70000)
    with open_bgzf(path, "w") as fp:
        fp.write(first)
        mark = fp.tell()
        fp.write(b"second part")
    with open_bgzf(path) as fp:
        fp.seek(mark)
        assert fp.read(11) == b"second part"
        fp.seek(0)
        assert fp.read(5) == first[:5]
        assert fp.tell() == 5


def test_tell_during_reading_round_trips(tmp_path):
    data = bytes(range(256)) * 1000
    path = tmp_path / "t.bgz"
    _write(path, data)
    with open_bgzf(path) as fp:
        fp.read(123456)
        mark = fp.tell()
        rest = fp.read(1000)
        fp.seek(mark)
        assert fp.read(1000) == rest == data[123456:124456]


def test_cache_keeps_results(tmp_path):
    data = random.Random(3).randbytes(150000)
    path = tmp_path / "cache.bgz"
    _write(path, data)
    with open_bgzf(path) as fp:
        fp.set_cache_size(10 * BLOCK_SIZE)
        fp.read(len(data))
        fp.seek(0)
        assert fp.read(len(data)) == data


def test_flush_try(tmp_path):
    path = tmp_path / "f.bgz"
    with open_bgzf(path, "w") as fp:
        fp.write(b"a" * 100)
        assert fp.flush_try(10) is False
        assert fp.flush_try(BLOCK_SIZE) is True
        assert fp.block_offset == 0
    assert _read_all(path) == b"a" * 100


def test_seek_in_write_mode_is_misuse(tmp_path):
    with open_bgzf(tmp_path / "w.bgz", "w") as fp:
        with pytest.raises(BgzfError) as info:
            fp.seek(0)
        assert info.value.code == ERR_MISUSE


def test_write_in_read_mode_is_misuse(tmp_path):
    path = tmp_path / "r.bgz"
    _write(path, b"x")
    with open_bgzf(path) as fp:
        with pytest.raises(BgzfError) as info:
            fp.write(b"y")
        assert info.value.code == ERR_MISUSE


def test_bad_header(tmp_path):
    path = tmp_path / "bad"
    path.write_bytes(b"not a bgzf file at all")
    with open_bgzf(path) as fp:
        with pytest.raises(BgzfError) as info:
            fp.read(5)
        assert info.value.code == ERR_HEADER


def test_truncated_block(tmp_path):
    path = tmp_path / "a.bgz"
    _write(path, b"some data that is long enough" * 10)
    cut = tmp_path / "cut.bgz"
    cut.write_bytes(path.read_bytes()[:30])
    with open_bgzf(cut) as fp:
        with pytest.raises(BgzfError) as info:
            fp.read(10)
        assert info.value.code == ERR_IO


def test_invalid_mode(tmp_path):
    with pytest.raises(ValueError):
        open_bgzf(tmp_path / "x", "a")


def test_open_fd(tmp_path):
    path = tmp_path / "fd.bgz"
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC)
    with open_fd(fd, "w") as fp:
        fp.write(b"through a descriptor")
    fd = os.open(path, os.O_RDONLY)
    with open_fd(fd, "r") as fp:
        assert fp.read(100) == b"through a descriptor"


def test_empty_file_reads_nothing(tmp_path):
    path = tmp_path / "e.bgz"
    _write(path, b"")
    assert path.read_bytes() == EOF_MARKER
    with open_bgzf(path) as fp:
        assert fp.read(10) == b""
        assert fp.readline() is None