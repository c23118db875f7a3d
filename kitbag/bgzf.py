"""Reading and writing BGZF, the blocked gzip format with random access."""

from __future__ import annotations

import os
import struct
import zlib
from typing import BinaryIO

__all__ = [
    "BgzfError",
    "BgzfFile",
    "open_bgzf",
    "open_fd",
    "is_bgzf",
    "BLOCK_SIZE",
    "ERR_ZLIB",
    "ERR_HEADER",
    "ERR_IO",
    "ERR_MISUSE",
]

BLOCK_SIZE = 0x10000
_HEADER_LENGTH = 18
_FOOTER_LENGTH = 8

ERR_ZLIB = 1
ERR_HEADER = 2
ERR_IO = 4
ERR_MISUSE = 8

# gzip member header with the "BC" extra subfield; the last two bytes hold
# the total block size minus one.
_MAGIC = b"\x1f\x8b\x08\x04\x00\x00\x00\x00\x00\xff\x06\x00\x42\x43\x02\x00\x00\x00"
_EOF_MARKER = (
    b"\x1f\x8b\x08\x04\x00\x00\x00\x00\x00\xff\x06\x00\x42\x43\x02\x00"
    b"\x1b\x00\x03\x00\x00\x00\x00\x00\x00\x00\x00\x00"
)


class BgzfError(OSError):
    """A BGZF failure; ``code`` is one of the ERR_* flags."""

    def __init__(self, message: str, code: int) -> None:
        super().__init__(message)
        self.code = code


def _mode_level(mode: str) -> int:
    level = -1
    for ch in mode:
        if ch.isdigit():
            level = int(ch)
            break
    if "u" in mode:
        level = 0
    return level


def _check_header(header: bytes) -> bool:
    return (
        header[0] == 31
        and header[1] == 139
        and header[2] == 8
        and (header[3] & 4) != 0
        and int.from_bytes(header[10:12], "little") == 6
        and header[12:14] == b"BC"
        and int.from_bytes(header[14:16], "little") == 2
    )


class BgzfFile:
    """A BGZF stream opened for reading or for writing."""

    def __init__(self, raw: BinaryIO, mode: str) -> None:
        if "r" in mode or "R" in mode:
            self.mode = "r"
            self.compress_level = 0
        elif "w" in mode or "W" in mode:
            self.mode = "w"
            level = _mode_level(mode)
            self.compress_level = -1 if level < 0 or level > 9 else level
        else:
            raise ValueError(f"invalid mode: {mode!r}")
        self._raw = raw
        self.errcode = 0
        self.cache_size = 0
        self._cache: dict[int, tuple[bytes, int]] = {}
        self._buffer = b""
        self._wbuf = bytearray()
        self.block_length = 0
        self._block_offset = 0
        self.block_address = 0
        self.closed = False

    # ------------------------------------------------------------ helpers

    @property
    def block_offset(self) -> int:
        """Offset within the current uncompressed block."""
        return len(self._wbuf) if self.mode == "w" else self._block_offset

    def _fail(self, code: int, message: str) -> BgzfError:
        self.errcode |= code
        return BgzfError(message, code)

    def _require(self, mode: str) -> None:
        if self.closed:
            raise ValueError("I/O operation on closed BGZF file")
        if self.mode != mode:
            raise self._fail(ERR_MISUSE, f"operation needs a file opened with mode {mode!r}")

    def _raw_tell(self) -> int:
        try:
            return self._raw.tell()
        except (OSError, ValueError):
            return -1

    def _end_of_block(self) -> None:
        self.block_address = self._raw_tell()
        self._block_offset = 0
        self.block_length = 0

    # ------------------------------------------------------------ reading

    def _load_from_cache(self, address: int) -> int:
        entry = self._cache.get(address)
        if entry is None:
            return 0
        data, end_offset = entry
        if self.block_length != 0:
            self._block_offset = 0
        self.block_address = address
        self.block_length = len(data)
        self._buffer = data
        self._raw.seek(end_offset)
        return len(data)

    def _cache_block(self, size: int) -> None:
        if BLOCK_SIZE >= self.cache_size:
            return
        if (len(self._cache) + 1) * BLOCK_SIZE > self.cache_size and self._cache:
            del self._cache[next(iter(self._cache))]
        if self.block_address in self._cache:
            return
        self._cache[self.block_address] = (self._buffer, self.block_address + size)

    def read_block(self) -> int:
        """Load the next block; return its uncompressed size, 0 at end of file."""
        self._require("r")
        address = self._raw_tell()
        if self._load_from_cache(address):
            return self.block_length
        header = self._raw.read(_HEADER_LENGTH)
        if not header:
            self.block_length = 0
            return 0
        if len(header) != _HEADER_LENGTH or not _check_header(header):
            raise self._fail(ERR_HEADER, "invalid BGZF block header")
        block_length = int.from_bytes(header[16:18], "little") + 1
        remaining = block_length - _HEADER_LENGTH
        body = self._raw.read(remaining) if remaining > 0 else b""
        if len(body) != remaining:
            raise self._fail(ERR_IO, "truncated BGZF block")
        inflater = zlib.decompressobj(-15)
        try:
            data = inflater.decompress(body, BLOCK_SIZE)
        except zlib.error as exc:
            raise self._fail(ERR_ZLIB, f"cannot inflate block: {exc}") from exc
        if not inflater.eof:
            raise self._fail(ERR_ZLIB, "cannot inflate block")
        if self.block_length != 0:
            self._block_offset = 0
        self.block_address = address
        self.block_length = len(data)
        self._buffer = data
        self._cache_block(_HEADER_LENGTH + len(body))
        return self.block_length

    def read(self, size: int) -> bytes:
        """Read up to ``size`` uncompressed bytes; b"" at end of file."""
        if size <= 0:
            return b""
        self._require("r")
        parts: list[bytes] = []
        got = 0
        while got < size:
            available = self.block_length - self._block_offset
            if available <= 0:
                self.read_block()
                available = self.block_length - self._block_offset
                if available <= 0:
                    break
            take = min(size - got, available)
            start = self._block_offset
            parts.append(self._buffer[start:start + take])
            self._block_offset += take
            got += take
        if self._block_offset == self.block_length:
            self._end_of_block()
        return b"".join(parts)

    def getc(self) -> int | None:
        """Read one byte as an integer; None at end of file."""
        self._require("r")
        if self._block_offset >= self.block_length:
            self.read_block()
            if self.block_length == 0:
                return None
        c = self._buffer[self._block_offset]
        self._block_offset += 1
        if self._block_offset == self.block_length:
            self._end_of_block()
        return c

    def readline(self, delim: int | bytes = b"\n") -> bytes | None:
        """Read up to ``delim``, which is dropped; None at end of file."""
        self._require("r")
        if isinstance(delim, (bytes, bytearray)):
            if len(delim) != 1:
                raise ValueError("delimiter must be a single byte")
            delim = delim[0]
        parts: list[bytes] = []
        found = False
        at_end = False
        while not found:
            if self._block_offset >= self.block_length:
                self.read_block()
                if self.block_length == 0:
                    at_end = True
                    break
            start = self._block_offset
            end = self._buffer.find(bytes((delim,)), start, self.block_length)
            if end >= 0:
                found = True
            else:
                end = self.block_length
            parts.append(self._buffer[start:end])
            self._block_offset = end + 1
            if self._block_offset >= self.block_length:
                self._end_of_block()
        line = b"".join(parts)
        if not line and at_end:
            return None
        return line

    def seek(self, pos: int) -> int:
        """Move to a virtual offset returned by tell(); reading only."""
        if self.closed:
            raise ValueError("I/O operation on closed BGZF file")
        if self.mode != "r":
            raise self._fail(ERR_MISUSE, "seek is only supported when reading")
        address = pos >> 16
        try:
            self._raw.seek(address)
        except (OSError, ValueError) as exc:
            raise self._fail(ERR_IO, f"cannot seek: {exc}") from exc
        self.block_length = 0
        self.block_address = address
        self._block_offset = pos & 0xFFFF
        return pos

    def tell(self) -> int:
        """Virtual offset: compressed block address shifted left 16, plus offset."""
        return (self.block_address << 16) | (self.block_offset & 0xFFFF)

    def check_eof(self) -> bool:
        """Whether the file ends with the empty BGZF end-of-file block."""
        try:
            offset = self._raw.tell()
            self._raw.seek(-len(_EOF_MARKER), os.SEEK_END)
        except (OSError, ValueError):
            return False
        tail = self._raw.read(len(_EOF_MARKER))
        self._raw.seek(offset)
        return tail == _EOF_MARKER

    def set_cache_size(self, size: int) -> None:
        """Set the block cache size in bytes; 0 disables caching."""
        self.cache_size = size

    # ------------------------------------------------------------ writing

    def _deflate_block(self) -> bytes:
        input_length = len(self._wbuf)
        while True:
            compressor = zlib.compressobj(self.compress_level, zlib.DEFLATED, -15)
            try:
                payload = compressor.compress(bytes(self._wbuf[:input_length]))
                payload += compressor.flush()
            except zlib.error as exc:
                raise self._fail(ERR_ZLIB, f"cannot deflate block: {exc}") from exc
            if len(payload) + _HEADER_LENGTH + _FOOTER_LENGTH <= BLOCK_SIZE:
                break
            input_length -= 1024
            if input_length <= 0:
                raise self._fail(ERR_ZLIB, "cannot deflate block")
        total = len(payload) + _HEADER_LENGTH + _FOOTER_LENGTH
        chunk = bytes(self._wbuf[:input_length])
        block = (
            _MAGIC[:16]
            + struct.pack("<H", total - 1)
            + payload
            + struct.pack("<II", zlib.crc32(chunk), input_length)
        )
        del self._wbuf[:input_length]
        return block

    def _emit(self, block: bytes) -> None:
        try:
            written = self._raw.write(block)
        except (OSError, ValueError) as exc:
            raise self._fail(ERR_IO, f"cannot write block: {exc}") from exc
        if written is not None and written != len(block):
            raise self._fail(ERR_IO, "short write")
        self.block_address += len(block)

    def flush(self) -> None:
        """Compress and write out all buffered data."""
        self._require("w")
        while self._wbuf:
            self._emit(self._deflate_block())

    def flush_try(self, size: int) -> bool:
        """Flush if ``size`` more bytes would overflow the block; return whether it did."""
        if self.block_offset + size > BLOCK_SIZE:
            self.flush()
            return True
        return False

    def write(self, data: bytes) -> int:
        """Buffer ``data``, writing out full blocks; return the number of bytes taken."""
        self._require("w")
        view = memoryview(data)
        written = 0
        while written < len(view):
            take = min(BLOCK_SIZE - len(self._wbuf), len(view) - written)
            self._wbuf += view[written:written + take]
            written += take
            if len(self._wbuf) == BLOCK_SIZE:
                self.flush()
        return written

    # ------------------------------------------------------------ lifetime

    def close(self) -> None:
        """Close the file; when writing, flush and append the end-of-file block."""
        if self.closed:
            return
        try:
            if self.mode == "w":
                self.flush()
                self._emit(self._deflate_block())
                try:
                    self._raw.flush()
                except OSError as exc:
                    raise self._fail(ERR_IO, f"cannot flush: {exc}") from exc
        finally:
            self.closed = True
            self._cache.clear()
            self._raw.close()

    def __enter__(self) -> BgzfFile:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def _raw_mode(mode: str) -> str:
    if "r" in mode or "R" in mode:
        return "rb"
    if "w" in mode or "W" in mode:
        return "wb"
    raise ValueError(f"invalid mode: {mode!r}")


def open_bgzf(path: str | os.PathLike[str], mode: str = "r") -> BgzfFile:
    """Open a BGZF file. ``mode`` holds 'r' or 'w', a digit for the level, 'u' for none."""
    raw_mode = _raw_mode(mode)
    return BgzfFile(open(path, raw_mode), mode)


def open_fd(fd: int, mode: str = "r") -> BgzfFile:
    """Open an existing file descriptor as a BGZF stream."""
    raw_mode = _raw_mode(mode)
    return BgzfFile(os.fdopen(fd, raw_mode), mode)


def is_bgzf(path: str | os.PathLike[str]) -> bool:
    """Whether the file starts with a BGZF block header."""
    try:
        with open(path, "rb") as handle:
            head = handle.read(16)
    except OSError:
        return False
    return head == _MAGIC[:16]