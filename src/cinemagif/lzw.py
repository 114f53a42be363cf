"""Variable-length-code LZW as used by GIF image data.

Codes are packed least-significant bit first. A stream starts with the clear
code, grows its code width up to 12 bits as the string table fills, emits a
clear code and starts over before the table passes 4095 entries, and ends
with the end-of-information code. The compressed stream is stored in the
file as sub-blocks of at most 255 bytes followed by a zero-length block.
"""

from __future__ import annotations

from collections.abc import Iterable

from .error_handling import InputError

MAX_CODE_BITS = 12
# The string table is reset before this code would be assigned
MAX_CODE = (1 << MAX_CODE_BITS) - 1
MAX_SUB_BLOCK = 255


def minimum_code_size(palette_size: int) -> int:
    """LZW minimum code size for a color table of ``palette_size`` entries."""
    if not 1 <= palette_size <= 256:
        raise InputError(f"Palette size must be between 1 and 256, got {palette_size}")
    return max(2, (palette_size - 1).bit_length())


class _CodeWriter:
    """Packs variable-width codes LSB first."""

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._bits = 0
        self._bit_count = 0

    def write(self, code: int, width: int) -> None:
        self._bits |= code << self._bit_count
        self._bit_count += width
        while self._bit_count >= 8:
            self._buffer.append(self._bits & 0xFF)
            self._bits >>= 8
            self._bit_count -= 8

    def take(self) -> bytes:
        """Return and drop the whole bytes packed so far."""
        data = bytes(self._buffer)
        self._buffer.clear()
        return data

    def flush(self) -> bytes:
        if self._bit_count:
            self._buffer.append(self._bits & 0xFF)
            self._bits = 0
            self._bit_count = 0
        return self.take()


class LzwEncoder:
    """Incremental GIF LZW compressor.

    Feed index data in any number of pieces (one scanline at a time, say)
    and collect the bytes returned by :meth:`feed` and :meth:`finish`.
    """

    def __init__(self, min_code_size: int):
        if not 2 <= min_code_size <= 8:
            raise InputError(f"LZW minimum code size must be between 2 and 8, got {min_code_size}")
        self.min_code_size = min_code_size
        self.clear_code = 1 << min_code_size
        self.end_code = self.clear_code + 1

        self._writer = _CodeWriter()
        self._table: dict[int, int] = {}
        self._prefix: int | None = None
        self._finished = False
        self._reset()
        self._emit(self.clear_code)

    def _reset(self) -> None:
        self._table.clear()
        self._next_code = self.end_code + 1
        self._code_width = self.min_code_size + 1

    def _emit(self, code: int) -> None:
        self._writer.write(code, self._code_width)
        # The decoder adds a table entry after reading this code; widen in step
        if self._next_code >= (1 << self._code_width) and self._code_width < MAX_CODE_BITS:
            self._code_width += 1

    def feed(self, data: bytes | Iterable[int]) -> bytes:
        if self._finished:
            raise InputError("LZW stream already finished")

        table = self._table
        limit = self.clear_code
        prefix = self._prefix

        for symbol in data:
            if symbol >= limit:
                raise InputError(
                    f"Index {symbol} out of range for minimum code size {self.min_code_size}"
                )
            if prefix is None:
                prefix = symbol
                continue

            key = (prefix << 8) | symbol
            code = table.get(key)
            if code is not None:
                prefix = code
                continue

            self._emit(prefix)
            if self._next_code < MAX_CODE:
                table[key] = self._next_code
                self._next_code += 1
            else:
                self._emit(self.clear_code)
                self._reset()
            prefix = symbol

        self._prefix = prefix
        return self._writer.take()

    def finish(self) -> bytes:
        if self._finished:
            raise InputError("LZW stream already finished")
        if self._prefix is not None:
            self._emit(self._prefix)
        self._emit(self.end_code)
        self._finished = True
        return self._writer.flush()


def lzw_compress(data: bytes | Iterable[int], min_code_size: int) -> bytes:
    """Compress a whole index stream in one call."""
    encoder = LzwEncoder(min_code_size)
    return encoder.feed(data) + encoder.finish()


def pack_sub_blocks(data: bytes | bytearray, terminate: bool = True) -> bytes:
    """Split data into length-prefixed sub-blocks.

    With ``terminate`` the zero-length block terminator is appended as well.
    """
    out = bytearray()
    for start in range(0, len(data), MAX_SUB_BLOCK):
        chunk = data[start : start + MAX_SUB_BLOCK]
        out.append(len(chunk))
        out.extend(chunk)
    if terminate:
        out.append(0)
    return bytes(out)
