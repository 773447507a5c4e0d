"""
RV32 Interpreter: Flat Data Memory with Access History

Memory model:
  - One zero-filled bytearray of the configured size, addressed from 0.
  - All multi-byte accesses are little-endian.
  - Every access is bounds-checked with a fixed 4-byte window: an access
    at ``addr`` is valid only when ``addr + ACCESS_WINDOW <= size``,
    whatever its width. So the last three bytes are unreachable.
  - Invalid accesses never raise: loads return 0, stores are dropped, and
    neither leaves an entry in the access history.

Access history:
  Every successful load/store prepends one human-readable line, e.g.
    "Stored word (16) to address 4"
    "Loaded byte (255) from address 12"
  The log is unbounded and purely diagnostic; the engine never reads it.
"""

import logging
from collections import deque
from typing import Deque, List

log = logging.getLogger(__name__)

WIDTH_NAMES = {4: 'word', 2: 'half-word', 1: 'byte'}


class Memory:
    """Byte-addressable little-endian memory.

    Addresses passed in are unsigned 32-bit; callers compute
    ``(rs1 + imm) & 0xFFFFFFFF`` so negative effective addresses land far
    out of range and are rejected like any other overflow.
    """

    ACCESS_WINDOW = 4

    def __init__(self, size: int):
        if size < 0:
            raise ValueError(f"memory size must be non-negative, got {size}")
        self.size = size
        self._mem = bytearray(size)
        self._history: Deque[str] = deque()

    # --- Bounds ---

    def in_bounds(self, addr: int) -> bool:
        return 0 <= addr and addr + self.ACCESS_WINDOW <= self.size

    # --- Core load/store ---

    def load(self, addr: int, width: int) -> int:
        """Read ``width`` bytes as an UNSIGNED value. 0 when out of bounds."""
        if not self.in_bounds(addr):
            log.debug("rejected %s load from address %d", WIDTH_NAMES[width], addr)
            return 0
        value = int.from_bytes(self._mem[addr:addr + width], 'little')
        if width == 4:
            # words are reported the way the register file will hold them
            shown = value - 0x100000000 if value & 0x80000000 else value
        else:
            shown = value
        self._history.appendleft(
            f"Loaded {WIDTH_NAMES[width]} ({shown}) from address {addr}")
        return value

    def store(self, addr: int, width: int, value: int) -> bool:
        """Write the low ``width`` bytes of value. False when dropped."""
        if not self.in_bounds(addr):
            log.debug("rejected %s store to address %d", WIDTH_NAMES[width], addr)
            return False
        self._history.appendleft(
            f"Stored {WIDTH_NAMES[width]} ({value}) to address {addr}")
        masked = value & ((1 << (8 * width)) - 1)
        self._mem[addr:addr + width] = masked.to_bytes(width, 'little')
        return True

    # --- Inspection (no history, no bounds window) ---

    def snapshot(self) -> bytes:
        return bytes(self._mem)

    @property
    def history(self) -> List[str]:
        """Access log, most recent first."""
        return list(self._history)

    def reset(self):
        """Zero-fill memory and forget the history."""
        self._mem = bytearray(self.size)
        self._history.clear()

    # --- Hex dump ---

    def hexdump(self, start: int = 0, length: int = 256) -> str:
        """Hex dump of [start, start + length), clipped to memory size."""
        lines = []
        end = min(self.size, start + length)
        for addr in range(start, end, 16):
            row = self._mem[addr:min(addr + 16, end)]
            hex_bytes = ' '.join(f'{b:02X}' for b in row)
            ascii_bytes = ''.join(chr(b) if 0x20 <= b < 0x7F else '.' for b in row)
            lines.append(f'{addr:08X}  {hex_bytes:<47s}  {ascii_bytes}')
        return '\n'.join(lines)
