"""Turn parsed tokens into machine code for the t32 virtual machine."""

from __future__ import annotations

import os
from typing import Iterable

from .opcodes import instruction_size
from .tokens import Token


class AssemblerError(ValueError):
    """Raised when tokens cannot be turned into machine code."""


class Assembler:
    """Two-pass assembler: resolves label addresses, then emits bytes."""

    def __init__(self) -> None:
        self.labels: dict[str, int] = {}

    def assemble(self, tokens: Iterable[Token]) -> bytes:
        """Return the machine code for a sequence of tokens."""
        tokens = list(tokens)
        self.labels = self._resolve_labels(tokens)

        output = bytearray()
        for token in tokens:
            if token.is_label():
                continue

            if token.data_bytes:
                output.extend(token.data_bytes)
                continue

            output.append(int(token.opcode) & 0xFF)

            if token.operand_label is not None:
                try:
                    address = self.labels[token.operand_label]
                except KeyError:
                    raise AssemblerError(
                        f"Undefined label: {token.operand_label}"
                    ) from None
                output.extend(address.to_bytes(2, "little"))
                continue

            if token.operand is not None:
                value = token.operand & 0xFFFF
                size = instruction_size(token.opcode)
                if size == 2:
                    output.append(value & 0xFF)
                elif size == 3:
                    output.extend(value.to_bytes(2, "little"))

        return bytes(output)

    def assemble_to_file(self, path: str | os.PathLike[str], tokens: Iterable[Token]) -> bytes:
        """Assemble the tokens and write the machine code to a file."""
        output = self.assemble(tokens)
        with open(path, "wb") as out:
            out.write(output)
        return output

    @staticmethod
    def _resolve_labels(tokens: list[Token]) -> dict[str, int]:
        labels: dict[str, int] = {}
        offset = 0
        for token in tokens:
            if token.is_label():
                labels[token.label_definition] = offset
                continue
            offset = (offset + token.size()) & 0xFFFF
        return labels