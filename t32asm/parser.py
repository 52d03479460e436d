"""Parse t32 assembly source into tokens."""

from __future__ import annotations

import re
import string
import sys
from typing import Iterable, TextIO

from .opcodes import OpCode
from .tokens import Token

_HSPACE = frozenset(" \t\v\f")
_LINE_END = frozenset("\n\r;")
_ALPHA = frozenset(string.ascii_letters)
_DIGITS = frozenset(string.digits)
_HEX = frozenset(string.hexdigits)
_ALNUM = _ALPHA | _DIGITS
_IDENT_START = _ALPHA | {"_"}
_IDENT = _ALNUM | {"_"}
_LABEL_RE = re.compile(r"[A-Z_][A-Z0-9_]*")
_ESCAPES = {"n": ord("\n"), "r": ord("\r"), "t": ord("\t"), "\\": ord("\\"), '"': ord('"')}


class ParseError(ValueError):
    """Raised when the source text is not valid assembly."""

    def __init__(self, line: int, message: str) -> None:
        super().__init__(f"Line {line}: {message}")
        self.line = line
        self.message = message


def _is_valid_label(name: str) -> bool:
    return _LABEL_RE.fullmatch(name) is not None


class Parser:
    """Turns assembly source text into a list of tokens."""

    def __init__(self, source: str) -> None:
        self._source = source
        self._pos = 0
        self._line = 1
        self._top_label: str | None = None

    def parse(self) -> list[Token]:
        """Parse the whole source and return its tokens."""
        self._pos = 0
        self._line = 1
        self._top_label = None
        tokens: list[Token] = []

        while not self._at_end():
            c = self._peek()
            if c == "\n":
                self._line += 1
                self._pos += 1
            elif c == "\r":
                self._pos += 1
                if self._peek() == "\n":
                    self._pos += 1
                self._line += 1
            elif c in _HSPACE:
                self._pos += 1
            elif c == ";":
                self._skip_comment()
            elif c == ".":
                tokens.append(self._directive())
            elif c == "@" or c in _IDENT_START:
                tokens.append(self._word())
            else:
                raise self._error(f"Unexpected character: {c}")

        return tokens

    # -- character helpers -------------------------------------------------

    def _at_end(self) -> bool:
        return self._pos >= len(self._source)

    def _peek(self) -> str:
        return "" if self._at_end() else self._source[self._pos]

    def _advance(self) -> str:
        c = self._peek()
        if c:
            self._pos += 1
        return c

    def _at_line_end(self) -> bool:
        c = self._peek()
        return c == "" or c in _LINE_END

    def _read_while(self, charset: frozenset[str]) -> str:
        start = self._pos
        while self._peek() in charset and not self._at_end():
            self._pos += 1
        return self._source[start:self._pos]

    def _skip_hspace(self) -> None:
        self._read_while(_HSPACE)

    def _skip_comment(self) -> None:
        newline = self._source.find("\n", self._pos)
        self._pos = len(self._source) if newline < 0 else newline + 1
        self._line += 1

    def _error(self, message: str) -> ParseError:
        return ParseError(self._line, message)

    # -- directives --------------------------------------------------------

    def _directive(self) -> Token:
        self._pos += 1  # '.'
        name = self._read_while(_ALPHA).upper()
        self._skip_hspace()

        if name == "DATA":
            data = self._data()
        elif name == "ASCII":
            data = self._ascii()
        else:
            raise self._error(f"Invalid directive: .{name}")

        return Token(OpCode.INVALID, None, None, None, self._line, data)

    def _data(self) -> bytes:
        values = bytearray()

        while not self._at_line_end():
            self._skip_hspace()
            if self._at_line_end():
                break

            is_hex = self._peek() == "$"
            if is_hex:
                self._pos += 1

            number = self._read_while(_HEX if is_hex else _DIGITS)
            if not number:
                raise self._error("Expected 8-bit value in .data")

            value = int(number, 16 if is_hex else 10)
            if value > 0xFF:
                raise self._error(".data value out of range (0-255)")
            values.append(value)

            self._skip_hspace()
            if self._peek() == ",":
                self._pos += 1
                continue
            if not self._at_line_end():
                raise self._error("Expected ',' between .data values")

        if not values:
            raise self._error(".data requires at least one value")
        return bytes(values)

    def _ascii(self) -> bytes:
        if self._peek() != '"':
            raise self._error(".ascii expects a quoted string")
        self._pos += 1

        data = bytearray()
        while not self._at_end() and self._peek() != '"':
            ch = self._advance()
            if ch != "\\":
                data.extend(ch.encode("utf-8"))
                continue
            if self._at_end():
                raise self._error("Unterminated escape in .ascii")
            escaped = self._advance()
            try:
                data.append(_ESCAPES[escaped])
            except KeyError:
                raise self._error("Unsupported escape sequence in .ascii") from None

        if self._at_end():
            raise self._error("Unterminated string in .ascii")
        self._pos += 1  # closing quote
        return bytes(data)

    # -- mnemonics and labels ----------------------------------------------

    def _word(self) -> Token:
        is_sublabel = self._peek() == "@"
        if is_sublabel:
            self._pos += 1
        name = self._read_while(_IDENT).upper()
        word = f"@{name}" if is_sublabel else name

        if self._peek() == ":":
            self._pos += 1
            if is_sublabel:
                if not name or not _is_valid_label(name):
                    raise self._error(f"Invalid sublabel name: {word}")
                if self._top_label is None:
                    raise self._error("Sublabel requires a preceding top-level label")
                label = f"{self._top_label}.{name}"
            else:
                if not _is_valid_label(word):
                    raise self._error(f"Invalid label name: {word}")
                self._top_label = word
                label = word

            token = Token(OpCode.INVALID, None, None, label, self._line)
            self._skip_hspace()
            return token

        opcode = OpCode.from_mnemonic(word)
        if opcode is OpCode.INVALID:
            raise self._error(f"Invalid mnemonic: {word}")

        self._skip_hspace()
        operand, operand_label = self._operand()
        return Token(opcode, operand, operand_label, None, self._line)

    def _number(self, digits: frozenset[str], base: int, kind: str) -> int:
        text = self._read_while(digits)
        if not text:
            raise self._error("Expected hexadecimal number")
        if self._peek() in _ALNUM and not self._at_end():
            raise self._error(f"Invalid {kind} literal")
        value = int(text, base)
        if value > 0xFFFF:
            raise self._error(f"{kind.capitalize()} value too large")
        return value

    def _operand(self) -> tuple[int | None, str | None]:
        c = self._peek()
        if c == "":
            return None, None

        if c == "$":
            self._pos += 1
            return self._number(_HEX, 16, "hex"), None

        if c in _DIGITS:
            return self._number(_DIGITS, 10, "decimal"), None

        if c in _IDENT_START:
            return None, self._read_while(_IDENT).upper()

        if c == "@":
            self._pos += 1
            name = self._read_while(_IDENT).upper()
            if not _is_valid_label(name):
                raise self._error("Invalid sublabel reference")
            if self._top_label is None:
                raise self._error(
                    "Sublabel reference requires a preceding top-level label"
                )
            return None, f"{self._top_label}.{name}"

        return None, None


def parse(source: str) -> list[Token]:
    """Parse assembly source text into tokens."""
    return Parser(source).parse()


def format_tokens(tokens: Iterable[Token]) -> str:
    """Render tokens as an offset-annotated listing, one instruction per line."""
    lines: list[str] = []
    offset = 0

    for token in tokens:
        if token.label_definition is not None:
            continue

        text = f"{offset:04X}  "
        text += ".DATA" if token.data_bytes else token.opcode.name

        if token.operand is not None:
            width = 2 if token.operand <= 0xFF else 4
            text += f" ${token.operand:0{width}X}"
        elif token.data_bytes:
            text += " " + ", ".join(f"${byte:02X}" for byte in token.data_bytes)
        elif token.operand_label is not None:
            text += f" {token.operand_label}"

        lines.append(text + "\n")
        offset = (offset + token.size()) & 0xFFFF

    return "".join(lines)


def print_tokens(tokens: Iterable[Token], file: TextIO | None = None) -> None:
    """Write the token listing to a stream, standard output by default."""
    (file if file is not None else sys.stdout).write(format_tokens(tokens))