# t32asm

A small toolchain for the t32 instruction set, an 8-bit accumulator machine
with 64 KiB of memory. It contains:

- `t32asm.parser`: turns assembly source into a list of `Token` objects and
  prints an offset-annotated listing of them,
- `t32asm.assembler`: turns tokens into a binary image,
- `t32asm.vm`: a virtual machine that runs the image,
- `t32asm.cli`: the `t32` command.

No third-party libraries are needed.

## Installation

```
pip install .
```

## Command line

The `t32` command has three subcommands:

```
t32 parse program.s32            # print the instruction listing with offsets
t32 assemble program.s32 out.bin # write the binary image
t32 run out.bin                  # execute an image
```

`parse` prints one line per instruction or data block: the offset as four
hexadecimal digits, the mnemonic (or `.DATA`), and the operand, byte values
or label name. Label definitions take no space and are not listed.

`run` loads the image at address 0 and starts there. `RTR` reads one byte
from standard input (a byte of 0 at end of input) and `PRT` writes the byte
in the accumulator to standard output. A newline is written when the program
stops.

On a parse, assembly or execution error, or when a file cannot be opened,
the message is printed to standard error and the exit status is 1.

## Assembly syntax

```
; comments run to the end of the line
start:
    LDP message       ; labels are 16-bit addresses
@loop:                ; sublabel, scoped as START.LOOP
    LDA
    CMI 0
    JEQ @done
    PRT
    IDP
    JMP @loop
@done:
    HLT
message:
    .ascii "Hello World!"
    .data 0
```

- Numbers are decimal (`42`) or hexadecimal (`$2A`), up to `$FFFF`.
  Instructions with an 8-bit operand keep only the low byte.
- `.data` takes a comma-separated list of byte values (0-255).
- `.ascii` takes a quoted string; the escapes `\n`, `\r`, `\t`, `\\` and `\"`
  are supported.
- A label is a name followed by `:`. A name starting with `@` is a sublabel
  of the most recent top-level label, and `@name` as an operand refers to it.
- Mnemonics, labels and directives are case-insensitive.

## Instruction set

`A` is the accumulator, `DP` the 16-bit data pointer, `[DP]` the byte it
points at.

| Mnemonic | Operand | Effect |
|----------|---------|--------|
| `LDA` | | `A = [DP]` |
| `STA` | | `[DP] = A` |
| `LDI` | byte | `A = n` |
| `LDP` | address | `DP = n` |
| `ADD` / `SUB` | | `A = A ± [DP]` |
| `ADI` / `SBI` | byte | `A = A ± n` |
| `CMP` | | compare `A` with `[DP]`, flags only |
| `CMI` | byte | compare `A` with `n`, flags only |
| `AND` / `ORR` / `XOR` | | bitwise with `[DP]` |
| `SHL` / `SHR` | | shift `A` one bit left / right |
| `IDP` / `DDP` | | increment / decrement `DP` |
| `LDL` / `LDH` | | set low / high byte of `DP` from `A` |
| `SDL` / `SDH` | | `A` = low / high byte of `DP` |
| `PSH` / `POP` | | push / pop `A` |
| `JMP` | address | jump |
| `JEQ` | address | jump if the zero flag is set |
| `JNG` | address | jump if the negative flag is set |
| `JSR` | address | push the return address and jump |
| `RET` | | return from subroutine |
| `PRT` | | output `A` |
| `RTR` | | read a byte into `A` |
| `HLT` | | stop |
| `NOP` | | do nothing |

Arithmetic wraps at 8 bits. The zero flag follows the value loaded or
computed; `CMP` and `CMI` set the negative flag when `A` is less than the
value compared. The stack starts at `$FFFF` and grows downward.
Running past the end of memory stops the machine; an unknown opcode raises
`VMError`.

## Library use

```python
from t32asm.parser import parse
from t32asm.assembler import Assembler
from t32asm.vm import VirtualMachine, RunResult

rom = Assembler().assemble(parse(source))

output = []
vm = VirtualMachine(rom, input_provider=lambda: None, output_consumer=output.append)
result = vm.run()
if result is RunResult.WAITING_FOR_INPUT:
    ...  # supply input and call run() again
print(bytes(output).decode())
```

The input provider returns a byte value, or `None` when no input is
available yet. In that case `run()` stops with `RunResult.WAITING_FOR_INPUT`
and resumes at the same `RTR` instruction when called again. Without a
provider or consumer the machine uses standard input and standard output.

Other useful names:

- `t32asm.parser.format_tokens(tokens)` returns the listing as a string;
  `print_tokens(tokens, file=None)` writes it to a stream.
- `Assembler.assemble_to_file(path, tokens)` writes the image and returns it;
  after assembling, `Assembler.labels` maps label names to addresses.
- `t32asm.opcodes.OpCode` enumerates the opcodes and
  `instruction_size(opcode)` gives their encoded length.

Errors are raised as `ParseError` (with the line number), `AssemblerError`
and `VMError`.