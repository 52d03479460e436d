"""Parser, assembler, virtual machine and command line for the t32 instruction set."""

__version__ = "0.1.0"

__all__ = ["opcodes", "tokens", "parser", "assembler", "vm", "cli"]