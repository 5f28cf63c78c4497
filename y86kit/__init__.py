"""Bit puzzles and their checker, number inspection, and a Y86 instruction set model, simulator, assembler and HCL code generator."""

__version__ = "0.1.0"