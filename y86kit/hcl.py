"""Expression trees for the hardware control language and code generation from them.

Expressions are turned into C functions, Verilog assignments or UCLID
definitions.
"""

from __future__ import annotations

import string
import sys
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from itertools import takewhile
from typing import TextIO

from y86kit.outgen import OutputGenerator

SYM_LIM = 100
MAXERRLEN = 80


class NodeType(Enum):
    """Kinds of expression node."""

    QUOTE = 0
    VAR = 1
    NUM = 2
    AND = 3
    OR = 4
    NOT = 5
    COMP = 6
    ELE = 7
    CASE = 8


class OutputMode(Enum):
    """Target language of the generated code."""

    C = "c"
    VERILOG = "verilog"
    UCLID = "uclid"


@dataclass(eq=False)
class Node:
    """An expression node; ``next`` links nodes into lists."""

    type: NodeType
    isbool: bool
    sval: str
    arg1: Node | None = None
    arg2: Node | None = None
    ref: int = 0
    next: Node | None = None


class HclError(Exception):
    """An error in an HCL description."""


def _chain(node: Node | None) -> Iterator[Node]:
    while node is not None:
        yield node
        node = node.next


def _atoi(text: str) -> int:
    text = text.lstrip()
    sign = -1 if text.startswith("-") else 1
    if text[:1] in "+-":
        text = text[1:]
    digits = "".join(takewhile(str.isdigit, text))
    return sign * int(digits) if digits else 0


def concat(first: Node | None, second: Node | None) -> Node | None:
    """Append list ``second`` to list ``first`` and return the joined list."""
    if first is None:
        return second
    tail = first
    while tail.next is not None:
        tail = tail.next
    tail.next = second
    return first


def set_bool(node: Node | None) -> None:
    """Mark a node as Boolean."""
    if node is None:
        raise HclError("Null node encountered")
    node.isbool = True


class _Shower:
    """Renders an expression for error messages, cut short near MAXERRLEN."""

    def __init__(self) -> None:
        self.parts: list[str] = []
        self.length = 0

    def put(self, text: str) -> None:
        self.parts.append(text)
        self.length += len(text)

    def room(self) -> bool:
        return self.length < MAXERRLEN

    def show(self, expr: Node) -> None:
        kind = expr.type
        if kind is NodeType.QUOTE:
            text = f"'{expr.sval}'"
            if len(text) + self.length < MAXERRLEN:
                self.put(text)
        elif kind in (NodeType.VAR, NodeType.NUM):
            if len(expr.sval) + self.length < MAXERRLEN:
                self.put(expr.sval)
        elif kind in (NodeType.AND, NodeType.OR, NodeType.COMP):
            middle = {NodeType.AND: " & ", NodeType.OR: " | "}.get(kind, f" {expr.sval} ")
            if self.room():
                self.put("(")
                self.show(expr.arg1)
                self.put(middle)
            if self.room():
                self.show(expr.arg2)
                self.put(")")
        elif kind is NodeType.NOT:
            if self.room():
                self.put("!")
                self.show(expr.arg1)
        elif kind is NodeType.ELE:
            if self.room():
                self.put("(")
                self.show(expr.arg1)
                self.put(" in {")
            for ele in _chain(expr.arg2):
                if self.room():
                    self.show(ele)
                    if ele.next is not None:
                        self.put(", ")
            if self.room():
                self.put("})")
        elif kind is NodeType.CASE:
            if self.room():
                self.put("[ ")
            ele: Node | None = expr
            while self.room() and ele is not None:
                self.show(ele.arg1)
                self.put(" : ")
                self.show(ele.arg2)
                ele = ele.next
            if self.room():
                self.put(" ]")
        elif self.room():
            self.put("??")

    def text(self) -> str:
        result = "".join(self.parts)
        return result + "..." if self.length >= MAXERRLEN else result


class HclGenerator:
    """Builds checked expression trees and writes code for them.

    In C mode the simulator name declaration is written on creation.
    ``annotate`` adds define/use comments in UCLID mode.  Warnings go to
    ``err``.
    """

    def __init__(
        self,
        out: TextIO | None = None,
        mode: OutputMode = OutputMode.C,
        *,
        annotate: bool = False,
        simname: str = "",
        err: TextIO | None = None,
        max_column: int = 75,
        first_indent: int = 4,
        other_indents: int = 2,
    ) -> None:
        self.out = out if out is not None else sys.stdout
        self.err = err if err is not None else sys.stderr
        self.mode = mode
        self.annotate = annotate
        self.simname = simname
        self.symbols: list[tuple[Node, Node]] = []
        self.arg_names: list[str] = []
        if mode is OutputMode.C:
            if simname:
                self.out.write(f'char simname[] = "Y86 Processor: {simname}";\n')
            else:
                self.out.write('char simname[] = "Y86 Processor";\n')
        self.outgen = OutputGenerator(self.out, max_column, first_indent, other_indents)

    # Symbol table

    def _add_symbol(self, name: Node, value: Node) -> None:
        if len(self.symbols) >= SYM_LIM:
            raise HclError("Symbol table limit exceeded")
        self.symbols.append((name, value))

    def _find_symbol(self, name: str) -> Node:
        for key, value in self.symbols:
            if key.sval == name:
                key.ref += 1
                return value
        raise HclError(f"Symbol {name} not found")

    def _check_for_arg(self, name: str) -> None:
        if all(ch in string.ascii_uppercase for ch in name):
            return
        if name not in self.arg_names:
            self.arg_names.append(name)

    # Node construction

    def make_quote(self, qstring: str) -> Node:
        """Make a node from a quoted string, dropping the quotes."""
        return Node(NodeType.QUOTE, False, qstring[1:-1])

    def make_var(self, name: str) -> Node:
        """Make a variable node, assumed not Boolean."""
        return Node(NodeType.VAR, False, name)

    def make_num(self, text: str) -> Node:
        """Make a number node."""
        return Node(NodeType.NUM, False, text)

    def _check_arg(self, arg: Node | None, wantbool: bool) -> None:
        if arg is None:
            raise HclError("Null node encountered")
        if arg.type is NodeType.VAR:
            value = self._find_symbol(arg.sval)
            if wantbool != value.isbool:
                kind = "Boolean" if wantbool else "integer"
                raise HclError(f"Variable '{arg.sval}' not {kind}")
            return
        if arg.type is NodeType.NUM:
            if wantbool and arg.sval not in ("0", "1"):
                raise HclError(f"Value '{arg.sval}' not Boolean")
            return
        if wantbool and not arg.isbool:
            raise HclError(f"Non Boolean argument '{self.show_expr(arg)}'")
        if not wantbool and arg.isbool:
            raise HclError(f"Non integer argument '{self.show_expr(arg)}'")

    def make_not(self, arg: Node) -> Node:
        """Boolean negation."""
        self._check_arg(arg, True)
        return Node(NodeType.NOT, True, "!", arg)

    def make_and(self, arg1: Node, arg2: Node) -> Node:
        """Boolean conjunction."""
        self._check_arg(arg1, True)
        self._check_arg(arg2, True)
        return Node(NodeType.AND, True, "&", arg1, arg2)

    def make_or(self, arg1: Node, arg2: Node) -> Node:
        """Boolean disjunction."""
        self._check_arg(arg1, True)
        self._check_arg(arg2, True)
        return Node(NodeType.OR, True, "|", arg1, arg2)

    def make_comp(self, op: Node, arg1: Node, arg2: Node) -> Node:
        """Comparison of two integers; ``op`` carries the operator text."""
        self._check_arg(arg1, False)
        self._check_arg(arg2, False)
        return Node(NodeType.COMP, True, op.sval, arg1, arg2)

    def make_ele(self, arg1: Node, arg2: Node) -> Node:
        """Set membership: ``arg1`` in the list ``arg2``."""
        self._check_arg(arg1, False)
        for ele in _chain(arg1):
            self._check_arg(ele, False)
        return Node(NodeType.ELE, True, "in", arg1, arg2)

    def make_case(self, arg1: Node, arg2: Node) -> Node:
        """One case of a case expression: Boolean guard and integer value."""
        self._check_arg(arg1, True)
        self._check_arg(arg2, False)
        return Node(NodeType.CASE, False, ":", arg1, arg2)

    # Declarations

    def insert_code(self, qstring: Node | None) -> None:
        """Copy a quoted code fragment into C output."""
        if qstring is None:
            raise HclError("Null node")
        if self.mode is OutputMode.C:
            self.out.write(qstring.sval + "\n")

    def add_arg(self, var: Node | None, qstring: Node | None, isbool: bool) -> None:
        """Declare ``var`` as standing for the code in ``qstring``."""
        if var is None or qstring is None:
            raise HclError("Null node")
        self._add_symbol(var, qstring)
        if isbool:
            set_bool(var)
            set_bool(qstring)

    # Output

    def show_expr(self, expr: Node) -> str:
        """Render an expression for an error message."""
        shower = _Shower()
        shower.show(expr)
        return shower.text()

    def _gen_expr(self, expr: Node) -> None:
        og = self.outgen
        mode = self.mode
        hdl = mode in (OutputMode.VERILOG, OutputMode.UCLID)
        kind = expr.type
        if kind is NodeType.QUOTE:
            raise HclError("Unexpected quoted string")
        if kind is NodeType.VAR:
            value = self._find_symbol(expr.sval)
            og.emit(expr.sval if hdl else f"({value.sval})")
            if mode is OutputMode.UCLID:
                self._check_for_arg(expr.sval)
        elif kind is NodeType.NUM:
            if mode is OutputMode.UCLID:
                val = _atoi(expr.sval)
                if val < -1:
                    og.emit(f"pred^{-val}(CZERO)")
                elif val == -1:
                    og.emit("pred(CZERO)")
                elif val == 0:
                    og.emit("CZERO")
                elif val == 1:
                    og.emit("succ(CZERO)")
                else:
                    og.emit(f"succ^{val}(CZERO)")
            else:
                self.out.write(expr.sval)
        elif kind in (NodeType.AND, NodeType.OR):
            og.emit("(")
            og.upindent()
            self._gen_expr(expr.arg1)
            og.emit(" & " if kind is NodeType.AND else " | ")
            self._gen_expr(expr.arg2)
            og.emit(")")
            og.downindent()
        elif kind is NodeType.NOT:
            og.emit("~" if hdl else "!")
            self._gen_expr(expr.arg1)
        elif kind is NodeType.COMP:
            og.emit("(")
            og.upindent()
            self._gen_expr(expr.arg1)
            op = expr.sval
            if mode is OutputMode.UCLID and op == "==":
                op = "="
            og.emit(f" {op} ")
            self._gen_expr(expr.arg2)
            og.emit(")")
            og.downindent()
        elif kind is NodeType.ELE:
            og.emit("(")
            og.upindent()
            for ele in _chain(expr.arg2):
                self._gen_expr(expr.arg1)
                og.emit(" = " if mode is OutputMode.UCLID else " == ")
                self._gen_expr(ele)
                if ele.next is not None:
                    og.emit(" | " if hdl else " || ")
            og.emit(")")
            og.downindent()
        elif kind is NodeType.CASE:
            if mode is OutputMode.UCLID:
                self._gen_uclid_case(expr)
            else:
                self._gen_case(expr)
        else:
            raise HclError("Unknown node type")

    @staticmethod
    def _is_default(ele: Node) -> bool:
        return ele.arg1.type is NodeType.NUM and _atoi(ele.arg1.sval) == 1

    def _gen_case(self, expr: Node) -> None:
        og = self.outgen
        og.emit("(")
        og.upindent()
        done = False
        for ele in _chain(expr):
            if self._is_default(ele):
                self._gen_expr(ele.arg2)
                done = True
                break
            self._gen_expr(ele.arg1)
            og.emit(" ? ")
            self._gen_expr(ele.arg2)
            og.emit(" : ")
        if not done:
            og.emit("0")
        og.emit(")")
        og.downindent()

    def _gen_uclid_case(self, expr: Node) -> None:
        og = self.outgen
        og.emit("case")
        og.terminate()
        last_arg2: Node | None = None
        for ele in _chain(expr):
            og.emit("      ")
            if self._is_default(ele):
                og.emit("default")
                last_arg2 = None
            else:
                self._gen_expr(ele.arg1)
                last_arg2 = ele.arg2
            og.emit(" : ")
            self._gen_expr(ele.arg2)
            og.emit(";")
            og.terminate()
        if last_arg2 is not None:
            og.emit("      default : ")
            self._gen_expr(last_arg2)
            og.emit(";")
            og.terminate()
        og.emit("    esac")

    def gen_funct(self, var: Node | None, expr: Node | None, isbool: bool) -> None:
        """Write the definition of ``var`` as the value of ``expr``."""
        if var is None or expr is None:
            raise HclError("Null node")
        self._check_arg(expr, isbool)
        og = self.outgen
        if self.mode is OutputMode.VERILOG:
            og.emit(f"assign {var.sval} = ")
            og.terminate()
            og.emit("    ")
            self._gen_expr(expr)
            og.emit(";")
            og.terminate()
            og.terminate()
        elif self.mode is OutputMode.UCLID:
            if self.annotate:
                og.emit(f"(* $define {var.sval} *)")
                og.terminate()
            og.emit(f"{var.sval} := ")
            og.terminate()
            og.emit("    ")
            if isbool and expr.type is NodeType.NUM:
                og.emit("%d" % _atoi(var.sval))
            else:
                self._gen_expr(expr)
            og.emit(";")
            og.terminate()
            if self.annotate:
                og.emit("(* $args")
                for i, name in enumerate(self.arg_names):
                    og.emit(("" if i == 0 else ":").join([" " if i == 0 else "", name]))
                og.emit(" *)")
                og.terminate()
                self.arg_names.clear()
            og.terminate()
        else:
            og.emit(f"int gen_{var.sval}()")
            og.terminate()
            og.emit("{")
            og.terminate()
            og.emit("    return ")
            self._gen_expr(expr)
            og.emit(";")
            og.terminate()
            og.emit("}")
            og.terminate()
            og.terminate()

    def finish(self, check_ref: bool) -> list[str]:
        """Warn about declared arguments never referenced; return their names."""
        if not check_ref:
            return []
        unused = [name.sval for name, _ in self.symbols if not name.ref]
        for name in unused:
            self.err.write(f"Warning, argument '{name}' not referenced\n")
        return unused