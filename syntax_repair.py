import logging
from typing import List, Optional

# --- Scanner states ---
OUTSIDE = "outside"
IN_STRING = "in-string"
IN_ARRAY = "in-array"
IN_OBJECT = "in-object"

# What an open container is waiting for next
EXPECT_KEY = "key"
EXPECT_COLON = "colon"
EXPECT_VALUE = "value"
EXPECT_COMMA = "comma"

CLOSER_FOR = {'{': '}', '[': ']'}
OPENER_FOR = {'}': '{', ']': '['}
WHITESPACE = ' \t\r\n'

# A quote inside a string only ends it when one of these (or end of text) follows.
STRING_TERMINATORS = ',:]}"'
VALID_ESCAPES = '"\\/bfnrtu'
CONTROL_ESCAPES = {'\n': '\\n', '\r': '\\r', '\t': '\\t', '\b': '\\b', '\f': '\\f'}


class _Frame:
    __slots__ = ("opener", "expect")

    def __init__(self, opener):
        self.opener = opener
        self.expect = EXPECT_KEY if opener == '{' else EXPECT_VALUE


class SyntaxRepairer:
    """
    Single left-to-right scan over a truncated or sloppy JSON candidate.

    The scanner is always in one of four states (outside, in-string, in-array,
    in-object) and keeps a stack of open containers, so every repair is made
    at the position where the problem occurs instead of by counting brackets
    over the whole text. Bracket characters inside string literals are copied
    verbatim and never affect nesting.
    """

    def __init__(self, text: str):
        self.text = text or ""
        self.out: List[str] = []
        self.stack: List[_Frame] = []
        self.in_string = False
        self.string_is_key = False
        self.escaped = False
        self.in_literal = False
        self.root_closed = False
        self.repairs: List[str] = []

    @property
    def state(self) -> str:
        if self.in_string:
            return IN_STRING
        if not self.stack:
            return OUTSIDE
        return IN_OBJECT if self.stack[-1].opener == '{' else IN_ARRAY

    def repair(self) -> str:
        for pos, ch in enumerate(self.text):
            if self.root_closed:
                if self.text[pos:].strip():
                    self._note("dropped text after top-level object")
                break
            if self.state == IN_STRING:
                self._string_char(pos, ch)
            elif self.state == OUTSIDE:
                self._outside_char(ch)
            else:
                self._container_char(ch)
        self._finish()
        return "".join(self.out)

    # --- per-state handlers ---

    def _outside_char(self, ch):
        if ch in '{[':
            self._open(ch)
        elif ch in WHITESPACE:
            self.out.append(ch)
        else:
            self._note("dropped text before top-level object")

    def _string_char(self, pos, ch):
        if self.escaped:
            self.out.append(ch)
            self.escaped = False
        elif ch == '\\':
            nxt = self.text[pos + 1] if pos + 1 < len(self.text) else None
            if nxt is None or nxt in VALID_ESCAPES:
                self.out.append(ch)
                self.escaped = True
            else:
                self.out.append('\\\\')
                self._note("escaped stray backslash")
        elif ch == '"':
            if self._quote_closes_string(pos):
                self.out.append(ch)
                self._close_string()
            else:
                self.out.append('\\"')
                self._note("escaped embedded quote")
        elif ch < ' ':
            self.out.append(CONTROL_ESCAPES.get(ch, f"\\u{ord(ch):04x}"))
            self._note("escaped control character")
        else:
            self.out.append(ch)

    def _container_char(self, ch):
        if ch in WHITESPACE:
            self.in_literal = False
            self.out.append(ch)
        elif ch == '"':
            self.in_literal = False
            self._begin_value(is_string=True)
            self.out.append(ch)
            self.in_string = True
        elif ch in '{[':
            self.in_literal = False
            self._begin_value()
            self._open(ch)
        elif ch in '}]':
            self.in_literal = False
            self._close(ch)
        elif ch == ',':
            self.in_literal = False
            self._comma()
        elif ch == ':':
            self.in_literal = False
            self._colon()
        elif self.in_literal:
            self.out.append(ch)
        else:
            self._begin_value()
            self.in_literal = True
            self.out.append(ch)

    # --- transitions ---

    def _open(self, opener):
        self.out.append(opener)
        self.stack.append(_Frame(opener))

    def _close(self, closer):
        opener = OPENER_FOR[closer]
        if not any(frame.opener == opener for frame in self.stack):
            self._note("dropped unmatched closer")
            return
        while True:
            frame = self.stack.pop()
            self._seal(frame)
            if frame.opener == opener:
                break
            self._note("closed container left open")
        if not self.stack:
            self.root_closed = True

    def _seal(self, frame):
        self._drop_trailing_comma()
        if frame.opener == '{':
            if frame.expect == EXPECT_COLON:
                self.out.append(':null')
                self._note("filled dangling key")
            elif frame.expect == EXPECT_VALUE:
                self.out.append('null')
                self._note("filled dangling key")
        self.out.append(CLOSER_FOR[frame.opener])

    def _begin_value(self, is_string=False):
        self.string_is_key = False
        frame = self.stack[-1]
        if frame.opener == '[':
            if frame.expect == EXPECT_COMMA:
                self.out.append(',')
                self._note("inserted missing comma")
            frame.expect = EXPECT_COMMA
            return

        if frame.expect == EXPECT_COMMA:
            self.out.append(',')
            self._note("inserted missing comma")
            frame.expect = EXPECT_KEY
        if frame.expect == EXPECT_KEY:
            if is_string:
                self.string_is_key = True
            else:
                # Unquoted key; nothing sensible to do positionally.
                frame.expect = EXPECT_COMMA
            return
        if frame.expect == EXPECT_COLON:
            self.out.append(':')
            self._note("inserted missing colon")
        frame.expect = EXPECT_COMMA

    def _close_string(self):
        self.in_string = False
        if self.string_is_key and self.stack:
            self.stack[-1].expect = EXPECT_COLON
        self.string_is_key = False

    def _comma(self):
        frame = self.stack[-1]
        if frame.expect != EXPECT_COMMA:
            self._note("dropped stray comma")
            return
        self.out.append(',')
        frame.expect = EXPECT_KEY if frame.opener == '{' else EXPECT_VALUE

    def _colon(self):
        frame = self.stack[-1]
        if frame.opener != '{' or frame.expect != EXPECT_COLON:
            self._note("dropped stray colon")
            return
        self.out.append(':')
        frame.expect = EXPECT_VALUE

    def _finish(self):
        if self.in_string:
            if self.escaped:
                self.out.pop()
                self.escaped = False
            self.out.append('"')
            self._close_string()
            self._note("closed unterminated string")
        while self.stack:
            self._seal(self.stack.pop())
            self._note("closed container left open at end of text")

    # --- helpers ---

    def _quote_closes_string(self, pos) -> bool:
        nxt = self._next_significant(pos + 1)
        return nxt is None or nxt in STRING_TERMINATORS

    def _next_significant(self, start) -> Optional[str]:
        for i in range(start, len(self.text)):
            if self.text[i] not in WHITESPACE:
                return self.text[i]
        return None

    def _drop_trailing_comma(self):
        i = len(self.out) - 1
        while i >= 0 and self.out[i] in WHITESPACE:
            i -= 1
        if i >= 0 and self.out[i] == ',':
            del self.out[i]
            self._note("dropped trailing comma")

    def _note(self, repair):
        if repair not in self.repairs:
            self.repairs.append(repair)


def repair_syntax(candidate: str) -> str:
    """
    Applies positional repairs for the usual ways a truncated model response
    breaks JSON. Never fails; the result may be unchanged, and may still not
    parse.
    """
    repairer = SyntaxRepairer(candidate)
    repaired = repairer.repair()
    if repairer.repairs:
        logging.debug(f"Syntax repair applied: {', '.join(repairer.repairs)}")
    return repaired
