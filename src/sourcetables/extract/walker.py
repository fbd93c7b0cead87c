"""Keyword-driven table extraction over one statement's tokens.

The walker does not build a syntax tree. It moves a cursor over the
significant tokens and reacts to the keywords that introduce a table
(FROM, JOIN, INTO, OVERWRITE TABLE, UPDATE, MERGE ... USING, CREATE ... AS).
Parentheses decide scoping: a parenthesized query opens a child NameScope,
any other parenthesized group (function arguments, column lists, VALUES)
is scanned only for nested subqueries.

CTE names and aliases are bound in the scope that defines them and shadow
real tables for references inside that scope only.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from sourcetables.diagnostics import Diagnostic, Span, codes
from sourcetables.extract._types import Classification, TableReference
from sourcetables.extract.lexer import Token
from sourcetables.extract.splitter import Statement

_SUBQUERY_STARTERS = ("SELECT", "WITH", "VALUES")
_SET_OPERATORS = ("UNION", "INTERSECT", "EXCEPT", "MINUS")

# Keywords that never introduce a clause, so they can name a table:
# `FROM location`, `INSERT INTO comment`.
_NON_RESERVED = frozenset({
    "ADD", "ASC", "CLUSTERED", "COMMENT", "CUBE", "DESC", "DESCRIBE", "DFS",
    "DIRECTORY", "EXPLAIN", "EXTERNAL", "GLOBAL", "GROUPING", "LIST", "LOAD",
    "LOCAL", "LOCATION", "MATERIALIZED", "MSCK", "PARTITIONED", "RECURSIVE",
    "RELOAD", "REPLACE", "RESET", "ROLLUP", "ROW", "SETS", "SHOW", "STORED",
    "TBLPROPERTIES", "TEMP", "TEMPORARY", "TRANSACTIONAL", "TRUNCATE", "USE",
})
_CREATE_MODIFIERS = (
    "OR", "REPLACE", "TEMPORARY", "TEMP", "EXTERNAL", "GLOBAL", "LOCAL",
    "MATERIALIZED", "TRANSACTIONAL",
)

# Past this nesting depth the walker stops recursing and falls back to a flat scan.
_MAX_DEPTH = 100


@dataclass
class NameScope:
    """Names bound by WITH clauses and aliases, chained to the enclosing scope."""

    parent: NameScope | None = None
    names: dict[str, Classification] = field(default_factory=dict)

    def define(self, name: str, classification: Classification) -> None:
        self.names[name.lower()] = classification

    def lookup(self, name: str) -> Classification | None:
        key = name.lower()
        scope: NameScope | None = self
        while scope is not None:
            if key in scope.names:
                return scope.names[key]
            scope = scope.parent
        return None

    def child(self) -> NameScope:
        return NameScope(parent=self)


@dataclass
class WalkResult:
    references: list[TableReference]
    diagnostics: list[Diagnostic]

    @property
    def sources(self) -> list[TableReference]:
        return [r for r in self.references if r.is_source]


def walk_statement(statement: Statement) -> WalkResult:
    """Classify every table reference in `statement`. Never raises."""
    walker = _Walker(statement)
    walker.walk()
    return WalkResult(references=walker.references, diagnostics=walker.diagnostics)


class _Walker:
    def __init__(self, statement: Statement) -> None:
        self.tokens = statement.tokens
        self.statement = statement.index
        self.pos = 0
        self.depth = 0
        self.merge = False
        self.references: list[TableReference] = []
        self.diagnostics: list[Diagnostic] = []

    # -- Cursor -----------------------------------------------------------------

    def _peek(self, offset: int = 0) -> Token | None:
        index = self.pos + offset
        if 0 <= index < len(self.tokens):
            return self.tokens[index]
        return None

    def _next(self) -> Token | None:
        token = self._peek()
        if token is not None:
            self.pos += 1
        return token

    def _at_keyword(self, *words: str, offset: int = 0) -> bool:
        token = self._peek(offset)
        return token is not None and token.is_keyword(*words)

    def _at_punct(self, char: str, offset: int = 0) -> bool:
        token = self._peek(offset)
        return token is not None and token.is_punct(char)

    def _at_name(self, offset: int = 0) -> bool:
        token = self._peek(offset)
        return token is not None and token.is_name

    def _at_candidate(self, offset: int = 0) -> bool:
        """A name, or a non-reserved keyword standing where a table name goes."""
        token = self._peek(offset)
        return token is not None and (
            token.is_name or (token.is_keyword() and token.upper in _NON_RESERVED)
        )

    # -- Entry ------------------------------------------------------------------

    def walk(self) -> None:
        self._walk_query(NameScope(), None)
        for ref in self.references:
            if ref.classification == Classification.UNRESOLVED:
                self.diagnostics.append(
                    Diagnostic.warning(
                        codes.UNRESOLVED_REFERENCE,
                        f"could not fully resolve '{ref.name}'",
                    )
                    .span(ref.span, "reported as a source table")
                    .note("unresolved references are kept so no dependency is dropped")
                )

    # -- Queries and groups -----------------------------------------------------

    def _walk_query(
        self,
        base: NameScope,
        opener: Token | None,
        *,
        branch: NameScope | None = None,
    ) -> None:
        """Walk until the `)` matching `opener`, or to the end of the statement.

        CTEs are defined in `base`. Aliases are bound in a branch scope below it
        that is replaced at every set operator, so `SELECT ... FROM t x UNION
        SELECT ... FROM x` still reports the second `x`.
        """
        if opener is not None and self.depth >= _MAX_DEPTH:
            self._flat_scan(base, opener)
            return

        scope = branch if branch is not None else base.child()
        self.depth += 1
        first = len(self.references)
        start = self.pos
        try:
            while True:
                token = self._peek()
                if token is None:
                    break
                if token.is_punct(")"):
                    self._next()
                    if opener is not None:
                        return
                    continue
                if token.is_punct("("):
                    self._next()
                    self._walk_group(scope, token)
                elif token.is_keyword(*_SET_OPERATORS):
                    self._next()
                    scope = base.child()
                elif token.is_keyword("WITH") and self._looks_like_cte():
                    self._walk_with(base)
                    start = self.pos
                elif token.is_keyword("FROM"):
                    self._next()
                    if not self._is_distinct_from():
                        self._walk_table_list(scope)
                elif token.is_keyword("JOIN"):
                    self._next()
                    self._walk_operand(scope)
                elif token.is_keyword("INTO"):
                    self._next()
                    self._walk_target(scope)
                elif token.is_keyword("OVERWRITE") and self._at_keyword("TABLE", offset=1):
                    self._next()
                    self._walk_target(scope)
                elif token.is_keyword("UPDATE") and self.pos == start:
                    self._next()
                    self._walk_target(scope)
                elif token.is_keyword("MERGE"):
                    self._next()
                    self.merge = True
                elif token.is_keyword("USING") and self.merge:
                    # Only the first USING names the merge source; later ones are join columns.
                    self._next()
                    self.merge = False
                    self._walk_operand(scope)
                elif token.is_keyword("CREATE"):
                    self._next()
                    self._walk_create(scope)
                else:
                    self._next()
        finally:
            self.depth -= 1

        if opener is not None:
            self._unclosed(opener, first)

    def _walk_group(self, scope: NameScope, opener: Token) -> None:
        """Dispatch a `(` that was just consumed: subquery or plain expression."""
        if self._at_keyword(*_SUBQUERY_STARTERS):
            self._walk_query(scope.child(), opener)
        else:
            self._walk_expression(scope, opener)

    def _walk_expression(self, scope: NameScope, opener: Token) -> None:
        """Skip to the matching `)`, descending only into nested groups."""
        if self.depth >= _MAX_DEPTH:
            self._flat_scan(scope, opener)
            return

        self.depth += 1
        first = len(self.references)
        try:
            while True:
                token = self._next()
                if token is None:
                    break
                if token.is_punct(")"):
                    return
                if token.is_punct("("):
                    self._walk_group(scope, token)
        finally:
            self.depth -= 1
        self._unclosed(opener, first)

    def _flat_scan(self, scope: NameScope, opener: Token, *, operand: bool = False) -> None:
        """Iterative fallback for pathologically deep nesting. No scoping.

        With `operand` set the group sits in a table position, so the first
        name inside it (past any further `(`) is read as a table.
        """
        first = len(self.references)
        depth = 1
        expect = operand
        while True:
            token = self._peek()
            if token is None:
                break
            if expect and self._at_candidate():
                expect = False
                parts, span, _ = self._read_name()
                if self._at_punct("("):
                    continue
                if len(parts) == 1 and scope.lookup(parts[0]) is not None:
                    continue
                self.references.append(
                    TableReference(parts, span, Classification.UNRESOLVED, self.statement)
                )
                continue
            self._next()
            if token.is_punct("("):
                depth += 1
            elif token.is_punct(")"):
                expect = False
                depth -= 1
                if depth == 0:
                    return
            else:
                expect = token.is_keyword("FROM", "JOIN")
        self._unclosed(opener, first)

    def _unclosed(self, opener: Token, first: int) -> None:
        """Context ran out inside `opener`: demote its sources to UNRESOLVED."""
        for i in range(first, len(self.references)):
            ref = self.references[i]
            if ref.classification == Classification.SOURCE:
                self.references[i] = replace(ref, classification=Classification.UNRESOLVED)
        self.diagnostics.append(
            Diagnostic.warning(codes.UNBALANCED_PARENS, "unclosed parenthesis")
            .span(Span(opener.offset, opener.end), "opened here and never closed")
        )

    # -- WITH -------------------------------------------------------------------

    def _looks_like_cte(self) -> bool:
        """WITH RECURSIVE ..., WITH name AS (..., or WITH name (cols) AS (...."""
        if self._at_keyword("RECURSIVE", offset=1):
            return True
        if not self._at_name(offset=1):
            return False
        if self._at_keyword("AS", offset=2):
            return self._at_punct("(", offset=3) or self._at_keyword(
                "NOT", "MATERIALIZED", offset=3,
            )
        if self._at_punct("(", offset=2):
            close = self._matching_close(self.pos + 2)
            return close is not None and close + 1 < len(self.tokens) and self.tokens[
                close + 1
            ].is_keyword("AS")
        return False

    def _matching_close(self, index: int) -> int | None:
        depth = 0
        for i in range(index, len(self.tokens)):
            token = self.tokens[i]
            if token.is_punct("("):
                depth += 1
            elif token.is_punct(")"):
                depth -= 1
                if depth == 0:
                    return i
        return None

    def _walk_with(self, scope: NameScope) -> None:
        with_token = self._next()
        if self._at_keyword("RECURSIVE"):
            self._next()

        while True:
            name = self._peek()
            if name is None or not name.is_name:
                self._malformed_cte(with_token)
                return
            self._next()
            # Registered before the body is walked so a recursive CTE resolves to itself.
            scope.define(name.value, Classification.CTE_DEFINITION)
            self.references.append(
                TableReference(
                    (name.value,),
                    Span(name.offset, name.end),
                    Classification.CTE_DEFINITION,
                    self.statement,
                )
            )
            if self._at_punct("("):
                self._walk_expression(scope, self._next())
            if not self._at_keyword("AS"):
                self._malformed_cte(with_token)
                return
            self._next()
            if self._at_keyword("NOT"):
                self._next()
            if self._at_keyword("MATERIALIZED"):
                self._next()
            if not self._at_punct("("):
                self._malformed_cte(with_token)
                return
            self._walk_query(scope.child(), self._next())
            if not self._at_punct(","):
                return
            self._next()

    def _malformed_cte(self, with_token: Token) -> None:
        self.diagnostics.append(
            Diagnostic.warning(codes.MALFORMED_CTE, "could not read WITH clause")
            .span(Span(with_token.offset, with_token.end), "clause starts here")
            .note("expected `<name> AS ( <query> )`")
        )

    # -- Table positions --------------------------------------------------------

    def _is_distinct_from(self) -> bool:
        """`a IS [NOT] DISTINCT FROM b` is a comparison, not a FROM clause."""
        before = self.pos - 2
        if before < 1 or not self.tokens[before].is_keyword("DISTINCT"):
            return False
        return self.tokens[before - 1].is_keyword("IS", "NOT")

    def _walk_table_list(self, scope: NameScope) -> None:
        """FROM a x, b, (SELECT ...) y"""
        while True:
            self._walk_operand(scope)
            if not self._at_punct(","):
                return
            self._next()

    def _walk_operand(self, scope: NameScope) -> None:
        """One read operand of FROM / JOIN / USING, plus its alias."""
        while self._at_keyword("LATERAL"):
            self._next()

        token = self._peek()
        if token is None:
            return

        if token.is_punct("("):
            self._next()
            if self.depth >= _MAX_DEPTH:
                self._flat_scan(scope, token, operand=True)
            elif self._at_keyword(*_SUBQUERY_STARTERS):
                self._walk_query(scope.child(), token)
            elif self._at_candidate() or self._at_punct("("):
                self._walk_join_tree(scope, token)
            else:
                self._walk_expression(scope, token)
            self._bind_alias(scope)
            return

        if not self._at_candidate():
            return

        parts, span, dangling = self._read_name()
        if self._at_punct("("):
            self.diagnostics.append(
                Diagnostic.info(
                    codes.TABLE_FUNCTION_SKIPPED,
                    f"'{'.'.join(parts)}' is a table function, not a table",
                ).span(span, "function call")
            )
            self._walk_expression(scope, self._next())
            self._bind_alias(scope)
            return

        self._record(parts, span, scope, dangling=dangling)
        self._bind_alias(scope)

    def _walk_join_tree(self, scope: NameScope, opener: Token) -> None:
        """FROM (a JOIN b ON ...): operands bind into the enclosing query's scope."""
        self.depth += 1
        try:
            self._walk_table_list(scope)
        finally:
            self.depth -= 1
        self._walk_query(scope, opener, branch=scope)

    def _walk_target(self, scope: NameScope) -> None:
        """Write target after INTO / OVERWRITE / UPDATE. A `(` after it is a column list."""
        if self._at_keyword("TABLE"):
            self._next()
        if not self._at_candidate():
            return
        parts, span, dangling = self._read_name()
        self._record(parts, span, scope, dangling=dangling)
        self._bind_alias(scope)

    def _walk_create(self, scope: NameScope) -> None:
        """CREATE TABLE|VIEW <name>: a target only when followed by AS <query>."""
        while self._at_keyword(*_CREATE_MODIFIERS):
            self._next()
        if not self._at_keyword("TABLE", "VIEW"):
            return
        self._next()
        if self._at_keyword("IF"):
            self._next()
            if self._at_keyword("NOT"):
                self._next()
            if self._at_keyword("EXISTS"):
                self._next()
        if not self._at_candidate():
            return
        parts, span, dangling = self._read_name()
        if self._has_query_body():
            self._record(parts, span, scope, dangling=dangling)

    def _has_query_body(self) -> bool:
        """Is there a top-level `AS <query>` ahead (CTAS / CREATE VIEW AS)?"""
        depth = 0
        for i in range(self.pos, len(self.tokens) - 1):
            token = self.tokens[i]
            if token.is_punct("("):
                depth += 1
            elif token.is_punct(")"):
                depth -= 1
            elif depth == 0 and token.is_keyword("AS"):
                following = self.tokens[i + 1]
                if following.is_keyword("SELECT", "WITH", "FROM") or following.is_punct("("):
                    return True
        return False

    # -- Names and aliases ------------------------------------------------------

    def _read_name(self) -> tuple[tuple[str, ...], Span, bool]:
        """Read `a`, `db.a`, `cat.db.a`. Returns (parts, span, dangling_dot)."""
        first = self._next()
        parts = [first.value]
        end = first.end
        dangling = False
        while self._at_punct("."):
            dot = self._next()
            part = self._peek()
            if part is not None and (part.is_name or part.is_keyword()):
                self._next()
                parts.append(part.value)
                end = part.end
            else:
                dangling = True
                end = dot.end
                break
        return tuple(parts), Span(first.offset, end), dangling

    def _record(
        self,
        parts: tuple[str, ...],
        span: Span,
        scope: NameScope,
        *,
        dangling: bool = False,
    ) -> None:
        if dangling:
            classification = Classification.UNRESOLVED
        else:
            hit = scope.lookup(parts[0]) if len(parts) == 1 else None
            classification = hit if hit is not None else Classification.SOURCE
        self.references.append(TableReference(parts, span, classification, self.statement))

    def _bind_alias(self, scope: NameScope) -> None:
        """`t x`, `t AS x`, `(...) AS x (c1, c2)`, `t TABLESAMPLE (...) x`."""
        if self._at_keyword("TABLESAMPLE"):
            self._next()
            if self._at_punct("("):
                self._walk_expression(scope, self._next())

        if self._at_keyword("AS"):
            if not self._at_name(offset=1):
                return
            self._next()

        if not self._at_name():
            return
        alias = self._next()
        scope.define(alias.value, Classification.ALIAS_DEFINITION)
        self.references.append(
            TableReference(
                (alias.value,),
                Span(alias.offset, alias.end),
                Classification.ALIAS_DEFINITION,
                self.statement,
            )
        )
        if self._at_punct("("):
            self._walk_expression(scope, self._next())
