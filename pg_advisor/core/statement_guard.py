"""Validation of corrective statements before they reach the database"""
import re

import sqlglot
from sqlglot import exp
from sqlglot.errors import ParseError, TokenError

from pg_advisor.core.errors import StatementValidationError


ALLOWED_KINDS = {"INDEX"}

# Comments never appear in rendered statements
DANGEROUS_PATTERNS = [
    r"--",
    r"/\*",
]


class StatementGuard:
    """Only a single CREATE INDEX / DROP INDEX statement may pass."""

    def validate(self, sql: str) -> str:
        """
        Returns: the statement, stripped
        Raises: StatementValidationError if the statement is not plain index DDL
        """
        sql = (sql or "").strip()
        if not sql:
            raise StatementValidationError("Empty statement")

        self._check_dangerous_patterns(sql)

        try:
            parsed = [node for node in sqlglot.parse(sql.rstrip(";"), read="postgres") if node is not None]
        except (ParseError, TokenError) as e:
            raise StatementValidationError(f"Failed to parse statement: {e}") from e

        if len(parsed) != 1:
            raise StatementValidationError(f"Expected exactly one statement, got {len(parsed)}")

        node = parsed[0]
        if not isinstance(node, (exp.Create, exp.Drop)):
            raise StatementValidationError(f"Forbidden operation: {type(node).__name__}")

        kind = str(node.args.get("kind") or "").upper()
        if kind not in ALLOWED_KINDS:
            raise StatementValidationError(f"Forbidden object kind: {kind or 'unknown'}")

        if isinstance(node, exp.Drop) and node.args.get("cascade"):
            raise StatementValidationError("DROP ... CASCADE is not allowed")

        return sql

    def _check_dangerous_patterns(self, sql: str) -> None:
        # Quoted identifiers may legitimately contain anything; only look outside them.
        unquoted = re.sub(r'"(?:[^"]|"")*"', '""', sql)
        for pattern in DANGEROUS_PATTERNS:
            if re.search(pattern, unquoted):
                raise StatementValidationError(f"Dangerous pattern detected: {pattern}")
        if ";" in unquoted.rstrip().rstrip(";"):
            raise StatementValidationError("Multiple statements are not allowed")
