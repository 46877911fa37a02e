"""Structured errors with stable codes for CLI and programmatic callers."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Stable error codes surfaced through --json-errors."""

    NODE_NOT_FOUND = "NODE_NOT_FOUND"
    AMBIGUOUS_MATCH = "AMBIGUOUS_MATCH"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    VAULT_NOT_CONFIGURED = "VAULT_NOT_CONFIGURED"
    PARSE_ERROR = "PARSE_ERROR"
    FILE_READ_ERROR = "FILE_READ_ERROR"


def format_error_json(code: str, message: str, details: dict | None = None) -> str:
    """Format an error as a JSON document."""
    error: dict[str, dict[str, object]] = {"error": {"code": code, "message": message}}
    if details:
        error["error"]["details"] = details
    return json.dumps(error)


class NotegraphError(Exception):
    """Error carrying a stable code, a message and optional details."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_json(self) -> str:
        return format_error_json(self.code.value, self.message, self.details or None)

    @classmethod
    def node_not_found(cls, identifier: str, suggestion: str | None = None) -> NotegraphError:
        details: dict[str, Any] = {"identifier": identifier}
        if suggestion:
            details["suggestion"] = suggestion
        return cls(ErrorCode.NODE_NOT_FOUND, f"Node not found: {identifier}", details)

    @classmethod
    def ambiguous_match(cls, identifier: str, candidates: list[str]) -> NotegraphError:
        return cls(
            ErrorCode.AMBIGUOUS_MATCH,
            f"Ambiguous identifier '{identifier}' matches {len(candidates)} notes",
            {
                "identifier": identifier,
                "candidates": candidates,
                "suggestion": "Use the note path instead of its title",
            },
        )

    @classmethod
    def invalid_argument(cls, name: str, value: Any, requirement: str) -> NotegraphError:
        return cls(
            ErrorCode.INVALID_ARGUMENT,
            f"Invalid {name}={value!r}: {requirement}",
            {"argument": name, "value": value},
        )

    @classmethod
    def vault_not_configured(cls, message: str) -> NotegraphError:
        return cls(
            ErrorCode.VAULT_NOT_CONFIGURED,
            message,
            {"suggestion": "Set NOTEGRAPH_VAULT_ROOT or add a .ngconfig with vault_path"},
        )

    @classmethod
    def parse_error(cls, path: str, message: str) -> NotegraphError:
        return cls(
            ErrorCode.PARSE_ERROR,
            f"Cannot parse {path}: {message}",
            {"path": path, "suggestion": "Fix the note's frontmatter or run without --strict to skip it"},
        )
