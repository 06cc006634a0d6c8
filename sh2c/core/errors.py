"""
Translator exceptions.

Every error raised while translating a statement derives from
:class:`TranslationError`. The translator records these instead of
aborting, so one bad statement never hides the rest of the script.
"""

from typing import Any, Dict, Optional


class Sh2cError(Exception):
    """Base exception for sh2c errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class TranslationError(Sh2cError):
    """Raised when a statement cannot be translated"""

    def __init__(
        self,
        message: str,
        statement: Optional[str] = None,
        index: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.statement = statement
        self.index = index
        merged = {"statement": statement, "index": index}
        merged.update(details or {})
        super().__init__(message, merged)

    def at(self, statement: str, index: int) -> "TranslationError":
        """Attach the offending statement's location and return self."""
        self.statement = statement
        self.index = index
        self.details.update(statement=statement, index=index)
        return self


class StructuralError(TranslationError):
    """Raised when a block-closing keyword has no open block to close"""

    def __init__(self, keyword: str, message: Optional[str] = None):
        self.keyword = keyword
        super().__init__(
            message or f"'{keyword}' without a matching open block",
            statement=keyword,
            details={"keyword": keyword},
        )


class UnsupportedConstructError(TranslationError):
    """Raised when a statement matches no classification rule"""

    def __init__(self, statement: str):
        super().__init__(f"untranslated command: '{statement}'", statement=statement)


class UnsupportedOperatorError(TranslationError):
    """Raised for test or arithmetic operators outside the supported set"""

    def __init__(self, operator: str, expression: str, message: Optional[str] = None):
        self.operator = operator
        self.expression = expression
        super().__init__(
            message or f"unsupported test operator: '{operator}' in expression: '{expression}'",
            details={"operator": operator, "expression": expression},
        )
