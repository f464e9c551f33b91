"""Shared tooling for Snowflake provisioners."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, Optional, Sequence

from snowflake.snowpark import Session

from snowflake_governance.core.exceptions import ConfigurationError
from snowflake_governance.utils.logging import StructuredLogger, get_logger


@dataclass(frozen=True)
class SqlExecutionResult:
    """Envelope for Snowflake SQL execution metadata."""

    query_id: Optional[str]
    rows: Sequence[Any]


class BaseProvisioner:
    """Run DDL against a Snowpark session, wrapping failures."""

    def __init__(self, session: Session) -> None:
        """Initialize `BaseProvisioner` with a Snowflake session."""
        if session is None:
            raise ValueError("Session cannot be None")
        self.session = session
        self.logger: StructuredLogger = get_logger(self.__class__.__module__)

    def _execute_sql(
        self,
        sql: str,
        *,
        context: Optional[Dict[str, Any]] = None,
    ) -> SqlExecutionResult:
        """Execute SQL capturing the query id and wrapping ConfigurationError."""
        self.logger.debug("Executing SQL", extra={"sql": sql, "context": context})
        try:
            dataframe = self.session.sql(sql)
            rows = dataframe.collect()
        except Exception as exc:
            error_context = {"sql": sql}
            if context:
                error_context.update(context)
            query_id = getattr(exc, "sfqid", None)
            if query_id:
                error_context["query_id"] = query_id
            raise ConfigurationError(
                "Snowflake execution failed",
                context=error_context,
                original_error=exc,
            ) from exc
        return SqlExecutionResult(
            query_id=getattr(dataframe, "_query_id", None), rows=rows
        )

    @contextmanager
    def transactional(
        self, *, rollback: Optional[Iterable[str]] = None
    ) -> Iterator[None]:
        """Best-effort scope executing ``rollback`` statements on error.

        ``rollback`` is read when the error happens, so a list the caller
        appends to inside the block undoes exactly the steps that ran.
        """
        try:
            yield
        except Exception:
            if rollback:
                for statement in list(rollback)[::-1]:
                    try:
                        self.session.sql(statement).collect()
                    except Exception:
                        self.logger.warning(
                            "Rollback statement failed",
                            extra={"statement": statement},
                        )
            raise
