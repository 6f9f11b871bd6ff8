"""Capture of engine warnings and failures for one converter instance."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from osgeo import gdal

from .models import DiagnosticMessage, Severity

logger = logging.getLogger(__name__)


class DiagnosticChannel:
    """Holds the message that explains the outcome of the last operation.

    The first failure recorded wins; when no failure occurs the most recent
    warning is reported instead.
    """

    def __init__(self) -> None:
        self._failure: DiagnosticMessage | None = None
        self._warning: DiagnosticMessage | None = None

    def reset(self) -> None:
        self._failure = None
        self._warning = None

    def record_failure(self, text: str) -> None:
        if self._failure is None and text:
            self._failure = DiagnosticMessage(text=text, severity=Severity.FAILURE)

    def record_warning(self, text: str) -> None:
        if text:
            self._warning = DiagnosticMessage(text=text, severity=Severity.WARNING)

    @property
    def message(self) -> DiagnosticMessage | None:
        return self._failure or self._warning

    @property
    def has_failure(self) -> bool:
        return self._failure is not None

    def last_error(self) -> str:
        message = self.message
        return message.text if message else ""

    def synthesize_failure(
        self,
        driver_id: str,
        source_crs: str | None = None,
        target_crs: str | None = None,
    ) -> None:
        """Record a fallback explanation for an empty result nobody explained."""
        if self.has_failure:
            return
        self.record_failure(
            f"Conversion with driver '{driver_id}' produced no output "
            f"(source CRS: {source_crs or 'none'}, target CRS: {target_crs or 'none'})"
        )

    def handle(self, err_class: int, err_no: int, err_msg: str) -> None:
        """GDAL error handler callback."""
        text = (err_msg or "").strip()
        if err_class in (gdal.CE_Failure, gdal.CE_Fatal):
            logger.debug("GDAL failure %s: %s", err_no, text)
            self.record_failure(text)
        elif err_class == gdal.CE_Warning:
            logger.debug("GDAL warning %s: %s", err_no, text)
            self.record_warning(text)

    @contextmanager
    def capture(self) -> Iterator[DiagnosticChannel]:
        """Route GDAL messages raised inside the block into this channel."""
        gdal.PushErrorHandler(self.handle)
        try:
            yield self
        finally:
            gdal.PopErrorHandler()
