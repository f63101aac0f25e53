from __future__ import annotations

import logging
import re
import threading
from pathlib import Path
from typing import Optional, Set, Union

from proforma.models.quotation import (
    KNOWN_STATUSES,
    Quotation,
    QuotationEmail,
    QuotationPdf,
    QuotationStatus,
    SendEmailRequest,
    normalize_status,
)
from proforma.services.quotation_service import QuotationService
from proforma.settings import get_settings
from proforma.storage.api_client import ApiError

log = logging.getLogger(__name__)


class TransitionError(RuntimeError):
    """
    The API refused (or never answered) a status change.
    The quotation keeps its previous status; the caller may retry.
    """

    def __init__(self, message: str, *, quotation_id: str, from_status: str, to_status: str) -> None:
        super().__init__(message)
        self.message = message
        self.quotation_id = quotation_id
        self.from_status = from_status
        self.to_status = to_status


def _slug(text: str) -> str:
    text = (text or "").strip()
    text = re.sub(r'[\\/:*?"<>|\n\r\t]', "_", text)
    text = re.sub(r"\s+", " ", text)
    return text or "proforma"


class QuotationWorkflow:
    """
    Status lifecycle of a quotation: draft -> sent -> accepted / rejected / cancelled.

    Transitions are not gated on the current status. Asking for the status a
    quotation already has is a no-op (no API call). Otherwise the new status is
    PATCHed and only set on the local object once the API has acknowledged it.
    """

    def __init__(self, quotations: Optional[QuotationService] = None,
                 exports_dir: Optional[Union[str, Path]] = None) -> None:
        self.quotations = quotations or QuotationService()
        self.exports_dir = Path(exports_dir) if exports_dir else get_settings().exports_dir
        self._pending: Set[str] = set()
        self._lock = threading.Lock()

    # ----- Transitions ----- #

    def set_status(self, q: Quotation, new_status: Union[str, QuotationStatus]) -> Quotation:
        target = normalize_status(new_status)
        if target not in KNOWN_STATUSES:
            raise ValueError(f"Unknown quotation status: {new_status!r}")
        prior = q.status
        if prior == target:
            log.debug("Quotation %s already %s", q.id, target)
            return q

        with self._lock:
            if q.id in self._pending:
                raise TransitionError(
                    f"A status change for quotation {q.number or q.id} is already in progress",
                    quotation_id=q.id, from_status=prior, to_status=target,
                )
            self._pending.add(q.id)
        try:
            self.quotations.update_quotation_fields(q.id, {"status": target})
        except ApiError as e:
            log.error("Quotation %s: %s -> %s refused: %s", q.id, prior, target, e.message)
            raise TransitionError(
                f"Could not change quotation {q.number or q.id} to {target}: {e.message}",
                quotation_id=q.id, from_status=prior, to_status=target,
            ) from e
        finally:
            with self._lock:
                self._pending.discard(q.id)

        q.status = target
        log.info("Quotation %s: %s -> %s", q.number or q.id, prior, target)
        return q

    def mark_sent(self, q: Quotation) -> Quotation:
        return self.set_status(q, QuotationStatus.SENT)

    def mark_accepted(self, q: Quotation) -> Quotation:
        return self.set_status(q, QuotationStatus.ACCEPTED)

    def mark_rejected(self, q: Quotation) -> Quotation:
        return self.set_status(q, QuotationStatus.REJECTED)

    def mark_cancelled(self, q: Quotation) -> Quotation:
        return self.set_status(q, QuotationStatus.CANCELLED)

    # ----- Side effects ----- #

    def send_quotation(self, q: Quotation, request: Optional[SendEmailRequest] = None) -> QuotationEmail:
        """
        Email the quotation, then move it to `sent` when delivery succeeded.

        A failed delivery record is returned without any status change. If the
        email went out but the status update fails, TransitionError is raised
        and the email record is already on q.emails.
        """
        req = request or self.quotations.default_email_request(q)
        email = self.quotations.send_email(q.id, req)
        q.emails.append(email)
        if not email.succeeded:
            log.warning("Quotation %s: email to %s not delivered (%s): %s",
                        q.id, email.to_email, email.status, email.error_detail or "")
            return email
        self.mark_sent(q)
        return email

    def generate_pdf(self, q: Quotation) -> QuotationPdf:
        pdf = self.quotations.generate_pdf(q.id)
        q.pdf_files.append(pdf)
        log.info("Quotation %s: PDF generated at %s", q.number or q.id, pdf.file_path)
        return pdf

    def download_pdf(self, q: Quotation, out_dir: Optional[Union[str, Path]] = None) -> Path:
        data = self.quotations.download_pdf(q.id)
        target_dir = Path(out_dir) if out_dir else self.exports_dir
        target_dir.mkdir(parents=True, exist_ok=True)
        pdf_path = target_dir / f"{_slug(q.number or q.id)}.pdf"
        pdf_path.write_bytes(data)
        return pdf_path
