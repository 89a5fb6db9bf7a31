"""
Submission intake: payload parsing, payment check, file upload, persistence
and notification fan-out.
"""

import json
import logging
from typing import Any
from uuid import uuid4

from pydantic import TypeAdapter, ValidationError
from starlette.datastructures import UploadFile
from starlette.requests import Request

from .api_models import FileRecord, Submission, SubmittedFile
from .bindings import Bindings, epoch_millis, iso_timestamp
from .exceptions import BadRequestError, PaymentVerificationError, StoreOperationError
from .notifications import DeliveryResult, Notifier
from .verification import VerificationClient

logger = logging.getLogger(__name__)

SUBMISSION_LIST_LIMIT = 100

_amount_adapter = TypeAdapter(float | None)


def is_multipart(request: Request) -> bool:
    return "multipart/form-data" in request.headers.get("content-type", "")


async def upload_file(bindings: Bindings, upload: UploadFile) -> FileRecord:
    """Store one uploaded file under ``<epoch-millis>-<filename>``.

    Without an object store the metadata is still returned, with ``#`` as the
    URL and the content dropped.
    """
    filename = upload.filename or ""
    content = await upload.read()
    size = upload.size if upload.size is not None else len(content)
    key = f"{epoch_millis(bindings.now())}-{filename}"

    url = "#"
    if bindings.bucket is not None:
        await bindings.bucket.put(key, content, upload.content_type)
        url = f"/uploads/{key}"
    else:
        logger.warning("No object store configured; discarding content of %s", filename)

    return FileRecord(filename=filename, url=url, size=size, type=upload.content_type)


async def upload_first_file(bindings: Bindings, request: Request) -> FileRecord:
    form = await request.form()
    for _, value in form.multi_items():
        if isinstance(value, UploadFile):
            return await upload_file(bindings, value)
    raise BadRequestError("No file provided")


async def read_payment_fields(request: Request) -> dict[str, Any]:
    """Read ``paymentReference``/``amount`` from the body as JSON.

    A body that is not JSON, not an object, or already consumed by a
    multipart parse yields an empty mapping.
    """
    try:
        payload = await request.json()
    except (ValueError, RuntimeError) as e:
        logger.debug("No JSON payment fields: %s: %s", type(e).__name__, e)
        return {}
    return payload if isinstance(payload, dict) else {}


def parse_amount(value: Any) -> float | None:
    """Coerce ``amount`` to a number before any payment is verified."""
    try:
        return _amount_adapter.validate_python(value)
    except ValidationError as e:
        logger.info("Rejected submission with invalid amount %r", value)
        raise BadRequestError("Invalid amount") from e


class SubmissionProcessor:
    def __init__(
        self, bindings: Bindings, verifier: VerificationClient, notifier: Notifier
    ) -> None:
        self.bindings = bindings
        self.verifier = verifier
        self.notifier = notifier

    async def _read_form_data(
        self, request: Request
    ) -> tuple[dict[str, Any], list[SubmittedFile]]:
        if not is_multipart(request):
            payload = await request.json()
            form_data = payload.get("formData") if isinstance(payload, dict) else None
            return dict(form_data or {}), []

        data: dict[str, Any] = {}
        files: list[SubmittedFile] = []
        form = await request.form()
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                record = await upload_file(self.bindings, value)
                files.append(SubmittedFile(field=key, **record.model_dump()))
                data[key] = record.url
            else:
                data[key] = value
        return data, files

    async def _persist(self, submission: Submission) -> DeliveryResult:
        if self.bindings.db is None:
            return DeliveryResult(ok=False, error="No relational store configured")
        try:
            await self.bindings.db.execute(
                "INSERT INTO submissions "
                "(id, email, data, payment_ref, amount, status, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                [
                    submission.id,
                    submission.data.get("email") or "",
                    json.dumps(submission.data),
                    submission.payment_reference,
                    submission.amount,
                    submission.status,
                    submission.timestamp,
                ],
            )
        except Exception as e:
            return DeliveryResult.failure(e)
        return DeliveryResult.success()

    async def submit(self, request: Request) -> str:
        data, files = await self._read_form_data(request)
        payment = await read_payment_fields(request)
        payment_reference = payment.get("paymentReference")
        amount = parse_amount(payment.get("amount"))

        if payment_reference:
            payment_reference = str(payment_reference)
            if not await self.verifier.verify_payment(payment_reference):
                logger.info("Rejected submission with payment reference %s", payment_reference)
                raise PaymentVerificationError()
        else:
            payment_reference = None

        submission = Submission(
            id=str(uuid4()),
            data=data,
            files=files,
            payment_reference=payment_reference,
            amount=amount,
            timestamp=iso_timestamp(self.bindings.now()),
            status="paid" if payment_reference else "submitted",
        )

        persisted = await self._persist(submission)
        if not persisted.ok:
            # Discarded: the caller is told the submission succeeded.
            logger.error("Database error for submission %s: %s", submission.id, persisted.error)

        email = data.get("email")
        if self.notifier.email_enabled and email:
            sent = await self.notifier.send_confirmation_email(
                email, submission.id, submission.status
            )
            if not sent.ok:
                # Discarded: confirmation email is best-effort.
                logger.error("Email sending error for %s: %s", submission.id, sent.error)

        # Webhook failures are not caught here and surface as a 500.
        if self.notifier.webhook_enabled:
            await self.notifier.post_webhook(submission.model_dump(by_alias=True))

        logger.info("Accepted submission %s (%s)", submission.id, submission.status)
        return submission.id

    async def list_submissions(self) -> list[dict[str, Any]]:
        if self.bindings.db is None:
            logger.error("Submissions requested but no relational store is configured")
            raise StoreOperationError("Database error")
        try:
            rows = await self.bindings.db.fetch_all(
                "SELECT * FROM submissions ORDER BY created_at DESC LIMIT ?",
                [SUBMISSION_LIST_LIMIT],
            )
            return [{**row, "data": json.loads(row["data"])} for row in rows]
        except Exception as e:
            logger.exception("Get submissions error")
            raise StoreOperationError("Database error") from e
