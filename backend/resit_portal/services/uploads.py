"""
Upload staging - writes uploaded files to UPLOAD_DIR and reads CSV rows.

Staged files are always removed once the batch that consumed them has
finished, whether it succeeded or not.
"""

import csv
import io
import os
import uuid
from contextlib import contextmanager
from typing import List

from fastapi import UploadFile

from resit_portal.errors import ValidationError
from resit_portal.logging_config import get_logger, log_with_context

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "./uploads")

logger = get_logger("http")


def save_upload(upload: UploadFile, upload_dir: str = None) -> str:
    """Copy an uploaded file into the upload directory and return its path."""
    target_dir = upload_dir or UPLOAD_DIR
    os.makedirs(target_dir, exist_ok=True)
    suffix = os.path.splitext(upload.filename or "")[1] or ".csv"
    path = os.path.join(target_dir, "{}{}".format(uuid.uuid4().hex, suffix))
    with open(path, "wb") as out:
        while True:
            chunk = upload.file.read(1024 * 1024)
            if not chunk:
                break
            out.write(chunk)
    log_with_context(logger, "DEBUG", "Staged upload {} at {}".format(upload.filename, path))
    return path


def remove_upload(path: str):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


@contextmanager
def staged_upload(upload: UploadFile, upload_dir: str = None):
    """Stage an upload for the duration of the block, then delete it."""
    path = save_upload(upload, upload_dir)
    try:
        yield path
    finally:
        remove_upload(path)


def read_csv_rows(path: str, required: List[str] = None, any_of: List[str] = None) -> List[dict]:
    """
    Read a CSV file into a list of dicts keyed by normalized header names.

    Raises ValidationError before any row is returned when the file is
    not UTF-8 text or lacks the required columns.
    """
    try:
        with open(path, "rb") as f:
            text = f.read().decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError("file is not a UTF-8 CSV file")

    reader = csv.DictReader(io.StringIO(text))
    headers = [(h or "").strip().lower() for h in (reader.fieldnames or [])]
    if not headers:
        raise ValidationError("file is empty")

    missing = [column for column in (required or []) if column not in headers]
    if missing:
        raise ValidationError("missing column(s): {}".format(", ".join(missing)))
    if any_of and not any(column in headers for column in any_of):
        raise ValidationError("file needs one of the columns: {}".format(", ".join(any_of)))

    try:
        return [row for row in reader]
    except csv.Error as e:
        raise ValidationError("could not parse CSV: {}".format(e))
