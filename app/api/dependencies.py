"""
app/api/dependencies.py

Shared FastAPI dependencies for caller identity and upload validation.

Authentication happens at the gateway, which forwards the verified user id and
role in the ``X-User-Id`` and ``X-User-Role`` headers.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Depends, File, Header, HTTPException, UploadFile, status

from app.config import get_csv_upload_settings

CSV_CONTENT_TYPES = {
    "text/csv",
    "application/csv",
    "application/vnd.ms-excel",
}


class Role:
    ADMIN = "Admin"
    EXECUTIVE = "Executive"
    PM = "PM"
    TPM = "TPM"
    EM = "EM"
    SRE = "SRE"


ALL_ROLES = frozenset({Role.ADMIN, Role.EXECUTIVE, Role.PM, Role.TPM, Role.EM, Role.SRE})
DATA_ACCESS_ROLES = frozenset({Role.ADMIN, Role.TPM, Role.PM, Role.EM, Role.SRE})
HISTORY_ADMIN_ROLES = frozenset({Role.ADMIN, Role.TPM})


@dataclass(frozen=True)
class CurrentUser:
    user_id: str
    role: str

    @property
    def can_view_all_uploads(self) -> bool:
        return self.role in HISTORY_ADMIN_ROLES


def get_current_user(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> CurrentUser:
    user_id = (x_user_id or "").strip()
    role = (x_user_role or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required.",
        )
    if role not in ALL_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Unknown role: {role or '<none>'}",
        )
    return CurrentUser(user_id=user_id, role=role)


def require_roles(allowed: frozenset[str]) -> Callable[[CurrentUser], CurrentUser]:
    """
    Build a dependency that only admits callers holding one of ``allowed``.
    """

    def _dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions.",
            )
        return user

    return _dependency


require_data_access = require_roles(DATA_ACCESS_ROLES)


def get_csv_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is a CSV by extension or MIME type.
    """

    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").strip().lower()

    is_csv_filename = filename.endswith(".csv")
    is_csv_content_type = content_type in CSV_CONTENT_TYPES

    if not is_csv_filename and not is_csv_content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only CSV files are allowed.",
        )

    return file


def read_csv_upload(file: UploadFile = Depends(get_csv_upload)) -> bytes:
    """
    Read the upload into memory, rejecting files over the configured size limit.
    """

    max_bytes = get_csv_upload_settings().max_file_size_bytes
    try:
        file.file.seek(0)
        content = file.file.read(max_bytes + 1)
    finally:
        file.file.close()

    if len(content) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"CSV file exceeds the {max_bytes} byte limit.",
        )
    return content
