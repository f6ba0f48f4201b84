import logging

from fastapi import APIRouter, Depends, File, UploadFile

from ..core.auth import forbid_roles
from ..core.errors import ValidationError
from ..dependencies import get_import_service
from ..models.enums import Role
from ..models.user import User
from ..services.import_service import ImportService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/import", tags=["Bulk import"])


@router.post("/{kind}")
def import_csv(
    kind: str,
    file: UploadFile = File(...),
    service: ImportService = Depends(get_import_service),
    current_user: User = Depends(forbid_roles(Role.GUEST)),
):
    """
    Upload a CSV of `inventory` or `requirement` rows

    Rows that already carry an id are skipped. Returns counts of created
    and skipped rows plus the errors of each failed one.
    """
    content = file.file.read()
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError:
        raise ValidationError(["file: CSV must be UTF-8 encoded"])

    logger.info(f"Bulk {kind} upload {file.filename!r} from {current_user.user_id}")
    return service.import_csv(kind, text, current_user.user_id).to_dict()
