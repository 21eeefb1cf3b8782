# beneficiary_api/models/__init__.py
from beneficiary_api.models.area import Area
from beneficiary_api.models.attendance import NESRecord, Redemption
from beneficiary_api.models.audit_log import AuditLog
from beneficiary_api.models.beneficiary import Beneficiary
from beneficiary_api.models.user import User

# Every collection Beanie must be initialised with.
DOCUMENT_MODELS = [Area, AuditLog, Beneficiary, NESRecord, Redemption, User]
