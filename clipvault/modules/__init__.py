"""Domain modules package."""

from clipvault.modules.admin import models as admin_models  # noqa: F401
from clipvault.modules.audit import models as audit_models  # noqa: F401
from clipvault.modules.identity import models as identity_models  # noqa: F401
from clipvault.modules.ledger import models as ledger_models  # noqa: F401
from clipvault.modules.submissions import models as submissions_models  # noqa: F401
