"""JSON API blueprint, mounted at /api.

Every endpoint except /api/health authenticates with a bearer token (or the
browser session) and answers `{"ok": true, ...}` or the error shape produced
by `claimdesk.errors`.
"""

from flask import Blueprint

api_bp = Blueprint("api", __name__)

# These imports must come AFTER `api_bp` is defined.
from . import claims  # noqa: F401,E402
from . import ai  # noqa: F401,E402
from . import documents  # noqa: F401,E402
from . import integrations  # noqa: F401,E402
from . import leads  # noqa: F401,E402
from . import misc  # noqa: F401,E402
