"""Server-rendered pages.

This package defines the primary Flask blueprint (`bp`) and imports the split
route modules so their @bp.route decorators are registered.
"""

from flask import Blueprint

bp = Blueprint("main", __name__)

# These imports must come AFTER `bp` is defined.
from . import auth  # noqa: F401,E402
from . import dashboard  # noqa: F401,E402
from . import claims  # noqa: F401,E402
from . import leads  # noqa: F401,E402
from . import vendors  # noqa: F401,E402
from . import trades  # noqa: F401,E402
from . import reports  # noqa: F401,E402
