# =============================================================================
# wsconn -- Package Logger
# =============================================================================

import logging

logger = logging.getLogger("wsconn")
logger.addHandler(logging.NullHandler())
