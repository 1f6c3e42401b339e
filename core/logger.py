import logging

log = logging.getLogger("risk_guard")
