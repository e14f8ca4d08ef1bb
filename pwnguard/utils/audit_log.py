"""
Audit logging for password-breach events.
Writes JSON lines to AUDIT_LOG_DIR/audit.log. Plaintext passwords are never logged.
"""

import logging
import os
from datetime import datetime, timezone
from flask import current_app, request, has_request_context
from pythonjsonlogger.json import JsonFormatter


AUDIT_LOGGER_NAME = 'pwnguard.audit'
SENSITIVE_KEYS = ('password', 'token', 'secret')


def _audit_logger():
    """Return the audit logger, attaching a JSON file handler for the current log dir."""
    logger = logging.getLogger(AUDIT_LOGGER_NAME)
    logs_dir = current_app.config.get('AUDIT_LOG_DIR')
    filename = os.path.abspath(os.path.join(logs_dir, 'audit.log'))

    for handler in list(logger.handlers):
        if getattr(handler, 'baseFilename', None) == filename:
            return logger
        # AUDIT_LOG_DIR changed (another app instance)
        logger.removeHandler(handler)
        handler.close()

    os.makedirs(logs_dir, exist_ok=True)
    handler = logging.FileHandler(filename, encoding='utf-8')
    handler.setFormatter(JsonFormatter('%(levelname)s %(name)s %(message)s'))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    return logger


def _mask(additional_info):
    masked = {}
    for k, v in (additional_info or {}).items():
        if k.lower() in SENSITIVE_KEYS:
            masked[k] = '***'
        else:
            masked[k] = v
    return masked


def build_log_record(action: str, description: str, subject=None, additional_info: dict = None):
    record = {
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'action': action,
        'description': description,
        'subject_type': None,
        'subject_id': None,
        'ip': None,
        'details': _mask(additional_info) or None,
    }

    if has_request_context():
        record['ip'] = request.remote_addr

    if subject is not None:
        record['subject_type'] = subject.__class__.__name__
        record['subject_id'] = getattr(subject, 'id', None)

    return record


def log_action(action: str, description: str, subject=None, additional_info: dict = None):
    """Generic audit action writer.

    Example: log_action('PWNED_LOOKUP_ERROR', 'Lookup timed out', subject=user)
    """
    rec = build_log_record(action, description, subject=subject, additional_info=additional_info)
    _audit_logger().info(description, extra=rec)
    return rec


def log_pwned_password_attempt(user, count: int):
    return log_action('PWNED_PASSWORD_ATTEMPT',
                      f'Password checked against breach corpus for user: {user.username}',
                      subject=user, additional_info={'count': count})


def log_pwned_lookup_error(user, error: Exception):
    return log_action('PWNED_LOOKUP_ERROR',
                      f'Breach lookup failed for user: {user.username}',
                      subject=user, additional_info={'error': error.__class__.__name__})
