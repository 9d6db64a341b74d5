"""
Telegram Mini App init-data verification.

The Mini App client forwards ``Telegram.WebApp.initData``: a URL-encoded query
string signed by the bot token. Verification follows the Telegram algorithm:

    secret_key = HMAC_SHA256(key="WebAppData", msg=bot_token)
    hash       = hex(HMAC_SHA256(key=secret_key, msg=data_check_string))

where ``data_check_string`` is every received ``key=value`` pair except
``hash``, sorted by key and joined with line feeds.
"""

import hashlib
import hmac
import json
import logging
import time
from urllib.parse import parse_qsl

logger = logging.getLogger(__name__)


class InvalidInitData(Exception):
    """Raised when init data is malformed, unsigned, badly signed or stale."""


def build_data_check_string(fields):
    """Join ``key=value`` pairs (without ``hash``) sorted by key."""
    return "\n".join(
        f"{key}={value}" for key, value in sorted(fields.items()) if key != "hash"
    )


def compute_hash(fields, bot_token):
    """Return the hex HMAC-SHA256 signature Telegram would attach to ``fields``."""
    secret_key = hmac.new(
        b"WebAppData", bot_token.encode("utf-8"), hashlib.sha256
    ).digest()
    return hmac.new(
        secret_key,
        build_data_check_string(fields).encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def verify_init_data(init_data, bot_token, max_age=0, now=None):
    """
    Validate a raw init-data string and return the Telegram user payload.

    Args:
        init_data (str): Raw ``initData`` query string from the client
        bot_token (str): Bot token the data was signed with
        max_age (int): Maximum accepted age of ``auth_date`` in seconds, 0 disables
        now (float, optional): Current unix time, injectable for tests

    Returns:
        dict: Decoded ``user`` object (``id``, ``first_name``, ``last_name``,
            ``username``, ``photo_url``...)

    Raises:
        InvalidInitData: On any structural, signature or freshness failure
    """
    if not bot_token:
        raise InvalidInitData("Bot token is not configured")
    if not init_data:
        raise InvalidInitData("Init data is empty")

    fields = dict(parse_qsl(init_data, keep_blank_values=True))
    received_hash = fields.get("hash")
    if not received_hash:
        raise InvalidInitData("Init data is not signed")

    expected_hash = compute_hash(fields, bot_token)
    if not hmac.compare_digest(expected_hash, received_hash):
        raise InvalidInitData("Init data signature mismatch")

    if max_age:
        try:
            auth_date = int(fields.get("auth_date", ""))
        except ValueError:
            raise InvalidInitData("Init data has no valid auth_date")
        current = time.time() if now is None else now
        if current - auth_date > max_age:
            raise InvalidInitData("Init data has expired")

    try:
        user_payload = json.loads(fields.get("user", ""))
    except ValueError:
        raise InvalidInitData("Init data carries no user object")

    if not isinstance(user_payload, dict) or "id" not in user_payload:
        raise InvalidInitData("Init data user object has no id")

    return user_payload
