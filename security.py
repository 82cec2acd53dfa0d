import os
from typing import Optional, Sequence

import bcrypt
from fastapi import Request
from user_agents import parse as parse_user_agent

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))

# ua-parser reports unknown devices/systems as family "Other" with no version
UNKNOWN_TOKEN = "Other 0.0.0"

PROXY_IP_HEADERS = ("x-forwarded-for", "x-real-ip", "x-client-ip")


def _secret(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes
    return password.encode("utf-8")[:72]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_secret(password), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(_secret(password), password_hash.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False


def format_token(family: Optional[str], version: Sequence = ()) -> str:
    """Label such as 'Chrome 120.0.6099'; missing version parts read as 0"""
    parts = [str(v) for v in tuple(version)[:3] if v != ""]
    parts += ["0"] * (3 - len(parts))
    return f"{family or 'Other'} {'.'.join(parts)}"


def describe_user_agent(ua_string: Optional[str]) -> dict:
    """Reduce a User-Agent header to the device and browser labels kept in login history"""
    agent = parse_user_agent(ua_string or "")

    device = format_token(agent.device.family)
    os_token = format_token(agent.os.family, agent.os.version)
    browser = format_token(agent.browser.family, agent.browser.version)

    device_label = "Other"
    if device and device != UNKNOWN_TOKEN:
        device_label = device
    elif os_token and os_token != UNKNOWN_TOKEN:
        device_label = os_token

    return {"device": device_label, "browser": browser or "Unknown"}


def client_ip(request: Request) -> Optional[str]:
    for header in PROXY_IP_HEADERS:
        value = request.headers.get(header)
        if value:
            # X-Forwarded-For is "client, proxy1, proxy2"
            return value.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None
