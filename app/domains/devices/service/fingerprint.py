"""
Device fingerprinting for the single-device-login gate.

This is a coarse, best-effort recognition of a browser (UX-level device
limiting), not an authentication control. Nothing in here raises: missing
headers only make the fingerprint looser.
"""
import hashlib
import ipaddress
import json
import re
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Request

from app.core.config import settings
from app.domains.devices.service.user_agent import UNKNOWN, AgentInfo, parse_user_agent

DEVICE_GUID_HEADER = "X-Device-GUID"
DEVICE_GUID_COOKIE = "device_guid"

_VERSION_RE = re.compile(r"(\d+)(?:[._]\d+)+")
_SPACES_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class DevicePolicy:
    """Similarity thresholds; heuristic, so kept configurable."""
    allow_version_drift: bool = True
    match_device_type: bool = True
    ipv4_prefix: int = 24
    ipv6_prefix: int = 64
    match_unknown_agents: bool = False

    @classmethod
    def from_settings(cls) -> "DevicePolicy":
        return cls(
            allow_version_drift=settings.DEVICE_ALLOW_VERSION_DRIFT,
            match_device_type=settings.DEVICE_MATCH_DEVICE_TYPE,
            ipv4_prefix=settings.DEVICE_IPV4_PREFIX,
            ipv6_prefix=settings.DEVICE_IPV6_PREFIX,
            match_unknown_agents=settings.DEVICE_MATCH_UNKNOWN_AGENTS,
        )


@dataclass(frozen=True)
class DeviceContext:
    """The request fields the fingerprint is built from."""
    user_agent: str = ""
    accept_language: str = ""
    accept_encoding: str = ""
    ip_address: str = ""
    device_guid: Optional[str] = None

    @classmethod
    def from_request(cls, request: Request, trust_forwarded_for: Optional[bool] = None) -> "DeviceContext":
        if trust_forwarded_for is None:
            trust_forwarded_for = settings.TRUST_FORWARDED_FOR

        headers = request.headers
        ip_address = ""
        forwarded = headers.get("x-forwarded-for", "")
        if trust_forwarded_for and forwarded:
            ip_address = forwarded.split(",")[0].strip()
        elif request.client is not None:
            ip_address = request.client.host or ""

        guid = headers.get(DEVICE_GUID_HEADER) or request.cookies.get(DEVICE_GUID_COOKIE)

        return cls(
            user_agent=headers.get("user-agent", ""),
            accept_language=headers.get("accept-language", ""),
            accept_encoding=headers.get("accept-encoding", ""),
            ip_address=ip_address,
            device_guid=guid.strip()[:128] if guid and guid.strip() else None,
        )


@dataclass(frozen=True)
class DeviceFingerprint:
    device_id: str
    agent: AgentInfo
    context: DeviceContext
    components: dict = field(default_factory=dict)

    def compatible_id(self, user_id: int) -> str:
        return compatible_device_id(self.agent, user_id)


# -------------------------------------------------
# Normalisation
# -------------------------------------------------
def normalize_user_agent(user_agent: str) -> str:
    """Version numbers reduced to their major part: ``26_1`` -> ``26``."""
    reduced = _VERSION_RE.sub(r"\1", user_agent or "")
    return _SPACES_RE.sub(" ", reduced).strip().lower()


def normalize_language(accept_language: str) -> str:
    first = (accept_language or "").split(",")[0]
    return first.split(";")[0].strip().lower()


def normalize_encoding(accept_encoding: str) -> str:
    codings = {
        part.split(";")[0].strip().lower()
        for part in (accept_encoding or "").split(",")
    }
    return ",".join(sorted(c for c in codings if c))


def network_of(ip_address: str, ipv4_prefix: int = 24, ipv6_prefix: int = 64) -> str:
    """Address truncated to its network; unparsable values are used verbatim."""
    if not ip_address:
        return ""
    try:
        address = ipaddress.ip_address(ip_address)
    except ValueError:
        return ip_address.strip().lower()
    prefix = ipv4_prefix if address.version == 4 else ipv6_prefix
    try:
        return str(ipaddress.ip_network(f"{address}/{prefix}", strict=False))
    except ValueError:
        return str(address)


def _sha256(payload) -> str:
    raw = payload if isinstance(payload, str) else json.dumps(payload, sort_keys=True)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


# -------------------------------------------------
# Fingerprints
# -------------------------------------------------
def compute_fingerprint(context: DeviceContext, policy: Optional[DevicePolicy] = None) -> DeviceFingerprint:
    policy = policy or DevicePolicy()
    agent = parse_user_agent(context.user_agent)

    components = {
        "ua": normalize_user_agent(context.user_agent),
        "language": normalize_language(context.accept_language),
        "encoding": normalize_encoding(context.accept_encoding),
        "network": network_of(context.ip_address, policy.ipv4_prefix, policy.ipv6_prefix),
    }

    # a persistent client identifier beats anything derived from headers
    if context.device_guid:
        device_id = _sha256("guid:" + context.device_guid)
    else:
        device_id = _sha256(components)

    return DeviceFingerprint(
        device_id=device_id,
        agent=agent,
        context=context,
        components=components,
    )


def compatible_device_id(agent: AgentInfo, user_id: int) -> str:
    """Version-free identity (family + platform + form factor), scoped to one user."""
    return _sha256({
        "browser": agent.browser_name,
        "platform": agent.platform,
        "device_type": agent.device_type,
        "user_id": user_id,
    })


def _unknown(*fields: Optional[str]) -> bool:
    return any(not value or value.lower() == UNKNOWN.lower() for value in fields)


def match_device(fingerprint: DeviceFingerprint, device, policy: Optional[DevicePolicy] = None) -> Optional[str]:
    """
    How `fingerprint` matches a stored device row, or None.

    "exact"      same device_id
    "guid"       both sides carry the same client identifier
    "compatible" same browser family and platform (and form factor), any version;
                 never for an unrecognised agent unless the policy allows it
    """
    policy = policy or DevicePolicy()

    if device.device_id == fingerprint.device_id:
        return "exact"

    incoming_guid = fingerprint.context.device_guid
    if incoming_guid and device.device_guid:
        return "guid" if incoming_guid == device.device_guid else None

    if not policy.allow_version_drift:
        return None

    agent = fingerprint.agent
    if not policy.match_unknown_agents and (
        _unknown(device.browser_name, device.platform) or _unknown(agent.browser_name, agent.platform)
    ):
        return None
    if (device.browser_name or "").lower() != agent.browser_name.lower():
        return None
    if (device.platform or "").lower() != agent.platform.lower():
        return None
    if policy.match_device_type and (device.device_type or "desktop") != agent.device_type:
        return None
    return "compatible"
