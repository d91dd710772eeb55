import re
from dataclasses import dataclass
from typing import Optional

UNKNOWN = "Unknown"

# (family, pattern with version group) - first hit wins, so order matters:
# Edge/Opera/Samsung all also claim "Chrome" and "Safari".
_BROWSERS = (
    ("Edge", re.compile(r"(?:Edg|Edge|EdgA|EdgiOS)/([\d._]+)")),
    ("Opera", re.compile(r"(?:OPR|Opera)[/ ]([\d._]+)")),
    ("Samsung Internet", re.compile(r"SamsungBrowser/([\d._]+)")),
    ("Firefox", re.compile(r"(?:Firefox|FxiOS)/([\d._]+)")),
    ("Chrome", re.compile(r"(?:CriOS|Chrome)/([\d._]+)")),
    ("Safari", re.compile(r"Version/([\d._]+).*Safari/")),
    ("IE", re.compile(r"(?:MSIE |Trident/.*rv:)([\d._]+)")),
    ("Safari", re.compile(r"Safari/([\d._]+)")),
)

_PLATFORMS = (
    ("iOS", re.compile(r"iPhone|iPad|iPod")),
    ("Android", re.compile(r"Android")),
    ("Chrome OS", re.compile(r"CrOS")),
    ("Windows", re.compile(r"Windows")),
    ("OS X", re.compile(r"Macintosh|Mac OS X")),
    ("Linux", re.compile(r"Linux|X11")),
)

_TABLET_RE = re.compile(r"iPad|Tablet|PlayBook|Kindle|Silk/", re.IGNORECASE)
_MOBILE_RE = re.compile(r"Mobi|iPhone|iPod|Windows Phone|BlackBerry", re.IGNORECASE)


@dataclass(frozen=True)
class AgentInfo:
    browser_name: str = UNKNOWN
    browser_version: str = ""
    platform: str = UNKNOWN
    device_type: str = "desktop"

    @property
    def device_name(self) -> str:
        name = f"{self.browser_name} on {self.platform}"
        if self.device_type == "mobile":
            return f"{name} Mobile"
        if self.device_type == "tablet":
            return f"{name} Tablet"
        return name


def _device_type(user_agent: str, platform: str) -> str:
    if _TABLET_RE.search(user_agent):
        return "tablet"
    if platform == "Android":
        # Android tablets leave "Mobile" out of the UA
        return "mobile" if "Mobile" in user_agent else "tablet"
    if _MOBILE_RE.search(user_agent):
        return "mobile"
    return "desktop"


def parse_user_agent(user_agent: Optional[str]) -> AgentInfo:
    """Browser family/version, platform and form factor. Never raises."""
    if not user_agent:
        return AgentInfo()

    browser_name, browser_version = UNKNOWN, ""
    for family, pattern in _BROWSERS:
        match = pattern.search(user_agent)
        if match:
            browser_name, browser_version = family, match.group(1).replace("_", ".")
            break

    platform = next(
        (name for name, pattern in _PLATFORMS if pattern.search(user_agent)),
        UNKNOWN,
    )

    return AgentInfo(
        browser_name=browser_name,
        browser_version=browser_version,
        platform=platform,
        device_type=_device_type(user_agent, platform),
    )
