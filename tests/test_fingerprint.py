import pytest

from app.domains.devices.service.fingerprint import (
    DeviceContext,
    DevicePolicy,
    compute_fingerprint,
    match_device,
    network_of,
    normalize_encoding,
    normalize_language,
    normalize_user_agent,
)
from app.domains.devices.service.user_agent import parse_user_agent
from app.models.user_device import UserDevice

from tests.helpers import (
    ANDROID_CHROME,
    IPAD_IOS_26_0,
    IPHONE_IOS_26_0,
    IPHONE_IOS_26_1,
    MAC_FIREFOX,
    MAC_SAFARI,
    WINDOWS_CHROME,
    WINDOWS_EDGE,
)


def _context(user_agent, ip="203.0.113.10", guid=None):
    return DeviceContext(
        user_agent=user_agent,
        accept_language="en-US,en;q=0.9",
        accept_encoding="gzip, deflate, br",
        ip_address=ip,
        device_guid=guid,
    )


def _stored(context, policy=None):
    """Device row as register_login would have written it."""
    fp = compute_fingerprint(context, policy)
    return UserDevice(
        device_id=fp.device_id,
        device_guid=context.device_guid,
        browser_name=fp.agent.browser_name,
        browser_version=fp.agent.browser_version,
        platform=fp.agent.platform,
        device_type=fp.agent.device_type,
    )


# -------------------------------------------------
# User agent
# -------------------------------------------------
@pytest.mark.parametrize("ua, browser, platform, device_type", [
    (IPHONE_IOS_26_0, "Safari", "iOS", "mobile"),
    (IPAD_IOS_26_0, "Safari", "iOS", "tablet"),
    (WINDOWS_CHROME, "Chrome", "Windows", "desktop"),
    (WINDOWS_EDGE, "Edge", "Windows", "desktop"),
    (ANDROID_CHROME, "Chrome", "Android", "mobile"),
    (MAC_SAFARI, "Safari", "OS X", "desktop"),
    (MAC_FIREFOX, "Firefox", "OS X", "desktop"),
])
def test_parse_user_agent(ua, browser, platform, device_type):
    agent = parse_user_agent(ua)
    assert agent.browser_name == browser
    assert agent.platform == platform
    assert agent.device_type == device_type


def test_parse_user_agent_versions_and_label():
    agent = parse_user_agent(IPHONE_IOS_26_1)
    assert agent.browser_version == "26.1"
    assert agent.device_name == "Safari on iOS Mobile"
    assert parse_user_agent(WINDOWS_CHROME).device_name == "Chrome on Windows"


@pytest.mark.parametrize("ua", [None, "", "curl/8.4.0"])
def test_parse_user_agent_unknown(ua):
    agent = parse_user_agent(ua)
    assert agent.browser_name == "Unknown"
    assert agent.platform == "Unknown"


# -------------------------------------------------
# Normalisation
# -------------------------------------------------
def test_normalize_user_agent_keeps_major_versions_only():
    assert normalize_user_agent(IPHONE_IOS_26_0) == normalize_user_agent(IPHONE_IOS_26_1)
    assert "26_1" not in normalize_user_agent(IPHONE_IOS_26_1)
    assert "chrome/126 " in normalize_user_agent(WINDOWS_CHROME)


def test_normalize_headers():
    assert normalize_language("en-US,en;q=0.9") == "en-us"
    assert normalize_language("") == ""
    assert normalize_encoding("br, gzip;q=1.0, deflate") == "br,deflate,gzip"
    assert normalize_encoding(None) == ""


@pytest.mark.parametrize("ip, network", [
    ("203.0.113.77", "203.0.113.0/24"),
    ("2001:db8::1", "2001:db8::/64"),
    ("testclient", "testclient"),
    ("", ""),
])
def test_network_of(ip, network):
    assert network_of(ip) == network


# -------------------------------------------------
# Fingerprint
# -------------------------------------------------
def test_fingerprint_is_stable_across_minor_os_update():
    before = compute_fingerprint(_context(IPHONE_IOS_26_0))
    after = compute_fingerprint(_context(IPHONE_IOS_26_1))
    assert before.device_id == after.device_id
    assert len(before.device_id) == 64


def test_fingerprint_ignores_host_within_network():
    a = compute_fingerprint(_context(WINDOWS_CHROME, ip="203.0.113.10"))
    b = compute_fingerprint(_context(WINDOWS_CHROME, ip="203.0.113.99"))
    c = compute_fingerprint(_context(WINDOWS_CHROME, ip="198.51.100.10"))
    assert a.device_id == b.device_id
    assert a.device_id != c.device_id


def test_fingerprint_differs_across_platforms_and_browsers():
    ids = {
        compute_fingerprint(_context(ua)).device_id
        for ua in (IPHONE_IOS_26_0, ANDROID_CHROME, WINDOWS_CHROME, WINDOWS_EDGE, MAC_SAFARI)
    }
    assert len(ids) == 5


def test_fingerprint_without_headers_is_still_valid():
    fp = compute_fingerprint(DeviceContext())
    assert len(fp.device_id) == 64
    assert fp.agent.browser_name == "Unknown"


def test_client_identifier_takes_priority():
    a = compute_fingerprint(_context(WINDOWS_CHROME, guid="abc-123"))
    b = compute_fingerprint(_context(MAC_SAFARI, ip="198.51.100.1", guid="abc-123"))
    assert a.device_id == b.device_id


def test_compatible_id_is_scoped_to_user():
    fp = compute_fingerprint(_context(IPHONE_IOS_26_0))
    assert fp.compatible_id(1) != fp.compatible_id(2)
    assert fp.compatible_id(1) == compute_fingerprint(_context(IPHONE_IOS_26_1, ip="10.9.9.9")).compatible_id(1)


# -------------------------------------------------
# Similarity
# -------------------------------------------------
def test_match_exact():
    stored = _stored(_context(IPHONE_IOS_26_0))
    assert match_device(compute_fingerprint(_context(IPHONE_IOS_26_1)), stored) == "exact"


def test_match_compatible_when_network_changes():
    stored = _stored(_context(IPHONE_IOS_26_0, ip="203.0.113.10"))
    incoming = compute_fingerprint(_context(IPHONE_IOS_26_1, ip="198.51.100.20"))
    assert match_device(incoming, stored) == "compatible"


def test_no_match_for_other_platform_or_browser():
    stored = _stored(_context(IPHONE_IOS_26_0))
    assert match_device(compute_fingerprint(_context(ANDROID_CHROME)), stored) is None
    assert match_device(compute_fingerprint(_context(MAC_SAFARI)), stored) is None


def test_device_type_is_part_of_the_match_by_default():
    stored = _stored(_context(IPHONE_IOS_26_0, ip="203.0.113.10"))
    ipad = compute_fingerprint(_context(IPAD_IOS_26_0, ip="198.51.100.20"))
    assert match_device(ipad, stored) is None
    assert match_device(ipad, stored, DevicePolicy(match_device_type=False)) == "compatible"


def test_unrecognised_agents_never_match_compatibly_by_default():
    stored = _stored(_context("", ip="10.0.0.1"))
    curl = compute_fingerprint(_context("curl/8.4.0", ip="198.51.100.7"))

    assert match_device(curl, stored) is None
    assert match_device(curl, stored, DevicePolicy(match_unknown_agents=True)) == "compatible"

    # a known browser never pairs with an unrecognised one either
    browser = _stored(_context(WINDOWS_CHROME))
    assert match_device(curl, browser, DevicePolicy(match_unknown_agents=True)) is None


def test_version_drift_can_be_disabled():
    strict = DevicePolicy(allow_version_drift=False)
    stored = _stored(_context(IPHONE_IOS_26_0, ip="203.0.113.10"), strict)
    incoming = compute_fingerprint(_context(IPHONE_IOS_26_1, ip="198.51.100.20"), strict)
    assert match_device(incoming, stored, strict) is None


def test_guid_on_both_sides_decides():
    stored = _stored(_context(WINDOWS_CHROME, guid="guid-a"))
    same_browser_other_guid = compute_fingerprint(_context(WINDOWS_CHROME, guid="guid-b"))
    assert match_device(same_browser_other_guid, stored) is None

    other_browser_same_guid = compute_fingerprint(_context(MAC_SAFARI, guid="guid-a"))
    assert match_device(other_browser_same_guid, stored) == "exact"
