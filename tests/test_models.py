from __future__ import annotations

import pytest

from affiliate_hub.errors import ValidationError
from affiliate_hub.models import AffiliateLink, Platform


@pytest.mark.parametrize(
    "url",
    ["https://example.com/offer", "http://shop.example.org", "ftp://files.example.net/a.zip"],
)
def test_affiliate_link_accepts_supported_schemes(url: str) -> None:
    assert AffiliateLink(url=url, platform_id="64b7f0c2a1b2c3d4e5f60718").url == url


@pytest.mark.parametrize("url", ["not-a-url", "mailto:someone@example.com", "https://has space.com", "", None])
def test_affiliate_link_rejects_malformed_urls(url) -> None:
    with pytest.raises(ValidationError) as excinfo:
        AffiliateLink(url=url, platform_id="64b7f0c2a1b2c3d4e5f60718")
    assert [v.field for v in excinfo.value.violations] == ["url"]


def test_affiliate_link_reports_url_and_platform_together() -> None:
    with pytest.raises(ValidationError) as excinfo:
        AffiliateLink(url="bad", platform_id=None)
    assert [v.field for v in excinfo.value.violations] == ["url", "platformId"]


def test_platform_from_payload_keeps_known_fields() -> None:
    platform = Platform.from_payload(
        {
            "name": "ClickBank",
            "description": "Digital products",
            "niches": ["health"],
            "commissionRate": 50,
            "apiUrl": "https://api.clickbank.com",
            "unknown": "ignored",
        }
    )
    assert platform.commission_rate == 50.0
    assert platform.to_document()["niches"] == ["health"]
    assert "unknown" not in platform.to_document()


def test_platform_from_payload_rejects_wrong_types() -> None:
    with pytest.raises(ValidationError) as excinfo:
        Platform.from_payload({"niches": "health", "commissionRate": "ten"})
    assert [v.field for v in excinfo.value.violations] == ["niches", "commissionRate"]
