import pytest

from signlearn_server.core.exceptions import OriginDenied
from signlearn_server.core.security.origin_guard import OriginGuard


@pytest.fixture
def guard():
    return OriginGuard(
        allowed_origins=["http://localhost:8080", "https://signlearn.app/"],
        trusted_parent_domains=["lovable.app"]
    )


class TestOriginGuard:
    """Test suite for OriginGuard."""

    @pytest.mark.parametrize("origin", [
        "http://localhost:8080",
        "https://signlearn.app",
        "https://SignLearn.app",
        "https://preview-123.lovable.app",
        "https://a.b.lovable.app",
    ])
    def test_allowed(self, guard, origin):
        assert guard.is_allowed(origin)
        assert guard.check(origin) == origin

    @pytest.mark.parametrize("origin", [
        None,
        "",
        "null",
        "https://evil.example",
        "http://preview-123.lovable.app",
        "https://lovable.app",
        "https://evil-lovable.app",
        "https://lovable.app.evil.example",
        "https://preview.lovable.app:8443",
        "http://localhost:3000",
    ])
    def test_denied(self, guard, origin):
        assert not guard.is_allowed(origin)
        with pytest.raises(OriginDenied):
            guard.check(origin)

    def test_no_parent_domains_means_exact_only(self):
        guard = OriginGuard(allowed_origins=["https://signlearn.app"])
        assert guard.origin_regex is None
        assert guard.is_allowed("https://signlearn.app")
        assert not guard.is_allowed("https://x.signlearn.app")

    def test_denial_detail_is_generic(self, guard):
        with pytest.raises(OriginDenied) as exc_info:
            guard.check("https://evil.example")
        assert exc_info.value.to_detail() == {"error": "Unauthorized origin"}
        assert exc_info.value.status_code == 403
