"""Tests for dependency intelligence."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import respx

from conftest import package_json_payload
from git_assure.analysis.dependencies import build_dependency_analysis
from git_assure.fetcher import Found, ResourceGateway
from git_assure.models import Severity

OSV_URL = "https://api.osv.dev/v1/query"


def make_fetcher(authenticated=False, alerts_enabled=False, alerts=()):
    fetcher = MagicMock()
    fetcher.is_authenticated = authenticated
    fetcher.vulnerability_alerts_enabled = AsyncMock(return_value=alerts_enabled)
    fetcher.fetch_dependabot_alerts = AsyncMock(return_value=Found(payload=list(alerts)))
    return fetcher


class TestBuildDependencyAnalysis:
    @pytest.mark.asyncio
    @respx.mock
    async def test_osv_and_registry_for_unauthenticated_run(self, identity, settings):
        def osv(request):
            if b"lodash" in request.content:
                return httpx.Response(
                    200, json={"vulns": [{"id": "GHSA-1", "database_specific": {"severity": "HIGH"}}]}
                )
            return httpx.Response(200, json={})

        respx.post(OSV_URL).mock(side_effect=osv)
        respx.get("https://registry.npmjs.org/lodash/latest").mock(
            return_value=httpx.Response(200, json={"version": "4.17.21"})
        )
        respx.get("https://registry.npmjs.org/react/latest").mock(
            return_value=httpx.Response(200, json={"version": "18.3.1"})
        )
        fetcher = make_fetcher()
        payloads = {"package.json": package_json_payload({"lodash": "^4.17.0", "react": "16.0.0"})}

        async with ResourceGateway() as services:
            analysis = await build_dependency_analysis(
                fetcher, services, identity, payloads, True, settings
            )

        assert analysis.has_manifest
        assert analysis.total_declared == 2
        assert analysis.alerts_enabled is False
        fetcher.vulnerability_alerts_enabled.assert_not_awaited()
        assert analysis.vulnerability_source == "OSV"
        assert [(v.package_name, v.severity) for v in analysis.vulnerabilities] == [
            ("lodash", Severity.high)
        ]
        assert {(o.name, o.urgency) for o in analysis.outdated} == {
            ("lodash", "low"),
            ("react", "high"),
        }
        assert analysis.major_outdated_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_advisory_alerts_take_precedence(self, identity, settings):
        osv = respx.post(OSV_URL).mock(return_value=httpx.Response(200, json={}))
        respx.get(url__regex=r"https://registry\.npmjs\.org/.*").mock(
            return_value=httpx.Response(200, json={"version": "1.0.0"})
        )
        alert = {
            "security_vulnerability": {"package": {"name": "minimist"}, "severity": "critical"},
            "security_advisory": {"ghsa_id": "GHSA-2"},
        }
        fetcher = make_fetcher(authenticated=True, alerts_enabled=True, alerts=[alert])
        payloads = {"package.json": package_json_payload({"minimist": "1.0.0"})}

        async with ResourceGateway() as services:
            analysis = await build_dependency_analysis(
                fetcher, services, identity, payloads, True, settings
            )

        assert analysis.alerts_enabled is True
        assert analysis.vulnerability_source == "GH-Advisory"
        assert analysis.severity_count(Severity.high, Severity.critical) == 1
        assert not osv.called
        assert analysis.outdated == []

    @pytest.mark.asyncio
    async def test_manifest_without_parsable_dependencies(self, identity, settings):
        fetcher = make_fetcher(authenticated=True, alerts_enabled=False)
        services = MagicMock()
        services.post = AsyncMock()
        services.fetch = AsyncMock()

        analysis = await build_dependency_analysis(
            fetcher, services, identity, {"pom.xml": {"content": ""}}, True, settings
        )

        assert analysis.has_manifest
        assert analysis.dependencies == []
        assert analysis.vulnerabilities == []
        assert analysis.vulnerability_source is None
        services.post.assert_not_awaited()
        services.fetch.assert_not_awaited()
