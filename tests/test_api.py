"""
HTTP tests for templates, direct contract endpoints and pipeline runs.
"""

import json

import httpx
import pytest
from fastapi import HTTPException

from ai_builder.main import app
from ai_builder.middleware.error_handler import http_exception_handler
from ai_builder.middleware.rate_limit import rate_limiter

from conftest import ARTIFACT, EXAMPLE_CONTRACT, GENERATED_CODE


RUN_BODY = {"customization": "Cap the supply at 1M", "contract_type": "Token"}


class TestServiceEndpoints:
    """Health, metrics and provider status."""

    @pytest.mark.asyncio
    async def test_health_reports_database(self, api_client):
        response = await api_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["database"]["healthy"] is True

    @pytest.mark.asyncio
    async def test_metrics(self, api_client):
        await api_client.post("/pipeline/runs", json=RUN_BODY)

        response = await api_client.get("/metrics")

        assert response.status_code == 200
        assert "pipeline_runs_total" in response.text
        assert "pipeline_stage_transitions_total" in response.text

    @pytest.mark.asyncio
    async def test_metrics_label_run_urls_by_route(self, api_client):
        for _ in range(3):
            run_id = (await api_client.post("/pipeline/runs", json=RUN_BODY)).json()["id"]
            await api_client.get(f"/pipeline/runs/{run_id}")
            await api_client.get(f"/pipeline/runs/{run_id}/code")

        text = (await api_client.get("/metrics")).text

        assert 'endpoint="/pipeline/runs/{run_id}"' in text
        assert 'endpoint="/pipeline/runs/{run_id}/code"' in text
        assert f"/pipeline/runs/{run_id}" not in text

    @pytest.mark.asyncio
    async def test_metrics_label_unknown_paths_together(self, api_client):
        await api_client.get("/no-such-path/123")

        text = (await api_client.get("/metrics")).text

        assert 'endpoint="unmatched"' in text
        assert "no-such-path" not in text

    @pytest.mark.asyncio
    async def test_providers(self, api_client):
        response = await api_client.get("/admin/providers")

        assert response.status_code == 200
        data = response.json()
        assert "current_provider" in data
        assert set(data["providers"]) == {"openrouter", "openai", "vertex", "bedrock", "azure"}

    @pytest.mark.asyncio
    async def test_correlation_id_is_echoed(self, api_client):
        response = await api_client.get("/templates", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"

    @pytest.mark.asyncio
    async def test_rate_limit(self, api_client, monkeypatch):
        monkeypatch.setattr(rate_limiter, "requests_per_minute", 2)

        assert (await api_client.get("/templates")).status_code == 200
        assert (await api_client.get("/templates")).status_code == 200
        limited = await api_client.get("/templates")

        assert limited.status_code == 429
        assert limited.json()["error"] == "Rate limit exceeded"
        assert (await api_client.get("/health")).status_code == 200

    @pytest.mark.asyncio
    async def test_polling_a_run_stays_within_default_limit(self, api_client):
        run_id = (await api_client.post("/pipeline/runs", json=RUN_BODY)).json()["id"]

        # Two minutes of polling every two seconds, inside one window
        statuses = {(await api_client.get(f"/pipeline/runs/{run_id}")).status_code for _ in range(60)}

        assert statuses == {200}


class TestTemplates:
    """Document store endpoints."""

    @pytest.mark.asyncio
    async def test_list_templates(self, api_client):
        response = await api_client.get("/templates")

        templates = {t["name"]: t["is_active"] for t in response.json()}
        assert templates["Token"] is True
        assert templates["NFT"] is False

    @pytest.mark.asyncio
    async def test_prompts(self, api_client):
        response = await api_client.get("/templates/Token/prompts")

        assert response.status_code == 200
        assert {p["title"] for p in response.json()} == {"Capped supply", "Pausable"}

    @pytest.mark.asyncio
    async def test_example(self, api_client):
        response = await api_client.get("/templates/Token/example")

        assert response.json() == {"template": "Token", "example": EXAMPLE_CONTRACT}

    @pytest.mark.asyncio
    async def test_missing_example_is_404(self, api_client):
        response = await api_client.get("/templates/NFT/example")

        assert response.status_code == 404
        assert response.json()["error"] == "Document Not Found"

    @pytest.mark.asyncio
    async def test_unknown_template_is_422(self, api_client):
        response = await api_client.get("/templates/Casino/prompts")

        assert response.status_code == 422
        assert response.json()["error"] == "Validation Error"


class TestContracts:
    """Direct generate/compile/resolve/audit endpoints."""

    @pytest.mark.asyncio
    async def test_generate(self, api_client):
        response = await api_client.post("/contracts/generate", json=RUN_BODY)

        assert response.status_code == 200
        assert response.json() == {"code": GENERATED_CODE}

    @pytest.mark.asyncio
    async def test_generate_rejects_empty_customization(self, api_client):
        response = await api_client.post("/contracts/generate", json={"customization": "", "contract_type": "Token"})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_generate_provider_error_is_502(self, api_client, fake_completion):
        fake_completion.text_error = RuntimeError("provider down")

        response = await api_client.post("/contracts/generate", json=RUN_BODY)

        assert response.status_code == 502
        assert response.json()["error"] == "LLM Provider Error"

    @pytest.mark.asyncio
    async def test_compile(self, api_client):
        response = await api_client.post("/contracts/compile", json={"code": "mod A {}"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["artifact"] == ARTIFACT
        assert data["code"] == "mod A {}"

    @pytest.mark.asyncio
    async def test_failed_compile_is_still_200(self, api_client, fake_compiler):
        fake_compiler.handler = lambda request: httpx.Response(200, json={"success": False, "message": "syntax error"})

        response = await api_client.post("/contracts/compile", json={"code": "mod A {"})

        assert response.status_code == 200
        assert response.json()["success"] is False
        assert response.json()["message"] == "syntax error"

    @pytest.mark.asyncio
    async def test_compiler_unreachable_is_503(self, api_client, fake_compiler):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        fake_compiler.handler = refuse

        response = await api_client.post("/contracts/compile", json={"code": "mod A {}"})

        assert response.status_code == 503
        assert response.json()["error"] == "Compiler Unavailable"

    @pytest.mark.asyncio
    async def test_resolve(self, api_client, fake_completion):
        response = await api_client.post(
            "/contracts/resolve",
            json={"code": "mod A {", "compiler_error": "Missing token '}'"},
        )

        assert response.status_code == 200
        assert response.json() == {"code": GENERATED_CODE}
        assert 'Resolve the compiler error "Missing token \'}\'"' in fake_completion.text_calls[0]["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_audit(self, api_client):
        response = await api_client.post("/contracts/audit", json={"code": "mod A {}"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert len(data["audits"]) == 3
        assert data["summary"]["score"] == 44.44
        assert data["summary"]["severity_counts"] == {"High": 1, "Medium": 0, "Low": 2}

    @pytest.mark.asyncio
    async def test_audit_schema_failure_is_502(self, api_client, fake_completion):
        fake_completion.audit = json.dumps({"audits": [{"title": "t", "description": "d"}]})

        response = await api_client.post("/contracts/audit", json={"code": "mod A {}"})

        assert response.status_code == 502
        assert response.json()["error"] == "Schema Validation Error"

    @pytest.mark.asyncio
    async def test_score(self, api_client):
        response = await api_client.post("/contracts/audit/score", json={"audits": []})

        assert response.json() == {"score": 0.0, "total": 0, "severity_counts": {"High": 0, "Medium": 0, "Low": 0}}


class TestPipelineRuns:
    """Background pipeline runs."""

    @pytest.mark.asyncio
    async def test_create_run_returns_202(self, api_client):
        response = await api_client.post("/pipeline/runs", json=RUN_BODY)

        assert response.status_code == 202
        data = response.json()
        assert data["contract_type"] == "Token"
        assert data["is_running"] is True
        assert set(data["stages"]) == {"prompts", "generate", "compile", "audit"}

    @pytest.mark.asyncio
    async def test_run_completes(self, api_client):
        run_id = (await api_client.post("/pipeline/runs", json=RUN_BODY)).json()["id"]

        response = await api_client.get(f"/pipeline/runs/{run_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["is_running"] is False
        stages = data["stages"]
        assert stages["prompts"]["state"] == "success"
        assert len(stages["prompts"]["payload"]) == 2
        assert stages["generate"]["payload"] == GENERATED_CODE
        assert stages["compile"]["payload"]["success"] is True
        assert stages["audit"]["state"] == "success"
        assert data["audit_summary"]["score"] == 44.44

    @pytest.mark.asyncio
    async def test_failed_generation_leaves_later_stages_idle(self, api_client, fake_completion):
        fake_completion.text_error = RuntimeError("provider down")
        run_id = (await api_client.post("/pipeline/runs", json=RUN_BODY)).json()["id"]

        data = (await api_client.get(f"/pipeline/runs/{run_id}")).json()

        assert data["stages"]["generate"]["is_error"] is True
        assert data["stages"]["compile"]["state"] == "idle"
        assert data["stages"]["audit"]["state"] == "idle"
        assert data["audit_summary"] is None

    @pytest.mark.asyncio
    async def test_unknown_run_is_404(self, api_client):
        response = await api_client.get("/pipeline/runs/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error"] == "Run Not Found"

    @pytest.mark.asyncio
    async def test_rerun_settled_run(self, api_client, fake_completion):
        run_id = (await api_client.post("/pipeline/runs", json=RUN_BODY)).json()["id"]

        response = await api_client.post(f"/pipeline/runs/{run_id}/rerun")

        assert response.status_code == 202
        assert len(fake_completion.text_calls) == 2

    @pytest.mark.asyncio
    async def test_rerun_response_shows_idle_stages(self, api_client, fake_completion):
        run_id = (await api_client.post("/pipeline/runs", json=RUN_BODY)).json()["id"]
        fake_completion.text_error = RuntimeError("provider down")

        data = (await api_client.post(f"/pipeline/runs/{run_id}/rerun")).json()

        assert data["is_running"] is True
        for stage in ("generate", "compile", "audit"):
            assert data["stages"][stage]["state"] == "idle"
            assert data["stages"][stage]["payload"] is None
        assert data["audit_summary"] is None

        settled = (await api_client.get(f"/pipeline/runs/{run_id}")).json()
        assert settled["stages"]["generate"]["is_error"] is True

    @pytest.mark.asyncio
    async def test_rerun_while_running_is_409(self, api_client, fake_completion):
        run_id = (await api_client.post("/pipeline/runs", json=RUN_BODY)).json()["id"]
        app.state.runs.get(run_id).pipeline.acquire()

        response = await api_client.post(f"/pipeline/runs/{run_id}/rerun")

        assert response.status_code == 409
        assert response.json()["error"] == "Pipeline Busy"
        assert len(fake_completion.text_calls) == 1

    @pytest.mark.asyncio
    async def test_download_code(self, api_client):
        run_id = (await api_client.post("/pipeline/runs", json=RUN_BODY)).json()["id"]

        response = await api_client.get(f"/pipeline/runs/{run_id}/code")

        assert response.status_code == 200
        assert response.text == GENERATED_CODE
        assert 'filename="token.cairo"' in response.headers["content-disposition"]

    @pytest.mark.asyncio
    async def test_download_code_without_generation_is_404(self, api_client, fake_completion):
        fake_completion.text_error = RuntimeError("provider down")
        run_id = (await api_client.post("/pipeline/runs", json=RUN_BODY)).json()["id"]

        response = await api_client.get(f"/pipeline/runs/{run_id}/code")

        assert response.status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize("part", ["sierra", "casm"])
    async def test_download_artifact(self, api_client, part):
        run_id = (await api_client.post("/pipeline/runs", json=RUN_BODY)).json()["id"]

        response = await api_client.get(f"/pipeline/runs/{run_id}/artifact/{part}")

        assert response.status_code == 200
        assert response.json() == ARTIFACT[part]
        assert f'filename="{part}.json"' in response.headers["content-disposition"]

    @pytest.mark.asyncio
    async def test_download_artifact_after_failed_compile_is_404(self, api_client, fake_compiler):
        fake_compiler.handler = lambda request: httpx.Response(200, json={"success": False, "message": "syntax error"})
        run_id = (await api_client.post("/pipeline/runs", json=RUN_BODY)).json()["id"]

        response = await api_client.get(f"/pipeline/runs/{run_id}/artifact/sierra")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_artifact_part_is_422(self, api_client):
        run_id = (await api_client.post("/pipeline/runs", json=RUN_BODY)).json()["id"]

        response = await api_client.get(f"/pipeline/runs/{run_id}/artifact/abi")

        assert response.status_code == 422


class TestHttpExceptionHandler:
    """Shape of HTTPException responses."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "detail, error, message, details",
        [
            ("Run has no generated code", "Run has no generated code", "Run has no generated code", None),
            ({"error": "Rate limit exceeded", "message": "slow down"}, "Rate limit exceeded", "slow down",
             {"error": "Rate limit exceeded", "message": "slow down"}),
            ([{"loc": ["body"], "msg": "bad"}], "Error", "", [{"loc": ["body"], "msg": "bad"}]),
        ],
    )
    async def test_detail_shapes(self, detail, error, message, details):
        response = await http_exception_handler(None, HTTPException(status_code=400, detail=detail))

        assert response.status_code == 400
        assert json.loads(response.body) == {"error": error, "message": message, "details": details}
